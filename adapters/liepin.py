"""
Liepin Adapter

Liepin has no batch submission: every listing gets a chat greeting through
the in-page IM widget ("聊一聊"). Results are paged with the next-page
control of the pagination widget.
"""

import logging
from typing import Any
from urllib.parse import urlencode

from core.models import PaginationMode, PlatformType
from core.selectors import SelectorResolver

from .base import PlatformAdapter, cascade

logger = logging.getLogger(__name__)


class LiepinAdapter(PlatformAdapter):
    """
    Liepin chat-greeting automation.

    Usage:
        adapter = LiepinAdapter(platform_config)
        url = adapter.search_url("python", 1)
    """

    platform = PlatformType.LIEPIN
    home_url = "https://www.liepin.com/"
    login_url = ""  # the QR panel opens from the home page header
    pagination_mode = PaginationMode.NEXT
    batch_submit = False
    chat_button_text = "聊一聊"
    default_greeting = "您好，我对这个岗位很感兴趣，期待与您进一步沟通！"

    SEARCH_URL = "https://www.liepin.com/zhaopin/"
    LOGGED_IN_HOST = "c.liepin.com"

    cascades = {c.name: c for c in (
        cascade(
            "job_card",
            "div.job-card-pc-container",
            "//div[contains(@class, 'job-card')]",
            "//div[contains(@class, 'job-item')]",
            "//li[contains(@class, 'job-card')]",
            "//div[contains(@data-qa, 'job-card')]",
        ),
        cascade("title", ".job-title-box .ellipsis-1", "[class*='job-title']", "[class*='job-name']"),
        cascade("company", ".company-name", "[class*='company-name']"),
        cascade("salary", ".job-salary", "[class*='salary']"),
        cascade(
            "recruiter",
            ".recruiter-name",
            ".hr-name, .contact-name",
            "[class*='recruiter-name'], [class*='hr-name']",
        ),
        cascade(
            "overlay_close",
            ".subscribe-close-btn",
            "//div[contains(@class, 'subscribe')]//*[contains(@class, 'close')]",
        ),
        cascade(
            "next_page",
            ".ant-pagination li.ant-pagination-next",
            "li[title='下一页']",
            "//li[contains(text(), '下一页')]",
            "//a[contains(text(), '下一页')]",
        ),
        cascade(
            "page_numbers",
            ".ant-pagination li",
            "//div[contains(@class, 'pagination')]//li",
        ),
        cascade(
            "hover_area",
            ".recruiter-info-box",
            ".recruiter-info, .hr-info, .contact-info",
            ".job-card-footer, .card-footer",
        ),
        cascade(
            "chat_button",
            "button.ant-btn.ant-btn-primary.ant-btn-round",
            "button[class*='ant-btn'][class*='primary']",
            "button[class*='chat'], button[class*='talk']",
            ".chat-btn, .talk-btn, .contact-btn",
            "button",
        ),
        cascade("chat_surface", ".__im_basic__header-wrap", "[class*='im-header']", "[class*='chat-header']"),
        cascade("chat_input", ".__im_basic__textarea", "textarea[class*='im']", "textarea"),
        cascade(
            "chat_close",
            ".__im_basic__contacts-title svg",
            "//div[contains(@class, 'im')]//*[contains(@class, 'close')]",
            "//div[contains(@class, 'chat')]//*[contains(@class, 'close')]",
        ),
        cascade(
            "logged_in",
            "#header-quick-menu",
            "//div[contains(@class, 'user-info')]",
            "//div[contains(@class, 'user-avatar')]",
            "//a[contains(@href, '/user/')]",
        ),
        cascade(
            "qr_switch",
            ".switch-login-type-btn",
            "//div[contains(@class, 'login')]//*[contains(@class, 'switch')]",
            "//*[contains(text(), '扫码登录')]",
        ),
    )}

    def search_url(self, keyword: str, page_index: int) -> str:
        params = {
            "city": self.config.city_code,
            "dq": self.config.city_code,
            "key": keyword,
            "currentPage": max(page_index - 1, 0),  # zero-based on this site
        }
        if self.config.salary:
            params["salary"] = self.config.salary
        if self.config.pub_time:
            params["pubTime"] = self.config.pub_time
        return f"{self.SEARCH_URL}?{urlencode(params)}"

    async def is_logged_in(self, page: Any, resolver: SelectorResolver) -> bool:
        if self.LOGGED_IN_HOST in (page.url or ""):
            return True
        return await resolver.resolve(self.cascades["logged_in"], page) is not None
