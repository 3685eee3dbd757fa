"""
Zhaopin (Zhilian) Adapter

Result pages are addressed by URL (`p=`). The batch submit button opens a
new tab with the application result where a greeting can be sent. The site
shows a notice once the daily submission cap is reached.
"""

import logging
from typing import Any
from urllib.parse import urlencode

from core.models import PaginationMode, PlatformType
from core.selectors import SelectorResolver

from .base import PlatformAdapter, cascade

logger = logging.getLogger(__name__)


class ZhilianAdapter(PlatformAdapter):
    """Zhaopin batch-submit automation."""

    platform = PlatformType.ZHILIAN
    home_url = "https://passport.zhaopin.com/login"
    login_url = "https://passport.zhaopin.com/login"
    pagination_mode = PaginationMode.URL
    batch_submit = True
    submit_opens_tab = True
    daily_limit_text = "达到上限"
    default_greeting = "您好，我对贵公司的岗位很感兴趣，期待能进一步沟通！"

    SEARCH_URL = "https://sou.zhaopin.com/"
    LOGGED_IN_HOST = "i.zhaopin.com"

    cascades = {c.name: c for c in (
        cascade(
            "job_card",
            "div.joblist-box__item",
            "//div[contains(@class, 'joblist-box__item')]",
            "div.positionlist > div",
        ),
        cascade("title", ".jobinfo__name", "[class*='jobinfo__name']", "[class*='job-name']"),
        cascade("company", ".companyinfo__name", "[class*='companyinfo__name']", "[class*='company-name']"),
        cascade("salary", ".jobinfo__salary", "[class*='salary']"),
        cascade("recruiter", ".companyinfo__staff-name", "[class*='staff-name']"),
        cascade(
            "select",
            "input[type='checkbox']",
            "i[class*='checkbox']",
            "[class*='checkbox']",
        ),
        cascade(
            "batch_submit",
            "//button[@class='betch__button']",
            ".betch__button, button[class*='batch']",
            "//button[contains(text(), '投递') or contains(text(), '申请')]",
        ),
        cascade("contact_button", "//*[contains(text(), '立即沟通') or contains(text(), '发送消息')]", "[class*='contact']"),
        cascade(
            "tab_chat_input",
            ".message-input",
            ".chat-input",
            "textarea[placeholder='请输入消息内容']",
            "input[type='text']",
        ),
        cascade("send_button", ".send-btn", "//*[contains(text(), '发送')]"),
        cascade("dialog_close", "//img[@title='close-icon']", "//div[contains(@class, 'deliver-dialog')]//*[contains(@class, 'close')]"),
        cascade("daily_limit", "//div[@class='a-job-apply-workflow']", "[class*='apply-workflow']"),
        cascade(
            "qr_switch",
            "//div[@class='zppp-panel-normal-bar__img']",
            "//button[contains(text(), '扫码登录') or contains(@class, 'scan-btn')]",
        ),
    )}

    def search_url(self, keyword: str, page_index: int) -> str:
        params = {"kw": keyword, "p": max(page_index, 1)}
        if self.config.city_code:
            params["jl"] = self.config.city_code
        if self.config.salary:
            params["sl"] = self.config.salary
        return f"{self.SEARCH_URL}?{urlencode(params)}"

    async def is_logged_in(self, page: Any, resolver: SelectorResolver) -> bool:
        return self.LOGGED_IN_HOST in (page.url or "")
