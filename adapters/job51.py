"""
51job Adapter

51job supports batch submission: listings are ticked one by one and a
single batch button submits them. Pages are reached through the
jump-to-page input at the bottom of the result list.
"""

import logging
from typing import Any
from urllib.parse import urlencode

from core.models import PaginationMode, PlatformType
from core.selectors import SelectorResolver

from .base import PlatformAdapter, cascade

logger = logging.getLogger(__name__)


class Job51Adapter(PlatformAdapter):
    """51job batch-submit automation."""

    platform = PlatformType.JOB51
    home_url = "https://www.51job.com"
    login_url = "https://login.51job.com/login.php?lang=c&url=https://www.51job.com/&qrlogin=2"
    pagination_mode = PaginationMode.JUMP
    batch_submit = True
    verification_text = "验证"

    SEARCH_URL = "https://we.51job.com/pc/search"

    cascades = {c.name: c for c in (
        cascade("job_card", "div.joblist-item", "div.j_joblist div.e", "[class*='joblist-item']"),
        cascade("title", "[class*='jname text-cut']", "[class*='jname']"),
        cascade("company", "[class*='cname text-cut']", "[class*='cname']"),
        cascade("salary", "[class*='sal']"),
        cascade("recruiter", ".er", "[class*='recruiter']"),
        cascade("select", "div.ick", "input[type='checkbox']", "[class*='checkbox']"),
        cascade(
            "batch_submit",
            "div.tabs_in button.p_but >> nth=1",
            "//button[contains(text(), '投递')]",
            "button[class*='p_but']",
        ),
        cascade("jump_input", "#jump_page", "input[class*='jump']"),
        cascade(
            "jump_button",
            "span.jumpPage",
            "//span[contains(text(), '跳转')]",
            "button[class*='jump']",
        ),
        cascade("page_numbers", ".el-pager li", "//ul[contains(@class, 'pager')]/li"),
        cascade(
            "dialog_close",
            ".el-dialog__headerbtn",
            "//div[contains(@class, 'dialog')]//*[contains(@class, 'close')]",
        ),
        cascade("login_prompt", "span.login", "//a[contains(@class, 'uname')]"),
        cascade("logged_in", "//a[contains(text(), '在线简历')]"),
        cascade("verification", "//p[@class='waf-nc-title']", "p.waf-nc-title"),
        cascade("qr_switch", "//i[contains(@class, 'passIcon')]", "//*[contains(text(), '扫码登录')]"),
    )}

    def search_url(self, keyword: str, page_index: int) -> str:
        # Page 1 only: later pages go through the jump control
        params = {"keyword": keyword, "searchType": 2}
        if self.config.city_code:
            params["jobArea"] = self.config.city_code
        if self.config.salary:
            params["salary"] = self.config.salary
        return f"{self.SEARCH_URL}?{urlencode(params)}"

    async def is_logged_in(self, page: Any, resolver: SelectorResolver) -> bool:
        if "login.51job.com" in (page.url or ""):
            return False
        prompt = await resolver.first_text(self.cascades["login_prompt"], page)
        # The header shows a "登录" link only for anonymous visitors
        if prompt and "登录" in prompt:
            return False
        return await resolver.resolve(self.cascades["logged_in"], page) is not None
