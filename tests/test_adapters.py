"""
Tests for the platform adapters and their registry.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from adapters import ADAPTERS, Job51Adapter, LiepinAdapter, ZhilianAdapter, clean_text, get_adapter
from core.config import PlatformConfig
from core.models import PaginationMode, PlatformType
from core.selectors import SelectorResolver
from fakes import DemoAdapter, FakeElement, FakePage, make_card


def query(url):
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestRegistry:

    def test_all_platforms_registered(self):
        assert set(ADAPTERS) == {p.value for p in PlatformType}

    def test_get_adapter(self):
        adapter = get_adapter("Liepin")
        assert isinstance(adapter, LiepinAdapter)
        assert adapter.platform_id == "liepin"

    def test_unknown(self):
        with pytest.raises(KeyError):
            get_adapter("boss")

    @pytest.mark.parametrize("adapter_cls", [LiepinAdapter, Job51Adapter, ZhilianAdapter])
    def test_required_cascades_present(self, adapter_cls):
        adapter = adapter_cls()
        for name in ("job_card", "title", "company", "qr_switch"):
            assert len(adapter.require_cascade(name)) >= 1

    def test_missing_cascade(self):
        with pytest.raises(KeyError):
            LiepinAdapter().require_cascade("batch_submit")


class TestPlatformTraits:

    def test_liepin(self):
        adapter = LiepinAdapter(PlatformConfig(PlatformType.LIEPIN, city_code="020", salary="$20$30"))
        params = query(adapter.search_url("python", 3))

        assert adapter.pagination_mode is PaginationMode.NEXT
        assert not adapter.batch_submit
        assert params["key"] == "python"
        assert params["currentPage"] == "2"
        assert params["dq"] == "020"
        assert params["salary"] == "$20$30"
        assert adapter.greeting == adapter.default_greeting

    def test_job51(self):
        adapter = Job51Adapter(PlatformConfig(PlatformType.JOB51, city_code="020000"))
        params = query(adapter.search_url("python", 1))

        assert adapter.pagination_mode is PaginationMode.JUMP
        assert adapter.batch_submit
        assert params == {"keyword": "python", "searchType": "2", "jobArea": "020000"}

    def test_zhilian(self):
        adapter = ZhilianAdapter(PlatformConfig(PlatformType.ZHILIAN, city_code="538", greeting="hi"))
        params = query(adapter.search_url("python", 4))

        assert adapter.pagination_mode is PaginationMode.URL
        assert adapter.submit_opens_tab
        assert params["p"] == "4"
        assert params["jl"] == "538"
        assert adapter.greeting == "hi"


class TestLoginChecks:

    @pytest.mark.asyncio
    async def test_liepin_logged_in_url(self):
        page = FakePage("https://c.liepin.com/")
        assert await LiepinAdapter().is_logged_in(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_liepin_user_menu(self):
        page = FakePage("https://www.liepin.com/")
        assert not await LiepinAdapter().is_logged_in(page, SelectorResolver())
        page.set("#header-quick-menu", FakeElement("me"))
        assert await LiepinAdapter().is_logged_in(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_job51_login_link(self):
        page = FakePage("https://www.51job.com/")
        page.set("span.login", FakeElement("登录/注册"))
        assert not await Job51Adapter().is_logged_in(page, SelectorResolver())
        page.set("span.login", FakeElement("张三"))
        page.set("//a[contains(text(), '在线简历')]", FakeElement("在线简历"))
        assert await Job51Adapter().is_logged_in(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_job51_needs_positive_marker(self):
        page = FakePage("https://www.51job.com/")
        assert not await Job51Adapter().is_logged_in(page, SelectorResolver())
        page.set("span.login", FakeElement("张三"))
        assert not await Job51Adapter().is_logged_in(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_job51_verification_challenge(self):
        page = FakePage("https://we.51job.com/pc/search")
        adapter = Job51Adapter()
        page.set("//p[@class='waf-nc-title']", FakeElement("请完成下列验证后继续"))
        assert await adapter.verification_required(page, SelectorResolver())
        page.set("//p[@class='waf-nc-title']", FakeElement("欢迎"))
        assert not await adapter.verification_required(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_job51_login_page(self):
        page = FakePage("https://login.51job.com/login.php")
        assert not await Job51Adapter().is_logged_in(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_zhilian_logged_in_url(self):
        resolver = SelectorResolver()
        assert await ZhilianAdapter().is_logged_in(FakePage("https://i.zhaopin.com/"), resolver)
        assert not await ZhilianAdapter().is_logged_in(FakePage("https://passport.zhaopin.com/login"), resolver)


class TestSharedBehaviour:

    def test_clean_text(self):
        assert clean_text("  【急招】  Python\n 工程师 ") == "[急招] Python 工程师"
        assert clean_text(None) == ""

    @pytest.mark.asyncio
    async def test_extract_listings_in_dom_order(self):
        page = FakePage()
        incomplete = FakeElement(children={".title": [FakeElement("No company")]})
        page.set(".card", make_card("Engineer", "Acme", "Ms Li"), incomplete, make_card("Dev", "Globex"))

        listings = await DemoAdapter().extract_listings(page, SelectorResolver())

        assert [(l.company, l.title, l.recruiter) for l in listings] == [
            ("Acme", "Engineer", "Ms Li"),
            ("Globex", "Dev", None),
        ]
        assert listings[1].card_ref is not None

    @pytest.mark.asyncio
    async def test_extract_uses_fallback_card_selector(self):
        page = FakePage()
        page.set(".card-alt", make_card("Engineer", "Acme"))
        listings = await DemoAdapter().extract_listings(page, SelectorResolver())
        assert listings[0].describe() == "Acme | Engineer"

    @pytest.mark.asyncio
    async def test_zhilian_daily_limit_notice(self):
        page = FakePage()
        page.set("//div[@class='a-job-apply-workflow']", FakeElement("今日投递已达到上限"))
        assert await ZhilianAdapter().daily_limit_reached(page, SelectorResolver())

    @pytest.mark.asyncio
    async def test_read_page_count(self):
        page = FakePage()
        page.set(".pager li", FakeElement("1"), FakeElement("2"), FakeElement("…12"), FakeElement("下一页"))
        assert await DemoAdapter().read_page_count(page, SelectorResolver()) == 12

    @pytest.mark.asyncio
    async def test_open_qr_login(self):
        page = FakePage()
        qr = FakeElement("扫码")
        page.on_goto = lambda url: page.set(".qr", qr)
        await DemoAdapter().open_qr_login(page, SelectorResolver())
        assert page.visits == ["https://jobs.example/login"]
        assert qr.clicks == ["native"]
