"""
Tests for credential persistence and the authentication state machine.
"""

import json

import pytest

from core.auth import AuthController, CredentialStore
from core.error_handler import AuthenticationError, AuthStateError
from core.models import AuthState, Credential
from fakes import DemoAdapter, FakeElement, FakePage, make_session


COOKIE = {"name": "sid", "value": "abc", "domain": ".jobs.example", "path": "/", "expires": -1, "httpOnly": True}


def make_auth(page, store, **kwargs):
    kwargs.setdefault("qr_timeout", 0)
    kwargs.setdefault("poll_interval", 0.01)
    return AuthController(make_session(page), DemoAdapter(), store, **kwargs)


class TestCredentialStore:

    def test_missing_file(self, tmp_path):
        assert CredentialStore(tmp_path / "cookie.json").load() == []

    def test_save_and_load(self, tmp_path):
        store = CredentialStore(tmp_path / "liepin" / "cookie.json")
        store.save([Credential.from_dict(COOKIE)])

        raw = json.loads((tmp_path / "liepin" / "cookie.json").read_text(encoding="utf-8"))
        assert raw == [{"name": "sid", "value": "abc", "domain": ".jobs.example", "path": "/", "httpOnly": True}]
        assert store.load()[0].name == "sid"

    def test_unreadable_file_ignored(self, tmp_path):
        path = tmp_path / "cookie.json"
        path.write_text("[{\"value\": 1}]", encoding="utf-8")
        assert CredentialStore(path).load() == []


class TestAuthController:

    @pytest.mark.asyncio
    async def test_valid_cookies_authenticate_without_qr(self, tmp_path):
        store = CredentialStore(tmp_path / "cookie.json")
        store.save([Credential.from_dict(COOKIE)])

        page = FakePage()
        page.on_reload = lambda: page.set(".user", FakeElement("me"))
        auth = make_auth(page, store)

        assert await auth.authenticate() is AuthState.AUTHENTICATED
        assert page.context.cookie_jar[0]["name"] == "sid"
        assert page.visits == ["https://jobs.example/"]
        auth.require_authenticated()

    @pytest.mark.asyncio
    async def test_expired_cookies_fall_back_to_qr(self, tmp_path):
        store = CredentialStore(tmp_path / "cookie.json")
        store.save([Credential.from_dict(COOKIE)])

        page = FakePage()
        qr = FakeElement("scan", on_click=lambda: page.set(".user", FakeElement("me")))
        page.on_goto = lambda url: page.set(".qr", qr) if url.endswith("/login") else None
        auth = make_auth(page, store, qr_timeout=1)

        assert await auth.authenticate() is AuthState.AUTHENTICATED
        assert qr.clicks == ["native"]
        assert "https://jobs.example/login" in page.visits

    @pytest.mark.asyncio
    async def test_qr_login_persists_cookies(self, tmp_path):
        store = CredentialStore(tmp_path / "cookie.json")
        page = FakePage()

        def scanned():
            page.set(".user", FakeElement("me"))
            page.context.cookie_jar.append({"name": "token", "value": "t", "domain": ".jobs.example", "path": "/"})

        page.on_goto = lambda url: page.set(".qr", FakeElement("scan", on_click=scanned))
        auth = make_auth(page, store, qr_timeout=1)

        assert await auth.authenticate() is AuthState.AUTHENTICATED
        assert [c.name for c in store.load()] == ["token"]

    @pytest.mark.asyncio
    async def test_qr_timeout(self, tmp_path):
        store = CredentialStore(tmp_path / "cookie.json")
        auth = make_auth(FakePage(), store, qr_timeout=0.05)

        assert await auth.authenticate() is AuthState.TIMED_OUT
        assert not (tmp_path / "cookie.json").exists()
        with pytest.raises(AuthenticationError):
            auth.require_authenticated()

    @pytest.mark.asyncio
    async def test_terminal_state_is_kept(self, tmp_path):
        auth = make_auth(FakePage(), CredentialStore(tmp_path / "cookie.json"))
        assert await auth.authenticate() is AuthState.TIMED_OUT
        assert await auth.authenticate() is AuthState.TIMED_OUT

    def test_illegal_transition_rejected(self, tmp_path):
        auth = make_auth(FakePage(), CredentialStore(tmp_path / "cookie.json"))
        auth.state = AuthState.AUTHENTICATED
        with pytest.raises(AuthStateError):
            auth._transition(AuthState.EXPIRED)

    def test_unauthenticated_cannot_submit(self, tmp_path):
        auth = make_auth(FakePage(), CredentialStore(tmp_path / "cookie.json"))
        with pytest.raises(AuthenticationError):
            auth.require_authenticated()
