"""
Authentication state machine.

    UNAUTHENTICATED --cookies--> COOKIE_LOADED --probe ok--> AUTHENTICATED
           |                          |
           |                     probe fails
           |                          v
           +----probe fails------> EXPIRED / QR login --ok--> AUTHENTICATED
                                      |
                                   timeout
                                      v
                                  TIMED_OUT

States only move forward; AUTHENTICATED and TIMED_OUT are terminal for the
run. Cookies are written only after an interactive login succeeds.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from .browser import PlatformSession
from .error_handler import AuthenticationError, AuthStateError
from .models import AuthState, Credential
from .selectors import SelectorResolver
from .waits import poll_until

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    AuthState.UNAUTHENTICATED: {AuthState.COOKIE_LOADED, AuthState.AUTHENTICATED, AuthState.TIMED_OUT},
    AuthState.COOKIE_LOADED: {AuthState.AUTHENTICATED, AuthState.EXPIRED},
    AuthState.EXPIRED: {AuthState.AUTHENTICATED, AuthState.TIMED_OUT},
    AuthState.AUTHENTICATED: set(),
    AuthState.TIMED_OUT: set(),
}


class CredentialStore:
    """Cookie file of one platform: a JSON list of cookie objects."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> List[Credential]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f) or []
            return [Credential.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return []

    def save(self, credentials: List[Credential]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([c.to_dict() for c in credentials], f, ensure_ascii=False, indent=4)
        logger.info(f"Saved {len(credentials)} cookie(s) to {self.path}")


class AuthController:
    """
    Establishes an authenticated session for one platform.

    Usage:
        auth = AuthController(session, adapter, CredentialStore(path), resolver)
        if await auth.authenticate() is AuthState.AUTHENTICATED:
            ...
    """

    def __init__(
        self,
        session: PlatformSession,
        adapter: Any,
        store: CredentialStore,
        resolver: Optional[SelectorResolver] = None,
        qr_timeout: float = 1200.0,
        poll_interval: float = 2.0,
    ):
        """
        Args:
            session: Open platform session
            adapter: PlatformAdapter providing URLs and login probes
            store: Persisted cookies of the platform
            resolver: Selector resolver shared with the run
            qr_timeout: Seconds to wait for a QR-code login
            poll_interval: Seconds between login probes while waiting
        """
        self.session = session
        self.adapter = adapter
        self.store = store
        self.resolver = resolver or SelectorResolver()
        self.qr_timeout = qr_timeout
        self.poll_interval = poll_interval
        self.state = AuthState.UNAUTHENTICATED

    @property
    def platform_id(self) -> str:
        return self.session.platform_id

    def _transition(self, new_state: AuthState):
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise AuthStateError(
                f"[{self.platform_id}] illegal auth transition {self.state.value} -> {new_state.value}"
            )
        logger.info(f"[{self.platform_id}] auth {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def _probe(self) -> bool:
        return await self.adapter.is_logged_in(self.session.page, self.resolver)

    async def authenticate(self) -> AuthState:
        """
        Run the login flow once.

        Returns:
            AuthState.AUTHENTICATED or AuthState.TIMED_OUT
        """
        if self.state in (AuthState.AUTHENTICATED, AuthState.TIMED_OUT):
            return self.state

        page = self.session.page
        logger.info(f"[{self.platform_id}] opening {self.adapter.home_url}")
        await page.goto(self.adapter.home_url)

        credentials = self.store.load()
        if credentials:
            await self.session.context.add_cookies([c.to_playwright() for c in credentials])
            await page.reload()
            self._transition(AuthState.COOKIE_LOADED)

        if await self._probe():
            logger.info(f"[{self.platform_id}] session is logged in")
            self._transition(AuthState.AUTHENTICATED)
            return self.state

        if self.state is AuthState.COOKIE_LOADED:
            logger.info(f"[{self.platform_id}] stored cookies are no longer valid")
            self._transition(AuthState.EXPIRED)

        return await self._qr_login()

    async def _qr_login(self) -> AuthState:
        logger.info(
            f"[{self.platform_id}] waiting for QR-code login "
            f"(timeout {self.qr_timeout:.0f}s, polling every {self.poll_interval:.0f}s)"
        )
        await self.adapter.open_qr_login(self.session.page, self.resolver)

        logged_in = await poll_until(
            self._probe,
            timeout=self.qr_timeout,
            interval=self.poll_interval,
            description=f"{self.platform_id} QR login",
        )
        if not logged_in:
            logger.error(f"[{self.platform_id}] QR-code login not completed within {self.qr_timeout:.0f}s")
            self._transition(AuthState.TIMED_OUT)
            return self.state

        cookies = await self.session.context.cookies()
        self.store.save([Credential.from_dict(c) for c in cookies])
        self._transition(AuthState.AUTHENTICATED)
        return self.state

    def require_authenticated(self):
        """Raise unless the platform is authenticated."""
        if self.state is not AuthState.AUTHENTICATED:
            raise AuthenticationError(
                f"[{self.platform_id}] not authenticated (state: {self.state.value})"
            )
