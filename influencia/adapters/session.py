"""Browser session lifecycle bound to the shared WhatsApp Web profile.

The profile directory is what keeps WhatsApp Web linked between dispatches,
so every process shares one `BrowserProfile` per directory. Two sessions on
the same profile would fight over the same tab, hence the per-profile lock:
at most one session is open against a profile at any instant.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from playwright.sync_api import BrowserContext, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from influencia.adapters.browser_providers import BrowserProvider, build_browser_provider
from influencia.config import DispatchConfig
from influencia.domain.errors import NavigationTimeout, ProfileTornDownError, SessionAcquisitionError
from influencia.utils.cancellation import CancelToken, DispatchCancelled

logger = logging.getLogger(__name__)

LOCK_POLL_S = 0.25


class BrowserProfile:
    """Singleton handle for one durable profile directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.initialized = False
        self.torn_down = False
        self._lock = threading.Lock()

    def _acquire(self, timeout_s: float, cancel: CancelToken) -> None:
        deadline = time.monotonic() + timeout_s
        while True:
            if self.torn_down:
                raise ProfileTornDownError(f"Browser profile {self.path} has been torn down")
            cancel.raise_if_cancelled("profile lock")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise SessionAcquisitionError(
                    f"Browser profile {self.path} stayed busy for more than {timeout_s:.0f}s"
                )
            if self._lock.acquire(timeout=min(LOCK_POLL_S, remaining)):
                return

    @contextmanager
    def exclusive(self, timeout_s: float, cancel: CancelToken) -> Iterator[None]:
        self._acquire(timeout_s, cancel)
        try:
            if self.torn_down:
                raise ProfileTornDownError(f"Browser profile {self.path} has been torn down")
            if not self.initialized:
                logger.info("Initializing browser profile %s", self.path)
                self.initialized = True
            yield
        finally:
            self._lock.release()

    def teardown(self, timeout_s: float = 30.0) -> None:
        """Refuse further sessions, waiting for an in-flight one to finish."""
        acquired = self._lock.acquire(timeout=timeout_s)
        try:
            self.torn_down = True
            logger.info("Tore down browser profile %s (waited_for_in_flight=%s)", self.path, acquired)
        finally:
            if acquired:
                self._lock.release()


class ProfileRegistry:
    def __init__(self) -> None:
        self._profiles: dict[Path, BrowserProfile] = {}
        self._guard = threading.Lock()

    def get(self, path: Path | str) -> BrowserProfile:
        key = Path(path).expanduser().resolve()
        with self._guard:
            profile = self._profiles.get(key)
            if profile is None:
                profile = BrowserProfile(key)
                self._profiles[key] = profile
            return profile

    def teardown(self, timeout_s: float = 30.0) -> None:
        with self._guard:
            profiles = list(self._profiles.values())
        for profile in profiles:
            profile.teardown(timeout_s)


profile_registry = ProfileRegistry()


def teardown_profiles(timeout_s: float = 30.0) -> None:
    """Process-shutdown hook for the shared profiles."""
    profile_registry.teardown(timeout_s)


class SessionHandle:
    """One browser context exclusively owned by a single dispatch attempt."""

    def __init__(self, context: BrowserContext, *, navigation_timeout_ms: int, cancel: CancelToken) -> None:
        self._context = context
        self._navigation_timeout_ms = navigation_timeout_ms
        self._cancel = cancel

    def navigate(self, url: str) -> Page:
        self._cancel.raise_if_cancelled("navigation")
        page = self._context.pages[0] if self._context.pages else self._context.new_page()
        try:
            page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self._cancel.bound_ms(self._navigation_timeout_ms),
            )
        except PlaywrightTimeoutError as exc:
            if self._cancel.cancelled:
                raise DispatchCancelled("cancelled during navigation") from exc
            raise NavigationTimeout(f"Navigation did not complete: {exc}") from exc
        return page


class SessionManager:
    def __init__(
        self,
        config: DispatchConfig,
        provider: BrowserProvider | None = None,
        registry: ProfileRegistry | None = None,
    ) -> None:
        self.config = config
        self.provider = provider or build_browser_provider(config)
        self.registry = registry or profile_registry

    @contextmanager
    def session(self, cancel: CancelToken | None = None) -> Iterator[SessionHandle]:
        """Open a browser session on the configured profile; always released on exit."""
        token = cancel or CancelToken()
        profile = self.registry.get(self.config.profile_dir)
        with profile.exclusive(self.config.acquire_timeout_s, token):
            started = time.monotonic()
            lease = self.provider.open(profile.path)
            logger.info("Acquired browser session on %s in %.2fs", profile.path, time.monotonic() - started)
            try:
                yield SessionHandle(
                    lease.context,
                    navigation_timeout_ms=self.config.navigation_timeout_ms,
                    cancel=token,
                )
            finally:
                lease.close()
                logger.info("Released browser session on %s", profile.path)
