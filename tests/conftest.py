from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path

import pytest
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from influencia.adapters.auth_probe import COMPOSE_SELECTOR, QR_CODE_SELECTOR
from influencia.adapters.browser_providers import BrowserLease
from influencia.config import DispatchConfig
from influencia.domain.models import Registrant


class FakeLocator:
    def __init__(self, page: "FakePage", selectors: tuple[str, ...]) -> None:
        self.page = page
        self.selectors = selectors

    def or_(self, other: "FakeLocator") -> "FakeLocator":
        return FakeLocator(self.page, self.selectors + other.selectors)

    @property
    def first(self) -> "FakeLocator":
        return self

    def is_visible(self) -> bool:
        return any(selector in self.page.visible for selector in self.selectors)

    def wait_for(self, state: str = "visible", timeout: float | None = None) -> None:
        self.page.waits.append((self.selectors, timeout))
        if not self.is_visible():
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    def click(self, timeout: float | None = None) -> None:
        if self.page.click_error is not None:
            raise self.page.click_error
        self.page.clicks.extend(self.selectors)


class FakePage:
    def __init__(self, visible: tuple[str, ...] = (), screenshot_bytes: bytes = b"\x89PNG-qr") -> None:
        self.visible = set(visible)
        self.screenshot_bytes = screenshot_bytes
        self.visited: list[str] = []
        self.waits: list[tuple[tuple[str, ...], float | None]] = []
        self.clicks: list[str] = []
        self.click_error: Exception | None = None
        self.goto_error: Exception | None = None

    def goto(self, url: str, wait_until: str | None = None, timeout: float | None = None) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, (selector,))

    def screenshot(self, path: str | None = None, full_page: bool = False) -> bytes:
        if path:
            Path(path).write_bytes(self.screenshot_bytes)
        return self.screenshot_bytes


def linked_page() -> FakePage:
    return FakePage(visible=(COMPOSE_SELECTOR,))


def unlinked_page(image: bytes = b"\x89PNG-qr") -> FakePage:
    return FakePage(visible=(QR_CODE_SELECTOR,), screenshot_bytes=image)


class FakeHandle:
    def __init__(self, page: FakePage) -> None:
        self.page = page

    def navigate(self, url: str) -> FakePage:
        self.page.goto(url)
        return self.page


class FakeSessionManager:
    """Counts acquisitions and releases instead of driving a browser."""

    def __init__(self, page: FakePage | None = None) -> None:
        self.page = page or linked_page()
        self.opened = 0
        self.released = 0

    @contextmanager
    def session(self, cancel=None):
        self.opened += 1
        try:
            yield FakeHandle(self.page)
        finally:
            self.released += 1


class FakeContext:
    def __init__(self, page: FakePage | None = None) -> None:
        self.pages = [page or linked_page()]
        self.closed = False

    def new_page(self) -> FakePage:
        page = linked_page()
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.closed = True


class FakeBrowserProvider:
    """Tracks how many leases are open at the same time."""

    def __init__(self, page: FakePage | None = None, fail_with: Exception | None = None) -> None:
        self.page = page
        self.fail_with = fail_with
        self.opened = 0
        self.closed = 0
        self.current = 0
        self.max_concurrent = 0
        self.profile_dirs: list[Path] = []
        self._lock = threading.Lock()

    def _release(self) -> None:
        with self._lock:
            self.current -= 1
            self.closed += 1

    def open(self, profile_dir: Path) -> BrowserLease:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            self.opened += 1
            self.current += 1
            self.max_concurrent = max(self.max_concurrent, self.current)
            self.profile_dirs.append(profile_dir)
        context = FakeContext(self.page)
        return BrowserLease(context=context, close_steps=[("context", context.close), ("counter", self._release)])


class InMemoryRegistrantStore:
    def __init__(self, *registrants: Registrant) -> None:
        self.registrants = {registrant.id: registrant for registrant in registrants}
        self.lookups: list[str] = []

    def find(self, registrant_id: str) -> Registrant | None:
        self.lookups.append(registrant_id)
        return self.registrants.get(registrant_id)


@pytest.fixture
def config(tmp_path: Path) -> DispatchConfig:
    return DispatchConfig(
        profile_dir=tmp_path / "profile",
        settle_delay_ms=0,
        acquire_timeout_s=2.0,
        artifacts_dir=tmp_path / "artifacts",
        registrants_path=tmp_path / "registrants.json",
    )


@pytest.fixture
def asha() -> Registrant:
    return Registrant(
        id="reg-asha",
        display_name="",
        full_name="Asha",
        phone_number="9876543210",
        contact_number="",
    )
