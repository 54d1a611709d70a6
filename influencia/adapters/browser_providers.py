from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol

import httpx
from playwright.sync_api import BrowserContext, sync_playwright

from influencia.config import DispatchConfig
from influencia.domain.errors import SessionAcquisitionError

logger = logging.getLogger(__name__)


CloseStep = tuple[str, Callable[[], None]]


def run_close_steps(steps: list[CloseStep]) -> None:
    # Every step runs even if an earlier one fails; a half-closed remote
    # session keeps holding a slot in the browser pool.
    for name, step in steps:
        try:
            step()
        except Exception:
            logger.warning("Browser release step %s failed", name, exc_info=True)


@dataclass
class BrowserLease:
    """A live browser context plus the steps that tear it down."""

    context: BrowserContext
    close_steps: list[CloseStep]

    def close(self) -> None:
        run_close_steps(self.close_steps)


class BrowserProvider(Protocol):
    def open(self, profile_dir: Path) -> BrowserLease: ...


class LocalBrowserProvider:
    """Chromium launched on this host with a persistent user-data directory."""

    def __init__(self, config: DispatchConfig) -> None:
        self.config = config

    def open(self, profile_dir: Path) -> BrowserLease:
        profile_dir.mkdir(parents=True, exist_ok=True)
        close_steps: list[CloseStep] = []
        try:
            playwright = sync_playwright().start()
            close_steps.insert(0, ("playwright", playwright.stop))
            context = playwright.chromium.launch_persistent_context(
                user_data_dir=str(profile_dir),
                headless=self.config.headless,
                args=self.config.browser_args,
                timeout=int(self.config.acquire_timeout_s * 1000),
            )
            close_steps.insert(0, ("context", context.close))
        except Exception as exc:
            run_close_steps(close_steps)
            raise SessionAcquisitionError(f"Local browser launch failed: {exc}") from exc

        return BrowserLease(context=context, close_steps=close_steps)


class RemoteBrowserProvider:
    """Browser hosted by a remote automation service and attached over CDP.

    The service keeps the profile between sessions, so WhatsApp Web stays
    linked across dispatches as long as the same profile id is requested.
    """

    def __init__(self, config: DispatchConfig, client: httpx.Client | None = None) -> None:
        if not config.remote_api_key:
            raise ValueError("KERNEL_API_KEY is required for the remote browser provider.")
        self.config = config
        self.client = client or httpx.Client(
            base_url=config.remote_base_url,
            headers={"Authorization": f"Bearer {config.remote_api_key}"},
            timeout=config.acquire_timeout_s,
        )

    def _create_remote_session(self, profile_dir: Path) -> dict[str, Any]:
        payload = {
            "headless": self.config.headless,
            "timeout_seconds": int(self.config.acquire_timeout_s),
            "persistence": {"id": profile_dir.name},
            "user_data_dir": str(profile_dir),
            "args": self.config.browser_args,
        }
        try:
            response = self.client.post("/browsers", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise SessionAcquisitionError(f"Remote browser creation failed: {exc}") from exc
        except ValueError as exc:
            raise SessionAcquisitionError("Remote browser service returned invalid JSON") from exc

        if not body.get("cdp_ws_url") or not body.get("session_id"):
            raise SessionAcquisitionError("Remote browser service response is missing cdp_ws_url/session_id")
        return body

    def _delete_remote_session(self, session_id: str) -> None:
        response = self.client.delete(f"/browsers/{session_id}")
        if response.status_code not in {200, 202, 204, 404}:
            response.raise_for_status()

    def open(self, profile_dir: Path) -> BrowserLease:
        remote = self._create_remote_session(profile_dir)
        session_id = str(remote["session_id"])
        logger.info("Created remote browser session %s", session_id)

        # Steps are prepended as each resource comes up so teardown runs in reverse.
        close_steps: list[CloseStep] = [("remote_session", lambda: self._delete_remote_session(session_id))]
        stage = "Playwright driver start"
        try:
            playwright = sync_playwright().start()
            close_steps.insert(0, ("playwright", playwright.stop))
            stage = "CDP handshake with remote browser"
            browser = playwright.chromium.connect_over_cdp(
                remote["cdp_ws_url"],
                timeout=int(self.config.acquire_timeout_s * 1000),
            )
            close_steps.insert(0, ("browser", browser.close))
            stage = "Remote browser context setup"
            context = browser.contexts[0] if browser.contexts else browser.new_context()
        except Exception as exc:
            run_close_steps(close_steps)
            raise SessionAcquisitionError(f"{stage} failed: {exc}") from exc

        return BrowserLease(context=context, close_steps=close_steps)


def build_browser_provider(config: DispatchConfig) -> BrowserProvider:
    if config.uses_remote_browser:
        return RemoteBrowserProvider(config)
    return LocalBrowserProvider(config)
