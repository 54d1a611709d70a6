from __future__ import annotations

import time
from pathlib import Path
from urllib.parse import quote, urlencode

from playwright.sync_api import Page

from influencia.config import DEFAULT_ARTIFACT_ROOT

SEND_BUTTON_SELECTOR = 'button[aria-label="Send"]'


def build_send_url(base_url: str, phone: str, message: str) -> str:
    """Click-to-chat link that opens a pre-filled compose view for `phone`."""
    query = urlencode({"phone": phone, "text": message}, quote_via=quote)
    return f"{base_url.rstrip('/')}/send?{query}"


class WhatsAppAdapterUI:
    """UI adapter for WhatsApp Web interactions via Playwright."""

    def __init__(
        self,
        page: Page,
        screenshots_dir: Path | str = f"{DEFAULT_ARTIFACT_ROOT}/screenshots",
    ) -> None:
        self.page = page
        self.screenshots_dir = Path(screenshots_dir) / "whatsapp"

    def _capture_failure_screenshot(self, action: str) -> Path:
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshots_dir / f"{int(time.time() * 1000)}_{action}.png"
        self.page.screenshot(path=str(path), full_page=True)
        return path

    def click_send(self, timeout_ms: int = 10_000) -> None:
        """Press the compose view's send button.

        WhatsApp Web gives no synchronous confirmation, so callers settle for a
        fixed delay afterwards instead of waiting for a delivery signal.
        """
        try:
            self.page.locator(SEND_BUTTON_SELECTOR).click(timeout=timeout_ms)
        except Exception:
            self._capture_failure_screenshot("click_send_fatal")
            raise
