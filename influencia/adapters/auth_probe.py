from __future__ import annotations

import logging
from typing import Callable

from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from influencia.domain.models import AuthState, Authenticated, Indeterminate, NeedsAuthentication

logger = logging.getLogger(__name__)

COMPOSE_SELECTOR = 'div[aria-label="Type a message"]'
QR_CODE_SELECTOR = 'canvas[aria-label="Scan this QR code"]'

Prober = Callable[[Page, int], AuthState]


def probe_authentication(page: Page, timeout_ms: int) -> AuthState:
    """Classify the loaded WhatsApp Web page as linked, unlinked or unknown.

    The compose box and the QR canvas are mutually exclusive screens, so a
    single wait on "either one visible" resolves with whichever renders first
    and is bounded by `timeout_ms` no matter which state holds.
    """
    compose = page.locator(COMPOSE_SELECTOR)
    qr_code = page.locator(QR_CODE_SELECTOR)
    try:
        compose.or_(qr_code).first.wait_for(state="visible", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        logger.info("Neither compose box nor QR code appeared within %sms", timeout_ms)
        return Indeterminate()

    if qr_code.is_visible():
        return NeedsAuthentication(credential_image=page.screenshot(full_page=True))
    return Authenticated()
