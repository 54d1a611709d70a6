"""Check whether the shared WhatsApp Web profile is still linked."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from influencia.adapters.auth_probe import Prober, probe_authentication
from influencia.adapters.session import SessionManager
from influencia.config import DispatchConfig, load_config
from influencia.domain.models import Authenticated, NeedsAuthentication
from influencia.orchestration.dispatch import SessionSource
from influencia.utils.cancellation import CancelToken

logger = logging.getLogger(__name__)

STATUS_LOGGED_IN = "logged_in"
STATUS_NEEDS_SCAN = "needs_scan"
STATUS_TIMEOUT = "timeout"


@dataclass(slots=True)
class LoginStatus:
    status: str
    credential_image: bytes | None = None


def check_login(
    sessions: SessionSource,
    config: DispatchConfig,
    *,
    prober: Prober = probe_authentication,
    cancel: CancelToken | None = None,
) -> LoginStatus:
    """Open the web client home page and classify the profile's link state.

    Session acquisition and navigation errors propagate to the caller.
    """
    with sessions.session(cancel) as handle:
        page = handle.navigate(config.whatsapp_base_url)
        state = prober(page, config.status_probe_timeout_ms)

    if isinstance(state, NeedsAuthentication):
        return LoginStatus(STATUS_NEEDS_SCAN, state.credential_image)
    if isinstance(state, Authenticated):
        return LoginStatus(STATUS_LOGGED_IN)
    return LoginStatus(STATUS_TIMEOUT)


def write_credential_image(image: bytes, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    out_path.write_bytes(image)
    os.chmod(out_path, 0o600)
    return out_path


def run_session_check(
    *,
    config: DispatchConfig | None = None,
    sessions: SessionSource | None = None,
    prober: Prober = probe_authentication,
) -> dict[str, Any]:
    """Scheduler task: log the link state and save the QR code when unlinked."""
    config = config or load_config()
    sessions = sessions or SessionManager(config)

    result = check_login(sessions, config, prober=prober)
    payload: dict[str, Any] = {
        "status": result.status,
        "checked_at_utc": datetime.now(timezone.utc).isoformat(),
    }

    if result.status == STATUS_NEEDS_SCAN and result.credential_image is not None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        qr_path = write_credential_image(
            result.credential_image,
            config.artifacts_dir / "qr" / f"whatsapp_qr_{stamp}.png",
        )
        payload["qr_path"] = str(qr_path)
        logger.warning("WhatsApp Web profile is not linked; scan the QR code saved at %s", qr_path)
    elif result.status == STATUS_TIMEOUT:
        logger.warning("WhatsApp Web did not finish loading during the status check")
    else:
        logger.info("WhatsApp Web profile is linked")

    return payload
