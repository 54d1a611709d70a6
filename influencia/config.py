"""Runtime configuration resolved from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from influencia.utils.phone import DEFAULT_COUNTRY_CODE

logger = logging.getLogger(__name__)

# The remote browser host does not grant the kernel privileges Chromium's
# sandbox needs; these flags are required for the browser to start at all.
SANDBOX_DISABLING_ARGS: tuple[str, ...] = ("--no-sandbox", "--disable-setuid-sandbox")

DEFAULT_PROFILE_DIR = "/tmp/whatsapp_session"
DEFAULT_ARTIFACT_ROOT = "/tmp/influencia/artifacts"
DEFAULT_REGISTRANTS_PATH = "state/registrants.json"


@dataclass(slots=True)
class DispatchConfig:
    profile_dir: Path = Path(DEFAULT_PROFILE_DIR)
    country_code: str = DEFAULT_COUNTRY_CODE
    probe_timeout_ms: int = 15_000
    status_probe_timeout_ms: int = 10_000
    settle_delay_ms: int = 2_000
    acquire_timeout_s: float = 30.0
    navigation_timeout_ms: int = 30_000
    headless: bool = True
    disable_sandbox: bool = True
    whatsapp_base_url: str = "https://web.whatsapp.com"
    remote_base_url: str = "https://api.onkernel.com"
    remote_api_key: str | None = None
    artifacts_dir: Path = Path(DEFAULT_ARTIFACT_ROOT)
    registrants_path: Path = Path(DEFAULT_REGISTRANTS_PATH)
    status_check_minutes: int = 30

    @property
    def browser_args(self) -> list[str]:
        return list(SANDBOX_DISABLING_ARGS) if self.disable_sandbox else []

    @property
    def uses_remote_browser(self) -> bool:
        return bool(self.remote_api_key)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_config() -> DispatchConfig:
    """Resolve dispatch configuration from environment variables."""
    config = DispatchConfig(
        profile_dir=Path(os.getenv("WHATSAPP_PROFILE_DIR", DEFAULT_PROFILE_DIR)),
        country_code=os.getenv("WHATSAPP_DEFAULT_COUNTRY_CODE", DEFAULT_COUNTRY_CODE).strip() or DEFAULT_COUNTRY_CODE,
        probe_timeout_ms=_env_int("WHATSAPP_PROBE_TIMEOUT_MS", 15_000),
        status_probe_timeout_ms=_env_int("WHATSAPP_STATUS_PROBE_TIMEOUT_MS", 10_000),
        settle_delay_ms=_env_int("WHATSAPP_SETTLE_DELAY_MS", 2_000),
        acquire_timeout_s=float(_env_int("WHATSAPP_ACQUIRE_TIMEOUT_S", 30)),
        navigation_timeout_ms=_env_int("WHATSAPP_NAVIGATION_TIMEOUT_MS", 30_000),
        headless=_env_flag("WHATSAPP_HEADLESS", True),
        disable_sandbox=_env_flag("WHATSAPP_DISABLE_SANDBOX", True),
        whatsapp_base_url=os.getenv("WHATSAPP_BASE_URL", "https://web.whatsapp.com").rstrip("/"),
        remote_base_url=os.getenv("KERNEL_BASE_URL", "https://api.onkernel.com").rstrip("/"),
        remote_api_key=os.getenv("KERNEL_API_KEY", "").strip() or None,
        artifacts_dir=Path(os.getenv("INFLUENCIA_ARTIFACT_ROOT", DEFAULT_ARTIFACT_ROOT)),
        registrants_path=Path(os.getenv("INFLUENCIA_REGISTRANTS_PATH", DEFAULT_REGISTRANTS_PATH)),
        status_check_minutes=_env_int("WHATSAPP_STATUS_CHECK_MINUTES", 30),
    )
    logger.info(
        "Resolved dispatch config (profile_dir=%s, remote=%s, country_code=%s, probe_timeout_ms=%s, settle_delay_ms=%s)",
        config.profile_dir,
        config.uses_remote_browser,
        config.country_code,
        config.probe_timeout_ms,
        config.settle_delay_ms,
    )
    return config
