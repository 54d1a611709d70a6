from __future__ import annotations

import re

DEFAULT_COUNTRY_CODE = "91"


def normalize_phone(raw: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Return the canonical digits-only phone used in chat deep links.

    Rules:
    - strip every non-digit character
    - exactly 10 digits: prefix the deployment's default country code
    - anything else passes through unchanged (assumed to carry a country code)

    Never raises. Empty or digit-less input yields an empty string.
    """
    if not raw:
        return ""

    digits = re.sub(r"\D", "", raw)
    if len(digits) == 10:
        prefix = re.sub(r"\D", "", country_code)
        return f"{prefix}{digits}"
    return digits


def mask_phone(phone: str | None) -> str:
    if not phone:
        return ""
    digits = re.sub(r"\D", "", phone)
    if len(digits) <= 4:
        return "*" * len(digits)
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"
