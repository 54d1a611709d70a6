from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from influencia.config import DEFAULT_REGISTRANTS_PATH
from influencia.domain.models import Registrant


class RegistrantStore(Protocol):
    def find(self, registrant_id: str) -> Registrant | None: ...


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def registrant_from_record(record: dict[str, Any]) -> Registrant | None:
    """Build a read-only registrant view from a stored registration document."""
    registrant_id = str(record.get("_id") or record.get("id") or "").strip()
    if not registrant_id:
        return None
    return Registrant(
        id=registrant_id,
        display_name=str(record.get("name") or ""),
        phone_number=str(record.get("phone") or ""),
        payment_status=str(record.get("paymentStatus") or "pending"),
        full_name=_optional_text(record.get("fullName")),
        contact_number=_optional_text(record.get("contactNumber")),
    )


class JsonRegistrantStore:
    """Registrations exported from the site database as a JSON list."""

    def __init__(self, path: Path | str = DEFAULT_REGISTRANTS_PATH) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Registrant]:
        if not self.path.exists():
            return {}
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, list):
            raise ValueError(f"Registrants JSON at {self.path} must be a list of objects.")

        loaded: dict[str, Registrant] = {}
        for item in payload:
            if not isinstance(item, dict) or item.get("deleted"):
                continue
            registrant = registrant_from_record(item)
            if registrant is not None:
                loaded[registrant.id] = registrant
        return loaded

    def find(self, registrant_id: str) -> Registrant | None:
        return self._load().get(registrant_id)
