from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import FakeSessionManager, linked_page
from influencia.domain.models import Authenticated, DispatchRequest, Registrant, Sent
from influencia.orchestration.dispatch import DispatchEngine
from influencia.stores.registrants import JsonRegistrantStore


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_find_maps_registration_fields(tmp_path: Path) -> None:
    store = JsonRegistrantStore(
        _write(
            tmp_path / "registrants.json",
            [
                {
                    "_id": "665f1c",
                    "name": "Asha",
                    "fullName": "Asha Menon",
                    "phone": "9876543210",
                    "contactNumber": "+91 90000 00001",
                    "paymentStatus": "confirmed",
                    "email": "asha@example.com",
                }
            ],
        )
    )

    assert store.find("665f1c") == Registrant(
        id="665f1c",
        display_name="Asha",
        phone_number="9876543210",
        payment_status="confirmed",
        full_name="Asha Menon",
        contact_number="+91 90000 00001",
    )


def test_missing_deleted_and_absent_file_return_none(tmp_path: Path) -> None:
    store = JsonRegistrantStore(
        _write(tmp_path / "registrants.json", [{"id": "gone", "name": "X", "phone": "1", "deleted": True}])
    )

    assert store.find("gone") is None
    assert store.find("never-existed") is None
    assert JsonRegistrantStore(tmp_path / "absent.json").find("x") is None


def test_non_list_payload_is_rejected(tmp_path: Path) -> None:
    store = JsonRegistrantStore(_write(tmp_path / "registrants.json", {"id": "x"}))

    with pytest.raises(ValueError, match="must be a list"):
        store.find("x")


def test_numeric_phone_fields_are_read_as_text(tmp_path: Path, config) -> None:
    store = JsonRegistrantStore(
        _write(
            tmp_path / "registrants.json",
            [{"_id": "r-num", "name": "Ravi", "phone": 9123456780, "contactNumber": 9876543210}],
        )
    )

    registrant = store.find("r-num")
    assert registrant.phone_number == "9123456780"
    assert registrant.contact_number == "9876543210"

    sessions = FakeSessionManager(linked_page())
    engine = DispatchEngine(store=store, sessions=sessions, config=config, prober=lambda _page, _timeout: Authenticated())
    assert engine.dispatch(DispatchRequest("r-num", "initial")) == Sent()
    assert "phone=919876543210" in sessions.page.visited[0]
