from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import FakeBrowserProvider, unlinked_page
from influencia.adapters.auth_probe import COMPOSE_SELECTOR
from influencia.adapters.session import ProfileRegistry, SessionManager
from influencia.api.app import create_app
from influencia.stores.registrants import JsonRegistrantStore


@pytest.mark.e2e
def test_unlinked_profile_relink_then_retry_sends_e2e(config, tmp_path: Path) -> None:
    registrants = tmp_path / "registrants.json"
    registrants.write_text(
        json.dumps([{"_id": "665f1c", "name": "Asha", "phone": "9876543210", "paymentStatus": "pending"}]),
        encoding="utf-8",
    )
    page = unlinked_page(b"qr-1")
    provider = FakeBrowserProvider(page)
    sessions = SessionManager(config, provider=provider, registry=ProfileRegistry())
    client = TestClient(create_app(config=config, store=JsonRegistrantStore(registrants), sessions=sessions))

    first = client.post("/api/send-reminder", json={"registrationId": "665f1c", "type": "twoDayReminder"})
    assert first.status_code == 401
    assert base64.b64decode(first.json()["qrCodeBase64"]) == b"qr-1"
    assert page.clicks == []

    # Operator scans the code; the next load of the profile shows the chat composer.
    page.visible = {COMPOSE_SELECTOR}

    assert client.get("/api/whatsapp/status").json() == {"status": "logged_in"}
    second = client.post("/api/send-reminder", json={"registrationId": "665f1c", "type": "twoDayReminder"})
    assert second.status_code == 200
    assert len(page.clicks) == 1

    assert provider.opened == provider.closed == 3
    assert provider.max_concurrent == 1
    assert all(url.startswith(config.whatsapp_base_url) for url in page.visited)
