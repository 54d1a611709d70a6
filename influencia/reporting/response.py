"""Map dispatch outcomes to the operator-facing HTTP response contract."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

from influencia.domain.models import (
    AuthenticationRequired,
    DispatchOutcome,
    PermanentFailure,
    Sent,
    TransientFailure,
)


@dataclass(slots=True)
class DispatchResponse:
    status_code: int
    body: dict[str, Any]


def encode_credential_image(image: bytes) -> str:
    return base64.b64encode(image).decode("ascii")


def build_response(outcome: DispatchOutcome) -> DispatchResponse:
    """Render one outcome; only 200 is a success.

    401 is not a failure: the operator scans the returned QR code and retries
    the same request.
    """
    if isinstance(outcome, Sent):
        return DispatchResponse(200, {"status": "ok", "message": "sent"})

    if isinstance(outcome, AuthenticationRequired):
        return DispatchResponse(
            401,
            {
                "status": "authentication_required",
                "message": "Authentication required",
                "qrCodeBase64": encode_credential_image(outcome.credential_image),
                "retryable": True,
            },
        )

    if isinstance(outcome, PermanentFailure):
        if outcome.code == "not_found":
            return DispatchResponse(404, {"status": "not_found", "error": outcome.reason, "retryable": False})
        return DispatchResponse(400, {"status": "invalid", "error": outcome.reason, "retryable": False})

    if isinstance(outcome, TransientFailure):
        return DispatchResponse(
            503,
            {
                "status": "transient_failure",
                "error": outcome.reason,
                "code": outcome.code,
                "retryable": True,
            },
        )

    raise TypeError(f"Unknown dispatch outcome: {outcome!r}")


def validation_response(reason: str) -> DispatchResponse:
    return build_response(PermanentFailure(reason))
