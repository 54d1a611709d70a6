"""Structured JSON logging for reminder dispatches.

Recipient names and phone numbers are masked in every record; the outcome
code of a failed dispatch is carried as `error_code`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from influencia.domain.models import (
    AuthenticationRequired,
    DispatchOutcome,
    DispatchRequest,
    Sent,
    outcome_status,
)
from influencia.utils.phone import mask_phone

OPTIONAL_FIELDS = ("notification_kind", "error_code", "error_message")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
            "dispatch_step": getattr(record, "dispatch_step", "unknown"),
            "registrant_id": getattr(record, "registrant_id", None),
            "recipient": mask_name(getattr(record, "recipient_name", "")),
            "phone": mask_phone(getattr(record, "phone", "")),
            "status": getattr(record, "status", record.levelname.lower()),
        }
        for field in OPTIONAL_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        message = record.getMessage()
        if message:
            payload["message"] = message
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def mask_name(name: str) -> str:
    """Keep the first letter of the name."""
    if not name:
        return ""
    if len(name) == 1:
        return "*"
    return name[0] + "*" * (len(name) - 1)


def get_structured_logger(name: str = "influencia.dispatch") -> logging.Logger:
    """Return a logger configured to emit JSON records."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_dispatch_event(
    logger: logging.Logger,
    *,
    dispatch_step: str,
    registrant_id: str,
    status: str,
    message: str = "",
    notification_kind: str | None = None,
    recipient_name: str = "",
    phone: str = "",
    error_code: str | None = None,
    error_message: str | None = None,
    level: int = logging.INFO,
) -> None:
    extra: dict[str, Any] = {
        "dispatch_step": dispatch_step,
        "registrant_id": registrant_id,
        "notification_kind": notification_kind,
        "recipient_name": recipient_name,
        "phone": phone,
        "status": status,
        "error_code": error_code,
        "error_message": error_message,
    }
    logger.log(level, message, extra=extra)


def log_dispatch_outcome(
    logger: logging.Logger,
    request: DispatchRequest,
    outcome: DispatchOutcome,
    *,
    recipient_name: str = "",
    phone: str = "",
) -> None:
    """Emit the terminal record of one dispatch.

    Sent and authentication-required are logged at INFO; failures at WARNING
    with the outcome code upper-cased as `error_code`.
    """
    status = outcome_status(outcome)
    common: dict[str, Any] = {
        "dispatch_step": "dispatch",
        "registrant_id": request.registrant_id,
        "notification_kind": request.notification_kind,
        "recipient_name": recipient_name,
        "phone": phone,
    }
    if isinstance(outcome, Sent):
        log_dispatch_event(logger, status=status, message="Message sent", **common)
    elif isinstance(outcome, AuthenticationRequired):
        log_dispatch_event(logger, status=status, message="WhatsApp Web needs a QR scan", **common)
    else:
        log_dispatch_event(
            logger,
            status="failed",
            error_code=outcome.code.upper(),
            error_message=outcome.reason,
            message=f"Dispatch failed ({status})",
            level=logging.WARNING,
            **common,
        )
