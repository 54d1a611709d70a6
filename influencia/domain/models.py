from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class NotificationKind(str, Enum):
    INITIAL = "initial"
    FOLLOW_UP = "followUp"
    FINAL_WARNING = "finalWarning"
    CONFIRMED = "confirmed"
    TWO_DAY_REMINDER = "twoDayReminder"

    @classmethod
    def parse(cls, value: NotificationKind | str | None) -> NotificationKind | None:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    registrant_id: str
    notification_kind: NotificationKind | str


@dataclass(frozen=True, slots=True)
class Registrant:
    id: str
    display_name: str
    phone_number: str
    payment_status: str = "pending"
    full_name: str | None = None
    contact_number: str | None = None


# Authentication state of the linked browser profile.


@dataclass(frozen=True, slots=True)
class Authenticated:
    pass


@dataclass(frozen=True, slots=True)
class NeedsAuthentication:
    credential_image: bytes


@dataclass(frozen=True, slots=True)
class Indeterminate:
    pass


AuthState = Union[Authenticated, NeedsAuthentication, Indeterminate]


# Outcome of one dispatch attempt.


@dataclass(frozen=True, slots=True)
class Sent:
    pass


@dataclass(frozen=True, slots=True)
class AuthenticationRequired:
    credential_image: bytes


@dataclass(frozen=True, slots=True)
class TransientFailure:
    reason: str
    code: str = "transient"


@dataclass(frozen=True, slots=True)
class PermanentFailure:
    reason: str
    code: str = "validation"


DispatchOutcome = Union[Sent, AuthenticationRequired, TransientFailure, PermanentFailure]


def outcome_status(outcome: DispatchOutcome) -> str:
    """Short status label used for logs and CLI output."""
    if isinstance(outcome, Sent):
        return "sent"
    if isinstance(outcome, AuthenticationRequired):
        return "auth_required"
    if isinstance(outcome, TransientFailure):
        return "transient_failure"
    return "permanent_failure"
