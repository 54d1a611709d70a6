"""Reminder dispatch: registrant lookup, WhatsApp Web session, send-or-report."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Protocol

from influencia.adapters.auth_probe import Prober, probe_authentication
from influencia.adapters.session import SessionHandle
from influencia.adapters.whatsapp_adapter_ui import WhatsAppAdapterUI, build_send_url
from influencia.config import DispatchConfig
from influencia.domain.errors import NavigationTimeout, SessionAcquisitionError
from influencia.domain.models import (
    AuthenticationRequired,
    DispatchOutcome,
    DispatchRequest,
    Indeterminate,
    NeedsAuthentication,
    NotificationKind,
    PermanentFailure,
    Registrant,
    Sent,
    TransientFailure,
)
from influencia.messaging.templates import TemplateFn, resolve_template
from influencia.stores.registrants import RegistrantStore
from influencia.utils.cancellation import CancelToken, DispatchCancelled
from influencia.utils.logging import get_structured_logger, log_dispatch_event, log_dispatch_outcome
from influencia.utils.phone import normalize_phone

PLACEHOLDER_NAME = "Attendee"


class SessionSource(Protocol):
    def session(self, cancel: CancelToken | None = None) -> AbstractContextManager[SessionHandle]: ...


def resolve_recipient(registrant: Registrant) -> tuple[str, str]:
    """Pick the name and raw phone to use, preferring the extended form fields."""
    name = registrant.full_name or registrant.display_name or PLACEHOLDER_NAME
    phone = registrant.contact_number or registrant.phone_number
    return name, phone


class DispatchEngine:
    def __init__(
        self,
        *,
        store: RegistrantStore,
        sessions: SessionSource,
        config: DispatchConfig,
        prober: Prober = probe_authentication,
        templates: dict[NotificationKind, TemplateFn] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.config = config
        self.prober = prober
        self.templates = templates
        self.logger = logger or get_structured_logger()

    def dispatch(self, request: DispatchRequest, cancel: CancelToken | None = None) -> DispatchOutcome:
        """Send one templated reminder; never raises."""
        token = cancel or CancelToken()
        recipient_name = ""
        phone = ""
        try:
            registrant = self.store.find(request.registrant_id)
            if registrant is None:
                return self._finish(request, PermanentFailure("not found", code="not_found"))

            recipient_name, raw_phone = resolve_recipient(registrant)
            phone = normalize_phone(raw_phone, self.config.country_code)
            if not phone:
                return self._finish(request, PermanentFailure("invalid phone"), recipient_name)

            template = resolve_template(request.notification_kind, self.templates)
            if template is None:
                return self._finish(request, PermanentFailure("invalid message type"), recipient_name, phone)

            outcome = self._send(request, template(recipient_name), phone, token, recipient_name)
        except DispatchCancelled as exc:
            outcome = TransientFailure("cancelled", code="cancelled")
            self.logger.debug("Dispatch cancelled: %s", exc)
        except SessionAcquisitionError as exc:
            outcome = TransientFailure(str(exc), code="unavailable")
        except NavigationTimeout as exc:
            outcome = TransientFailure(str(exc), code="timeout")
        except Exception as exc:  # broad so the caller always gets an outcome
            outcome = TransientFailure(str(exc) or type(exc).__name__, code="internal")
        return self._finish(request, outcome, recipient_name, phone)

    def _send(
        self,
        request: DispatchRequest,
        message: str,
        phone: str,
        token: CancelToken,
        recipient_name: str,
    ) -> DispatchOutcome:
        url = build_send_url(self.config.whatsapp_base_url, phone, message)
        with self.sessions.session(token) as handle:
            log_dispatch_event(
                self.logger,
                dispatch_step="navigate",
                registrant_id=request.registrant_id,
                notification_kind=request.notification_kind,
                recipient_name=recipient_name,
                phone=phone,
                status="attempted",
                message="Opening chat compose view",
            )
            page = handle.navigate(url)

            token.raise_if_cancelled("authentication probe")
            state = self.prober(page, token.bound_ms(self.config.probe_timeout_ms))
            if isinstance(state, NeedsAuthentication):
                return AuthenticationRequired(state.credential_image)
            if isinstance(state, Indeterminate):
                if token.cancelled:
                    raise DispatchCancelled("cancelled during authentication probe")
                return TransientFailure("load timeout", code="timeout")

            token.raise_if_cancelled("send")
            WhatsAppAdapterUI(page, screenshots_dir=self.config.artifacts_dir / "screenshots").click_send()

            # Best effort: the web client exposes no send confirmation, so the
            # session stays open for a fixed delay to let the message go out.
            # Once clicked the message counts as sent even if cancelled here.
            if token.wait(self.config.settle_delay_ms / 1000):
                log_dispatch_event(
                    self.logger,
                    dispatch_step="settle",
                    registrant_id=request.registrant_id,
                    status="settle_interrupted",
                    message="Cancelled during post-send settle delay",
                    level=logging.WARNING,
                )
            return Sent()

    def _finish(
        self,
        request: DispatchRequest,
        outcome: DispatchOutcome,
        recipient_name: str = "",
        phone: str = "",
    ) -> DispatchOutcome:
        log_dispatch_outcome(self.logger, request, outcome, recipient_name=recipient_name, phone=phone)
        return outcome
