from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from influencia.api.schemas import SendReminderRequest, WhatsAppStatusResponse
from influencia.domain.errors import NavigationTimeout, SessionAcquisitionError
from influencia.domain.models import DispatchRequest
from influencia.jobs.session_check import check_login
from influencia.orchestration.dispatch import DispatchEngine
from influencia.reporting.response import build_response, encode_credential_image, validation_response

router = APIRouter(prefix="/api", tags=["reminders"])
health_router = APIRouter(prefix="/health", tags=["health"])

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> DispatchEngine:
    return request.app.state.engine


@router.post("/send-reminder")
def send_reminder(payload: SendReminderRequest, engine: DispatchEngine = Depends(get_engine)) -> JSONResponse:
    if not payload.registration_id or not payload.type:
        response = validation_response("Missing ID or type")
    else:
        outcome = engine.dispatch(
            DispatchRequest(registrant_id=payload.registration_id, notification_kind=payload.type)
        )
        response = build_response(outcome)
    return JSONResponse(status_code=response.status_code, content=response.body)


@router.get("/whatsapp/status")
def whatsapp_status(request: Request) -> JSONResponse:
    state = request.app.state
    try:
        result = check_login(state.sessions, state.config, prober=state.prober)
    except Exception as exc:  # reported as status "error", never a 500
        if not isinstance(exc, (SessionAcquisitionError, NavigationTimeout)):
            logger.exception("WhatsApp status check failed")
        body = WhatsAppStatusResponse(status="error", error=str(exc) or type(exc).__name__)
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True, exclude_none=True))

    body = WhatsAppStatusResponse(
        status=result.status,
        qr_code_base64=encode_credential_image(result.credential_image) if result.credential_image else None,
    )
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True, exclude_none=True))


@health_router.get("/ping")
async def ping() -> dict[str, str]:
    return {"status": "ok"}
