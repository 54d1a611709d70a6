from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SendReminderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Both optional so a missing field maps to the 400 validation response.
    registration_id: str | None = Field(default=None, alias="registrationId")
    type: str | None = None


class WhatsAppStatusResponse(BaseModel):
    status: str
    qr_code_base64: str | None = Field(default=None, serialization_alias="qrCodeBase64")
    error: str | None = None
