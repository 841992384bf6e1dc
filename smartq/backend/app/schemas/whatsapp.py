# smartq/backend/app/schemas/whatsapp.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WhatsAppStatusRead(BaseModel):
    connected: bool
    session_exists: bool = Field(alias="sessionExists")
    qr_code: Optional[str] = Field(default=None, alias="qrCode")

    model_config = ConfigDict(populate_by_name=True)


class WhatsAppLoginRequest(BaseModel):
    clear_session: bool = Field(default=False, alias="clearSession")

    model_config = ConfigDict(populate_by_name=True)
