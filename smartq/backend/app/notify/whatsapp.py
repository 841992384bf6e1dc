# smartq/backend/app/notify/whatsapp.py
"""
Thin adapter over a self-hosted WhatsApp HTTP gateway.

The gateway owns pairing, session storage and reconnects. This module only:
  - polls the session state and turns changes into qr / connected /
    disconnected events,
  - asks the gateway to (re)start a session, optionally logging out first,
  - sends plain text messages.
"""
import asyncio
import logging
import re
from typing import Any, Dict, Optional

import httpx

from .. import config
from ..errors import NotifierError
from .base import DisabledNotifier, Notifier, NotifierStatus

logger = logging.getLogger(__name__)

STATE_WORKING = "WORKING"
STATE_SCAN_QR = "SCAN_QR_CODE"
STATE_STOPPED = "STOPPED"


def to_chat_id(phone: str, country_code: str = config.WHATSAPP_COUNTRY_CODE) -> str:
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        digits = f"{country_code}{digits}"
    return f"{digits}@c.us"


def _json_body(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as exc:
        raise NotifierError(f"Unexpected gateway reply from {resp.request.url}", status_code=502) from exc
    if not isinstance(data, dict):
        raise NotifierError(f"Unexpected gateway reply from {resp.request.url}", status_code=502)
    return data


class WhatsAppGatewayNotifier(Notifier):
    def __init__(
        self,
        base_url: str,
        session: str = config.WHATSAPP_SESSION,
        api_key: Optional[str] = config.WHATSAPP_API_KEY,
        country_code: str = config.WHATSAPP_COUNTRY_CODE,
        poll_interval: float = config.WHATSAPP_POLL_INTERVAL,
        timeout: float = config.WHATSAPP_SEND_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        headers = {"X-Api-Key": api_key} if api_key else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self.session = session
        self.country_code = country_code
        self.poll_interval = poll_interval

        self._connected = False
        self._session_exists = False
        self._qr_code: Optional[str] = None
        self._poll_task: Optional[asyncio.Task] = None

    # Notifier contract

    def is_ready(self) -> bool:
        return self._connected

    def status(self) -> NotifierStatus:
        return NotifierStatus(
            connected=self._connected,
            session_exists=self._session_exists,
            qr_code=self._qr_code,
        )

    async def send(self, phone: str, text: str) -> None:
        if not self._connected:
            raise NotifierError("WhatsApp not connected")
        payload = {
            "session": self.session,
            "chatId": to_chat_id(phone, self.country_code),
            "text": text,
        }
        try:
            resp = await self._client.post("/api/sendText", json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotifierError(f"Failed to send message: {exc}") from exc

    async def connect(self, clear_session: bool = False) -> None:
        try:
            if clear_session:
                resp = await self._client.post(f"/api/sessions/{self.session}/logout")
                # Nothing to log out of is fine
                if resp.status_code != 404:
                    resp.raise_for_status()
            state = await self._fetch_state()
            action = "start" if state in (None, STATE_STOPPED) else "restart"
            resp = await self._client.post(f"/api/sessions/{self.session}/{action}")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotifierError(f"WhatsApp reconnect failed: {exc}", status_code=502) from exc
        logger.info("WhatsApp session '%s' reconnect requested (clear=%s)", self.session, clear_session)
        await self.refresh()

    # Lifecycle

    async def start(self) -> None:
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None
        await self._client.aclose()

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except NotifierError as exc:
                logger.warning("WhatsApp status poll failed: %s", exc)
            except Exception:
                # Keep polling; a dead loop would freeze the reported state
                logger.exception("WhatsApp status poll crashed")
            await asyncio.sleep(self.poll_interval)

    # State tracking

    async def _fetch_state(self) -> Optional[str]:
        """Gateway session state, or None when the session does not exist."""
        resp = await self._client.get(f"/api/sessions/{self.session}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        data = _json_body(resp)
        return str(data.get("status") or "").upper() or None

    async def _fetch_qr(self) -> Optional[str]:
        resp = await self._client.get(
            f"/api/{self.session}/auth/qr", params={"format": "raw"}
        )
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return _json_body(resp).get("value")

    async def refresh(self) -> NotifierStatus:
        """Poll the gateway once and emit events for whatever changed."""
        try:
            state = await self._fetch_state()
            qr_code = await self._fetch_qr() if state == STATE_SCAN_QR else None
        except (httpx.HTTPError, NotifierError) as exc:
            if self._connected:
                self._connected = False
                await self._emit("disconnected", {"reason": str(exc)})
            if isinstance(exc, NotifierError):
                raise
            raise NotifierError(f"WhatsApp gateway unreachable: {exc}", status_code=502) from exc

        was_connected = self._connected
        self._session_exists = state is not None and state != STATE_STOPPED
        self._connected = state == STATE_WORKING

        if qr_code and qr_code != self._qr_code:
            logger.info("WhatsApp pairing code generated. Scan it with your WhatsApp app.")
            await self._emit("qr", {"qrCode": qr_code})
        self._qr_code = qr_code

        if self._connected and not was_connected:
            logger.info("WhatsApp connection opened")
            await self._emit("connected", {})
        elif was_connected and not self._connected:
            logger.info("WhatsApp connection closed (state=%s)", state)
            await self._emit("disconnected", {"state": state})
        return self.status()


def build_notifier() -> Notifier:
    if not config.WHATSAPP_GATEWAY_URL:
        logger.warning("WHATSAPP_GATEWAY_URL not set, customer notifications disabled")
        return DisabledNotifier()
    return WhatsAppGatewayNotifier(config.WHATSAPP_GATEWAY_URL)
