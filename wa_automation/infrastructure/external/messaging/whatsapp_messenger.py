"""WhatsApp messaging through a WAHA-compatible session gateway"""

import httpx

from wa_automation.domain.exceptions import ActionExecutionError
from wa_automation.infrastructure.config.settings import get_settings
from wa_automation.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def to_chat_id(phone_number: str) -> str:
    """Format a phone number as a WhatsApp chat id (628123456789@c.us)"""
    if "@" in phone_number:
        return phone_number
    return f"{phone_number.lstrip('+')}@c.us"


class WhatsAppMessenger:
    """Sends text messages through the gateway's /api/sendText endpoint"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        session_id: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.whatsapp_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.whatsapp_api_key
        self.session_id = session_id or settings.whatsapp_session_id
        self.timeout = timeout or settings.whatsapp_timeout_seconds
        self._transport = transport

    async def send_message(self, recipient: str, text: str, session_id: str | None = None) -> None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key

        payload = {
            "session": session_id or self.session_id,
            "chatId": to_chat_id(recipient),
            "text": text,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/api/sendText", json=payload, headers=headers
                )
            except httpx.HTTPError as e:
                raise ActionExecutionError(
                    f"failed to send WhatsApp message: {e}", action_type="send_whatsapp"
                ) from e

        if response.status_code >= 300:
            raise ActionExecutionError(
                f"WhatsApp gateway returned status {response.status_code}: {response.text}",
                action_type="send_whatsapp",
                status_code=response.status_code,
            )

        logger.debug("WhatsApp message sent to %s", payload["chatId"])
