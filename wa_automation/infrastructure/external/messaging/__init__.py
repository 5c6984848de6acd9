from wa_automation.infrastructure.external.messaging.whatsapp_messenger import (
    WhatsAppMessenger, to_chat_id)

__all__ = ["WhatsAppMessenger", "to_chat_id"]
