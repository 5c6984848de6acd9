"""
Workflow action execution.

Each action performs one side effect. Any configuration string may contain
{variable} placeholders resolved against the trigger data; placeholders
with no matching key are left as written.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from wa_automation.application.interfaces.services import (ILanguageModelService,
                                                           IMessagingService,
                                                           IRecordUpdater)
from wa_automation.domain.entities.workflow import (Action, CallApiConfig, CallLlmConfig,
                                                    LogMessageConfig, SendWhatsAppConfig,
                                                    UpdateDatabaseConfig)
from wa_automation.domain.exceptions import (ActionExecutionError, AutomationException,
                                             ValidationException)
from wa_automation.shared.enums import ActionType
from wa_automation.shared.telemetry.logging import get_logger

logger = get_logger(__name__)
workflow_logger = logging.getLogger("wa_automation.workflow")

VARIABLE_PATTERN = re.compile(r"\{([^}]+)\}")


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, (bool, list, dict)):
        return json.dumps(value, default=str)
    return str(value)


def replace_variables(template: str, data: dict[str, Any]) -> str:
    """Replace {name} placeholders with values from data"""

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in data:
            return _format_value(data[name])
        return match.group(0)

    return VARIABLE_PATTERN.sub(substitute, template)


def interpolate(value: Any, data: dict[str, Any]) -> Any:
    """Apply replace_variables to every string inside a JSON-shaped value"""
    if isinstance(value, str):
        return replace_variables(value, data)
    if isinstance(value, list):
        return [interpolate(item, data) for item in value]
    if isinstance(value, dict):
        return {key: interpolate(item, data) for key, item in value.items()}
    return value


class ActionExecutor:
    """Executes a single workflow action against a shared, mutable context"""

    def __init__(
        self,
        messaging_service: IMessagingService | None = None,
        llm_service: ILanguageModelService | None = None,
        record_updater: IRecordUpdater | None = None,
        http_timeout: float = 30.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.messaging_service = messaging_service
        self.llm_service = llm_service
        self.record_updater = record_updater
        self.http_timeout = http_timeout
        self.http_transport = http_transport

    async def execute(
        self, action: Action, context: dict[str, Any], workflow_id: str | None = None
    ) -> None:
        """
        Run one action.

        Raises ValidationException for missing configuration or an unknown
        action type, ActionExecutionError when the downstream call fails.
        """
        logger.debug("Executing action: %s", action.type)

        config = action.config
        if action.type == ActionType.SEND_WHATSAPP.value and isinstance(config, SendWhatsAppConfig):
            await self._send_whatsapp(config, context)
        elif action.type == ActionType.UPDATE_DATABASE.value and isinstance(
            config, UpdateDatabaseConfig
        ):
            await self._update_database(config, context)
        elif action.type == ActionType.CALL_API.value and isinstance(config, CallApiConfig):
            await self._call_api(config, context)
        elif action.type == ActionType.CALL_LLM.value and isinstance(config, CallLlmConfig):
            await self._call_llm(config, context)
        elif action.type == ActionType.LOG_MESSAGE.value and isinstance(config, LogMessageConfig):
            self._log_message(config, context, workflow_id)
        else:
            raise ValidationException(f"unknown action type: {action.type}", field="type")

    async def _send_whatsapp(self, config: SendWhatsAppConfig, context: dict[str, Any]) -> None:
        recipient = config.recipient
        if not recipient:
            sender = context.get("from")
            recipient = sender if isinstance(sender, str) else None
        if not recipient:
            raise ValidationException(
                "recipient is required for send_whatsapp action", field="recipient"
            )
        if config.message is None:
            raise ValidationException(
                "message or template is required for send_whatsapp action", field="message"
            )
        if self.messaging_service is None:
            raise ActionExecutionError(
                "messaging service is not configured", action_type=ActionType.SEND_WHATSAPP.value
            )

        session_id = config.session_id
        if not session_id and isinstance(context.get("session_id"), str):
            session_id = context["session_id"]

        recipient = replace_variables(recipient, context)
        message = replace_variables(config.message, context)
        logger.info("Sending WhatsApp message to %s", recipient)
        try:
            await self.messaging_service.send_message(recipient, message, session_id=session_id)
        except AutomationException:
            raise
        except Exception as e:
            raise ActionExecutionError(
                f"failed to send WhatsApp message: {e}", action_type=ActionType.SEND_WHATSAPP.value
            ) from e

    async def _update_database(self, config: UpdateDatabaseConfig, context: dict[str, Any]) -> None:
        if not config.table:
            raise ValidationException("table is required for update_database action", field="table")
        if not config.updates:
            raise ValidationException(
                "updates is required for update_database action", field="updates"
            )
        if not config.where:
            raise ValidationException("where is required for update_database action", field="where")
        if self.record_updater is None:
            raise ActionExecutionError(
                "record updater is not configured", action_type=ActionType.UPDATE_DATABASE.value
            )

        try:
            rows = await self.record_updater.update_records(
                config.table, interpolate(config.updates, context), interpolate(config.where, context)
            )
        except ValueError as e:
            raise ValidationException(str(e), field="table") from e
        except AutomationException:
            raise
        except Exception as e:
            raise ActionExecutionError(
                f"database update failed: {e}", action_type=ActionType.UPDATE_DATABASE.value
            ) from e

        logger.info("Updated %d rows in table %s", rows, config.table)

    async def _call_api(self, config: CallApiConfig, context: dict[str, Any]) -> None:
        if not config.url:
            raise ValidationException("url is required for call_api action", field="url")

        url = replace_variables(config.url, context)
        headers = {key: replace_variables(value, context) for key, value in config.headers.items()}
        body = interpolate(config.body, context)

        logger.info("Calling API: %s %s", config.method, url)
        async with httpx.AsyncClient(
            timeout=self.http_timeout, transport=self.http_transport
        ) as client:
            try:
                response = await client.request(
                    config.method,
                    url,
                    json=body,
                    headers=headers,
                )
            except httpx.HTTPError as e:
                raise ActionExecutionError(
                    f"HTTP request failed: {e}", action_type=ActionType.CALL_API.value
                ) from e

        if response.status_code >= 400:
            raise ActionExecutionError(
                f"API returned error status {response.status_code}: {response.text}",
                action_type=ActionType.CALL_API.value,
                status_code=response.status_code,
            )
        logger.info("API call successful: %d", response.status_code)

    async def _call_llm(self, config: CallLlmConfig, context: dict[str, Any]) -> None:
        if not config.user_prompt:
            raise ValidationException(
                "user_prompt is required for call_llm action", field="user_prompt"
            )
        if self.llm_service is None:
            raise ActionExecutionError(
                "language model service is not configured", action_type=ActionType.CALL_LLM.value
            )

        system_prompt = replace_variables(config.system_prompt, context)
        user_prompt = replace_variables(config.user_prompt, context)

        logger.info("Calling LLM with prompt: %s", user_prompt[:100])
        try:
            response = await self.llm_service.generate_response(system_prompt, user_prompt)
        except AutomationException:
            raise
        except Exception as e:
            raise ActionExecutionError(
                f"LLM call failed: {e}", action_type=ActionType.CALL_LLM.value
            ) from e

        # Later actions may interpolate {llm_response}
        context["llm_response"] = response

    def _log_message(
        self, config: LogMessageConfig, context: dict[str, Any], workflow_id: str | None
    ) -> None:
        if not config.message:
            raise ValidationException("message is required for log_message action", field="message")

        workflow_logger.info(
            "Workflow log: %s",
            replace_variables(config.message, context),
            extra={"workflow_id": workflow_id},
        )
