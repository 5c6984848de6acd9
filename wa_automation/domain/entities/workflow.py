"""
Workflow domain entities.

Workflows are stored as JSON documents (trigger config, conditions, actions).
These dataclasses are the decoded, typed form the engine works with; the
`from_dict` constructors are the only place the stored shape is interpreted.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Union

from wa_automation.domain.exceptions import WorkflowDefinitionError
from wa_automation.shared.enums import ActionType, ExecutionStep, StepStatus
from wa_automation.shared.utils import utc_now


@dataclass(frozen=True)
class TriggerConfig:
    """Event name for event triggers, cron expression for scheduled ones"""

    event_name: str | None = None
    schedule: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TriggerConfig:
        data = data or {}
        if not isinstance(data, dict):
            raise WorkflowDefinitionError("trigger config must be an object")
        return cls(event_name=data.get("event_name") or None, schedule=data.get("schedule") or None)

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v}


@dataclass(frozen=True)
class Condition:
    """
    One predicate over the trigger data.

    `logic` is list-wide: if any condition in a list carries "OR" the whole
    list is evaluated as a disjunction.
    """

    field: str
    operator: str
    value: Any = None
    logic: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        if not isinstance(data, dict):
            raise WorkflowDefinitionError(f"condition must be an object, got {type(data).__name__}")
        if "field" not in data or "operator" not in data:
            raise WorkflowDefinitionError("condition requires 'field' and 'operator'")
        return cls(
            field=str(data["field"]),
            operator=str(data["operator"]),
            value=data.get("value"),
            logic=str(data.get("logic") or ""),
        )

    @property
    def is_or(self) -> bool:
        return self.logic.upper() == "OR"


def parse_conditions(raw: Any) -> list[Condition]:
    """Decode a stored condition list; None means no conditions."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise WorkflowDefinitionError("failed to parse conditions: expected a list")
    try:
        return [Condition.from_dict(item) for item in raw]
    except WorkflowDefinitionError as e:
        raise WorkflowDefinitionError(f"failed to parse conditions: {e.message}") from e


# --- Action configuration (tagged union) ---


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _dict_or_empty(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


@dataclass(frozen=True)
class SendWhatsAppConfig:
    recipient: str | None = None
    message: str | None = None
    session_id: str | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> SendWhatsAppConfig:
        # "template" is an older alias for "message"
        message = config.get("message")
        if not isinstance(message, str):
            message = config.get("template")
        return cls(
            recipient=_str_or_none(config.get("recipient")),
            message=message if isinstance(message, str) else None,
            session_id=_str_or_none(config.get("session_id")),
        )


@dataclass(frozen=True)
class UpdateDatabaseConfig:
    table: str | None = None
    updates: dict[str, Any] = field(default_factory=dict)
    where: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> UpdateDatabaseConfig:
        return cls(
            table=_str_or_none(config.get("table")),
            updates=_dict_or_empty(config.get("updates")),
            where=_dict_or_empty(config.get("where")),
        )


@dataclass(frozen=True)
class CallApiConfig:
    url: str | None = None
    method: str = "POST"
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> CallApiConfig:
        headers = {
            str(k): v for k, v in _dict_or_empty(config.get("headers")).items() if isinstance(v, str)
        }
        return cls(
            url=_str_or_none(config.get("url")),
            method=(_str_or_none(config.get("method")) or "POST").upper(),
            body=config.get("body"),
            headers=headers,
        )


@dataclass(frozen=True)
class CallLlmConfig:
    user_prompt: str | None = None
    system_prompt: str = ""

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> CallLlmConfig:
        system_prompt = config.get("system_prompt")
        return cls(
            user_prompt=_str_or_none(config.get("user_prompt")),
            system_prompt=system_prompt if isinstance(system_prompt, str) else "",
        )


@dataclass(frozen=True)
class LogMessageConfig:
    message: str | None = None

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> LogMessageConfig:
        return cls(message=_str_or_none(config.get("message")))


@dataclass(frozen=True)
class UnknownActionConfig:
    raw: dict[str, Any] = field(default_factory=dict)


ActionConfig = Union[
    SendWhatsAppConfig,
    UpdateDatabaseConfig,
    CallApiConfig,
    CallLlmConfig,
    LogMessageConfig,
    UnknownActionConfig,
]

_CONFIG_DECODERS = {
    ActionType.SEND_WHATSAPP.value: SendWhatsAppConfig.from_dict,
    ActionType.UPDATE_DATABASE.value: UpdateDatabaseConfig.from_dict,
    ActionType.CALL_API.value: CallApiConfig.from_dict,
    ActionType.CALL_LLM.value: CallLlmConfig.from_dict,
    ActionType.LOG_MESSAGE.value: LogMessageConfig.from_dict,
}


@dataclass(frozen=True)
class Action:
    """One workflow step: a type tag plus its decoded configuration"""

    type: str
    config: ActionConfig

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        if not isinstance(data, dict):
            raise WorkflowDefinitionError(f"action must be an object, got {type(data).__name__}")
        action_type = data.get("type")
        if not isinstance(action_type, str):
            raise WorkflowDefinitionError("action requires a string 'type'")
        raw_config = data.get("config") or {}
        if not isinstance(raw_config, dict):
            raise WorkflowDefinitionError(f"config for action '{action_type}' must be an object")

        decoder = _CONFIG_DECODERS.get(action_type)
        config = decoder(raw_config) if decoder else UnknownActionConfig(raw=raw_config)
        return cls(type=action_type, config=config)


def parse_actions(raw: Any) -> list[Action]:
    """Decode a stored action list"""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise WorkflowDefinitionError("failed to parse actions: expected a list")
    try:
        return [Action.from_dict(item) for item in raw]
    except WorkflowDefinitionError as e:
        raise WorkflowDefinitionError(f"failed to parse actions: {e.message}") from e


@dataclass
class ExecutionLogEntry:
    """One timestamped line in a workflow execution log"""

    step: ExecutionStep
    status: StepStatus
    message: str
    action_type: str | None = None
    error: str | None = None
    data: Any = None
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        entry: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "step": self.step.value,
            "status": self.status.value,
            "message": self.message,
        }
        if self.action_type:
            entry["action_type"] = self.action_type
        if self.error:
            entry["error"] = self.error
        if self.data is not None:
            entry["data"] = self.data
        return entry
