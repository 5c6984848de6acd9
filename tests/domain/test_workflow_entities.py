"""Tests for decoding stored workflow documents"""

from datetime import datetime, timezone

import pytest
from freezegun import freeze_time

from wa_automation.domain.entities.job import EnqueueOptions, WorkerConfig, calculate_backoff
from wa_automation.domain.entities.workflow import (Action, CallApiConfig, ExecutionLogEntry,
                                                    SendWhatsAppConfig, TriggerConfig,
                                                    UnknownActionConfig, parse_actions,
                                                    parse_conditions)
from wa_automation.domain.exceptions import WorkflowDefinitionError
from wa_automation.shared.enums import ExecutionStep, StepStatus


class TestParseConditions:
    def test_none_means_no_conditions(self):
        assert parse_conditions(None) == []

    def test_decodes_fields(self):
        conditions = parse_conditions(
            [{"field": "total", "operator": "greater_than", "value": 100, "logic": "or"}]
        )

        assert len(conditions) == 1
        assert conditions[0].field == "total"
        assert conditions[0].value == 100
        assert conditions[0].is_or is True

    def test_rejects_non_list(self):
        with pytest.raises(WorkflowDefinitionError, match="failed to parse conditions"):
            parse_conditions({"field": "x"})

    def test_rejects_condition_without_operator(self):
        with pytest.raises(WorkflowDefinitionError, match="failed to parse conditions"):
            parse_conditions([{"field": "x"}])


class TestParseActions:
    def test_template_is_alias_for_message(self):
        (action,) = parse_actions(
            [{"type": "send_whatsapp", "config": {"recipient": "62811", "template": "Hi"}}]
        )

        assert isinstance(action.config, SendWhatsAppConfig)
        assert action.config.message == "Hi"
        assert action.config.session_id is None

    def test_call_api_defaults_to_post(self):
        (action,) = parse_actions([{"type": "call_api", "config": {"url": "http://x"}}])

        assert isinstance(action.config, CallApiConfig)
        assert action.config.method == "POST"
        assert action.config.headers == {}

    def test_unknown_type_keeps_raw_config(self):
        action = Action.from_dict({"type": "send_fax", "config": {"to": "1"}})

        assert isinstance(action.config, UnknownActionConfig)
        assert action.config.raw == {"to": "1"}

    def test_config_must_be_object(self):
        with pytest.raises(WorkflowDefinitionError, match="must be an object"):
            parse_actions([{"type": "log_message", "config": "hello"}])


def test_trigger_config_drops_empty_values():
    trigger = TriggerConfig.from_dict({"event_name": "order_paid", "schedule": ""})

    assert trigger.event_name == "order_paid"
    assert trigger.schedule is None
    assert trigger.to_dict() == {"event_name": "order_paid"}


@freeze_time("2026-01-01T12:00:00Z")
def test_execution_log_entry_serializes_timestamp_and_optional_fields():
    entry = ExecutionLogEntry(
        step=ExecutionStep.ACTION_EXECUTE,
        status=StepStatus.FAILED,
        message="Action 1 failed",
        action_type="call_api",
        error="boom",
    )

    assert entry.timestamp == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert entry.to_dict() == {
        "timestamp": "2026-01-01T12:00:00+00:00",
        "step": "action_execute",
        "status": "failed",
        "message": "Action 1 failed",
        "action_type": "call_api",
        "error": "boom",
    }


class TestJobOptions:
    def test_backoff_doubles_and_caps_at_one_hour(self):
        assert [calculate_backoff(n) for n in range(1, 5)] == [2, 4, 8, 16]
        assert calculate_backoff(11) == 2048
        assert calculate_backoff(12) == 3600
        assert calculate_backoff(40) == 3600

    def test_zero_values_fall_back_to_defaults(self):
        options = EnqueueOptions(queue="", max_retries=0).with_defaults()

        assert options.queue == "default"
        assert options.max_retries == 3

    def test_worker_config_rejects_zero_concurrency(self):
        with pytest.raises(ValueError, match="concurrency"):
            WorkerConfig(concurrency=0)
