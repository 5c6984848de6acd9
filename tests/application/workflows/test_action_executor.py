"""Tests for workflow action execution"""

import json
import logging
from unittest.mock import AsyncMock

import httpx
import pytest

from wa_automation.application.use_cases.workflows.action_executor import (ActionExecutor,
                                                                           interpolate,
                                                                           replace_variables)
from wa_automation.domain.entities.workflow import Action
from wa_automation.domain.exceptions import ActionExecutionError, ValidationException


def action(action_type: str, **config) -> Action:
    return Action.from_dict({"type": action_type, "config": config})


@pytest.fixture
def messaging_service():
    return AsyncMock()


@pytest.fixture
def llm_service():
    service = AsyncMock()
    service.generate_response.return_value = "Terima kasih!"
    return service


@pytest.fixture
def record_updater():
    updater = AsyncMock()
    updater.update_records.return_value = 1
    return updater


@pytest.fixture
def executor(messaging_service, llm_service, record_updater) -> ActionExecutor:
    return ActionExecutor(
        messaging_service=messaging_service,
        llm_service=llm_service,
        record_updater=record_updater,
    )


class TestReplaceVariables:
    def test_unresolved_placeholders_are_left_verbatim(self):
        result = replace_variables("Hello {name}, total {total}", {"name": "Budi"})

        assert result == "Hello Budi, total {total}"

    def test_formats_non_string_values(self):
        data = {"count": 3, "price": 1.5, "paid": True, "items": ["a"], "note": None}

        result = replace_variables("{count} {price} {paid} {items} {note}", data)

        assert result == '3 1.5 true ["a"] null'

    def test_interpolate_walks_nested_values(self):
        value = {"where": {"id": "{order_id}"}, "tags": ["{city}", 7]}

        assert interpolate(value, {"order_id": "o-1", "city": "Bali"}) == {
            "where": {"id": "o-1"},
            "tags": ["Bali", 7],
        }


class TestSendWhatsApp:
    async def test_sends_interpolated_message(self, executor, messaging_service):
        context = {"phone": "62811", "name": "Budi"}

        await executor.execute(
            action("send_whatsapp", recipient="{phone}", message="Halo {name}"), context
        )

        messaging_service.send_message.assert_awaited_once_with(
            "62811", "Halo Budi", session_id=None
        )

    async def test_recipient_falls_back_to_sender(self, executor, messaging_service):
        await executor.execute(
            action("send_whatsapp", message="Hi"), {"from": "62822", "session_id": "shop-1"}
        )

        messaging_service.send_message.assert_awaited_once_with("62822", "Hi", session_id="shop-1")

    async def test_missing_recipient(self, executor):
        with pytest.raises(ValidationException, match="recipient is required"):
            await executor.execute(action("send_whatsapp", message="Hi"), {})

    async def test_missing_message(self, executor):
        with pytest.raises(ValidationException, match="message or template is required"):
            await executor.execute(action("send_whatsapp", recipient="62811"), {})

    async def test_gateway_error_becomes_action_error(self, executor, messaging_service):
        messaging_service.send_message.side_effect = ConnectionError("refused")

        with pytest.raises(ActionExecutionError, match="refused"):
            await executor.execute(action("send_whatsapp", recipient="1", message="x"), {})


class TestUpdateDatabase:
    async def test_passes_interpolated_updates_and_filter(self, executor, record_updater):
        await executor.execute(
            action(
                "update_database",
                table="orders",
                updates={"status": "{new_status}"},
                where={"id": "{order_id}"},
            ),
            {"new_status": "thanked", "order_id": "o-9"},
        )

        record_updater.update_records.assert_awaited_once_with(
            "orders", {"status": "thanked"}, {"id": "o-9"}
        )

    @pytest.mark.parametrize(
        "config, message",
        [
            ({"updates": {"a": 1}, "where": {"id": 1}}, "table is required"),
            ({"table": "orders", "where": {"id": 1}}, "updates is required"),
            ({"table": "orders", "updates": {"a": 1}}, "where is required"),
        ],
    )
    async def test_required_fields(self, executor, config, message):
        with pytest.raises(ValidationException, match=message):
            await executor.execute(action("update_database", **config), {})

    async def test_invalid_identifier_is_a_validation_error(self, executor, record_updater):
        record_updater.update_records.side_effect = ValueError("Invalid table name name: 'x;'")

        with pytest.raises(ValidationException, match="Invalid table name"):
            await executor.execute(
                action("update_database", table="x;", updates={"a": 1}, where={"id": 1}), {}
            )


class TestCallApi:
    async def test_sends_json_body_and_headers(self, messaging_service):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True})

        executor = ActionExecutor(http_transport=httpx.MockTransport(handler))

        await executor.execute(
            action(
                "call_api",
                url="https://crm.example.com/customers/{customer_id}",
                method="put",
                headers={"Authorization": "Bearer {token}"},
                body={"note": "spent {total}"},
            ),
            {"customer_id": "c-1", "token": "t0k", "total": 150000},
        )

        assert seen == {
            "method": "PUT",
            "url": "https://crm.example.com/customers/c-1",
            "auth": "Bearer t0k",
            "body": {"note": "spent 150000"},
        }

    async def test_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
        executor = ActionExecutor(http_transport=transport)

        with pytest.raises(ActionExecutionError, match="API returned error status 502: bad gateway"):
            await executor.execute(action("call_api", url="https://example.com"), {})

    async def test_missing_url(self, executor):
        with pytest.raises(ValidationException, match="url is required"):
            await executor.execute(action("call_api"), {})


class TestCallLlm:
    async def test_response_is_stored_for_later_actions(self, executor, llm_service, messaging_service):
        context = {"name": "Budi", "from": "62811"}

        await executor.execute(
            action("call_llm", system_prompt="You are a shop assistant", user_prompt="Thank {name}"),
            context,
        )
        await executor.execute(action("send_whatsapp", message="{llm_response}"), context)

        llm_service.generate_response.assert_awaited_once_with(
            "You are a shop assistant", "Thank Budi"
        )
        assert context["llm_response"] == "Terima kasih!"
        messaging_service.send_message.assert_awaited_once_with(
            "62811", "Terima kasih!", session_id=None
        )

    async def test_missing_user_prompt(self, executor):
        with pytest.raises(ValidationException, match="user_prompt is required"):
            await executor.execute(action("call_llm", system_prompt="x"), {})


class TestLogMessage:
    async def test_logs_to_workflow_logger(self, executor, caplog):
        with caplog.at_level(logging.INFO, logger="wa_automation.workflow"):
            await executor.execute(action("log_message", message="order {id}"), {"id": 7}, "wf-1")

        record = next(r for r in caplog.records if r.name == "wa_automation.workflow")
        assert record.getMessage() == "Workflow log: order 7"
        assert record.workflow_id == "wf-1"

    async def test_missing_message(self, executor):
        with pytest.raises(ValidationException, match="message is required for log_message"):
            await executor.execute(action("log_message"), {})


async def test_unknown_action_type(executor):
    with pytest.raises(ValidationException, match="unknown action type: send_fax"):
        await executor.execute(action("send_fax"), {})
