# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for per-kind node execution
"""

import json
import logging
import pytest
from unittest.mock import AsyncMock

from workflow_dag.models import WorkflowNode
from workflow_dag.services import ToolResult, CompletionResponse, Credentials, ProviderRegistry
from workflow_dag.executors import NodeDispatcher
from workflow_dag.core.config import TransformSettings
from workflow_dag.exceptions import (
    NodeExecutionError, UnsupportedVariantError, ToolCallError,
    CredentialLookupError,
)


def make_node(node_type, config, inputs=None, node_id="n1"):
    return WorkflowNode(id=node_id, type=node_type, config=config, inputs=inputs or [])


# ============================================================================
# mcp_fetch
# ============================================================================

class TestMCPFetch:

    @pytest.mark.asyncio
    async def test_calls_tool_with_resolved_parameters(self, dispatcher, mock_tool_service, scope):
        node = make_node("mcp_fetch", {
            "serverId": "crm",
            "toolName": "get_customer",
            "parameters": {"v": "$input[0].x", "limit": 5},
        }, inputs=["a"])
        mock_tool_service.call_tool.return_value = ToolResult(success=True, data=[{"id": 1}])

        output = await dispatcher.execute(node, [{"x": 1}], scope)

        assert output == [{"id": 1}]
        call = mock_tool_service.call_tool.await_args.args[0]
        assert call.server_id == "crm"
        assert call.tool_name == "get_customer"
        assert call.parameters == {"v": 1, "limit": 5}

    @pytest.mark.asyncio
    async def test_tool_failure_raises(self, dispatcher, mock_tool_service, scope):
        node = make_node("mcp_fetch", {"serverId": "crm", "toolName": "get_customer"})
        mock_tool_service.call_tool.return_value = ToolResult(success=False, error="rate limited")

        with pytest.raises(ToolCallError, match="rate limited"):
            await dispatcher.execute(node, [], scope)

    @pytest.mark.asyncio
    async def test_tool_failure_without_message(self, dispatcher, mock_tool_service, scope):
        node = make_node("mcp_fetch", {"serverId": "crm", "toolName": "get_customer"})
        mock_tool_service.call_tool.return_value = ToolResult(success=False)

        with pytest.raises(ToolCallError, match="MCP tool call failed"):
            await dispatcher.execute(node, [], scope)

    @pytest.mark.asyncio
    async def test_credentials_are_scoped_to_principal(
        self, dispatcher, mock_tool_service, mock_credential_store, scope
    ):
        creds = Credentials(api_key="secret")
        mock_credential_store.get_credentials.return_value = creds
        node = make_node("mcp_fetch", {"serverId": "crm", "toolName": "list"})

        await dispatcher.execute(node, [], scope)

        mock_credential_store.get_credentials.assert_awaited_once_with(scope, "crm")
        assert mock_tool_service.call_tool.await_args.args[0].credentials == creds

    @pytest.mark.asyncio
    async def test_credential_lookup_failure_is_not_fatal(
        self, dispatcher, mock_tool_service, mock_credential_store, scope
    ):
        mock_credential_store.get_credentials.side_effect = CredentialLookupError("crm", "vault sealed")
        node = make_node("mcp_fetch", {"serverId": "crm", "toolName": "list"})

        output = await dispatcher.execute(node, [], scope)

        assert output == {"ok": True}
        assert mock_tool_service.call_tool.await_args.args[0].credentials is None

    @pytest.mark.asyncio
    async def test_works_without_credential_store(self, mock_tool_service, providers, scope):
        dispatcher = NodeDispatcher(mock_tool_service, providers, None, TransformSettings())
        node = make_node("mcp_fetch", {"serverId": "crm", "toolName": "list"})

        assert await dispatcher.execute(node, [], scope) == {"ok": True}

    @pytest.mark.asyncio
    async def test_missing_config_fields(self, dispatcher, scope):
        node = make_node("mcp_fetch", {"toolName": "list"})

        with pytest.raises(NodeExecutionError, match="Invalid mcp_fetch config"):
            await dispatcher.execute(node, [], scope)


# ============================================================================
# transform
# ============================================================================

class TestTransform:

    @pytest.mark.asyncio
    async def test_llm_transform_parses_json(self, dispatcher, mock_completion, scope):
        node = make_node("transform", {"type": "llm", "prompt": "Summarize"}, inputs=["a"])

        output = await dispatcher.execute(node, [{"orders": 3}], scope)

        assert output == {"summary": "done"}
        messages, options = mock_completion.complete.await_args.args
        assert len(messages) == 1
        assert messages[0].role == "user"
        assert messages[0].content.startswith("Summarize\n\nInput data:\n")
        assert json.loads(messages[0].content.split("Input data:\n", 1)[1]) == [{"orders": 3}]
        assert options.model == "claude-3-5-sonnet-20241022"
        assert options.max_tokens == 4096

    @pytest.mark.asyncio
    async def test_no_inputs_means_bare_prompt(self, dispatcher, mock_completion, scope):
        node = make_node("transform", {"type": "llm", "prompt": "Write a haiku"})

        await dispatcher.execute(node, [], scope)

        messages, _ = mock_completion.complete.await_args.args
        assert messages[0].content == "Write a haiku"

    @pytest.mark.asyncio
    async def test_default_prompt(self, dispatcher, mock_completion, scope):
        node = make_node("transform", {"type": "llm"})

        await dispatcher.execute(node, [], scope)

        messages, _ = mock_completion.complete.await_args.args
        assert messages[0].content == "Transform this data"

    @pytest.mark.asyncio
    async def test_non_json_response_returned_raw(self, dispatcher, mock_completion, scope):
        mock_completion.complete.return_value = CompletionResponse(content="Not JSON at all")
        node = make_node("transform", {"type": "llm", "prompt": "Explain"})

        assert await dispatcher.execute(node, [], scope) == "Not JSON at all"

    @pytest.mark.asyncio
    async def test_configured_provider_and_model(self, mock_tool_service, scope):
        local = AsyncMock()
        local.complete = AsyncMock(return_value=CompletionResponse(content="[1, 2]"))
        dispatcher = NodeDispatcher(
            mock_tool_service,
            ProviderRegistry({"ollama": local}),
            None,
            TransformSettings()
        )
        node = make_node("transform", {
            "type": "llm", "provider": "ollama", "model": "llama3", "temperature": 0.2
        })

        assert await dispatcher.execute(node, [], scope) == [1, 2]
        _, options = local.complete.await_args.args
        assert options.model == "llama3"
        assert options.temperature == 0.2

    @pytest.mark.asyncio
    async def test_missing_provider(self, dispatcher, scope):
        node = make_node("transform", {"type": "llm", "provider": "nowhere"})

        with pytest.raises(NodeExecutionError, match="No LLM provider available"):
            await dispatcher.execute(node, [], scope)

    @pytest.mark.asyncio
    async def test_code_transform_not_supported(self, dispatcher, mock_completion, scope):
        node = make_node("transform", {"type": "code", "code": "return data"})

        with pytest.raises(UnsupportedVariantError, match="Code transforms not yet supported"):
            await dispatcher.execute(node, [[1]], scope)
        mock_completion.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_transform_type(self, dispatcher, scope):
        node = make_node("transform", {"type": "sql"})

        with pytest.raises(NodeExecutionError, match="Invalid transform config"):
            await dispatcher.execute(node, [], scope)


# ============================================================================
# filter
# ============================================================================

class TestFilter:

    @pytest.mark.asyncio
    async def test_greater_than(self, dispatcher, scope):
        node = make_node("filter", {"conditions": [{"field": "price", "operator": "gt", "value": 10}]})

        output = await dispatcher.execute(node, [[{"price": 5}, {"price": 15}]], scope)

        assert output == [{"price": 15}]

    @pytest.mark.asyncio
    async def test_all_conditions_must_hold(self, dispatcher, scope):
        node = make_node("filter", {"conditions": [
            {"field": "price", "operator": "lt", "value": 100},
            {"field": "name", "operator": "contains", "value": "shoe"},
        ]})
        items = [
            {"price": 50, "name": "red shoe"},
            {"price": 150, "name": "blue shoe"},
            {"price": 20, "name": "hat"},
        ]

        assert await dispatcher.execute(node, [items], scope) == [{"price": 50, "name": "red shoe"}]

    @pytest.mark.asyncio
    async def test_equals_is_strict(self, dispatcher, scope):
        node = make_node("filter", {"conditions": [{"field": "active", "operator": "equals", "value": True}]})
        items = [{"active": True}, {"active": 1}, {"active": "true"}]

        assert await dispatcher.execute(node, [items], scope) == [{"active": True}]

    @pytest.mark.asyncio
    async def test_contains_coerces_to_string(self, dispatcher, scope):
        node = make_node("filter", {"conditions": [{"field": "code", "operator": "contains", "value": 42}]})
        items = [{"code": 1427}, {"code": "x42"}, {"code": 7}]

        assert await dispatcher.execute(node, [items], scope) == [{"code": 1427}, {"code": "x42"}]

    @pytest.mark.asyncio
    async def test_unknown_operator_excludes_item(self, dispatcher, scope):
        node = make_node("filter", {"conditions": [{"field": "price", "operator": "between", "value": 1}]})

        assert await dispatcher.execute(node, [[{"price": 5}]], scope) == []

    @pytest.mark.asyncio
    async def test_incomparable_values_excluded(self, dispatcher, scope):
        node = make_node("filter", {"conditions": [{"field": "price", "operator": "gt", "value": 10}]})
        items = [{"price": None}, {"name": "no price"}, {"price": "n/a"}, {"price": 11}]

        assert await dispatcher.execute(node, [items], scope) == [{"price": 11}]

    @pytest.mark.asyncio
    async def test_no_conditions_keeps_everything(self, dispatcher, scope):
        node = make_node("filter", {"conditions": []})

        assert await dispatcher.execute(node, [[1, 2]], scope) == [1, 2]

    @pytest.mark.asyncio
    async def test_requires_array(self, dispatcher, scope):
        node = make_node("filter", {"conditions": []})

        with pytest.raises(NodeExecutionError, match="requires array input"):
            await dispatcher.execute(node, [{"price": 5}], scope)

    @pytest.mark.asyncio
    async def test_requires_exactly_one_input(self, dispatcher, scope):
        node = make_node("filter", {"conditions": []})

        with pytest.raises(NodeExecutionError, match="exactly one input, got 2"):
            await dispatcher.execute(node, [[1], [2]], scope)
        with pytest.raises(NodeExecutionError, match="exactly one input, got 0"):
            await dispatcher.execute(node, [], scope)


# ============================================================================
# merge
# ============================================================================

class TestMerge:

    @pytest.mark.asyncio
    async def test_deduplicate_keeps_first_occurrence(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "deduplicate", "key": "id"})
        left = [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]
        right = [{"id": 1, "v": "c"}, {"id": 3, "v": "d"}]

        output = await dispatcher.execute(node, [left, right], scope)

        assert output == [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}, {"id": 3, "v": "d"}]

    @pytest.mark.asyncio
    async def test_deduplicate_requires_key(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "deduplicate"})

        with pytest.raises(NodeExecutionError, match="requires a key"):
            await dispatcher.execute(node, [[{"id": 1}]], scope)

    @pytest.mark.asyncio
    async def test_deduplicate_distinguishes_true_and_one(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "deduplicate", "key": "k"})

        output = await dispatcher.execute(node, [[{"k": 1}, {"k": True}, {"k": 1.0}]], scope)

        assert output == [{"k": 1}, {"k": True}]

    @pytest.mark.asyncio
    async def test_concat_flattens_one_level(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "concat"})

        output = await dispatcher.execute(node, [[1, [2]], {"a": 1}, [3]], scope)

        assert output == [1, [2], {"a": 1}, 3]

    @pytest.mark.asyncio
    async def test_merge_objects_later_wins(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "merge_objects"})

        output = await dispatcher.execute(node, [{"a": 1, "b": 1}, {"b": 2}, {"c": 3}], scope)

        assert output == {"a": 1, "b": 2, "c": 3}

    @pytest.mark.asyncio
    async def test_merge_objects_rejects_non_objects(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "merge_objects"})

        with pytest.raises(NodeExecutionError, match="requires object inputs"):
            await dispatcher.execute(node, [{"a": 1}, [1]], scope)

    @pytest.mark.asyncio
    async def test_unknown_strategy(self, dispatcher, scope):
        node = make_node("merge", {"strategy": "zip"})

        with pytest.raises(NodeExecutionError, match="Invalid merge config"):
            await dispatcher.execute(node, [], scope)


# ============================================================================
# action
# ============================================================================

class TestAction:

    @pytest.mark.asyncio
    async def test_save_passes_first_input_through(self, dispatcher, scope):
        node = make_node("action", {"action": "save"})

        assert await dispatcher.execute(node, [{"hello": "world"}, {"x": 1}], scope) == {"hello": "world"}

    @pytest.mark.asyncio
    async def test_notify_acknowledges(self, dispatcher, scope, caplog):
        node = make_node("action", {"action": "notify", "config": {"channel": "ops"}})

        with caplog.at_level(logging.INFO, logger="workflow_dag.executors"):
            output = await dispatcher.execute(node, [{"alert": "low stock"}], scope)

        assert output == {"notified": True}
        event = caplog.records[-1]
        assert event.getMessage() == "Workflow notification"
        assert event.channel == {"channel": "ops"}
        assert event.payload == {"alert": "low stock"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["send_email", "webhook"])
    async def test_declared_but_unsupported(self, dispatcher, scope, action):
        node = make_node("action", {"action": action})

        with pytest.raises(UnsupportedVariantError, match=f"Action {action} not yet supported"):
            await dispatcher.execute(node, [{}], scope)


# ============================================================================
# conditional
# ============================================================================

class TestConditional:

    CONFIG = {"condition": "data.total > 100", "trueBranch": "escalate", "falseBranch": "archive"}

    @pytest.mark.asyncio
    async def test_true_branch(self, dispatcher, scope):
        node = make_node("conditional", self.CONFIG)

        output = await dispatcher.execute(node, [{"total": 250}], scope)

        assert output == {"conditionMet": True, "nextNode": "escalate", "data": {"total": 250}}

    @pytest.mark.asyncio
    async def test_false_branch(self, dispatcher, scope):
        node = make_node("conditional", self.CONFIG)

        output = await dispatcher.execute(node, [{"total": 5}], scope)

        assert output["conditionMet"] is False
        assert output["nextNode"] == "archive"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("condition", ["data.total >", "order.total > 1"])
    async def test_unevaluable_condition_takes_false_branch(self, dispatcher, scope, caplog, condition):
        node = make_node("conditional", {**self.CONFIG, "condition": condition})

        with caplog.at_level(logging.WARNING, logger="workflow_dag.executors"):
            output = await dispatcher.execute(node, [{"total": 500}], scope)

        assert output == {"conditionMet": False, "nextNode": "archive", "data": {"total": 500}}
        warning = caplog.records[-1]
        assert warning.levelname == "WARNING"
        assert warning.node_id == "n1"
        assert warning.condition == condition

    @pytest.mark.asyncio
    async def test_branches_required(self, dispatcher, scope):
        node = make_node("conditional", {"condition": "data"})

        with pytest.raises(NodeExecutionError, match="Invalid conditional config"):
            await dispatcher.execute(node, [1], scope)


# ============================================================================
# provider registry
# ============================================================================

@pytest.mark.asyncio
async def test_registered_provider_is_used(mock_tool_service, scope):
    registry = ProviderRegistry()
    provider = AsyncMock()
    provider.complete = AsyncMock(return_value=CompletionResponse(content='"ok"'))
    registry.register("anthropic", provider)
    dispatcher = NodeDispatcher(mock_tool_service, registry, None, TransformSettings())

    assert registry.list_providers() == ["anthropic"]
    assert await dispatcher.execute(make_node("transform", {"type": "llm"}), [], scope) == "ok"
