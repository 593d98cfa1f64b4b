# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Node Executors

One handler per node kind. Each handler takes the node and the outputs of
its inputs (in declared order) and returns the node output or raises a
NodeExecutionError.
"""

import json
from typing import Any, List, Optional, Sequence

from .core.config import TransformSettings, get_config
from .core.logging import get_logger, log_event
from .models import NodeKind, WorkflowNode
from .nodes import (
    parse_node_config,
    MCPFetchConfig, TransformConfig, FilterConfig, FilterCondition,
    MergeConfig, ActionConfig, ConditionalConfig,
)
from .references import resolve_parameters
from .condition_evaluator import evaluate_condition, strict_equals
from .services import (
    ToolInvocationService, CredentialStore, ProviderRegistry,
    Credentials, PrincipalScope, ToolCall, ChatMessage, CompletionOptions,
)
from .exceptions import NodeExecutionError, UnsupportedVariantError, ToolCallError, ConditionSyntaxError


logger = get_logger(__name__)

DEFAULT_TRANSFORM_PROMPT = "Transform this data"


class NodeDispatcher:
    """
    Executes single nodes by kind.

    Holds no per-run state, so one dispatcher can serve concurrent runs.
    """

    def __init__(
        self,
        tool_service: ToolInvocationService,
        providers: ProviderRegistry,
        credential_store: Optional[CredentialStore] = None,
        transform_settings: Optional[TransformSettings] = None
    ):
        self.tool_service = tool_service
        self.providers = providers
        self.credential_store = credential_store
        self.transform_settings = transform_settings or get_config().transform

    async def execute(self, node: WorkflowNode, inputs: Sequence[Any], scope: PrincipalScope) -> Any:
        """
        Execute a single node - dispatches by node kind.

        Raises:
            NodeExecutionError: On bad config, bad input shape, unsupported
                variants or external call failure
        """
        config = parse_node_config(node)

        if node.type == NodeKind.MCP_FETCH:
            return await self._execute_mcp_fetch(node, config, inputs, scope)
        elif node.type == NodeKind.TRANSFORM:
            return await self._execute_transform(node, config, inputs)
        elif node.type == NodeKind.FILTER:
            return self._execute_filter(node, config, inputs)
        elif node.type == NodeKind.MERGE:
            return self._execute_merge(node, config, inputs)
        elif node.type == NodeKind.ACTION:
            return self._execute_action(node, config, inputs)
        elif node.type == NodeKind.CONDITIONAL:
            return self._execute_conditional(node, config, inputs)
        else:
            raise NodeExecutionError(f"Unknown node type: {node.type}", node_id=node.id)

    # ========================================================================
    # mcp_fetch
    # ========================================================================

    async def _execute_mcp_fetch(
        self,
        node: WorkflowNode,
        config: MCPFetchConfig,
        inputs: Sequence[Any],
        scope: PrincipalScope
    ) -> Any:
        """Resolve $input references, then call the tool"""
        parameters = resolve_parameters(config.parameters, inputs)
        credentials = await self._lookup_credentials(node, scope, config.server_id)

        result = await self.tool_service.call_tool(ToolCall(
            server_id=config.server_id,
            tool_name=config.tool_name,
            parameters=parameters,
            credentials=credentials
        ))

        if not result.success:
            raise ToolCallError(
                config.server_id,
                config.tool_name,
                result.error or "MCP tool call failed",
                node_id=node.id
            )

        return result.data

    async def _lookup_credentials(
        self,
        node: WorkflowNode,
        scope: PrincipalScope,
        server_id: str
    ) -> Optional[Credentials]:
        if self.credential_store is None:
            return None

        try:
            return await self.credential_store.get_credentials(scope, server_id)
        except Exception as e:
            # Lookup failures never fail the node; the tool call goes out unauthenticated
            log_event(
                logger, "Credential lookup failed, continuing without credentials",
                level="WARNING",
                node_id=node.id,
                server_id=server_id,
                user_id=scope.user_id,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

    # ========================================================================
    # transform
    # ========================================================================

    async def _execute_transform(self, node: WorkflowNode, config: TransformConfig, inputs: Sequence[Any]) -> Any:
        if config.type == "code":
            raise UnsupportedVariantError("Code transforms not yet supported", node_id=node.id)

        settings = self.transform_settings
        provider_name = config.provider or settings.default_provider
        provider = self.providers.get_provider(provider_name)
        if provider is None:
            raise NodeExecutionError(
                f"No LLM provider available for transformation: {provider_name}",
                node_id=node.id
            )

        prompt = config.prompt or DEFAULT_TRANSFORM_PROMPT
        if inputs:
            prompt = f"{prompt}\n\nInput data:\n{json.dumps(list(inputs), indent=2, default=str)}"

        response = await provider.complete(
            [ChatMessage(role="user", content=prompt)],
            CompletionOptions(
                model=config.model or settings.default_model,
                max_tokens=settings.max_tokens,
                temperature=config.temperature if config.temperature is not None else settings.temperature
            )
        )

        try:
            return json.loads(response.content)
        except json.JSONDecodeError:
            logger.debug("Transform response is not JSON, returning raw text", extra={"node_id": node.id})
            return response.content

    # ========================================================================
    # filter
    # ========================================================================

    def _execute_filter(self, node: WorkflowNode, config: FilterConfig, inputs: Sequence[Any]) -> List[Any]:
        if len(inputs) != 1:
            raise NodeExecutionError(
                f"Filter node requires exactly one input, got {len(inputs)}",
                node_id=node.id
            )

        data = inputs[0]
        if not isinstance(data, list):
            raise NodeExecutionError("Filter node requires array input", node_id=node.id)

        return [
            item for item in data
            if all(_condition_holds(item, condition) for condition in config.conditions)
        ]

    # ========================================================================
    # merge
    # ========================================================================

    def _execute_merge(self, node: WorkflowNode, config: MergeConfig, inputs: Sequence[Any]) -> Any:
        if config.strategy == "concat":
            return _flatten(inputs)

        elif config.strategy == "deduplicate":
            if not config.key:
                raise NodeExecutionError("Deduplicate strategy requires a key", node_id=node.id)

            seen = set()
            result = []
            for item in _flatten(inputs):
                marker = _identity(_field(item, config.key))
                if marker not in seen:
                    seen.add(marker)
                    result.append(item)
            return result

        elif config.strategy == "merge_objects":
            merged = {}
            for value in inputs:
                if not isinstance(value, dict):
                    raise NodeExecutionError(
                        f"merge_objects requires object inputs, got {type(value).__name__}",
                        node_id=node.id
                    )
                merged.update(value)
            return merged

        raise NodeExecutionError(f"Unknown merge strategy: {config.strategy}", node_id=node.id)

    # ========================================================================
    # action
    # ========================================================================

    def _execute_action(self, node: WorkflowNode, config: ActionConfig, inputs: Sequence[Any]) -> Any:
        first = inputs[0] if inputs else None

        if config.action == "save":
            # Pass-through until a persistence backend exists
            return first

        elif config.action == "notify":
            log_event(logger, "Workflow notification", node_id=node.id, channel=config.config, payload=first)
            return {"notified": True}

        elif config.action in ("send_email", "webhook"):
            raise UnsupportedVariantError(f"Action {config.action} not yet supported", node_id=node.id)

        raise NodeExecutionError(f"Unknown action: {config.action}", node_id=node.id)

    # ========================================================================
    # conditional
    # ========================================================================

    def _execute_conditional(self, node: WorkflowNode, config: ConditionalConfig, inputs: Sequence[Any]) -> dict:
        """
        Evaluate the condition against the first input.

        A condition that cannot be evaluated counts as false and routes to
        the false branch. The returned nextNode is informational; the
        scheduler still runs every node in topological order.
        """
        data = inputs[0] if inputs else None
        try:
            condition_met = evaluate_condition(config.condition, {"data": data})
        except ConditionSyntaxError as e:
            log_event(
                logger, "Condition could not be evaluated, treating as false",
                level="WARNING",
                node_id=node.id,
                condition=config.condition,
                error=str(e)
            )
            condition_met = False

        return {
            "conditionMet": condition_met,
            "nextNode": config.true_branch if condition_met else config.false_branch,
            "data": data,
        }


# ============================================================================
# Helpers
# ============================================================================

def _field(item: Any, name: str) -> Any:
    return item.get(name) if isinstance(item, dict) else None


def _condition_holds(item: Any, condition: FilterCondition) -> bool:
    value = _field(item, condition.field)

    if condition.operator == "equals":
        return strict_equals(value, condition.value)
    elif condition.operator == "contains":
        return _to_text(condition.value) in _to_text(value)
    elif condition.operator == "gt":
        return _ordered(value, condition.value, lambda a, b: a > b)
    elif condition.operator == "lt":
        return _ordered(value, condition.value, lambda a, b: a < b)

    # Unknown operators exclude the item
    return False


def _ordered(left: Any, right: Any, compare) -> bool:
    try:
        return bool(compare(left, right))
    except TypeError:
        return False


def _to_text(value: Any) -> str:
    """String coercion used by the contains operator."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(_to_text(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _flatten(inputs: Sequence[Any]) -> List[Any]:
    """Flatten one level: list inputs are spliced, others appended."""
    flat: List[Any] = []
    for value in inputs:
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


def _identity(value: Any):
    """Hashable marker that keeps booleans apart from 0/1."""
    if isinstance(value, (dict, list)):
        return ("json", json.dumps(value, sort_keys=True, default=str))
    return (isinstance(value, bool), value)
