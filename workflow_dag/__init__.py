# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Workflow DAG execution engine."""

from workflow_dag.models import (
    NodeKind, ExecutionStatus, WorkflowNode, WorkflowDAG,
    WorkflowExecution, NodeExecutionLog, ValidationResult,
)
from workflow_dag.services import (
    ToolInvocationService, CompletionService, CredentialStore, ProviderRegistry,
    ToolCall, ToolResult, ChatMessage, CompletionOptions, CompletionResponse,
    Credentials, PrincipalScope,
)
from workflow_dag.scheduler import topological_order
from workflow_dag.references import resolve_value, resolve_parameters
from workflow_dag.condition_evaluator import evaluate_condition
from workflow_dag.validation import validate_workflow
from workflow_dag.executors import NodeDispatcher
from workflow_dag.engine import WorkflowExecutor

__all__ = [
    "NodeKind", "ExecutionStatus", "WorkflowNode", "WorkflowDAG",
    "WorkflowExecution", "NodeExecutionLog", "ValidationResult",
    "ToolInvocationService", "CompletionService", "CredentialStore", "ProviderRegistry",
    "ToolCall", "ToolResult", "ChatMessage", "CompletionOptions", "CompletionResponse",
    "Credentials", "PrincipalScope",
    "topological_order", "resolve_value", "resolve_parameters",
    "evaluate_condition", "validate_workflow",
    "NodeDispatcher", "WorkflowExecutor",
]
