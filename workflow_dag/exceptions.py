# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Exceptions

Graph-level errors fail a run before any node executes. Node-level errors
fail the node that raised them and stop the run.
"""

from typing import Optional

from workflow_dag.core.errors import WorkflowDAGError


class GraphError(WorkflowDAGError):
    """Workflow graph is not executable"""
    pass


class CycleError(GraphError):
    """Node dependencies contain a cycle"""
    def __init__(self, unordered: Optional[list] = None):
        self.unordered = unordered or []
        super().__init__("Workflow contains a cycle", details={"nodes": self.unordered})


class UnknownInputError(GraphError):
    """A node lists an input id that is not in the workflow"""
    def __init__(self, node_id: str, input_id: str):
        self.node_id = node_id
        self.input_id = input_id
        super().__init__(f"Node {node_id} references non-existent input: {input_id}")


class DuplicateNodeError(GraphError):
    """Two nodes share an id"""
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Duplicate node ID: {node_id}")


class NodeNotFoundError(GraphError):
    """Scheduled node id has no definition"""
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found in workflow")


class NodeExecutionError(WorkflowDAGError):
    """Node execution failed"""
    def __init__(self, message: str, node_id: Optional[str] = None, details: Optional[dict] = None):
        self.node_id = node_id
        super().__init__(message, details=details)


class MissingOutputError(NodeExecutionError):
    """An upstream node has no recorded output"""
    def __init__(self, input_id: str, node_id: Optional[str] = None):
        self.input_id = input_id
        super().__init__(f"Missing output from node {input_id}", node_id=node_id)


class UnsupportedVariantError(NodeExecutionError):
    """Declared node variant without an implementation"""
    pass


class ToolCallError(NodeExecutionError):
    """Tool invocation reported failure"""
    def __init__(self, server_id: str, tool_name: str, message: str, node_id: Optional[str] = None):
        self.server_id = server_id
        self.tool_name = tool_name
        super().__init__(message, node_id=node_id, details={"server_id": server_id, "tool": tool_name})


class NodeTimeoutError(NodeExecutionError):
    """Node execution exceeded timeout"""
    def __init__(self, node_id: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"Execution exceeded timeout ({timeout:g}s)", node_id=node_id)


class ExecutionCancelledError(NodeExecutionError):
    """Run was cancelled while this node was pending or in flight"""
    def __init__(self, node_id: str):
        super().__init__("Execution cancelled", node_id=node_id)


class ConditionSyntaxError(NodeExecutionError):
    """Conditional expression could not be parsed"""
    def __init__(self, condition: str, reason: str):
        self.condition = condition
        self.reason = reason
        super().__init__(f"Invalid condition '{condition}': {reason}")


class CredentialLookupError(WorkflowDAGError):
    """Credential store failed; callers continue without credentials"""
    def __init__(self, server_id: str, message: str):
        self.server_id = server_id
        super().__init__(f"Credential lookup failed for server {server_id}: {message}")
