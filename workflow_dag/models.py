# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Models

Pydantic models for workflow definitions and execution records. Python
attribute names are snake_case; aliases carry the camelCase wire names.
"""

from enum import Enum
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field, ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NodeKind(str, Enum):
    """
    Supported workflow node kinds.

        MCP_FETCH - Call a tool on an integrated server
        TRANSFORM - Reshape upstream data (LLM prompt)
        FILTER - Keep array items matching all conditions
        MERGE - Combine several upstream outputs
        ACTION - Side effect step (save, notify, ...)
        CONDITIONAL - Evaluate an expression and name the next branch
    """
    MCP_FETCH = "mcp_fetch"
    TRANSFORM = "transform"
    FILTER = "filter"
    MERGE = "merge"
    ACTION = "action"
    CONDITIONAL = "conditional"


class ExecutionStatus(str, Enum):
    """Status of a run or of a single node within it"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowNode(BaseModel):
    """
    Single step in a workflow.

    Example:
        {
            "id": "fetch-orders",
            "type": "mcp_fetch",
            "config": {"serverId": "shopify", "toolName": "list_orders", "parameters": {}},
            "inputs": []
        }

    The order of ``inputs`` is significant: ``$input[n]`` references and the
    list handed to executors follow it.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: NodeKind
    description: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    inputs: List[str] = Field(default_factory=list)
    timeout: Optional[float] = Field(default=None, gt=0, description="Overrides the engine node timeout")


class WorkflowDAG(BaseModel):
    """Complete workflow definition"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    owner_id: Optional[str] = Field(default=None, alias="userId")
    nodes: List[WorkflowNode] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


class NodeExecutionLog(BaseModel):
    """Outcome of one node within a run"""
    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(alias="nodeId")
    status: ExecutionStatus = ExecutionStatus.RUNNING
    started_at: datetime = Field(default_factory=utcnow, alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
    output: Optional[Any] = None
    error: Optional[str] = None


class WorkflowExecution(BaseModel):
    """Record of a single workflow run"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    workflow_id: str = Field(alias="workflowId")
    user_id: str = Field(alias="userId")
    status: ExecutionStatus = ExecutionStatus.RUNNING
    started_at: datetime = Field(default_factory=utcnow, alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
    result: Optional[Any] = None
    error: Optional[str] = None
    execution_log: List[NodeExecutionLog] = Field(default_factory=list, alias="executionLog")

    def finalize(self, status: ExecutionStatus, result: Any = None, error: Optional[str] = None) -> None:
        """Move the run into a terminal state"""
        self.status = status
        self.result = result
        self.error = error
        self.completed_at = utcnow()


class ValidationResult(BaseModel):
    """Outcome of validate_workflow"""
    valid: bool
    errors: List[str] = Field(default_factory=list)
