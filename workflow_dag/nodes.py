# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Node Configs - one typed config model per node kind.

Node definitions keep their config as a plain dict; parse_node_config turns
it into the matching model when the node is about to run.
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict, ValidationError

from .models import NodeKind, WorkflowNode
from .exceptions import NodeExecutionError


class MCPFetchConfig(BaseModel):
    """
    Call a tool on an integrated server.

    Example:
        {
            "serverId": "crm",
            "toolName": "get_customer",
            "parameters": {"email": "$input[0].email"}
        }
    """
    model_config = ConfigDict(populate_by_name=True)

    server_id: str = Field(..., alias="serverId")
    tool_name: str = Field(..., alias="toolName")
    parameters: Dict[str, Any] = Field(default_factory=dict)


class TransformConfig(BaseModel):
    """
    Transform upstream data.

    Only "llm" transforms run; "code" is declared but not implemented.
    """
    type: Literal["llm", "code"]
    prompt: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None


class FilterCondition(BaseModel):
    field: str
    operator: str = Field(..., description="equals | contains | gt | lt")
    value: Any = None


class FilterConfig(BaseModel):
    conditions: List[FilterCondition] = Field(default_factory=list)


class MergeConfig(BaseModel):
    strategy: Literal["concat", "deduplicate", "merge_objects"]
    key: Optional[str] = Field(None, description="Key field for deduplicate")


class ActionConfig(BaseModel):
    action: Literal["save", "notify", "send_email", "webhook"]
    config: Dict[str, Any] = Field(default_factory=dict, description="Action settings, e.g. the notify channel")

class ConditionalConfig(BaseModel):
    """
    Evaluate ``condition`` against the first input, bound as ``data``.

    Example:
        {
            "condition": "data.total > 100 && data.status == 'open'",
            "trueBranch": "escalate",
            "falseBranch": "archive"
        }
    """
    model_config = ConfigDict(populate_by_name=True)

    condition: str
    true_branch: str = Field(..., alias="trueBranch")
    false_branch: str = Field(..., alias="falseBranch")


NODE_CONFIG_CLASSES = {
    NodeKind.MCP_FETCH: MCPFetchConfig,
    NodeKind.TRANSFORM: TransformConfig,
    NodeKind.FILTER: FilterConfig,
    NodeKind.MERGE: MergeConfig,
    NodeKind.ACTION: ActionConfig,
    NodeKind.CONDITIONAL: ConditionalConfig,
}


def parse_node_config(node: WorkflowNode) -> BaseModel:
    """
    Parse a node's raw config into its typed model.

    Raises:
        NodeExecutionError: If the config does not match the node kind
    """
    config_class = NODE_CONFIG_CLASSES[node.type]
    try:
        return config_class(**node.config)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise NodeExecutionError(
            f"Invalid {node.type.value} config: {problems}",
            node_id=node.id
        )
