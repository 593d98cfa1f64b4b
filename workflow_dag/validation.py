# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Validation

Edit-time checks that collect every problem instead of stopping at the
first one. The executor repeats the graph checks at run time.
"""

from typing import List

from .models import WorkflowDAG, ValidationResult
from .scheduler import topological_order
from .nodes import parse_node_config
from .exceptions import CycleError, NodeExecutionError


def validate_workflow(workflow: WorkflowDAG) -> ValidationResult:
    """
    Validate workflow structure.

    Checks name, owner, node presence, duplicate ids, dangling inputs,
    per-kind node config and cycles. Never raises for a malformed graph.
    """
    errors: List[str] = []

    if not workflow.name:
        errors.append("Workflow must have a name")

    if not workflow.owner_id:
        errors.append("Workflow must have a userId")

    if not workflow.nodes:
        errors.append("Workflow must have at least one node")

    node_ids = set()
    for node in workflow.nodes:
        if node.id in node_ids:
            errors.append(f"Duplicate node ID: {node.id}")
        node_ids.add(node.id)

    dangling = False
    for node in workflow.nodes:
        for input_id in node.inputs:
            if input_id not in node_ids:
                errors.append(f"Node {node.id} references non-existent input: {input_id}")
                dangling = True

    # Config shape per node kind; nodes without one are reported as missing it
    for node in workflow.nodes:
        try:
            parse_node_config(node)
        except NodeExecutionError as e:
            errors.append(f"Node {node.id} missing config" if not node.config else f"Node {node.id}: {e}")

    # Cycle check only makes sense once references are sound
    if workflow.nodes and not dangling and len(node_ids) == len(workflow.nodes):
        try:
            topological_order(workflow.nodes)
        except CycleError as e:
            errors.append(str(e))

    return ValidationResult(valid=not errors, errors=errors)
