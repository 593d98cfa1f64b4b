# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Scheduler

Linearizes node dependencies with Kahn's algorithm.
"""

from typing import List, Dict, Iterable
from collections import deque

from .models import WorkflowNode
from .exceptions import CycleError, DuplicateNodeError, UnknownInputError


def check_references(nodes: Iterable[WorkflowNode]) -> None:
    """
    Ensure node ids are unique and every input names a node in the set.

    Raises:
        DuplicateNodeError: Two nodes share an id
        UnknownInputError: An input names a node that does not exist
    """
    nodes = list(nodes)
    node_ids = set()
    for node in nodes:
        if node.id in node_ids:
            raise DuplicateNodeError(node.id)
        node_ids.add(node.id)

    for node in nodes:
        for input_id in node.inputs:
            if input_id not in node_ids:
                raise UnknownInputError(node.id, input_id)


def topological_order(nodes: Iterable[WorkflowNode]) -> List[str]:
    """
    Return node ids so that every node follows all of its inputs.

    In-degree is the length of each node's declared ``inputs``; a repeated
    input counts twice and is released twice. Ready nodes are taken in FIFO
    order of becoming ready.

    Raises:
        DuplicateNodeError, UnknownInputError: Broken references
        CycleError: Not every node could be ordered
    """
    nodes = list(nodes)
    check_references(nodes)

    in_degree: Dict[str, int] = {}
    dependents: Dict[str, List[str]] = {node.id: [] for node in nodes}

    for node in nodes:
        in_degree[node.id] = len(node.inputs)
        for input_id in node.inputs:
            dependents[input_id].append(node.id)

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        node_id = queue.popleft()
        order.append(node_id)

        for dependent in dependents[node_id]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(order) != len(nodes):
        ordered = set(order)
        unordered = [node.id for node in nodes if node.id not in ordered]
        raise CycleError(unordered)

    return order
