# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Execution Context

Per-run state: node outputs, principal scope and the cancellation flag.
Discarded when the run ends.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from .models import WorkflowNode
from .services import PrincipalScope
from .exceptions import MissingOutputError


class ExecutionContext:
    """
    Execution context for a workflow run.

    Only the executor writes outputs, each node exactly once; executors get
    read-only input lists built from it.
    """

    def __init__(
        self,
        execution_id: str,
        workflow_id: str,
        scope: PrincipalScope,
        initial_inputs: Optional[Sequence[Any]] = None
    ):
        self.execution_id = execution_id
        self.workflow_id = workflow_id
        self.scope = scope
        self.initial_inputs: List[Any] = list(initial_inputs or [])
        self.cancelled = asyncio.Event()

        self.node_outputs: Dict[str, Any] = {}

    @property
    def cancel_requested(self) -> bool:
        return self.cancelled.is_set()

    def record_output(self, node_id: str, output: Any) -> None:
        """Store a node's output"""
        if node_id in self.node_outputs:
            raise ValueError(f"Output for node {node_id} already recorded")
        self.node_outputs[node_id] = output

    def get_output(self, node_id: str) -> Any:
        return self.node_outputs.get(node_id)

    def gather_inputs(self, node: WorkflowNode) -> List[Any]:
        """
        Collect the outputs of a node's inputs in declared order.

        Nodes without inputs receive the run's initial inputs.

        Raises:
            MissingOutputError: If an input has not produced output
        """
        if not node.inputs:
            return list(self.initial_inputs)

        inputs = []
        for input_id in node.inputs:
            if input_id not in self.node_outputs:
                raise MissingOutputError(input_id, node_id=node.id)
            inputs.append(self.node_outputs[input_id])
        return inputs
