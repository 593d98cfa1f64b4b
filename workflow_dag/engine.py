# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Executor

Runs a workflow DAG one node at a time in topological order and returns the
complete execution record.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timezone
import uuid

from .core.config import EngineSettings, get_config
from .core.logging import get_logger, log_event
from .models import (
    WorkflowDAG, WorkflowNode, WorkflowExecution, NodeExecutionLog,
    ExecutionStatus, utcnow,
)
from .context import ExecutionContext
from .executors import NodeDispatcher
from .scheduler import topological_order
from .services import (
    ToolInvocationService, CredentialStore, ProviderRegistry, PrincipalScope,
)
from .exceptions import (
    GraphError, NodeNotFoundError, NodeTimeoutError, ExecutionCancelledError,
)


logger = get_logger(__name__)


class WorkflowExecutor:
    """
    Sequential workflow executor.

    A failing node stops the run: later nodes are skipped and side effects
    of earlier nodes are left in place.
    """

    def __init__(
        self,
        tool_service: ToolInvocationService,
        providers: Optional[ProviderRegistry] = None,
        credential_store: Optional[CredentialStore] = None,
        settings: Optional[EngineSettings] = None
    ):
        self.settings = settings or get_config()
        self.dispatcher = NodeDispatcher(
            tool_service,
            providers or ProviderRegistry(),
            credential_store,
            self.settings.transform
        )

        # Execution tracking
        self.active_executions: Dict[str, ExecutionContext] = {}

    async def execute(
        self,
        workflow: WorkflowDAG,
        user_id: str,
        org_id: Optional[str] = None,
        initial_inputs: Optional[Sequence[Any]] = None
    ) -> WorkflowExecution:
        """
        Execute a workflow.

        Args:
            workflow: Definition to run; never modified
            user_id: Principal the run acts for (credential scope)
            org_id: Optional organization of the principal
            initial_inputs: Inputs handed to nodes that declare no inputs

        Returns:
            WorkflowExecution in a terminal state (completed or failed)
        """
        execution_id = f"exec_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        execution = WorkflowExecution(
            id=execution_id,
            workflow_id=workflow.id or "",
            user_id=user_id
        )
        context = ExecutionContext(
            execution_id,
            execution.workflow_id,
            PrincipalScope(user_id=user_id, org_id=org_id),
            initial_inputs
        )
        self.active_executions[execution_id] = context

        log_event(
            logger, "Starting workflow",
            execution_id=execution_id,
            workflow_id=execution.workflow_id,
            workflow_name=workflow.name,
            user_id=user_id
        )

        try:
            try:
                order = topological_order(workflow.nodes)
            except GraphError as e:
                return self._fail(execution, str(e))

            log_event(logger, "Execution order", execution_id=execution_id, order=order)

            for node_id in order:
                node = workflow.get_node(node_id)
                if node is None:
                    return self._fail(execution, str(NodeNotFoundError(node_id)))

                node_log = NodeExecutionLog(node_id=node.id)
                log_event(logger, "Executing node", execution_id=execution_id, node_id=node.id, node_type=node.type.value)

                try:
                    inputs = context.gather_inputs(node)
                    output = await self._run_node(node, inputs, context)
                except Exception as e:
                    message = str(e) or type(e).__name__
                    node_log.status = ExecutionStatus.FAILED
                    node_log.completed_at = utcnow()
                    node_log.error = message
                    execution.execution_log.append(node_log)

                    log_event(
                        logger, "Node failed",
                        level="ERROR",
                        execution_id=execution_id,
                        node_id=node.id,
                        error=message,
                        error_type=type(e).__name__
                    )
                    return self._fail(execution, f"Node {node.id} failed: {message}")

                context.record_output(node.id, output)
                node_log.status = ExecutionStatus.COMPLETED
                node_log.completed_at = utcnow()
                node_log.output = output
                execution.execution_log.append(node_log)

                log_event(logger, "Node completed", execution_id=execution_id, node_id=node.id)

            # Result is the output of the last node in topological order
            result = context.get_output(order[-1]) if order else None
            execution.finalize(ExecutionStatus.COMPLETED, result=result)

            duration = (execution.completed_at - execution.started_at).total_seconds()
            log_event(
                logger, "Workflow completed",
                execution_id=execution_id,
                duration_seconds=round(duration, 3)
            )
            return execution

        finally:
            self.active_executions.pop(execution_id, None)

    def cancel(self, execution_id: str) -> bool:
        """
        Request cancellation of an active run.

        The in-flight node fails with "Execution cancelled" and later nodes
        are skipped. Returns False if the run is unknown or already finished.
        """
        context = self.active_executions.get(execution_id)
        if context is None:
            return False

        context.cancelled.set()
        log_event(logger, "Cancellation requested", level="WARNING", execution_id=execution_id)
        return True

    def list_active(self) -> List[str]:
        """Ids of runs that have not reached a terminal state"""
        return list(self.active_executions.keys())

    async def _run_node(self, node: WorkflowNode, inputs: List[Any], context: ExecutionContext) -> Any:
        """Run one node, bounded by its timeout and the run's cancel flag"""
        if context.cancel_requested:
            raise ExecutionCancelledError(node.id)

        timeout = node.timeout if node.timeout is not None else self.settings.execution.node_timeout

        node_task = asyncio.ensure_future(self.dispatcher.execute(node, inputs, context.scope))
        cancel_task = asyncio.ensure_future(context.cancelled.wait())

        try:
            done, _ = await asyncio.wait(
                {node_task, cancel_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            node_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if node_task in done:
            try:
                return node_task.result()
            except asyncio.CancelledError:
                # Collaborator raised CancelledError inside the node
                raise ExecutionCancelledError(node.id)

        node_task.cancel()
        await asyncio.gather(node_task, return_exceptions=True)

        if context.cancel_requested:
            raise ExecutionCancelledError(node.id)
        raise NodeTimeoutError(node.id, timeout)

    def _fail(self, execution: WorkflowExecution, error: str) -> WorkflowExecution:
        execution.finalize(ExecutionStatus.FAILED, error=error)
        log_event(
            logger, "Workflow failed",
            level="ERROR",
            execution_id=execution.id,
            workflow_id=execution.workflow_id,
            error=error
        )
        return execution
