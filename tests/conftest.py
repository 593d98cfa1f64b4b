# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures for the workflow engine tests.

External services are replaced with AsyncMocks; nothing here touches the
network.
"""

import os
import sys
import pytest
from unittest.mock import AsyncMock

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from workflow_dag.core.config import EngineSettings, TransformSettings, reset_config
from workflow_dag.services import (
    ProviderRegistry, PrincipalScope, ToolResult, CompletionResponse,
)
from workflow_dag.executors import NodeDispatcher
from workflow_dag.engine import WorkflowExecutor


@pytest.fixture(autouse=True)
def clean_config():
    """Each test starts without a cached configuration"""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def mock_tool_service():
    """Tool service whose calls succeed with a fixed payload"""
    service = AsyncMock()
    service.call_tool = AsyncMock(return_value=ToolResult(success=True, data={"ok": True}))
    return service


@pytest.fixture
def mock_completion():
    """Completion service returning a JSON document"""
    provider = AsyncMock()
    provider.complete = AsyncMock(return_value=CompletionResponse(content='{"summary": "done"}'))
    return provider


@pytest.fixture
def mock_credential_store():
    store = AsyncMock()
    store.get_credentials = AsyncMock(return_value=None)
    return store


@pytest.fixture
def providers(mock_completion):
    return ProviderRegistry({"anthropic": mock_completion})


@pytest.fixture
def scope():
    return PrincipalScope(user_id="user-1")


@pytest.fixture
def dispatcher(mock_tool_service, providers, mock_credential_store):
    return NodeDispatcher(
        mock_tool_service,
        providers,
        mock_credential_store,
        TransformSettings()
    )


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def executor(mock_tool_service, providers, mock_credential_store, settings):
    return WorkflowExecutor(
        mock_tool_service,
        providers=providers,
        credential_store=mock_credential_store,
        settings=settings
    )
