# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
External collaborators of the engine.

The engine only needs to call a tool, complete a prompt and look up
credentials. Concrete implementations live in the surrounding service.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from pydantic import BaseModel, Field, ConfigDict


class Credentials(BaseModel):
    """Credentials a principal holds for one tool server"""
    api_key: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    extra: Dict[str, Any] = Field(default_factory=dict)


class PrincipalScope(BaseModel):
    """Who a run acts on behalf of"""
    user_id: str
    org_id: Optional[str] = None


class ToolCall(BaseModel):
    """Tool invocation request"""
    model_config = ConfigDict(populate_by_name=True)

    server_id: str = Field(alias="serverId")
    tool_name: str = Field(alias="toolName")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Credentials] = None


class ToolResult(BaseModel):
    """Tool invocation outcome; success=False carries an error message"""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


class ChatMessage(BaseModel):
    role: str
    content: str


class CompletionOptions(BaseModel):
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


class CompletionResponse(BaseModel):
    content: str
    usage: Optional[Dict[str, Any]] = None


@runtime_checkable
class ToolInvocationService(Protocol):
    async def call_tool(self, call: ToolCall) -> ToolResult:
        ...


@runtime_checkable
class CompletionService(Protocol):
    async def complete(
        self,
        messages: List[ChatMessage],
        options: Optional[CompletionOptions] = None
    ) -> CompletionResponse:
        ...


@runtime_checkable
class CredentialStore(Protocol):
    async def get_credentials(self, scope: PrincipalScope, server_id: str) -> Optional[Credentials]:
        """Return credentials, or None when the principal has none for this server."""
        ...


class ProviderRegistry:
    """Completion services by provider name."""

    def __init__(self, providers: Optional[Dict[str, CompletionService]] = None):
        self._providers: Dict[str, CompletionService] = dict(providers or {})

    def register(self, name: str, provider: CompletionService) -> None:
        self._providers[name] = provider

    def get_provider(self, name: str) -> Optional[CompletionService]:
        return self._providers.get(name)

    def list_providers(self) -> List[str]:
        return list(self._providers.keys())
