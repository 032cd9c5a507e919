import logging

from .catalog import SourceKind, ToolCatalog, ToolSource, build_catalog, builtin_tools
from .client import AnthropicLLM, BaseAsyncLLM, OpenAILLM, create_llm
from .errors import (
    BridgeError,
    ConfigurationError,
    MCPServerError,
    ProviderError,
    ToolExecutionError,
    ToolNotFound,
)
from .executor import ToolExecutor, normalize_server_url
from .mcp_client import MCPServerClient
from .naming import NameResolver, resolve, sanitize
from .orchestrator import Orchestrator, TurnResult, TurnState, append_tool_results
from .provider import Provider, ProviderConfig, get_api_key
from .schema import catalog_to_provider_tools, to_generic_schema, to_provider_schema
from .settings import BridgeSettings
from .types import (
    ChatMessage,
    ChatResponse,
    LocalExecution,
    ParamSpec,
    ParamType,
    RemoteExecution,
    Tool,
    ToolCallRequest,
    ToolCallResult,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AnthropicLLM",
    "BaseAsyncLLM",
    "BridgeError",
    "BridgeSettings",
    "ChatMessage",
    "ChatResponse",
    "ConfigurationError",
    "LocalExecution",
    "MCPServerClient",
    "MCPServerError",
    "NameResolver",
    "OpenAILLM",
    "Orchestrator",
    "ParamSpec",
    "ParamType",
    "Provider",
    "ProviderConfig",
    "ProviderError",
    "RemoteExecution",
    "SourceKind",
    "Tool",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolCatalog",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolNotFound",
    "ToolSource",
    "TurnResult",
    "TurnState",
    "append_tool_results",
    "build_catalog",
    "builtin_tools",
    "catalog_to_provider_tools",
    "create_llm",
    "get_api_key",
    "normalize_server_url",
    "resolve",
    "sanitize",
    "to_generic_schema",
    "to_provider_schema",
]
