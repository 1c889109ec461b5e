"""
Redis MCP Server - Model Context Protocol access to a Redis database.

Exposes Redis reads, writes, key management and diagnostics as MCP tools
over line-delimited JSON-RPC on stdin/stdout, with write operations gated
by environment permission flags.
"""

from .audit import AuditEntry, AuditLog
from .config import Permissions, RedisSettings, ServerConfig
from .errors import (
    RedisMCPError,
    ValidationError,
    PermissionDenied,
    KeyNotFound,
    KeyConflict,
    StoreError,
    UnknownTool,
)
from .protocol import (
    MCPMessage,
    MCPRequest,
    MCPResponse,
    MCPError,
    MCPErrorCode,
    Tool,
    ToolParameter,
)
from .server import MCPServer, ServerState, create_server
from .store import ConnectionManager, RedisStore
from .tools import (
    BaseTool,
    ToolContext,
    ToolRegistry,
    TOOL_NAMES,
    create_default_registry,
)
from .transport import (
    Transport,
    StdioTransport,
)

__version__ = "1.0.0"

__all__ = [
    # Audit
    "AuditEntry",
    "AuditLog",
    # Config
    "Permissions",
    "RedisSettings",
    "ServerConfig",
    # Errors
    "RedisMCPError",
    "ValidationError",
    "PermissionDenied",
    "KeyNotFound",
    "KeyConflict",
    "StoreError",
    "UnknownTool",
    # Protocol
    "MCPMessage",
    "MCPRequest",
    "MCPResponse",
    "MCPError",
    "MCPErrorCode",
    "Tool",
    "ToolParameter",
    # Server
    "MCPServer",
    "ServerState",
    "create_server",
    # Store
    "ConnectionManager",
    "RedisStore",
    # Tools
    "BaseTool",
    "ToolContext",
    "ToolRegistry",
    "TOOL_NAMES",
    "create_default_registry",
    # Transport
    "Transport",
    "StdioTransport",
]
