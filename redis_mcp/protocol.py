"""
MCP Protocol definitions.

JSON-RPC 2.0 envelopes, error codes and tool definitions used by the
Redis MCP server.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


JSONRPC_VERSION = "2.0"
DEFAULT_PROTOCOL_VERSION = "2025-06-18"
NOTIFICATION_PREFIX = "notifications/"


class MCPErrorCode(Enum):
    """JSON-RPC error codes used by the server."""
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    SERVER_NOT_INITIALIZED = -32002


# Checked in order; the first substring found in the message wins.
ERROR_CODE_RULES: Tuple[Tuple[str, MCPErrorCode], ...] = (
    ("Server not initialized", MCPErrorCode.SERVER_NOT_INITIALIZED),
    ("Unknown method", MCPErrorCode.METHOD_NOT_FOUND),
    ("Unsupported JSON-RPC version", MCPErrorCode.INVALID_REQUEST),
    ("Missing tool name", MCPErrorCode.INVALID_PARAMS),
)


def error_code_for(message: str) -> MCPErrorCode:
    """Pick the JSON-RPC error code for an error message."""
    for needle, code in ERROR_CODE_RULES:
        if needle in message:
            return code
    return MCPErrorCode.INTERNAL_ERROR


@dataclass
class MCPError:
    """MCP Error object."""
    code: int
    message: str
    data: Optional[Any] = None

    @classmethod
    def from_code(cls, code: MCPErrorCode, message: str, data: Any = None) -> "MCPError":
        return cls(code=code.value, message=message, data=data)

    @classmethod
    def from_message(cls, message: str) -> "MCPError":
        return cls.from_code(error_code_for(message), message)

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class MCPMessage:
    """Base MCP message."""
    jsonrpc: str = JSONRPC_VERSION
    id: Optional[Any] = None


@dataclass
class MCPRequest(MCPMessage):
    """MCP Request message."""
    method: str = ""
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return isinstance(self.method, str) and self.method.startswith(NOTIFICATION_PREFIX)

    @classmethod
    def from_dict(cls, data: dict) -> "MCPRequest":
        # jsonrpc is kept as sent so the dispatcher can reject other versions
        params = data.get("params")
        return cls(
            jsonrpc=data.get("jsonrpc"),
            id=data.get("id"),
            method=data.get("method") or "",
            params=params if isinstance(params, dict) else None,
        )


@dataclass
class MCPResponse(MCPMessage):
    """MCP Response message. Carries a result or an error, never both."""
    result: Optional[Any] = None
    error: Optional[MCPError] = None

    def to_dict(self) -> dict:
        result = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            result["error"] = self.error.to_dict()
        else:
            result["result"] = self.result
        return result

    @classmethod
    def success(cls, id: Any, result: Any) -> "MCPResponse":
        return cls(id=id, result=result)

    @classmethod
    def failure(cls, id: Any, error: MCPError) -> "MCPResponse":
        return cls(id=id, error=error)


@dataclass
class ToolParameter:
    """Tool parameter definition. A ``type`` of None accepts any JSON value."""
    name: str
    type: Optional[str]
    description: str
    required: bool = False
    default: Optional[Any] = None
    enum: Optional[List[Any]] = None

    def to_json_schema(self) -> dict:
        """Convert to JSON schema property."""
        schema = {"description": self.description}
        if self.type is not None:
            schema["type"] = self.type
        if self.enum is not None:
            schema["enum"] = self.enum
        if self.default is not None:
            schema["default"] = self.default
        return schema


@dataclass
class Tool:
    """Tool definition for MCP."""
    name: str
    description: str
    parameters: List[ToolParameter] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to MCP tool definition format."""
        properties = {}
        required = []

        for param in self.parameters:
            properties[param.name] = param.to_json_schema()
            if param.required:
                required.append(param.name)

        schema = {
            "type": "object",
            "properties": properties,
        }
        if required:
            schema["required"] = required

        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": schema,
        }


def tool_content(payload: Any) -> dict:
    """Wrap a tool result as a single pretty-printed text content block."""
    return {
        "content": [
            {"type": "text", "text": json.dumps(payload, indent=2, default=str)}
        ],
    }
