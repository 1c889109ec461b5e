"""
MCP Server implementation.

Main server that handles the MCP protocol, dispatches tool calls to the
Redis tools, and manages the process lifecycle.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from .audit import AuditLog
from .config import ServerConfig
from .errors import (
    InvalidParams,
    InvalidRequest,
    MethodNotFound,
    RedisMCPError,
    UnknownTool,
)
from .lifecycle import Lifecycle, ProcessLifecycle
from .protocol import (
    JSONRPC_VERSION,
    MCPError,
    MCPErrorCode,
    MCPRequest,
    MCPResponse,
    tool_content,
)
from .store import ConnectionManager
from .tools import TOOL_NAMES, ToolContext, ToolRegistry, create_default_registry
from .transport import Transport, StdioTransport


logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]

# Client capabilities the server mirrors back from initialize.
MIRRORED_CAPABILITIES = ("prompts", "resources", "logging", "roots")


class ServerState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"
    EXITED = "exited"


class MCPServer:
    """
    MCP Server exposing Redis through tools/call.

    Requests are handled one at a time in arrival order. Every dispatch,
    successful or not, leaves exactly one entry in the audit log.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        connections: Optional[ConnectionManager] = None,
        audit: Optional[AuditLog] = None,
        lifecycle: Optional[Lifecycle] = None,
        registry: Optional[ToolRegistry] = None,
    ):
        self.config = config or ServerConfig()
        self.connections = connections or ConnectionManager(self.config.redis)
        if audit is None:
            audit = AuditLog(self.config.log_path, max_entries=self.config.max_audit_entries)
        self.audit = audit
        self.lifecycle = lifecycle or ProcessLifecycle()
        if registry is None:
            registry = create_default_registry(
                ToolContext(self.connections, self.config.permissions, self.audit)
            )
        registry.validate(TOOL_NAMES)
        self.registry = registry

        self.state = ServerState.UNINITIALIZED
        self._transport: Optional[Transport] = None
        self._running = False
        self._handlers: Dict[str, Handler] = {}
        self._health_task: Optional[asyncio.Task] = None
        self._shutdown_task: Optional[asyncio.Task] = None

        self._register_default_handlers()

    @property
    def initialized(self) -> bool:
        return self.state is not ServerState.UNINITIALIZED

    def _register_default_handlers(self) -> None:
        """Register built-in MCP method handlers."""
        self._handlers["initialize"] = self._handle_initialize
        self._handlers["tools/list"] = self._handle_list_tools
        self._handlers["tools/call"] = self._handle_call_tool
        self._handlers["prompts/list"] = self._handle_list_prompts
        self._handlers["prompts/call"] = self._handle_call_prompt
        self._handlers["resources/list"] = self._handle_list_resources
        self._handlers["resources/read"] = self._handle_read_resource
        self._handlers["logging/list"] = self._handle_list_logging
        self._handlers["logging/read"] = self._handle_read_logging
        self._handlers["roots/list"] = self._handle_list_roots
        self._handlers["roots/read"] = self._handle_read_root
        self._handlers["ping"] = self._handle_ping
        self._handlers["shutdown"] = self._handle_shutdown
        self._handlers["notifications/initialized"] = self._handle_initialized
        self._handlers["notifications/exit"] = self._handle_exit

    async def _handle_initialize(self, params: dict) -> dict:
        """Handle initialize request. Repeated calls answer without re-initializing."""
        if self.state is ServerState.UNINITIALIZED:
            self.state = ServerState.INITIALIZED
            logger.info(f"Client initialized: {params.get('clientInfo') or {}}")

        client_capabilities = params.get("capabilities")
        if not isinstance(client_capabilities, dict):
            client_capabilities = {}

        capabilities = {"tools": {"listChanged": False}}
        for name in MIRRORED_CAPABILITIES:
            if client_capabilities.get(name) is not None:
                capabilities[name] = {"listChanged": False}

        return {
            "protocolVersion": params.get("protocolVersion") or self.config.protocol_version,
            "capabilities": capabilities,
            "serverInfo": self._server_info(),
        }

    async def _handle_list_tools(self, params: dict) -> dict:
        """Handle tools/list request."""
        permissions = self.config.permissions
        redis = self.config.redis
        tools = self.registry.list_tools(permissions)

        environment = dict(permissions.to_env())
        environment.update({
            "HOST": redis.host,
            "PORT": str(redis.port),
            "PASSWORD": redis.masked_password,
            "serverInfo": self._server_info(),
        })

        return {
            "tools": [t.to_dict() for t in tools],
            "environment": environment,
        }

    async def _handle_call_tool(self, params: dict) -> dict:
        """Handle tools/call request."""
        name = params.get("name")
        if not name:
            raise InvalidParams("Missing tool name")

        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise InvalidParams("Tool arguments must be an object")

        tool = self.registry.get(name)
        if tool is None:
            raise UnknownTool(f"Unknown tool: {name}")

        subject = tool.subject(arguments)
        try:
            result = await tool.run(arguments)
        except Exception as e:
            self.audit.record_operation(tool.operation, subject, e)
            raise

        self.audit.record_operation(tool.operation, subject)
        return tool_content(result.to_dict())

    async def _handle_list_prompts(self, params: dict) -> dict:
        return {"prompts": []}

    async def _handle_call_prompt(self, params: dict) -> dict:
        return {
            "messages": [
                {
                    "role": "assistant",
                    "content": [{"type": "text", "text": "Unsupported prompts call"}],
                }
            ],
        }

    async def _handle_list_resources(self, params: dict) -> dict:
        return {"resources": []}

    async def _handle_read_resource(self, params: dict) -> dict:
        return _unsupported_read("resources")

    async def _handle_list_logging(self, params: dict) -> dict:
        return {"logs": []}

    async def _handle_read_logging(self, params: dict) -> dict:
        return _unsupported_read("logging")

    async def _handle_list_roots(self, params: dict) -> dict:
        return {"roots": []}

    async def _handle_read_root(self, params: dict) -> dict:
        return _unsupported_read("roots")

    async def _handle_ping(self, params: dict) -> dict:
        """Handle ping request."""
        return {"pong": True}

    async def _handle_shutdown(self, params: dict) -> None:
        """Handle shutdown request. The process exits after the grace delay."""
        logger.info("Shutdown requested")
        self.state = ServerState.SHUTTING_DOWN
        self._shutdown_task = asyncio.ensure_future(
            self._shutdown_after(self.config.shutdown_grace)
        )
        return None

    async def _shutdown_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.close_connection()
        self.lifecycle.exit(0)

    async def _handle_initialized(self, params: dict) -> None:
        """Handle initialized notification by probing Redis."""
        redis = self.config.redis.to_dict()
        if await self.connections.test_connection():
            logger.info("Redis connection test successful")
            self.audit.record("redis_connection_test", redis, {"status": "success"})
        else:
            logger.error("Redis connection test failed")
            self.audit.record("redis_connection_test", redis, None, "Connection test failed")
        return None

    async def _handle_exit(self, params: dict) -> None:
        """Handle exit notification. The process ends once the dispatch is recorded."""
        logger.info("Exit notification received")
        await self.close_connection()
        self.state = ServerState.EXITED
        return None

    def _server_info(self) -> dict:
        return {"name": self.config.name, "version": self.config.version}

    async def process_request(self, request: MCPRequest) -> MCPResponse:
        """Process a single MCP request and record it in the audit log."""
        result = None
        error = None
        try:
            if request.jsonrpc != JSONRPC_VERSION:
                raise InvalidRequest("Unsupported JSON-RPC version")

            handler = None
            if isinstance(request.method, str):
                handler = self._handlers.get(request.method)
            if handler is None:
                raise MethodNotFound(f"Unknown method: {request.method}")

            result = await handler(request.params or {})
            return MCPResponse.success(request.id, result)
        except RedisMCPError as e:
            error = str(e)
            logger.warning(f"{request.method or 'request'} failed: {error}")
            return MCPResponse.failure(request.id, MCPError.from_message(error))
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.exception(f"Error processing request: {e}")
            return MCPResponse.failure(request.id, MCPError.from_message(error))
        finally:
            self.audit.record(str(request.method), request.params or {}, result, error)

    async def handle_message(self, data: dict) -> Optional[dict]:
        """Handle an incoming message. Returns None when no response is due."""
        request = MCPRequest.from_dict(data)
        response = await self.process_request(request)

        if self.state is ServerState.EXITED:
            self.lifecycle.exit(0)
            return None

        if request.is_notification:
            return None
        return response.to_dict()

    async def close_connection(self) -> None:
        await self.connections.close()
        self.audit.record("connection_closed", {}, {"status": "closed"})

    async def handle_signal(self, signame: str) -> None:
        """Close Redis and exit cleanly on a termination signal."""
        logger.info(f"Received {signame} signal, shutting down server...")
        self.audit.record(signame, {"signal": signame}, {"status": "shutting_down"})
        await self.close_connection()
        self.lifecycle.exit(0)

    def handle_fault(self, error: BaseException, event: str = "uncaughtException") -> None:
        """Record an uncaught fault and exit with status 1."""
        logger.error(f"{event}: {error!r}")
        self.audit.record(event, {"error": str(error)}, None, str(error) or repr(error))
        self.lifecycle.exit(1)

    async def _health_check_loop(self) -> None:
        """Ping Redis periodically and drop an unhealthy handle."""
        while True:
            await asyncio.sleep(self.config.health_check_interval)
            try:
                await self.connections.ensure_healthy()
            except Exception as e:
                logger.error(f"Health check failed: {e}")
                self.audit.record("health_check_error", {"error": str(e)}, None, str(e))

    async def run(self, transport: Optional[Transport] = None) -> None:
        """Run the server main loop."""
        self._transport = transport or StdioTransport()
        self._running = True

        logger.info(f"MCP Server {self.config.name} v{self.config.version} starting")
        self.audit.record(
            "server_start",
            {
                "name": self.config.name,
                "version": self.config.version,
                "logFile": str(self.config.log_path),
            },
            {"status": "started"},
        )
        self._health_task = asyncio.ensure_future(self._health_check_loop())

        try:
            async with self._transport:
                while self._running:
                    try:
                        message = await self._transport.receive()

                        if message is None:
                            logger.info("EOF received, shutting down")
                            break

                        response = await self.handle_message(message)

                        if response is not None:
                            await self._transport.send(response)
                    except ValueError as e:
                        logger.error(f"Error processing individual request: {e}")
                        self.audit.record("parse_error", {}, None, str(e))
                        error_response = MCPResponse.failure(
                            None,
                            MCPError.from_code(
                                MCPErrorCode.INTERNAL_ERROR, f"Internal error: {e}"
                            ),
                        )
                        await self._transport.send(error_response.to_dict())
        finally:
            self._running = False
            if self._health_task is not None:
                self._health_task.cancel()
                try:
                    await self._health_task
                except asyncio.CancelledError:
                    pass
            await self.close_connection()
            self.audit.close()
            logger.info("Server stopped")


def _unsupported_read(kind: str) -> dict:
    return {
        "contents": [
            {"uri": "error://unsupported", "text": f"Unsupported {kind} read"}
        ],
    }


def create_server(
    config: Optional[ServerConfig] = None,
    client_factory: Optional[Callable] = None,
    lifecycle: Optional[Lifecycle] = None,
) -> MCPServer:
    """
    Create an MCP server with configuration.

    Args:
        config: Server configuration
        client_factory: Builds the Redis client from the Redis settings
        lifecycle: Process exit hook

    Returns:
        Configured MCPServer instance
    """
    config = config or ServerConfig()
    connections = None
    if client_factory is not None:
        connections = ConnectionManager(config.redis, client_factory=client_factory)
    return MCPServer(config, connections=connections, lifecycle=lifecycle)
