"""
MCP Tools implementation.

Provides the Redis data, key and diagnostic tools exposed through
tools/call, and the registry the server dispatches them from.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from redis.exceptions import RedisError

from .audit import AuditLog, now_iso
from .config import Permissions
from .errors import (
    KeyConflict,
    KeyNotFound,
    PermissionDenied,
    RedisMCPError,
    StoreError,
    ValidationError,
)
from .protocol import Tool, ToolParameter
from .results import (
    ConnectionTestResult,
    CreateKeyResult,
    DatabaseStatsResult,
    ExistsKeyResult,
    GetDataResult,
    KeyInfoResult,
    KeyListing,
    ListKeysResult,
    MemoryInfoResult,
    OperationLogsResult,
    OperationResult,
    PermissionsReport,
    RemovalResult,
    RemoveTTLResult,
    RenameKeyResult,
    ServerInfoResult,
    SetTTLResult,
    WriteResult,
    format_ttl,
)
from .store import CONNECTION_ERRORS, ConnectionManager, RedisStore


DATA_TYPES = ("string", "list", "set", "hash")

# Every tool the server can expose, in manifest order.
TOOL_NAMES = (
    "get_data",
    "list_keys",
    "exists_key",
    "get_key_info",
    "get_redis_info",
    "get_database_stats",
    "get_memory_info",
    "test_connection",
    "get_operation_logs",
    "check_permissions",
    "set_data",
    "update_data",
    "delete_data",
    "create_key",
    "drop_key",
    "rename_key",
    "set_ttl",
    "remove_ttl",
)


@dataclass
class ToolContext:
    """Collaborators shared by all tools."""
    connections: ConnectionManager
    permissions: Permissions = field(default_factory=Permissions)
    audit: Optional[AuditLog] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_int(value: Any) -> Optional[int]:
    """Return value as an int if it is a whole JSON number, else None."""
    if not _is_number(value):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value


def _optional_ttl(ttl: Any) -> Optional[int]:
    """Validate an optional TTL argument; 0 and None mean no expiry."""
    if ttl is None:
        return None
    seconds = _as_int(ttl)
    if seconds is None or seconds < 0:
        raise ValidationError("TTL must be a positive number")
    return seconds or None


def _to_redis_value(value: Any) -> str:
    # Non-string values are stored as their JSON text.
    return value if isinstance(value, str) else json.dumps(value)


def _check_value_shape(value: Any, data_type: str) -> None:
    if data_type not in DATA_TYPES:
        raise ValidationError(f"Unsupported data type: {data_type}")
    if data_type == "hash" and not isinstance(value, dict):
        raise ValidationError("Hash value must be an object")


async def write_typed(
    store: RedisStore,
    key: str,
    value: Any,
    data_type: str,
    ttl: Optional[int] = None,
    placeholder_hash: bool = False,
) -> Any:
    """
    Write value at key using the Redis primitive for data_type.

    Arrays replace list/set contents wholesale and scalars become a single
    element. An empty list is written as one empty-string element since
    Redis drops empty lists. With placeholder_hash, an empty object is
    written as a single ``placeholder`` field for the same reason.
    """
    _check_value_shape(value, data_type)

    if data_type == "string":
        return await store.write_string(key, _to_redis_value(value), ttl)

    if data_type == "hash":
        mapping = {str(k): _to_redis_value(v) for k, v in value.items()}
        if not mapping and placeholder_hash:
            mapping = {"placeholder": ""}
        return await store.replace_hash(key, mapping, ttl)

    items = value if isinstance(value, list) else [value]
    items = [_to_redis_value(item) for item in items]

    if data_type == "list":
        return await store.replace_list(key, items or [""], ttl)
    return await store.replace_set(key, items, ttl)


async def read_typed(store: RedisStore, key: str, key_type: str) -> Any:
    """Read the value at key using the primitive for its Redis type."""
    if key_type == "string":
        return await store.read_string(key)
    if key_type == "list":
        return await store.read_list(key)
    if key_type == "set":
        return await store.read_set(key)
    if key_type == "zset":
        return [[member, score] for member, score in await store.read_sorted_set(key)]
    if key_type == "hash":
        return await store.read_hash(key)
    return None


class BaseTool(ABC):
    """Base class for Redis MCP tools."""

    # Permission flags that must all be allowed for the tool to run.
    required_permissions: Tuple[str, ...] = ()
    denied_message: str = ""

    def __init__(self, context: ToolContext):
        self.context = context

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> List[ToolParameter]:
        """Tool parameters."""
        pass

    @property
    @abstractmethod
    def operation(self) -> str:
        """Operation label written to the audit log."""
        pass

    @property
    @abstractmethod
    def failure_prefix(self) -> str:
        """Prefix for error messages raised by this tool."""
        pass

    @abstractmethod
    async def execute(self, **kwargs) -> OperationResult:
        """Execute the tool with given parameters."""
        pass

    def get_definition(self) -> Tool:
        """Get the MCP tool definition."""
        return Tool(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def is_enabled(self, permissions: Optional[Permissions] = None) -> bool:
        permissions = permissions or self.context.permissions
        return all(permissions.allows(flag) for flag in self.required_permissions)

    def validate_params(self, params: Dict[str, Any]) -> Optional[str]:
        """Validate parameters. Returns error message if invalid."""
        for param in self.parameters:
            if not param.required:
                continue
            value = params.get(param.name)
            if param.type == "string":
                if not value or not isinstance(value, str):
                    return f"Missing or invalid {param.name} parameter"
            elif value is None:
                return f"Missing {param.name} parameter"
        return None

    def subject(self, arguments: Dict[str, Any]) -> str:
        """Audit log subject for a call, usually the key."""
        return str(arguments.get("key", ""))

    async def run(self, arguments: Dict[str, Any]) -> OperationResult:
        """Check permissions, validate and execute; errors carry the failure prefix."""
        try:
            if not self.is_enabled():
                raise PermissionDenied(self.denied_message)

            error = self.validate_params(arguments)
            if error:
                raise ValidationError(error)

            known = {param.name for param in self.parameters}
            kwargs = {k: v for k, v in arguments.items() if k in known}
            return await self.execute(**kwargs)
        except RedisMCPError as e:
            raise type(e)(f"{self.failure_prefix}: {e}") from e
        except RedisError as e:
            raise StoreError(f"{self.failure_prefix}: {e}") from e

    async def store(self) -> RedisStore:
        return await self.context.connections.acquire()


def _key_param(description: str) -> ToolParameter:
    return ToolParameter("key", "string", description, required=True)


def _ttl_param(required: bool = False) -> ToolParameter:
    description = "Time to live in seconds" if required else "Time to live in seconds (optional)"
    return ToolParameter("ttl", "number", description, required=required)


def _type_param() -> ToolParameter:
    return ToolParameter(
        "type",
        "string",
        "Data type: string, list, set, hash (default: string)",
        enum=list(DATA_TYPES),
    )


# Data tools


class GetDataTool(BaseTool):
    """Read a key's value, type and TTL."""

    @property
    def name(self) -> str:
        return "get_data"

    @property
    def description(self) -> str:
        return "Get data by key from Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to get data from")]

    @property
    def operation(self) -> str:
        return "GET"

    @property
    def failure_prefix(self) -> str:
        return "Failed to get data"

    async def execute(self, key: str) -> GetDataResult:
        store = await self.store()
        if not await store.exists(key):
            return GetDataResult(key=key, exists=False)

        key_type = await store.type(key)
        ttl = await store.ttl(key)
        value = await read_typed(store, key, key_type)
        return GetDataResult(
            key=key,
            exists=True,
            value=value,
            type=key_type,
            ttl=format_ttl(ttl),
        )


class SetDataTool(BaseTool):
    """Insert or overwrite a key."""

    required_permissions = ("insert",)
    denied_message = "Insert operations are not allowed"

    @property
    def name(self) -> str:
        return "set_data"

    @property
    def description(self) -> str:
        return "Set/insert data for a key in Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            _key_param("Redis key to set data for"),
            ToolParameter("value", None, "Value to set for the key", required=True),
            _ttl_param(),
            _type_param(),
        ]

    @property
    def operation(self) -> str:
        return "SET"

    @property
    def failure_prefix(self) -> str:
        return "Failed to set data"

    async def execute(
        self,
        key: str,
        value: Any,
        ttl: Any = None,
        type: str = "string",
    ) -> WriteResult:
        _check_value_shape(value, type)
        seconds = _optional_ttl(ttl)

        store = await self.store()
        result = await write_typed(store, key, value, type, seconds)
        return WriteResult(key=key, value=value, type=type, ttl=seconds, result=result)


class UpdateDataTool(BaseTool):
    """Replace the value of an existing key, keeping its Redis type."""

    required_permissions = ("update",)
    denied_message = "Update operations are not allowed"

    @property
    def name(self) -> str:
        return "update_data"

    @property
    def description(self) -> str:
        return "Update existing data for a key in Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            _key_param("Redis key to update"),
            ToolParameter("value", None, "New value for the key", required=True),
            _ttl_param(),
        ]

    @property
    def operation(self) -> str:
        return "UPDATE"

    @property
    def failure_prefix(self) -> str:
        return "Failed to update data"

    async def execute(self, key: str, value: Any, ttl: Any = None) -> WriteResult:
        seconds = _optional_ttl(ttl)

        store = await self.store()
        if not await store.exists(key):
            raise KeyNotFound(f"Key '{key}' does not exist")

        key_type = await store.type(key)
        if key_type not in DATA_TYPES:
            raise ValidationError(f"Cannot update unsupported data type: {key_type}")

        result = await write_typed(store, key, value, key_type, seconds)
        return WriteResult(key=key, value=value, type=key_type, ttl=seconds, result=result)


class DeleteDataTool(BaseTool):
    """Delete a key if present."""

    required_permissions = ("delete",)
    denied_message = "Delete operations are not allowed"

    @property
    def name(self) -> str:
        return "delete_data"

    @property
    def description(self) -> str:
        return "Delete data by key from Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to delete")]

    @property
    def operation(self) -> str:
        return "DELETE"

    @property
    def failure_prefix(self) -> str:
        return "Failed to delete data"

    async def execute(self, key: str) -> RemovalResult:
        store = await self.store()
        if not await store.exists(key):
            return RemovalResult(key=key, removed=False, message="Key does not exist")

        count = await store.delete(key)
        return RemovalResult(key=key, removed=count > 0, result=count)


class ListKeysTool(BaseTool):
    """List keys matching a glob pattern, paginated."""

    @property
    def name(self) -> str:
        return "list_keys"

    @property
    def description(self) -> str:
        return "List Redis keys with optional pattern matching"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter("pattern", "string", "Key pattern to match (default: *)"),
            ToolParameter("limit", "number", "Maximum number of keys to return (default: 100)"),
            ToolParameter("offset", "number", "Number of keys to skip (default: 0)"),
        ]

    @property
    def operation(self) -> str:
        return "LIST_KEYS"

    @property
    def failure_prefix(self) -> str:
        return "Failed to list keys"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return str(arguments.get("pattern", "*"))

    async def execute(self, pattern: str = "*", limit: Any = 100, offset: Any = 0) -> ListKeysResult:
        if not isinstance(pattern, str):
            raise ValidationError("Pattern must be a string")
        page_size = _as_int(limit)
        if page_size is None or not 1 <= page_size <= 10000:
            raise ValidationError("Limit must be between 1 and 10000")
        skip = _as_int(offset)
        if skip is None or skip < 0:
            raise ValidationError("Offset must be >= 0")

        store = await self.store()
        keys = await store.keys(pattern)

        listings = []
        for key in keys[skip:skip + page_size]:
            key_type = await store.type(key)
            ttl = await store.ttl(key)
            listings.append(KeyListing(key=key, type=key_type, ttl=format_ttl(ttl)))

        return ListKeysResult(
            keys=listings,
            total=len(keys),
            limit=page_size,
            offset=skip,
            pattern=pattern,
        )


# Key tools


class CreateKeyTool(BaseTool):
    """Create a key that must not exist yet."""

    required_permissions = ("create",)
    denied_message = "Create key operations are not allowed"

    @property
    def name(self) -> str:
        return "create_key"

    @property
    def description(self) -> str:
        return "Create a new key in Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            _key_param("Redis key to create"),
            ToolParameter("value", None, "Initial value for the key (default: empty string)"),
            _type_param(),
            _ttl_param(),
        ]

    @property
    def operation(self) -> str:
        return "CREATE_KEY"

    @property
    def failure_prefix(self) -> str:
        return "Failed to create key"

    async def execute(
        self,
        key: str,
        value: Any = "",
        type: str = "string",
        ttl: Any = None,
    ) -> CreateKeyResult:
        if value is None:
            value = ""
        _check_value_shape(value, type)
        seconds = _optional_ttl(ttl)

        store = await self.store()
        if await store.exists(key):
            raise KeyConflict(f"Key '{key}' already exists")

        result = await write_typed(store, key, value, type, seconds, placeholder_hash=True)
        return CreateKeyResult(
            key=key,
            value=value,
            type=type,
            ttl=seconds,
            result=result,
            created=True,
        )


class DropKeyTool(BaseTool):
    """Remove a key if present."""

    required_permissions = ("drop",)
    denied_message = "Drop key operations are not allowed"

    @property
    def name(self) -> str:
        return "drop_key"

    @property
    def description(self) -> str:
        return "Delete a key from Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to delete")]

    @property
    def operation(self) -> str:
        return "DROP_KEY"

    @property
    def failure_prefix(self) -> str:
        return "Failed to drop key"

    async def execute(self, key: str) -> RemovalResult:
        store = await self.store()
        if not await store.exists(key):
            return RemovalResult(
                key=key, removed=False, flag="dropped", message="Key does not exist"
            )

        count = await store.delete(key)
        return RemovalResult(key=key, removed=count > 0, flag="dropped", result=count)


class ExistsKeyTool(BaseTool):

    @property
    def name(self) -> str:
        return "exists_key"

    @property
    def description(self) -> str:
        return "Check if a key exists in Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to check")]

    @property
    def operation(self) -> str:
        return "EXISTS_KEY"

    @property
    def failure_prefix(self) -> str:
        return "Failed to check key existence"

    async def execute(self, key: str) -> ExistsKeyResult:
        store = await self.store()
        if not await store.exists(key):
            return ExistsKeyResult(key=key, exists=False)

        key_type = await store.type(key)
        ttl = await store.ttl(key)
        return ExistsKeyResult(key=key, exists=True, type=key_type, ttl=format_ttl(ttl))


class KeyInfoTool(BaseTool):
    """Existence, type, TTL and size (length or cardinality) of a key."""

    @property
    def name(self) -> str:
        return "get_key_info"

    @property
    def description(self) -> str:
        return "Get detailed information about a key"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to get info for")]

    @property
    def operation(self) -> str:
        return "GET_KEY_INFO"

    @property
    def failure_prefix(self) -> str:
        return "Failed to get key info"

    async def execute(self, key: str) -> KeyInfoResult:
        store = await self.store()
        if not await store.exists(key):
            return KeyInfoResult(key=key, exists=False)

        key_type = await store.type(key)
        ttl = await store.ttl(key)
        size = await store.size(key, key_type)
        return KeyInfoResult(
            key=key,
            exists=True,
            type=key_type,
            ttl=format_ttl(ttl),
            size=size,
        )


class RenameKeyTool(BaseTool):
    """Rename a key onto a name that is not taken."""

    required_permissions = ("create", "drop")
    denied_message = "Rename operations require both create and drop permissions"

    @property
    def name(self) -> str:
        return "rename_key"

    @property
    def description(self) -> str:
        return "Rename a key in Redis"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter("oldKey", "string", "Current key name", required=True),
            ToolParameter("newKey", "string", "New key name", required=True),
        ]

    @property
    def operation(self) -> str:
        return "RENAME_KEY"

    @property
    def failure_prefix(self) -> str:
        return "Failed to rename key"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return f"{arguments.get('oldKey')} -> {arguments.get('newKey')}"

    async def execute(self, oldKey: str, newKey: str) -> RenameKeyResult:
        store = await self.store()
        if not await store.exists(oldKey):
            raise KeyNotFound(f"Source key '{oldKey}' does not exist")
        if await store.exists(newKey):
            raise KeyConflict(f"Target key '{newKey}' already exists")

        # RENAMENX refuses if the target appeared since the check above
        if not await store.rename(oldKey, newKey):
            raise KeyConflict(f"Target key '{newKey}' already exists")

        return RenameKeyResult(old_key=oldKey, new_key=newKey, renamed=True)


class SetTTLTool(BaseTool):

    @property
    def name(self) -> str:
        return "set_ttl"

    @property
    def description(self) -> str:
        return "Set time to live for a key"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to set TTL for"), _ttl_param(required=True)]

    @property
    def operation(self) -> str:
        return "SET_TTL"

    @property
    def failure_prefix(self) -> str:
        return "Failed to set TTL"

    async def execute(self, key: str, ttl: Any) -> SetTTLResult:
        seconds = _as_int(ttl)
        if seconds is None or seconds <= 0:
            raise ValidationError("TTL must be a positive number")

        store = await self.store()
        if not await store.exists(key):
            raise KeyNotFound(f"Key '{key}' does not exist")

        applied = await store.expire(key, seconds)
        return SetTTLResult(key=key, ttl=seconds, set=applied)


class RemoveTTLTool(BaseTool):

    @property
    def name(self) -> str:
        return "remove_ttl"

    @property
    def description(self) -> str:
        return "Remove time to live from a key"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [_key_param("Redis key to remove TTL from")]

    @property
    def operation(self) -> str:
        return "REMOVE_TTL"

    @property
    def failure_prefix(self) -> str:
        return "Failed to remove TTL"

    async def execute(self, key: str) -> RemoveTTLResult:
        store = await self.store()
        if not await store.exists(key):
            raise KeyNotFound(f"Key '{key}' does not exist")

        removed = await store.persist(key)
        return RemoveTTLResult(key=key, ttl_removed=removed)


# Diagnostic tools


class ServerInfoTool(BaseTool):
    """Summary of INFO plus connection target and permissions."""

    @property
    def name(self) -> str:
        return "get_redis_info"

    @property
    def description(self) -> str:
        return "Get Redis server information"

    @property
    def parameters(self) -> List[ToolParameter]:
        return []

    @property
    def operation(self) -> str:
        return "GET_REDIS_INFO"

    @property
    def failure_prefix(self) -> str:
        return "Failed to get Redis info"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return "server"

    async def execute(self) -> ServerInfoResult:
        store = await self.store()
        info = await store.info()
        db_size = await store.dbsize()

        return ServerInfoResult(
            connection=self.context.connections.connection_info(),
            permissions=self.context.permissions.to_dict(),
            database_size=db_size,
            server={
                "version": info.get("redis_version"),
                "mode": info.get("redis_mode"),
                "os": info.get("os"),
                "archBits": info.get("arch_bits"),
                "uptime": info.get("uptime_in_seconds"),
                "connectedClients": info.get("connected_clients"),
                "usedMemory": info.get("used_memory_human"),
                "maxMemory": info.get("maxmemory_human"),
                "totalCommandsProcessed": info.get("total_commands_processed"),
                "instantaneousOpsPerSec": info.get("instantaneous_ops_per_sec"),
                "keyspaceHits": info.get("keyspace_hits"),
                "keyspaceMisses": info.get("keyspace_misses"),
            },
        )


class DatabaseStatsTool(BaseTool):

    @property
    def name(self) -> str:
        return "get_database_stats"

    @property
    def description(self) -> str:
        return "Get Redis database statistics"

    @property
    def parameters(self) -> List[ToolParameter]:
        return []

    @property
    def operation(self) -> str:
        return "GET_DATABASE_STATS"

    @property
    def failure_prefix(self) -> str:
        return "Failed to get database stats"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return "database"

    async def execute(self) -> DatabaseStatsResult:
        store = await self.store()
        total = await store.dbsize()
        keyspace = await store.info("keyspace")

        databases = {
            name: dict(stats)
            for name, stats in keyspace.items()
            if name.startswith("db") and isinstance(stats, dict)
        }
        return DatabaseStatsResult(total_keys=total, databases=databases)


class MemoryInfoTool(BaseTool):

    @property
    def name(self) -> str:
        return "get_memory_info"

    @property
    def description(self) -> str:
        return "Get Redis memory usage information"

    @property
    def parameters(self) -> List[ToolParameter]:
        return []

    @property
    def operation(self) -> str:
        return "GET_MEMORY_INFO"

    @property
    def failure_prefix(self) -> str:
        return "Failed to get memory info"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return "memory"

    async def execute(self) -> MemoryInfoResult:
        store = await self.store()
        memory = await store.info("memory")

        return MemoryInfoResult(
            used_memory=memory.get("used_memory"),
            used_memory_human=memory.get("used_memory_human"),
            used_memory_rss=memory.get("used_memory_rss"),
            used_memory_rss_human=memory.get("used_memory_rss_human"),
            used_memory_peak=memory.get("used_memory_peak"),
            used_memory_peak_human=memory.get("used_memory_peak_human"),
            max_memory=memory.get("maxmemory"),
            max_memory_human=memory.get("maxmemory_human"),
            mem_fragmentation_ratio=memory.get("mem_fragmentation_ratio"),
        )


class ConnectionTestTool(BaseTool):
    """Ping Redis. Failures are reported in the result, never raised."""

    @property
    def name(self) -> str:
        return "test_connection"

    @property
    def description(self) -> str:
        return "Test Redis connection"

    @property
    def parameters(self) -> List[ToolParameter]:
        return []

    @property
    def operation(self) -> str:
        return "TEST_CONNECTION"

    @property
    def failure_prefix(self) -> str:
        return "Failed to test connection"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return "connection"

    async def execute(self) -> ConnectionTestResult:
        connections = self.context.connections
        try:
            store = await connections.acquire()
            connected = await store.ping()
        except CONNECTION_ERRORS as e:
            return ConnectionTestResult(
                connected=False,
                timestamp=now_iso(),
                connection=connections.connection_info(),
                error=str(e),
            )

        return ConnectionTestResult(
            connected=connected,
            timestamp=now_iso(),
            connection=connections.connection_info(),
        )


class OperationLogsTool(BaseTool):
    """Page through the in-memory audit window, newest first."""

    @property
    def name(self) -> str:
        return "get_operation_logs"

    @property
    def description(self) -> str:
        return "Get operation logs"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter("limit", "number", "Limit count, default 50"),
            ToolParameter("offset", "number", "Offset, default 0"),
        ]

    @property
    def operation(self) -> str:
        return "GET_OPERATION_LOGS"

    @property
    def failure_prefix(self) -> str:
        return "Failed to get operation logs"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return "logs"

    async def execute(self, limit: Any = 50, offset: Any = 0) -> OperationLogsResult:
        page_size = _as_int(limit)
        if page_size is None or not 1 <= page_size <= 1000:
            raise ValidationError("limit parameter must be between 1-1000")
        skip = _as_int(offset)
        if skip is None or skip < 0:
            raise ValidationError("offset parameter must be greater than or equal to 0")

        audit = self.context.audit
        entries = audit.recent(page_size, skip) if audit is not None else []
        return OperationLogsResult(
            logs=[entry.to_dict() for entry in entries],
            total=len(audit) if audit is not None else 0,
            limit=page_size,
            offset=skip,
        )


class CheckPermissionsTool(BaseTool):

    @property
    def name(self) -> str:
        return "check_permissions"

    @property
    def description(self) -> str:
        return "Check Redis permissions for insert, update, delete, create and drop operations"

    @property
    def parameters(self) -> List[ToolParameter]:
        return []

    @property
    def operation(self) -> str:
        return "CHECK_PERMISSIONS"

    @property
    def failure_prefix(self) -> str:
        return "Failed to check permissions"

    def subject(self, arguments: Dict[str, Any]) -> str:
        return "permissions"

    async def execute(self) -> PermissionsReport:
        connections = self.context.connections
        permissions = self.context.permissions
        return PermissionsReport(
            permissions=permissions.to_dict(),
            connection=connections.connection_info(),
            config=connections.settings.to_dict(),
            environment=permissions.to_env(),
        )


@dataclass
class ToolRegistry:
    """Registry for managing tools."""
    tools: Dict[str, BaseTool] = field(default_factory=dict)

    def register(self, tool: BaseTool) -> None:
        """Register a tool."""
        self.tools[tool.name] = tool

    def unregister(self, name: str) -> bool:
        """Unregister a tool by name."""
        if name in self.tools:
            del self.tools[name]
            return True
        return False

    def get(self, name: str) -> Optional[BaseTool]:
        """Get a tool by name."""
        return self.tools.get(name)

    def list_tools(self, permissions: Optional[Permissions] = None) -> List[Tool]:
        """
        List tools enabled under permissions as MCP Tool definitions.

        Built fresh on every call, in registration order.
        """
        return [
            tool.get_definition()
            for tool in self.tools.values()
            if tool.is_enabled(permissions)
        ]

    def validate(self, expected: Iterable[str]) -> None:
        """Raise ValueError unless the registered names are exactly expected."""
        expected = set(expected)
        registered = set(self.tools)
        missing = sorted(expected - registered)
        extra = sorted(registered - expected)
        if missing or extra:
            raise ValueError(f"Tool registry mismatch: missing={missing} extra={extra}")


TOOL_CLASSES = (
    GetDataTool,
    ListKeysTool,
    ExistsKeyTool,
    KeyInfoTool,
    ServerInfoTool,
    DatabaseStatsTool,
    MemoryInfoTool,
    ConnectionTestTool,
    OperationLogsTool,
    CheckPermissionsTool,
    SetDataTool,
    UpdateDataTool,
    DeleteDataTool,
    CreateKeyTool,
    DropKeyTool,
    RenameKeyTool,
    SetTTLTool,
    RemoveTTLTool,
)


def create_default_registry(context: ToolContext) -> ToolRegistry:
    """Create a registry holding every Redis tool."""
    registry = ToolRegistry()
    for tool_class in TOOL_CLASSES:
        registry.register(tool_class(context))
    registry.validate(TOOL_NAMES)
    return registry
