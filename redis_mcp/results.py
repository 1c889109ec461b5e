"""
Typed results returned by the Redis tools.

Each result serializes to the JSON object sent back inside the
tools/call text content.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


# A remaining time-to-live in seconds, or one of the markers below.
TTLValue = Union[int, str, None]

PERSISTENT = "persistent"
EXPIRED = "expired"


def format_ttl(ttl: Optional[int]) -> TTLValue:
    """Render a raw TTL reply: seconds left, -1 for no expiry, -2 for gone."""
    if ttl is None:
        return None
    if ttl > 0:
        return ttl
    if ttl == -1:
        return PERSISTENT
    return EXPIRED


@dataclass
class OperationResult:
    """Base class for tool results."""

    def to_dict(self) -> dict:
        raise NotImplementedError


@dataclass
class GetDataResult(OperationResult):
    key: str
    exists: bool
    value: Any = None
    type: Optional[str] = None
    ttl: TTLValue = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "exists": self.exists,
            "type": self.type,
            "ttl": self.ttl,
        }


@dataclass
class WriteResult(OperationResult):
    """Result of set_data and update_data."""
    key: str
    value: Any
    type: str
    ttl: Optional[int] = None
    result: Any = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "type": self.type,
            "ttl": self.ttl,
            "result": self.result,
        }


@dataclass
class CreateKeyResult(WriteResult):
    created: bool = True

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["created"] = self.created
        return result


@dataclass
class RemovalResult(OperationResult):
    """Result of delete_data and drop_key; ``flag`` names the outcome key."""
    key: str
    removed: bool
    flag: str = "deleted"
    result: Optional[int] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"key": self.key, self.flag: self.removed}
        if self.message is not None:
            data["message"] = self.message
        else:
            data["result"] = self.result
        return data


@dataclass
class KeyListing:
    key: str
    type: str
    ttl: TTLValue

    def to_dict(self) -> dict:
        return {"key": self.key, "type": self.type, "ttl": self.ttl}


@dataclass
class ListKeysResult(OperationResult):
    keys: List[KeyListing]
    total: int
    limit: int
    offset: int
    pattern: str

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def to_dict(self) -> dict:
        return {
            "keys": [k.to_dict() for k in self.keys],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.has_more,
            "pattern": self.pattern,
        }


@dataclass
class ExistsKeyResult(OperationResult):
    key: str
    exists: bool
    type: Optional[str] = None
    ttl: TTLValue = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "exists": self.exists,
            "type": self.type,
            "ttl": self.ttl,
        }


@dataclass
class KeyInfoResult(ExistsKeyResult):
    size: Optional[int] = None

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["size"] = self.size
        return result


@dataclass
class RenameKeyResult(OperationResult):
    old_key: str
    new_key: str
    renamed: bool

    def to_dict(self) -> dict:
        return {"oldKey": self.old_key, "newKey": self.new_key, "renamed": self.renamed}


@dataclass
class SetTTLResult(OperationResult):
    key: str
    ttl: int
    set: bool

    def to_dict(self) -> dict:
        return {"key": self.key, "ttl": self.ttl, "set": self.set}


@dataclass
class RemoveTTLResult(OperationResult):
    key: str
    ttl_removed: bool

    def to_dict(self) -> dict:
        return {"key": self.key, "ttlRemoved": self.ttl_removed}


@dataclass
class ServerInfoResult(OperationResult):
    connection: Dict[str, Any]
    permissions: Dict[str, bool]
    database_size: int
    server: Dict[str, Any]

    def to_dict(self) -> dict:
        return {
            "connection": self.connection,
            "permissions": self.permissions,
            "database": {"size": self.database_size},
            "server": self.server,
        }


@dataclass
class DatabaseStatsResult(OperationResult):
    total_keys: int
    databases: Dict[str, Dict[str, Any]]

    def to_dict(self) -> dict:
        return {"totalKeys": self.total_keys, "databases": self.databases}


@dataclass
class MemoryInfoResult(OperationResult):
    used_memory: Any = None
    used_memory_human: Any = None
    used_memory_rss: Any = None
    used_memory_rss_human: Any = None
    used_memory_peak: Any = None
    used_memory_peak_human: Any = None
    max_memory: Any = None
    max_memory_human: Any = None
    mem_fragmentation_ratio: Any = None

    def to_dict(self) -> dict:
        return {
            "usedMemory": self.used_memory,
            "usedMemoryHuman": self.used_memory_human,
            "usedMemoryRss": self.used_memory_rss,
            "usedMemoryRssHuman": self.used_memory_rss_human,
            "usedMemoryPeak": self.used_memory_peak,
            "usedMemoryPeakHuman": self.used_memory_peak_human,
            "maxMemory": self.max_memory,
            "maxMemoryHuman": self.max_memory_human,
            "memFragmentationRatio": self.mem_fragmentation_ratio,
        }


@dataclass
class ConnectionTestResult(OperationResult):
    connected: bool
    timestamp: str
    connection: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "connected": self.connected,
            "connection": self.connection,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class OperationLogsResult(OperationResult):
    logs: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int

    def to_dict(self) -> dict:
        return {
            "logs": self.logs,
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.offset + self.limit < self.total,
        }


@dataclass
class PermissionsReport(OperationResult):
    permissions: Dict[str, bool]
    connection: Dict[str, Any]
    config: Dict[str, Any]
    environment: Dict[str, bool]

    def to_dict(self) -> dict:
        return {
            "permissions": self.permissions,
            "connection": self.connection,
            "config": self.config,
            "environmentVariables": self.environment,
        }
