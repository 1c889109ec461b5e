"""
Server configuration.

Everything here is read once from the environment at process start and
passed to the components that need it.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import quote_plus


PERMISSION_FLAGS = ("insert", "update", "delete", "create", "drop")


def _flag_enabled(environ: Mapping[str, str], name: str) -> bool:
    # Only the exact value "false" disables a flag.
    return environ.get(name) != "false"


@dataclass(frozen=True)
class Permissions:
    """Write permissions for the Redis tools."""
    insert: bool = True
    update: bool = True
    delete: bool = True
    create: bool = True
    drop: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Permissions":
        environ = os.environ if environ is None else environ
        return cls(**{
            flag: _flag_enabled(environ, f"ALLOW_{flag.upper()}")
            for flag in PERMISSION_FLAGS
        })

    def allows(self, flag: str) -> bool:
        if flag not in PERMISSION_FLAGS:
            raise ValueError(f"Unknown permission flag: {flag}")
        return getattr(self, flag)

    def to_dict(self) -> dict:
        return {
            "allowInsert": self.insert,
            "allowUpdate": self.update,
            "allowDelete": self.delete,
            "allowCreate": self.create,
            "allowDrop": self.drop,
        }

    def to_env(self) -> Dict[str, bool]:
        return {f"ALLOW_{flag.upper()}": getattr(self, flag) for flag in PERMISSION_FLAGS}


@dataclass(frozen=True)
class RedisSettings:
    """Redis connection target."""
    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    db: int = 0
    connect_timeout: float = 60.0
    socket_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RedisSettings":
        environ = os.environ if environ is None else environ
        port = environ.get("PORT")
        return cls(
            host=environ.get("HOST") or "localhost",
            port=int(port) if port else 6379,
            password=environ.get("PASSWORD") or None,
        )

    @property
    def url(self) -> str:
        auth = f":{quote_plus(self.password)}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"

    @property
    def masked_password(self) -> str:
        return "***" if self.password else "none"

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "hasPassword": bool(self.password),
        }


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the Redis MCP server."""
    name: str = "redis-mcp-server"
    version: str = "1.0.0"
    protocol_version: str = "2025-06-18"
    permissions: Permissions = field(default_factory=Permissions)
    redis: RedisSettings = field(default_factory=RedisSettings)
    log_dir: str = "./logs"
    log_file: str = "mcp-redis.log"
    log_level: str = "INFO"
    max_audit_entries: int = 1000
    health_check_interval: float = 300.0
    shutdown_grace: float = 0.1

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        environ = os.environ if environ is None else environ
        return cls(
            permissions=Permissions.from_env(environ),
            redis=RedisSettings.from_env(environ),
            log_dir=environ.get("MCP_LOG_DIR") or "./logs",
            log_file=environ.get("MCP_LOG_FILE") or "mcp-redis.log",
            log_level=(environ.get("MCP_LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir) / self.log_file

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "permissions": self.permissions.to_dict(),
            "redis": self.redis.to_dict(),
            "logFile": str(self.log_path),
        }
