"""Shared fixtures: a fake Redis behind a real ConnectionManager."""

import pytest

from redis_mcp.audit import AuditLog
from redis_mcp.config import Permissions, RedisSettings, ServerConfig
from redis_mcp.server import MCPServer
from redis_mcp.store import ConnectionManager
from redis_mcp.tools import ToolContext

from tests.fakes import FakeRedis, RecordingLifecycle


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def connections(fake_redis):
    return ConnectionManager(RedisSettings(), client_factory=lambda settings: fake_redis)


@pytest.fixture
def audit():
    return AuditLog(None)


@pytest.fixture
def lifecycle():
    return RecordingLifecycle()


@pytest.fixture
def context(connections, audit):
    return ToolContext(connections, Permissions(), audit)


@pytest.fixture
def config():
    return ServerConfig(shutdown_grace=0.0)


@pytest.fixture
def server(config, connections, audit, lifecycle):
    return MCPServer(config, connections=connections, audit=audit, lifecycle=lifecycle)
