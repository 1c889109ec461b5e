"""
Command-line entry point: ``python -m redis_mcp`` or ``redis-mcp-server``.

Configuration comes from the environment. Diagnostics go to stderr so
stdout carries protocol messages only.
"""

import asyncio
import logging
import signal
import sys

from .config import ServerConfig
from .server import MCPServer


logger = logging.getLogger("redis_mcp")


def _log_startup(config: ServerConfig) -> None:
    permissions = config.permissions
    redis = config.redis
    logger.info(f"Starting {config.name} v{config.version}")
    logger.info(
        "Permissions: "
        + ", ".join(f"{name}={allowed}" for name, allowed in permissions.to_env().items())
    )
    logger.info(f"Redis: {redis.host}:{redis.port} (password: {redis.masked_password})")
    logger.info(f"Audit log: {config.log_path}")


def _install_signal_handlers(server: MCPServer, loop: asyncio.AbstractEventLoop) -> None:
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(
                sig, lambda name=sig.name: asyncio.ensure_future(server.handle_signal(name))
            )
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform's event loop
            logger.debug(f"Signal handler for {sig.name} not installed")


def _install_fault_handler(server: MCPServer, loop: asyncio.AbstractEventLoop) -> None:
    def handle_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        error = context.get("exception") or RuntimeError(context.get("message", "unknown error"))
        server.handle_fault(error, "unhandledRejection")

    loop.set_exception_handler(handle_exception)


async def run_server(config: ServerConfig) -> None:
    server = MCPServer(config)
    loop = asyncio.get_running_loop()
    _install_signal_handlers(server, loop)
    _install_fault_handler(server, loop)

    try:
        await server.run()
    except Exception as e:
        server.handle_fault(e)
        raise


def main() -> int:
    config = ServerConfig.from_env()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _log_startup(config)

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger.exception(f"Server failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
