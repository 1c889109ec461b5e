"""
MCP Transport layer implementations.

Provides transport mechanisms for MCP communication:
- StdioTransport: newline-delimited JSON over stdin/stdout
"""

import sys
import json
import asyncio
from abc import ABC, abstractmethod
from typing import Optional


class Transport(ABC):
    """Abstract base class for MCP transports."""

    @abstractmethod
    async def send(self, message: dict) -> None:
        """Send a message."""
        pass

    @abstractmethod
    async def receive(self) -> Optional[dict]:
        """Receive a message. Returns None on EOF/close."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the transport."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class StdioTransport(Transport):
    """
    Transport using stdin/stdout for communication.

    One JSON object per line in each direction. Blocking reads run in the
    default executor so the event loop keeps serving background tasks.
    """

    def __init__(
        self,
        input_stream=None,
        output_stream=None,
    ):
        self.input = input_stream or sys.stdin
        self.output = output_stream or sys.stdout
        self._closed = False

    async def send(self, message: dict) -> None:
        """Write a message to stdout as a single line."""
        if self._closed:
            raise RuntimeError("Transport is closed")

        content = json.dumps(message, default=str)

        try:
            self.output.write(content + "\n")
            self.output.flush()
        except (OSError, ValueError) as e:
            raise RuntimeError(f"Failed to send: {e}")

    async def receive(self) -> Optional[dict]:
        """
        Read the next non-blank line from stdin.

        Raises ValueError when the line is not a JSON object.
        """
        if self._closed:
            return None

        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, self.input.readline)
            if not line:
                return None  # EOF
            line = line.strip()
            if line:
                break

        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")

        if not isinstance(message, dict):
            raise ValueError("Message must be a JSON object")
        return message

    async def close(self) -> None:
        """Close the transport."""
        self._closed = True
