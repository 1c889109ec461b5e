"""
Error types raised by tools and the request dispatcher.

The dispatcher turns any of these into a JSON-RPC error object; the
message text is passed through to the client unchanged.
"""


class RedisMCPError(Exception):
    """Base class for all server errors."""


class ValidationError(RedisMCPError):
    """Missing or malformed tool arguments."""


class PermissionDenied(RedisMCPError):
    """A permission flag disallows the operation."""


class KeyNotFound(RedisMCPError):
    """The operation requires a key that does not exist."""


class KeyConflict(RedisMCPError):
    """The operation would overwrite a key that already exists."""


class StoreError(RedisMCPError):
    """Connectivity or protocol failure talking to Redis."""


class UnknownTool(RedisMCPError):
    """tools/call named a tool that is not registered."""


class InvalidParams(RedisMCPError):
    """The params of a protocol method are malformed."""


class MethodNotFound(RedisMCPError):
    """The JSON-RPC method is not handled by the server."""


class InvalidRequest(RedisMCPError):
    """The JSON-RPC envelope itself is unacceptable."""
