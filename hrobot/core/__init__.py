"""
Core layer - Errors, wire codec, types and HTTP client.

This layer provides:
- Typed dataclasses for Robot resources
- Envelope decoding and form encoding
- Low-level async HTTP client with auth and error classification
"""

from hrobot.core.client import APIClient, Credentials, RawResponse, Request, build_path
from hrobot.core.envelope import NO_CONTENT, Envelope, encode_form
from hrobot.core.errors import (
    ApiError,
    ConfigurationError,
    DeserializationError,
    ErrorCode,
    RobotError,
    SerializationError,
    TransportError,
    UnparseableResponseError,
    map_error,
)
from hrobot.core.types import (
    BootConfig,
    Firewall,
    FirewallConfig,
    RdnsEntry,
    Reset,
    Rule,
    Rules,
    Server,
    SshKey,
    VSwitch,
    VSwitchReference,
)

__all__ = [
    "APIClient",
    "ApiError",
    "BootConfig",
    "ConfigurationError",
    "Credentials",
    "DeserializationError",
    "Envelope",
    "ErrorCode",
    "Firewall",
    "FirewallConfig",
    "NO_CONTENT",
    "RawResponse",
    "RdnsEntry",
    "Request",
    "Reset",
    "RobotError",
    "Rule",
    "Rules",
    "SerializationError",
    "Server",
    "SshKey",
    "TransportError",
    "UnparseableResponseError",
    "VSwitch",
    "VSwitchReference",
    "build_path",
    "encode_form",
    "map_error",
]
