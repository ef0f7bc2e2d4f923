"""
hrobot - Typed async client for the Hetzner Robot webservice.

Layers:
- core: Error taxonomy, envelope codec, resource types and HTTP client
- sdk: High-level AsyncRobot with one operations object per resource family
- cli: Small command-line interface over the SDK
"""

from hrobot.core.client import Credentials
from hrobot.core.errors import (
    ApiError,
    ConfigurationError,
    DeserializationError,
    ErrorCode,
    RobotError,
    SerializationError,
    TransportError,
    UnparseableResponseError,
)
from hrobot.sdk import AsyncRobot

__version__ = "0.1.0"
__all__ = [
    "ApiError",
    "AsyncRobot",
    "ConfigurationError",
    "Credentials",
    "DeserializationError",
    "ErrorCode",
    "RobotError",
    "SerializationError",
    "TransportError",
    "UnparseableResponseError",
]
