"""
Error taxonomy for the Hetzner Robot client.

Every failure surfaces as a subclass of RobotError:
- TransportError: the network exchange itself failed
- ApiError: the remote service answered with a structured error body
- UnparseableResponseError: non-2xx status with a body we could not read
- SerializationError / DeserializationError: local encode/decode failures
"""

import json
from enum import Enum
from typing import Any


class RobotError(Exception):
    """Base error class for all client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message, "kind": type(self).__name__}
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(RobotError):
    """Invalid local configuration (missing credentials, non-https base URL)."""


class TransportError(RobotError):
    """Failure to establish or complete the network exchange."""


class SerializationError(RobotError):
    """Failure to encode an outgoing request body."""


class DeserializationError(SerializationError):
    """Failure to decode a nominally successful response body."""


class UnparseableResponseError(RobotError):
    """Non-2xx response whose body is not a Robot error document."""

    def __init__(self, status: int, body: str):
        super().__init__(f"HTTP {status}", details={"body": body} if body else None)
        self.status = status
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status
        return result


class ErrorCode(str, Enum):
    """Error codes documented by the Robot webservice."""

    BOOT_ACTIVATION_FAILED = "BOOT_ACTIVATION_FAILED"
    BOOT_ALREADY_ENABLED = "BOOT_ALREADY_ENABLED"
    BOOT_BLOCKED = "BOOT_BLOCKED"
    BOOT_DEACTIVATION_FAILED = "BOOT_DEACTIVATION_FAILED"
    BOOT_NOT_AVAILABLE = "BOOT_NOT_AVAILABLE"
    CONFLICT = "CONFLICT"
    CPANEL_MISSING_ADDON = "CPANEL_MISSING_ADDON"
    FAILOVER_ALREADY_ROUTED = "FAILOVER_ALREADY_ROUTED"
    FAILOVER_FAILED = "FAILOVER_FAILED"
    FAILOVER_LOCKED = "FAILOVER_LOCKED"
    FAILOVER_NEW_SERVER_NOT_FOUND = "FAILOVER_NEW_SERVER_NOT_FOUND"
    FAILOVER_NOT_COMPLETE = "FAILOVER_NOT_COMPLETE"
    FIREWALL_IN_PROCESS = "FIREWALL_IN_PROCESS"
    FIREWALL_NOT_AVAILABLE = "FIREWALL_NOT_AVAILABLE"
    FIREWALL_PORT_NOT_FOUND = "FIREWALL_PORT_NOT_FOUND"
    FIREWALL_TEMPLATE_NOT_FOUND = "FIREWALL_TEMPLATE_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    IP_NOT_FOUND = "IP_NOT_FOUND"
    KEY_ALREADY_EXISTS = "KEY_ALREADY_EXISTS"
    KEY_CREATE_FAILED = "KEY_CREATE_FAILED"
    KEY_DELETE_FAILED = "KEY_DELETE_FAILED"
    KEY_UPDATE_FAILED = "KEY_UPDATE_FAILED"
    MAC_ALREADY_SET = "MAC_ALREADY_SET"
    MAC_FAILED = "MAC_FAILED"
    MAC_NOT_AVAILABLE = "MAC_NOT_AVAILABLE"
    MAC_NOT_FOUND = "MAC_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    PLESK_MISSING_ADDON = "PLESK_MISSING_ADDON"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    RDNS_ALREADY_EXISTS = "RDNS_ALREADY_EXISTS"
    RDNS_CREATE_FAILED = "RDNS_CREATE_FAILED"
    RDNS_DELETE_FAILED = "RDNS_DELETE_FAILED"
    RDNS_NOT_FOUND = "RDNS_NOT_FOUND"
    RDNS_UPDATE_FAILED = "RDNS_UPDATE_FAILED"
    RESET_FAILED = "RESET_FAILED"
    RESET_MANUAL_ACTIVE = "RESET_MANUAL_ACTIVE"
    RESET_NOT_AVAILABLE = "RESET_NOT_AVAILABLE"
    SERVER_CANCELLATION_RESERVE_LOCATION_FALSE_ONLY = "SERVER_CANCELLATION_RESERVE_LOCATION_FALSE_ONLY"
    SERVER_NOT_FOUND = "SERVER_NOT_FOUND"
    SERVER_REVERSAL_NOT_POSSIBLE = "SERVER_REVERSAL_NOT_POSSIBLE"
    SNAPSHOT_LIMIT_EXCEEDED = "SNAPSHOT_LIMIT_EXCEEDED"
    SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"
    STORAGEBOX_NOT_FOUND = "STORAGEBOX_NOT_FOUND"
    STORAGEBOX_SUBACCOUNT_LIMIT_EXCEEDED = "STORAGEBOX_SUBACCOUNT_LIMIT_EXCEEDED"
    STORAGEBOX_SUBACCOUNT_NOT_FOUND = "STORAGEBOX_SUBACCOUNT_NOT_FOUND"
    SUBNET_NOT_FOUND = "SUBNET_NOT_FOUND"
    TRAFFIC_WARNING_UPDATE_FAILED = "TRAFFIC_WARNING_UPDATE_FAILED"
    UNAVAILABLE = "UNAVAILABLE"
    VSWITCH_IN_PROCESS = "VSWITCH_IN_PROCESS"
    VSWITCH_LIMIT_REACHED = "VSWITCH_LIMIT_REACHED"
    VSWITCH_NOT_AVAILABLE = "VSWITCH_NOT_AVAILABLE"
    VSWITCH_PER_SERVER_LIMIT_REACHED = "VSWITCH_PER_SERVER_LIMIT_REACHED"
    VSWITCH_SERVER_LIMIT_REACHED = "VSWITCH_SERVER_LIMIT_REACHED"
    VSWITCH_VLAN_NOT_UNIQUE = "VSWITCH_VLAN_NOT_UNIQUE"
    WINDOWS_MISSING_ADDON = "WINDOWS_MISSING_ADDON"
    WINDOWS_OUTDATED_VERSION = "WINDOWS_OUTDATED_VERSION"
    WOL_FAILED = "WOL_FAILED"
    WOL_NOT_AVAILABLE = "WOL_NOT_AVAILABLE"


class ApiError(RobotError):
    """Structured error returned by the Robot webservice."""

    def __init__(
        self,
        message: str,
        status: int = 0,
        code: str = "",
        missing: list[str] | None = None,
        invalid: list[str] | None = None,
        max_request: int | None = None,
        interval: int | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.missing = missing
        self.invalid = invalid
        self.max_request = max_request
        self.interval = interval

    @property
    def error_code(self) -> ErrorCode | None:
        """The documented error code, or None for codes this client does not know."""
        try:
            return ErrorCode(self.code)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"{self.status} {self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["status"] = self.status
        result["code"] = self.code
        if self.missing is not None:
            result["missing"] = self.missing
        if self.invalid is not None:
            result["invalid"] = self.invalid
        if self.max_request is not None:
            result["max_request"] = self.max_request
            result["interval"] = self.interval
        return result


def _string_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TypeError("expected a list of field names")
    return value


def map_error(status: int, body: bytes) -> ApiError | UnparseableResponseError:
    """
    Convert a non-2xx response into a typed error.

    Args:
        status: HTTP status code of the response
        body: Raw response body

    Returns:
        ApiError if the body is a Robot error document, else UnparseableResponseError

    """
    text = body.decode("utf-8", errors="replace")
    try:
        error = json.loads(text)["error"]
        if not isinstance(error, dict):
            raise TypeError("error is not an object")

        code = error["code"]
        message = error["message"]
        remote_status = error.get("status", status)
        if not isinstance(code, str) or not isinstance(message, str) or not isinstance(remote_status, int):
            raise TypeError("malformed error document")

        return ApiError(
            message,
            status=remote_status,
            code=code,
            missing=_string_list(error.get("missing")),
            invalid=_string_list(error.get("invalid")),
            max_request=error.get("max_request"),
            interval=error.get("interval"),
        )
    except (json.JSONDecodeError, KeyError, TypeError):
        return UnparseableResponseError(status, text)
