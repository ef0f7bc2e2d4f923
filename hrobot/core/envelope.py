"""
Envelope codec for Robot webservice payloads.

Most endpoints wrap each object in a single-key JSON object naming the resource,
e.g. ``{"server": {...}}``, and list endpoints return an array of such wrappers.
The vSwitch family returns bare objects instead. Which convention applies is a
static property of each endpoint, so it is chosen at the call site.

Request bodies are always ``application/x-www-form-urlencoded``.
"""

import ipaddress
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar
from urllib.parse import quote_plus

from hrobot.core.errors import DeserializationError, SerializationError

T = TypeVar("T")

Parser = Callable[[Any], T]

_SCALARS = (
    str,
    int,
    float,
    Decimal,
    date,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
)


@dataclass(frozen=True)
class Envelope:
    """
    Describes how a response payload is wrapped.

    Attributes:
        key: Wrapper key (e.g. "server"), or None for bare payloads
        many: True if the body is a JSON array of payloads

    """

    key: str | None
    many: bool = False

    @classmethod
    def wrapped(cls, key: str) -> "Envelope":
        return cls(key)

    @classmethod
    def wrapped_list(cls, key: str) -> "Envelope":
        return cls(key, many=True)

    @classmethod
    def bare(cls) -> "Envelope":
        return cls(None)

    @classmethod
    def bare_list(cls) -> "Envelope":
        return cls(None, many=True)

    def _unwrap(self, item: Any) -> Any:
        if self.key is None:
            return item
        if not isinstance(item, dict) or self.key not in item:
            raise DeserializationError(
                f"Expected object wrapped in '{self.key}'",
                details={"received": _describe(item)},
            )
        return item[self.key]

    def _wrap(self, payload: Any) -> Any:
        return payload if self.key is None else {self.key: payload}

    def decode(self, body: bytes | str, parser: Parser[T]) -> T | list[T]:
        """
        Decode a response body into typed values.

        Args:
            body: Raw response body
            parser: Converts one unwrapped payload into its typed value

        Returns:
            A single value, or a list of values if ``many`` is set

        Raises:
            DeserializationError: If the body does not match the expected shape

        """
        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DeserializationError(f"Response body is not valid UTF-8: {e}") from e
        if not body.strip():
            raise DeserializationError("Empty response body where a payload was expected")

        try:
            document = json.loads(body)
        except json.JSONDecodeError as e:
            raise DeserializationError(f"Invalid JSON response: {e}") from e

        if self.many:
            if not isinstance(document, list):
                raise DeserializationError(
                    "Expected a JSON array",
                    details={"received": _describe(document)},
                )
            return [self._parse(self._unwrap(item), parser) for item in document]
        return self._parse(self._unwrap(document), parser)

    def encode(self, payload: Any) -> bytes:
        """Encode plain payload(s) into the wire JSON shape described by this envelope."""
        if self.many:
            document = [self._wrap(item) for item in payload]
        else:
            document = self._wrap(payload)
        return json.dumps(document, default=str).encode("utf-8")

    def _parse(self, payload: Any, parser: Parser[T]) -> T:
        try:
            return parser(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            name = self.key or "payload"
            raise DeserializationError(f"Failed to decode {name}: {e!r}") from e


# Marker for endpoints whose successful response carries nothing of interest.
NO_CONTENT = Envelope(None)


def _describe(value: Any) -> str:
    if isinstance(value, dict):
        return f"object with keys {sorted(value)}"
    return type(value).__name__


def _format_scalar(value: Any) -> str:
    # bool must be checked before int, since bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return _format_scalar(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, _SCALARS):
        return str(value)
    raise SerializationError(f"Cannot form-encode value of type {type(value).__name__}")


def _quote(text: str) -> str:
    return quote_plus(text, safe="[]")


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            if isinstance(item, Mapping):
                _flatten(f"{prefix}[{index}]", item, pairs)
            elif item is not None:
                pairs.append((f"{prefix}[]", _format_scalar(item)))
    else:
        pairs.append((prefix, _format_scalar(value)))


def encode_form(fields: Mapping[str, Any]) -> str:
    """
    Encode request fields as application/x-www-form-urlencoded.

    - None values are omitted entirely; empty strings are kept
    - Lists become repeated ``key[]=value`` pairs, order preserved
    - Mappings become ``key[sub]=value``; lists of mappings ``key[0][sub]=value``

    Raises:
        SerializationError: If a value cannot be represented in a form body

    """
    pairs: list[tuple[str, str]] = []
    for key, value in fields.items():
        _flatten(key, value, pairs)
    return "&".join(f"{_quote(key)}={_quote(value)}" for key, value in pairs)
