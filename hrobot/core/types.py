"""
Typed resources of the Hetzner Robot webservice.

These dataclasses provide type safety and IDE support for API responses.
Optional fields treat JSON null as absent; required fields are read strictly,
so a missing or mistyped value raises KeyError/TypeError, which the envelope
codec reports as a DeserializationError.
"""

import ipaddress
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

# Naive timestamps returned by Robot are local German time.
ROBOT_TIMEZONE = ZoneInfo("Europe/Berlin")


def _mapping(data: Any) -> dict[str, Any]:
    # PHP encodes an empty object as []
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    return data


def _accepts(value: Any, kind: type | tuple[type, ...]) -> bool:
    kinds = kind if isinstance(kind, tuple) else (kind,)
    # bool is an int subclass, but true is never a valid number
    if isinstance(value, bool) and bool not in kinds:
        return False
    return isinstance(value, kinds)


def _require(data: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    """Read a required field, rejecting null and mistyped values."""
    value = _mapping(data)[key]
    if value is None or not _accepts(value, kind):
        raise TypeError(f"field '{key}' has unexpected value {value!r}")
    return value


def _optional(data: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    """Read an optional field; null and absence are equivalent."""
    value = _mapping(data).get(key)
    if value is not None and not _accepts(value, kind):
        raise TypeError(f"field '{key}' has unexpected value {value!r}")
    return value


def _list(data: dict[str, Any], key: str) -> list[Any]:
    value = _mapping(data).get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"field '{key}' is not a list")
    return value


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 or ``YYYY-MM-DD HH:MM:SS`` timestamp, assuming Berlin time when naive."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ROBOT_TIMEZONE)
    return parsed


# =============================================================================
# Server Types
# =============================================================================


class ServerStatus(str, Enum):
    """Provisioning status of a server."""

    READY = "ready"
    IN_PROGRESS = "in progress"


@dataclass
class SubnetReference:
    """Subnet routed to a server."""

    ip: ipaddress.IPv4Address | ipaddress.IPv6Address
    mask: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubnetReference":
        return cls(
            ip=ipaddress.ip_address(_require(data, "ip", str)),
            mask=str(_require(data, "mask", (str, int))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"ip": str(self.ip), "mask": self.mask}


@dataclass
class ServerFlags:
    """Availability of extra services. Only present when fetching a single server."""

    reset: bool
    rescue: bool
    vnc: bool
    windows: bool
    plesk: bool
    cpanel: bool
    wol: bool
    hot_swap: bool
    linked_storagebox: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerFlags":
        return cls(
            reset=_require(data, "reset", bool),
            rescue=_require(data, "rescue", bool),
            vnc=_require(data, "vnc", bool),
            windows=_require(data, "windows", bool),
            plesk=_require(data, "plesk", bool),
            cpanel=_require(data, "cpanel", bool),
            wol=_require(data, "wol", bool),
            hot_swap=_require(data, "hot_swap", bool),
            linked_storagebox=_optional(data, "linked_storagebox", int),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "reset": self.reset,
            "rescue": self.rescue,
            "vnc": self.vnc,
            "windows": self.windows,
            "plesk": self.plesk,
            "cpanel": self.cpanel,
            "wol": self.wol,
            "hot_swap": self.hot_swap,
            "linked_storagebox": self.linked_storagebox,
        }


@dataclass
class Server:
    """A dedicated server."""

    id: int
    name: str
    product: str
    dc: str
    status: ServerStatus
    cancelled: bool
    paid_until: date
    ipv4: ipaddress.IPv4Address | None = None
    ipv6_net: ipaddress.IPv6Address | None = None
    traffic: str | None = None
    ips: list[str] = field(default_factory=list)
    subnets: list[SubnetReference] = field(default_factory=list)
    flags: ServerFlags | None = None

    @property
    def unlimited_traffic(self) -> bool:
        return self.traffic is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Server":
        """Create from API response dict."""
        ipv4 = _optional(data, "server_ip", str)
        ipv6_net = _optional(data, "server_ipv6_net", str)
        traffic = _optional(data, "traffic", str)
        return cls(
            id=_require(data, "server_number", int),
            name=_require(data, "server_name", str),
            product=_require(data, "product", str),
            dc=_require(data, "dc", str),
            status=ServerStatus(_require(data, "status", str)),
            cancelled=_require(data, "cancelled", bool),
            paid_until=date.fromisoformat(_require(data, "paid_until", str)),
            ipv4=ipaddress.IPv4Address(ipv4) if ipv4 else None,
            ipv6_net=ipaddress.IPv6Address(ipv6_net) if ipv6_net else None,
            traffic=None if traffic in (None, "unlimited") else traffic,
            ips=_list(data, "ip"),
            subnets=[SubnetReference.from_dict(s) for s in _list(data, "subnet")],
            # Flags are only included when a single server is fetched
            flags=ServerFlags.from_dict(data) if "reset" in data else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the wire representation."""
        result: dict[str, Any] = {
            "server_ip": str(self.ipv4) if self.ipv4 else None,
            "server_ipv6_net": str(self.ipv6_net) if self.ipv6_net else None,
            "server_number": self.id,
            "server_name": self.name,
            "product": self.product,
            "dc": self.dc,
            "traffic": self.traffic or "unlimited",
            "status": self.status.value,
            "cancelled": self.cancelled,
            "paid_until": self.paid_until.isoformat(),
            "ip": self.ips,
            "subnet": [s.to_dict() for s in self.subnets],
        }
        if self.flags:
            result.update(self.flags.to_dict())
        return result


@dataclass
class Cancelled:
    """Terms under which a server was cancelled."""

    date: date
    reserved: bool
    reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cancelled":
        return cls(
            date=date.fromisoformat(_require(data, "cancellation_date", str)),
            reserved=bool(data.get("reserved")),
            reason=_optional(data, "cancellation_reason", str),
        )


@dataclass
class Cancellable:
    """Cancellation options for a server that has not been cancelled."""

    earliest_cancellation_date: date
    reservation_possible: bool
    cancellation_reasons: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cancellable":
        reasons = data.get("cancellation_reason")
        return cls(
            earliest_cancellation_date=date.fromisoformat(_require(data, "earliest_cancellation_date", str)),
            reservation_possible=_require(data, "reservation_possible", bool),
            cancellation_reasons=reasons if isinstance(reasons, list) else [],
        )


def parse_cancellation(data: dict[str, Any]) -> Cancelled | Cancellable:
    """The cancellation endpoint returns one of two shapes depending on server state."""
    if _mapping(data).get("cancellation_date"):
        return Cancelled.from_dict(data)
    return Cancellable.from_dict(data)


@dataclass
class Cancel:
    """Server cancellation order."""

    cancellation_date: date | None = None
    reason: str | None = None
    reserved: bool = False

    def to_form(self) -> dict[str, Any]:
        return {
            "cancellation_date": self.cancellation_date or "now",
            "cancellation_reason": self.reason,
            "reserved": self.reserved,
        }


# =============================================================================
# SSH Key Types
# =============================================================================


@dataclass
class SshKey:
    """SSH public key stored in Robot."""

    name: str
    fingerprint: str
    algorithm: str
    bits: int
    data: str
    created_at: datetime

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SshKey":
        """Create from API response dict."""
        return cls(
            name=_require(data, "name", str),
            fingerprint=_require(data, "fingerprint", str),
            algorithm=_require(data, "type", str),
            bits=_require(data, "size", int),
            data=_require(data, "data", str),
            created_at=parse_timestamp(_require(data, "created_at", str)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "fingerprint": self.fingerprint,
            "type": self.algorithm,
            "size": self.bits,
            "data": self.data,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class KeyReference:
    """Key metadata as embedded in boot configurations (no key material)."""

    name: str
    fingerprint: str
    algorithm: str
    bits: int
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeyReference":
        # Embedded keys are themselves wrapped: {"key": {...}}
        if "key" in data and isinstance(data["key"], dict):
            data = data["key"]
        created_at = _optional(data, "created_at", str)
        return cls(
            name=_require(data, "name", str),
            fingerprint=_require(data, "fingerprint", str),
            algorithm=_require(data, "type", str),
            bits=_require(data, "size", int),
            created_at=parse_timestamp(created_at) if created_at else None,
        )


# =============================================================================
# Reverse DNS Types
# =============================================================================


@dataclass
class RdnsEntry:
    """Reverse DNS (PTR) record for an IP address."""

    ip: ipaddress.IPv4Address | ipaddress.IPv6Address
    ptr: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RdnsEntry":
        return cls(
            ip=ipaddress.ip_address(_require(data, "ip", str)),
            ptr=_require(data, "ptr", str),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"ip": str(self.ip), "ptr": self.ptr}


# =============================================================================
# Reset Types
# =============================================================================


class Reset(str, Enum):
    """Kind of reset to perform."""

    MANUAL = "man"
    SOFTWARE = "sw"
    HARDWARE = "hw"
    POWER = "power"
    POWER_LONG = "power_long"

    @classmethod
    def parse(cls, value: str) -> "Reset | str":
        """Known reset types become members; undocumented ones stay plain strings."""
        try:
            return cls(value)
        except ValueError:
            return value


def parse_reset_options(data: dict[str, Any]) -> list["Reset | str"]:
    options = data["type"]
    if isinstance(options, str):
        options = [options]
    if not isinstance(options, list):
        raise TypeError("field 'type' is not a list")
    return [Reset.parse(option) for option in options]


# =============================================================================
# Boot Configuration Types
# =============================================================================


class Keyboard(str, Enum):
    """Keyboard layout for rescue systems. Defaults to US."""

    US = "us"
    UK = "uk"
    SWISS = "ch"
    GERMAN = "de"
    FINNISH = "fi"
    FRENCH = "fr"
    JAPANESE = "jp"


@dataclass
class RescueConfig:
    """Rescue system activation request."""

    operating_system: str
    authorized_keys: list[str] = field(default_factory=list)
    keyboard: Keyboard = Keyboard.US

    def to_form(self) -> dict[str, Any]:
        return {
            "os": self.operating_system,
            "authorized_key": self.authorized_keys or None,
            "keyboard": self.keyboard,
        }


@dataclass
class ActiveRescueConfig:
    """Currently active (or last active) rescue system."""

    operating_system: str
    password: str | None = None
    host_keys: list[str] = field(default_factory=list)
    authorized_keys: list[KeyReference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveRescueConfig":
        # "last" configurations come back with password null
        return cls(
            operating_system=_require(data, "os", str),
            password=_optional(data, "password", str),
            host_keys=_list(data, "host_key"),
            authorized_keys=[KeyReference.from_dict(k) for k in _list(data, "authorized_key")],
        )


@dataclass
class AvailableRescueConfig:
    """Rescue systems that can be activated."""

    operating_systems: list[str]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AvailableRescueConfig":
        systems = _require(data, "os", (list, str))
        return cls(operating_systems=[systems] if isinstance(systems, str) else systems)


def parse_rescue(data: dict[str, Any]) -> ActiveRescueConfig | AvailableRescueConfig:
    """An active rescue system reports a single os string, an inactive one a list."""
    active = _mapping(data).get("active")
    if active is None:
        active = isinstance(data.get("os"), str)
    if active:
        return ActiveRescueConfig.from_dict(data)
    return AvailableRescueConfig.from_dict(data)


@dataclass
class LinuxConfig:
    """Linux installation activation request."""

    distribution: str
    language: str = "en"
    authorized_keys: list[str] = field(default_factory=list)

    def to_form(self) -> dict[str, Any]:
        return {
            "dist": self.distribution,
            "lang": self.language,
            "authorized_key": self.authorized_keys or None,
        }


@dataclass
class ActiveLinuxConfig:
    """Currently active (or last active) Linux installation."""

    distribution: str
    language: str
    password: str | None = None
    host_keys: list[str] = field(default_factory=list)
    authorized_keys: list[KeyReference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveLinuxConfig":
        return cls(
            distribution=_require(data, "dist", str),
            language=_require(data, "lang", str),
            password=_optional(data, "password", str),
            host_keys=_list(data, "host_key"),
            authorized_keys=[KeyReference.from_dict(k) for k in _list(data, "authorized_key")],
        )


@dataclass
class AvailableLinuxConfig:
    """Linux distributions and languages that can be installed."""

    distributions: list[str]
    languages: list[str]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AvailableLinuxConfig":
        return cls(
            distributions=_require(data, "dist", list),
            languages=_require(data, "lang", list),
        )


def parse_linux(data: dict[str, Any]) -> ActiveLinuxConfig | AvailableLinuxConfig:
    active = _mapping(data).get("active")
    if active is None:
        active = isinstance(data.get("dist"), str)
    if active:
        return ActiveLinuxConfig.from_dict(data)
    return AvailableLinuxConfig.from_dict(data)


@dataclass
class BootConfig:
    """Status of each boot configuration system of a server."""

    rescue: ActiveRescueConfig | AvailableRescueConfig | None = None
    linux: ActiveLinuxConfig | AvailableLinuxConfig | None = None
    # Installation systems this client does not model in detail
    other: dict[str, Any] = field(default_factory=dict)

    @property
    def active(self) -> ActiveRescueConfig | ActiveLinuxConfig | None:
        """The currently active configuration, if any."""
        for config in (self.rescue, self.linux):
            if isinstance(config, (ActiveRescueConfig, ActiveLinuxConfig)):
                return config
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BootConfig":
        rescue = _mapping(data).get("rescue")
        linux = data.get("linux")
        return cls(
            rescue=parse_rescue(rescue) if rescue else None,
            linux=parse_linux(linux) if linux else None,
            other={k: v for k, v in data.items() if k not in ("rescue", "linux") and v is not None},
        )


# =============================================================================
# Firewall Types
# =============================================================================


class FirewallState(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"
    IN_PROCESS = "in process"


class Action(str, Enum):
    ACCEPT = "accept"
    DISCARD = "discard"


@dataclass
class Rule:
    """A single firewall rule."""

    name: str
    action: Action = Action.ACCEPT
    ip_version: str | None = None
    dst_ip: str | None = None
    src_ip: str | None = None
    dst_port: str | None = None
    src_port: str | None = None
    protocol: str | None = None
    tcp_flags: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        return cls(
            name=_require(data, "name", str),
            action=Action(_require(data, "action", str)),
            ip_version=_optional(data, "ip_version", str),
            dst_ip=_optional(data, "dst_ip", str),
            src_ip=_optional(data, "src_ip", str),
            dst_port=_optional(data, "dst_port", str),
            src_port=_optional(data, "src_port", str),
            protocol=_optional(data, "protocol", str),
            tcp_flags=_optional(data, "tcp_flags", str),
        )

    def to_dict(self) -> dict[str, Any]:
        """Rule fields in wire order; None values are dropped by the form encoder."""
        return {
            "name": self.name,
            "ip_version": self.ip_version,
            "dst_ip": self.dst_ip,
            "src_ip": self.src_ip,
            "dst_port": self.dst_port,
            "src_port": self.src_port,
            "protocol": self.protocol,
            "tcp_flags": self.tcp_flags,
            "action": self.action,
        }


@dataclass
class Rules:
    ingress: list[Rule] = field(default_factory=list)
    egress: list[Rule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Rules":
        # An empty rule set may arrive as []
        data = data or {}
        return cls(
            ingress=[Rule.from_dict(r) for r in _list(data, "input")],
            egress=[Rule.from_dict(r) for r in _list(data, "output")],
        )

    def to_form(self) -> dict[str, Any]:
        return {
            "input": [r.to_dict() for r in self.ingress],
            "output": [r.to_dict() for r in self.egress],
        }


@dataclass
class Firewall:
    """Firewall of a server."""

    status: FirewallState
    filter_ipv6: bool
    whitelist_hetzner_services: bool
    port: str
    rules: Rules = field(default_factory=Rules)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Firewall":
        return cls(
            status=FirewallState(_require(data, "status", str)),
            filter_ipv6=_require(data, "filter_ipv6", bool),
            whitelist_hetzner_services=_require(data, "whitelist_hos", bool),
            port=_require(data, "port", str),
            rules=Rules.from_dict(data.get("rules")),
        )

    def config(self) -> "FirewallConfig":
        return FirewallConfig(
            status=self.status,
            filter_ipv6=self.filter_ipv6,
            whitelist_hetzner_services=self.whitelist_hetzner_services,
            rules=self.rules,
        )


@dataclass
class FirewallConfig:
    """Firewall configuration to apply. Replaces both rule directions."""

    status: FirewallState = FirewallState.ACTIVE
    filter_ipv6: bool = False
    whitelist_hetzner_services: bool = True
    rules: Rules = field(default_factory=Rules)

    def to_form(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "filter_ipv6": self.filter_ipv6,
            "whitelist_hos": self.whitelist_hetzner_services,
            "rules": self.rules.to_form(),
        }


@dataclass
class FirewallTemplateReference:
    """Firewall template listing entry."""

    id: int
    name: str
    filter_ipv6: bool
    whitelist_hetzner_services: bool
    is_default: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FirewallTemplateReference":
        return cls(
            id=_require(data, "id", int),
            name=_require(data, "name", str),
            filter_ipv6=_require(data, "filter_ipv6", bool),
            whitelist_hetzner_services=_require(data, "whitelist_hos", bool),
            is_default=_require(data, "is_default", bool),
        )


@dataclass
class FirewallTemplate:
    """Complete firewall template including rules."""

    id: int
    name: str
    filter_ipv6: bool
    whitelist_hetzner_services: bool
    is_default: bool
    rules: Rules = field(default_factory=Rules)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FirewallTemplate":
        reference = FirewallTemplateReference.from_dict(data)
        return cls(
            id=reference.id,
            name=reference.name,
            filter_ipv6=reference.filter_ipv6,
            whitelist_hetzner_services=reference.whitelist_hetzner_services,
            is_default=reference.is_default,
            rules=Rules.from_dict(data.get("rules")),
        )


@dataclass
class FirewallTemplateConfig:
    """Firewall template to create or update."""

    name: str
    filter_ipv6: bool = False
    whitelist_hetzner_services: bool = True
    is_default: bool = False
    rules: Rules = field(default_factory=Rules)

    def to_form(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "filter_ipv6": self.filter_ipv6,
            "whitelist_hos": self.whitelist_hetzner_services,
            "is_default": self.is_default,
            "rules": self.rules.to_form(),
        }


# =============================================================================
# vSwitch Types (bare payloads)
# =============================================================================


class ConnectionStatus(str, Enum):
    READY = "ready"
    IN_PROCESS = "in process"
    FAILED = "failed"


@dataclass
class VSwitchReference:
    """vSwitch listing entry."""

    id: int
    name: str
    vlan: int
    cancelled: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VSwitchReference":
        return cls(
            id=_require(data, "id", int),
            name=_require(data, "name", str),
            vlan=_require(data, "vlan", int),
            cancelled=_require(data, "cancelled", bool),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "vlan": self.vlan, "cancelled": self.cancelled}


@dataclass
class VSwitchServer:
    id: int
    status: ConnectionStatus

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VSwitchServer":
        return cls(
            id=_require(data, "server_number", int),
            status=ConnectionStatus(_require(data, "status", str)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"server_number": self.id, "status": self.status.value}


def _network(data: dict[str, Any]) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    ip = _require(data, "ip", str)
    mask = _require(data, "mask", (int, str))
    return ipaddress.ip_network(f"{ip}/{mask}", strict=False)


def _network_dict(network: ipaddress.IPv4Network | ipaddress.IPv6Network) -> dict[str, Any]:
    return {"ip": str(network.network_address), "mask": network.prefixlen}


@dataclass
class CloudNetwork:
    id: int
    network: ipaddress.IPv4Network | ipaddress.IPv6Network

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CloudNetwork":
        return cls(id=_require(data, "id", int), network=_network(data))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **_network_dict(self.network)}


@dataclass
class VSwitch:
    """vSwitch with its connected servers and networks."""

    id: int
    name: str
    vlan: int
    cancelled: bool
    servers: list[VSwitchServer] = field(default_factory=list)
    subnets: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = field(default_factory=list)
    cloud_networks: list[CloudNetwork] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VSwitch":
        reference = VSwitchReference.from_dict(data)
        return cls(
            id=reference.id,
            name=reference.name,
            vlan=reference.vlan,
            cancelled=reference.cancelled,
            servers=[VSwitchServer.from_dict(s) for s in _list(data, "server")],
            subnets=[_network(s) for s in _list(data, "subnet")],
            cloud_networks=[CloudNetwork.from_dict(c) for c in _list(data, "cloud_network")],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "vlan": self.vlan,
            "cancelled": self.cancelled,
            "server": [s.to_dict() for s in self.servers],
            "subnet": [_network_dict(s) for s in self.subnets],
            "cloud_network": [c.to_dict() for c in self.cloud_networks],
        }
