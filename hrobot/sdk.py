"""
hrobot SDK - High-level async client for the Hetzner Robot webservice.

This layer provides a typed interface over the core APIClient. Each operation
is a thin binding over an entry of the ENDPOINTS table, which records the HTTP
method, path template and response envelope of every supported call.
"""

import builtins
import ipaddress
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx

from hrobot.core.client import DEFAULT_TIMEOUT, APIClient, Credentials, Request, build_path
from hrobot.core.envelope import NO_CONTENT, Envelope, Parser
from hrobot.core.errors import ApiError, ErrorCode
from hrobot.core.types import (
    ActiveLinuxConfig,
    ActiveRescueConfig,
    AvailableLinuxConfig,
    AvailableRescueConfig,
    BootConfig,
    Cancel,
    Cancellable,
    Cancelled,
    Firewall,
    FirewallConfig,
    FirewallTemplate,
    FirewallTemplateConfig,
    FirewallTemplateReference,
    LinuxConfig,
    RdnsEntry,
    RescueConfig,
    Reset,
    Server,
    SshKey,
    VSwitch,
    VSwitchReference,
    parse_cancellation,
    parse_linux,
    parse_rescue,
    parse_reset_options,
)

IpAddress = ipaddress.IPv4Address | ipaddress.IPv6Address | str


@dataclass(frozen=True)
class Endpoint:
    """Declarative description of one API call."""

    method: str
    path: str
    envelope: Envelope = NO_CONTENT
    parser: Parser[Any] | None = None

    def request(self, form: dict[str, Any] | None = None, **ids: Any) -> Request:
        return Request(self.method, build_path(self.path, **ids), form)


def _executed_reset(data: dict[str, Any]) -> Reset | str:
    return Reset.parse(data["type"])


# =============================================================================
# Endpoint Table
# =============================================================================


ENDPOINTS: dict[str, Endpoint] = {
    # Servers
    "list_servers": Endpoint("GET", "/server", Envelope.wrapped_list("server"), Server.from_dict),
    "get_server": Endpoint("GET", "/server/{server}", Envelope.wrapped("server"), Server.from_dict),
    "rename_server": Endpoint("POST", "/server/{server}", Envelope.wrapped("server"), Server.from_dict),
    "get_cancellation": Endpoint(
        "GET", "/server/{server}/cancellation", Envelope.wrapped("cancellation"), parse_cancellation
    ),
    "cancel_server": Endpoint(
        "POST", "/server/{server}/cancellation", Envelope.wrapped("cancellation"), Cancelled.from_dict
    ),
    "withdraw_cancellation": Endpoint("DELETE", "/server/{server}/cancellation"),
    # SSH keys
    "list_keys": Endpoint("GET", "/key", Envelope.wrapped_list("key"), SshKey.from_dict),
    "get_key": Endpoint("GET", "/key/{fingerprint}", Envelope.wrapped("key"), SshKey.from_dict),
    "create_key": Endpoint("POST", "/key", Envelope.wrapped("key"), SshKey.from_dict),
    "rename_key": Endpoint("POST", "/key/{fingerprint}", Envelope.wrapped("key"), SshKey.from_dict),
    "remove_key": Endpoint("DELETE", "/key/{fingerprint}"),
    # Reverse DNS
    "list_rdns": Endpoint("GET", "/rdns", Envelope.wrapped_list("rdns"), RdnsEntry.from_dict),
    "get_rdns": Endpoint("GET", "/rdns/{ip}", Envelope.wrapped("rdns"), RdnsEntry.from_dict),
    "create_rdns": Endpoint("PUT", "/rdns/{ip}", Envelope.wrapped("rdns"), RdnsEntry.from_dict),
    "update_rdns": Endpoint("POST", "/rdns/{ip}", Envelope.wrapped("rdns"), RdnsEntry.from_dict),
    "delete_rdns": Endpoint("DELETE", "/rdns/{ip}"),
    # Reset
    "reset_options": Endpoint("GET", "/reset/{server}", Envelope.wrapped("reset"), parse_reset_options),
    "trigger_reset": Endpoint("POST", "/reset/{server}", Envelope.wrapped("reset"), _executed_reset),
    # Wake-on-LAN
    "get_wol": Endpoint("GET", "/wol/{server}", Envelope.wrapped("wol"), dict),
    "trigger_wol": Endpoint("POST", "/wol/{server}"),
    # Boot configuration
    "boot_config": Endpoint("GET", "/boot/{server}", Envelope.wrapped("boot"), BootConfig.from_dict),
    "get_rescue": Endpoint("GET", "/boot/{server}/rescue", Envelope.wrapped("rescue"), parse_rescue),
    "enable_rescue": Endpoint(
        "POST", "/boot/{server}/rescue", Envelope.wrapped("rescue"), ActiveRescueConfig.from_dict
    ),
    "disable_rescue": Endpoint(
        "DELETE", "/boot/{server}/rescue", Envelope.wrapped("rescue"), AvailableRescueConfig.from_dict
    ),
    "last_rescue": Endpoint(
        "GET", "/boot/{server}/rescue/last", Envelope.wrapped("rescue"), ActiveRescueConfig.from_dict
    ),
    "get_linux": Endpoint("GET", "/boot/{server}/linux", Envelope.wrapped("linux"), parse_linux),
    "enable_linux": Endpoint("POST", "/boot/{server}/linux", Envelope.wrapped("linux"), ActiveLinuxConfig.from_dict),
    "disable_linux": Endpoint(
        "DELETE", "/boot/{server}/linux", Envelope.wrapped("linux"), AvailableLinuxConfig.from_dict
    ),
    "last_linux": Endpoint(
        "GET", "/boot/{server}/linux/last", Envelope.wrapped("linux"), ActiveLinuxConfig.from_dict
    ),
    # Firewall
    "get_firewall": Endpoint("GET", "/firewall/{server}", Envelope.wrapped("firewall"), Firewall.from_dict),
    "set_firewall": Endpoint("POST", "/firewall/{server}", Envelope.wrapped("firewall"), Firewall.from_dict),
    "delete_firewall": Endpoint("DELETE", "/firewall/{server}", Envelope.wrapped("firewall"), Firewall.from_dict),
    "list_templates": Endpoint(
        "GET", "/firewall/template", Envelope.wrapped_list("firewall_template"), FirewallTemplateReference.from_dict
    ),
    "get_template": Endpoint(
        "GET", "/firewall/template/{template}", Envelope.wrapped("firewall_template"), FirewallTemplate.from_dict
    ),
    "create_template": Endpoint(
        "POST", "/firewall/template", Envelope.wrapped("firewall_template"), FirewallTemplate.from_dict
    ),
    "update_template": Endpoint(
        "POST", "/firewall/template/{template}", Envelope.wrapped("firewall_template"), FirewallTemplate.from_dict
    ),
    "delete_template": Endpoint("DELETE", "/firewall/template/{template}"),
    # vSwitch: the one family that returns bare objects
    "list_vswitches": Endpoint("GET", "/vswitch", Envelope.bare_list(), VSwitchReference.from_dict),
    "get_vswitch": Endpoint("GET", "/vswitch/{vswitch}", Envelope.bare(), VSwitch.from_dict),
    "create_vswitch": Endpoint("POST", "/vswitch", Envelope.bare(), VSwitchReference.from_dict),
    "update_vswitch": Endpoint("POST", "/vswitch/{vswitch}"),
    "cancel_vswitch": Endpoint("DELETE", "/vswitch/{vswitch}"),
    "connect_vswitch_servers": Endpoint("POST", "/vswitch/{vswitch}/server"),
    "disconnect_vswitch_servers": Endpoint("DELETE", "/vswitch/{vswitch}/server"),
}


class _Operations:
    """Base for a group of operations sharing one APIClient."""

    def __init__(self, client: APIClient):
        self._client = client

    async def _call(self, name: str, form: dict[str, Any] | None = None, **ids: Any) -> Any:
        endpoint = ENDPOINTS[name]
        return await self._client.call(endpoint.request(form, **ids), endpoint.envelope, endpoint.parser)


class AsyncRobot:
    """
    High-level Hetzner Robot client with typed methods.

    Example:
        async with AsyncRobot("#ws+username", "p@ssw0rd") as robot:
            for server in await robot.servers.list():
                print(server.id, server.name)

            await robot.rdns.update("123.123.123.123", "host.example.com")

    """

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        limits: httpx.Limits | None = None,
    ):
        """
        Initialize the Robot client.

        Args:
            username: Robot webservice user
            password: Robot webservice password
            base_url: API base URL override
            timeout: Request timeout in seconds
            transport: Alternate httpx transport
            limits: Connection pool limits

        """
        self._client = APIClient(
            Credentials(username, password),
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            limits=limits,
        )

        # Sub-clients for each resource family
        self.servers = ServerOperations(self._client)
        self.keys = KeyOperations(self._client)
        self.rdns = RdnsOperations(self._client)
        self.reset = ResetOperations(self._client)
        self.wol = WolOperations(self._client)
        self.boot = BootOperations(self._client)
        self.firewall = FirewallOperations(self._client)
        self.vswitch = VSwitchOperations(self._client)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AsyncRobot":
        """Construct using HROBOT_USERNAME and HROBOT_PASSWORD."""
        credentials = Credentials.from_env()
        return cls(credentials.username, credentials.password, **kwargs)

    @property
    def client(self) -> APIClient:
        """The underlying core client."""
        return self._client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncRobot":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


# =============================================================================
# Server Operations
# =============================================================================


class ServerOperations(_Operations):
    """Operations on dedicated servers."""

    async def list(self) -> list[Server]:
        """
        List all servers owned by the account.

        Returns:
            Servers without availability flags (only populated by get())

        """
        return await self._call("list_servers")

    async def get(self, server_number: int) -> Server:
        """Retrieve complete information about a server, including its flags."""
        return await self._call("get_server", server=server_number)

    async def rename(self, server_number: int, name: str) -> Server:
        return await self._call("rename_server", {"server_name": name}, server=server_number)

    async def get_cancellation(self, server_number: int) -> Cancelled | Cancellable:
        """Cancellation terms if cancelled, otherwise the options for cancelling."""
        return await self._call("get_cancellation", server=server_number)

    async def cancel(self, server_number: int, cancellation: Cancel) -> Cancelled:
        """
        Cancel a server.

        Args:
            server_number: Server to cancel
            cancellation: Date (None for immediately), reason and reservation

        Returns:
            The recorded cancellation

        """
        return await self._call("cancel_server", cancellation.to_form(), server=server_number)

    async def withdraw_cancellation(self, server_number: int) -> None:
        await self._call("withdraw_cancellation", server=server_number)


# =============================================================================
# SSH Key Operations
# =============================================================================


class KeyOperations(_Operations):
    """Operations on stored SSH public keys."""

    async def list(self) -> list[SshKey]:
        return await self._call("list_keys")

    async def get(self, fingerprint: str) -> SshKey:
        return await self._call("get_key", fingerprint=fingerprint)

    async def create(self, name: str, data: str) -> SshKey:
        """
        Upload a new public key.

        Args:
            name: Unique name for the key
            data: OpenSSH- or SSH2-formatted public key

        """
        return await self._call("create_key", {"name": name, "data": data})

    async def rename(self, fingerprint: str, name: str) -> SshKey:
        return await self._call("rename_key", {"name": name}, fingerprint=fingerprint)

    async def remove(self, fingerprint: str) -> None:
        await self._call("remove_key", fingerprint=fingerprint)


# =============================================================================
# Reverse DNS Operations
# =============================================================================


class RdnsOperations(_Operations):
    """Operations on reverse DNS entries."""

    async def list(self) -> list[RdnsEntry]:
        return await self._call("list_rdns")

    async def get(self, ip: IpAddress) -> RdnsEntry:
        return await self._call("get_rdns", ip=ip)

    async def create(self, ip: IpAddress, ptr: str) -> RdnsEntry:
        """Create a PTR record. Fails with RDNS_ALREADY_EXISTS if one is set."""
        return await self._call("create_rdns", {"ptr": ptr}, ip=ip)

    async def update(self, ip: IpAddress, ptr: str) -> RdnsEntry:
        """Create or replace a PTR record. An empty ptr resets it to the default."""
        return await self._call("update_rdns", {"ptr": ptr}, ip=ip)

    async def delete(self, ip: IpAddress) -> None:
        await self._call("delete_rdns", ip=ip)


# =============================================================================
# Reset Operations
# =============================================================================


class ResetOperations(_Operations):
    """Server reset."""

    async def options(self, server_number: int) -> builtins.list[Reset | str]:
        """Reset types supported by the server."""
        return await self._call("reset_options", server=server_number)

    async def trigger(self, server_number: int, reset: Reset | str) -> Reset | str:
        """
        Trigger a reset.

        This has immediate real-world effect on the server and is never retried.

        Returns:
            The reset type that was executed

        """
        return await self._call("trigger_reset", {"type": reset}, server=server_number)


# =============================================================================
# Wake-on-LAN Operations
# =============================================================================


class WolOperations(_Operations):
    """Wake-on-LAN."""

    async def is_available(self, server_number: int) -> bool:
        """Check Wake-on-LAN support; other errors are raised as usual."""
        try:
            await self._call("get_wol", server=server_number)
        except ApiError as e:
            if e.error_code is ErrorCode.WOL_NOT_AVAILABLE:
                return False
            raise
        return True

    async def trigger(self, server_number: int) -> None:
        await self._call("trigger_wol", server=server_number)


# =============================================================================
# Boot Configuration Operations
# =============================================================================


class BootOperations(_Operations):
    """Boot configuration: rescue system and Linux installation."""

    async def config(self, server_number: int) -> BootConfig:
        """Status of every boot configuration system of the server."""
        return await self._call("boot_config", server=server_number)

    async def get_rescue(self, server_number: int) -> ActiveRescueConfig | AvailableRescueConfig:
        """Active rescue configuration, or the available systems if inactive."""
        return await self._call("get_rescue", server=server_number)

    async def enable_rescue(self, server_number: int, config: RescueConfig) -> ActiveRescueConfig:
        return await self._call("enable_rescue", config.to_form(), server=server_number)

    async def disable_rescue(self, server_number: int) -> AvailableRescueConfig:
        return await self._call("disable_rescue", server=server_number)

    async def last_rescue(self, server_number: int) -> ActiveRescueConfig:
        """
        Last rescue configuration that was active on the server.

        The password of a past configuration is not returned, so it is None.
        """
        return await self._call("last_rescue", server=server_number)

    async def get_linux(self, server_number: int) -> ActiveLinuxConfig | AvailableLinuxConfig:
        return await self._call("get_linux", server=server_number)

    async def enable_linux(self, server_number: int, config: LinuxConfig) -> ActiveLinuxConfig:
        return await self._call("enable_linux", config.to_form(), server=server_number)

    async def disable_linux(self, server_number: int) -> AvailableLinuxConfig:
        return await self._call("disable_linux", server=server_number)

    async def last_linux(self, server_number: int) -> ActiveLinuxConfig:
        return await self._call("last_linux", server=server_number)


# =============================================================================
# Firewall Operations
# =============================================================================


class FirewallOperations(_Operations):
    """Server firewalls and firewall templates."""

    async def get(self, server_number: int) -> Firewall:
        return await self._call("get_firewall", server=server_number)

    async def set(self, server_number: int, config: FirewallConfig) -> Firewall:
        """
        Replace the firewall configuration of a server.

        Both rule directions are replaced. Without rules, only the implicit
        default-deny applies.
        """
        return await self._call("set_firewall", config.to_form(), server=server_number)

    async def apply_template(self, server_number: int, template_id: int) -> Firewall:
        return await self._call("set_firewall", {"template_id": template_id}, server=server_number)

    async def delete(self, server_number: int) -> Firewall:
        """Clear all rules and disable the firewall."""
        return await self._call("delete_firewall", server=server_number)

    async def list_templates(self) -> builtins.list[FirewallTemplateReference]:
        return await self._call("list_templates")

    async def get_template(self, template_id: int) -> FirewallTemplate:
        return await self._call("get_template", template=template_id)

    async def create_template(self, template: FirewallTemplateConfig) -> FirewallTemplate:
        return await self._call("create_template", template.to_form())

    async def update_template(self, template_id: int, template: FirewallTemplateConfig) -> FirewallTemplate:
        return await self._call("update_template", template.to_form(), template=template_id)

    async def delete_template(self, template_id: int) -> None:
        await self._call("delete_template", template=template_id)


# =============================================================================
# vSwitch Operations
# =============================================================================


class VSwitchOperations(_Operations):
    """vSwitches. Responses of this family are not wrapped."""

    async def list(self) -> builtins.list[VSwitchReference]:
        return await self._call("list_vswitches")

    async def get(self, vswitch_id: int) -> VSwitch:
        return await self._call("get_vswitch", vswitch=vswitch_id)

    async def create(self, name: str, vlan: int) -> VSwitchReference:
        return await self._call("create_vswitch", {"name": name, "vlan": vlan})

    async def update(self, vswitch_id: int, name: str, vlan: int) -> None:
        await self._call("update_vswitch", {"name": name, "vlan": vlan}, vswitch=vswitch_id)

    async def cancel(self, vswitch_id: int, cancellation_date: date | None = None) -> None:
        """Cancel a vSwitch at the given date, or immediately."""
        await self._call("cancel_vswitch", {"cancellation_date": cancellation_date or "now"}, vswitch=vswitch_id)

    async def connect_servers(self, vswitch_id: int, servers: Iterable[int]) -> None:
        await self._call("connect_vswitch_servers", {"server": builtins.list(servers)}, vswitch=vswitch_id)

    async def disconnect_servers(self, vswitch_id: int, servers: Iterable[int]) -> None:
        await self._call("disconnect_vswitch_servers", {"server": builtins.list(servers)}, vswitch=vswitch_id)
