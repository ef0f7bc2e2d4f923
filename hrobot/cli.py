"""
hrobot CLI - Command-line interface for the Hetzner Robot webservice.

This layer provides user-facing commands using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Table formatting for human output
- JSON output for piping/automation
"""

import argparse
import asyncio
import dataclasses
import json
import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

from hrobot.core.errors import RobotError
from hrobot.core.types import Reset
from hrobot.sdk import AsyncRobot

BASE_URL_ENV = "HROBOT_BASE_URL"

# =============================================================================
# Output Helpers
# =============================================================================


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: RobotError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def to_plain(value: Any) -> Any:
    """Convert a resource dataclass into JSON-friendly data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    return value


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


# =============================================================================
# CLI Commands
# =============================================================================


async def cmd_servers_list(robot: AsyncRobot, _args: argparse.Namespace) -> None:
    """List servers."""
    servers = await robot.servers.list()
    if is_tty():
        if not servers:
            print("No servers found.")
            return
        table_output(
            ["Number", "Name", "Product", "DC", "IPv4", "Status"],
            [[s.id, s.name, s.product, s.dc, s.ipv4 or "", s.status.value] for s in servers],
            [10, 24, 14, 10, 16, 12],
        )
    else:
        json_output({"data": [s.to_dict() for s in servers]})


async def cmd_servers_get(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Get server details."""
    server = await robot.servers.get(args.server_number)
    json_output(server.to_dict())


async def cmd_servers_rename(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Rename a server."""
    server = await robot.servers.rename(args.server_number, args.name)
    json_output({"success": True, "server_number": server.id, "name": server.name})


async def cmd_keys_list(robot: AsyncRobot, _args: argparse.Namespace) -> None:
    """List SSH keys."""
    keys = await robot.keys.list()
    if is_tty():
        if not keys:
            print("No SSH keys found.")
            return
        table_output(
            ["Name", "Fingerprint", "Type", "Bits"],
            [[k.name, k.fingerprint, k.algorithm, k.bits] for k in keys],
            [24, 48, 10, 6],
        )
    else:
        json_output({"data": [k.to_dict() for k in keys]})


async def cmd_keys_get(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Get an SSH key."""
    key = await robot.keys.get(args.fingerprint)
    json_output(key.to_dict())


async def cmd_rdns_list(robot: AsyncRobot, _args: argparse.Namespace) -> None:
    """List reverse DNS entries."""
    entries = await robot.rdns.list()
    if is_tty():
        if not entries:
            print("No reverse DNS entries found.")
            return
        table_output(["IP", "PTR"], [[e.ip, e.ptr] for e in entries], [40, 60])
    else:
        json_output({"data": [e.to_dict() for e in entries]})


async def cmd_rdns_get(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Get the reverse DNS entry of an IP."""
    entry = await robot.rdns.get(args.ip)
    json_output(entry.to_dict())


async def cmd_rdns_set(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Create or update the reverse DNS entry of an IP."""
    entry = await robot.rdns.update(args.ip, args.ptr)
    json_output({"success": True, **entry.to_dict()})


async def cmd_reset_options(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """List supported reset types."""
    options = await robot.reset.options(args.server_number)
    json_output({"server_number": args.server_number, "types": options})


async def cmd_reset_trigger(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Trigger a server reset."""
    executed = await robot.reset.trigger(args.server_number, Reset.parse(args.type))
    json_output({"success": True, "server_number": args.server_number, "type": executed})


async def cmd_boot_get(robot: AsyncRobot, args: argparse.Namespace) -> None:
    """Show the boot configuration of a server."""
    config = await robot.boot.config(args.server_number)
    json_output(to_plain(config))


async def cmd_vswitch_list(robot: AsyncRobot, _args: argparse.Namespace) -> None:
    """List vSwitches."""
    vswitches = await robot.vswitch.list()
    if is_tty():
        if not vswitches:
            print("No vSwitches found.")
            return
        table_output(
            ["ID", "Name", "VLAN", "Cancelled"],
            [[v.id, v.name, v.vlan, "yes" if v.cancelled else "no"] for v in vswitches],
            [10, 30, 6, 9],
        )
    else:
        json_output({"data": [v.to_dict() for v in vswitches]})


# =============================================================================
# Main CLI
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="hrobot",
        description="hrobot - Command-line interface for the Hetzner Robot webservice",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Credentials are read from HROBOT_USERNAME and HROBOT_PASSWORD
(a .env file in the working directory is loaded first).

Output Modes:
  TTY (human):  Tables
  Pipe:         JSON

Examples:
  hrobot servers list
  hrobot rdns set 123.123.123.123 host.example.com
  hrobot reset trigger 321 hw
  hrobot vswitch list | jq '.data[].id'
""",
    )
    parser.add_argument("--base-url", help=f"API base URL (overrides {BASE_URL_ENV})")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log requests (-vv for debug)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Servers ==========
    servers = subparsers.add_parser("servers", help="List and manage servers")
    servers.set_defaults(func=None, help_parser=servers)
    servers_sub = servers.add_subparsers(dest="subcommand")

    s_list = servers_sub.add_parser("list", help="List servers")
    s_list.set_defaults(func=cmd_servers_list)

    s_get = servers_sub.add_parser("get", help="Get server details")
    s_get.add_argument("server_number", type=int, help="Server number")
    s_get.set_defaults(func=cmd_servers_get)

    s_rename = servers_sub.add_parser("rename", help="Rename a server")
    s_rename.add_argument("server_number", type=int, help="Server number")
    s_rename.add_argument("name", help="New server name")
    s_rename.set_defaults(func=cmd_servers_rename)

    # ========== SSH Keys ==========
    keys = subparsers.add_parser("keys", help="List SSH keys")
    keys.set_defaults(func=None, help_parser=keys)
    keys_sub = keys.add_subparsers(dest="subcommand")

    k_list = keys_sub.add_parser("list", help="List SSH keys")
    k_list.set_defaults(func=cmd_keys_list)

    k_get = keys_sub.add_parser("get", help="Get an SSH key")
    k_get.add_argument("fingerprint", help="Key fingerprint")
    k_get.set_defaults(func=cmd_keys_get)

    # ========== Reverse DNS ==========
    rdns = subparsers.add_parser("rdns", help="Manage reverse DNS entries")
    rdns.set_defaults(func=None, help_parser=rdns)
    rdns_sub = rdns.add_subparsers(dest="subcommand")

    r_list = rdns_sub.add_parser("list", help="List reverse DNS entries")
    r_list.set_defaults(func=cmd_rdns_list)

    r_get = rdns_sub.add_parser("get", help="Get the PTR record of an IP")
    r_get.add_argument("ip", help="IP address")
    r_get.set_defaults(func=cmd_rdns_get)

    r_set = rdns_sub.add_parser("set", help="Create or update the PTR record of an IP")
    r_set.add_argument("ip", help="IP address")
    r_set.add_argument("ptr", help="PTR record")
    r_set.set_defaults(func=cmd_rdns_set)

    # ========== Reset ==========
    reset = subparsers.add_parser("reset", help="Reset servers")
    reset.set_defaults(func=None, help_parser=reset)
    reset_sub = reset.add_subparsers(dest="subcommand")

    rs_options = reset_sub.add_parser("options", help="List supported reset types")
    rs_options.add_argument("server_number", type=int, help="Server number")
    rs_options.set_defaults(func=cmd_reset_options)

    rs_trigger = reset_sub.add_parser("trigger", help="Trigger a reset")
    rs_trigger.add_argument("server_number", type=int, help="Server number")
    rs_trigger.add_argument("type", choices=[r.value for r in Reset], help="Reset type")
    rs_trigger.set_defaults(func=cmd_reset_trigger)

    # ========== Boot ==========
    boot = subparsers.add_parser("boot", help="Show boot configuration")
    boot.set_defaults(func=None, help_parser=boot)
    boot_sub = boot.add_subparsers(dest="subcommand")

    b_get = boot_sub.add_parser("get", help="Get boot configuration of a server")
    b_get.add_argument("server_number", type=int, help="Server number")
    b_get.set_defaults(func=cmd_boot_get)

    # ========== vSwitch ==========
    vswitch = subparsers.add_parser("vswitch", help="List vSwitches")
    vswitch.set_defaults(func=None, help_parser=vswitch)
    vswitch_sub = vswitch.add_subparsers(dest="subcommand")

    v_list = vswitch_sub.add_parser("list", help="List vSwitches")
    v_list.set_defaults(func=cmd_vswitch_list)

    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbosity > 1 else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def run(args: argparse.Namespace) -> None:
    """Create a client, run the selected command and release the connection pool."""
    base_url = args.base_url or os.environ.get(BASE_URL_ENV)
    async with AsyncRobot.from_env(base_url=base_url) as robot:
        await args.func(robot, args)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)
    if args.func is None:
        args.help_parser.print_help()
        sys.exit(0)

    configure_logging(args.verbose)

    try:
        asyncio.run(run(args))
    except RobotError as e:
        error_output(e)


if __name__ == "__main__":
    main()
