"""Command line entry point for roomlink."""

import argparse
import logging
import os
import sys
from dataclasses import replace

from roomlink.api.channel import RpcChannel
from roomlink.api.protocol import RoomLinkError
from roomlink.core.config import DevelopmentServer, MultiplayerConfig
from roomlink.core.multiplayer import Multiplayer
from roomlink.core.probe import DEFAULT_ATTEMPTS, DEFAULT_TIMEOUT_MS, is_port_open

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
ENV_LOG_LEVEL = "ROOMLINK_LOG_LEVEL"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for command line use.

    Raises:
        ValueError: If the level (from the argument or the environment) is not a logging level name.
    """
    effective_level = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    if effective_level not in logging.getLevelNamesMapping():
        raise ValueError(f"unknown log level {effective_level.lower()!r}")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=effective_level, format=LOG_FORMAT)
    else:
        root.setLevel(effective_level)


def _parse_pairs(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``key=value`` arguments."""
    result: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected key=value, got {item!r}")
        result[key] = value
    return result


def _parse_address(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    try:
        return host.strip("[]"), int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(prog="roomlink", description="Create and join multiplayer rooms")
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"logging level (debug, info, warning, error); also read from {ENV_LOG_LEVEL}",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    probe = commands.add_parser("probe", help="check whether a TCP endpoint is reachable")
    probe.add_argument("host")
    probe.add_argument("port", type=int)
    probe.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS)
    probe.add_argument("--attempts", type=int, default=DEFAULT_ATTEMPTS)

    for name, help_text in (
        ("create", "create a room"),
        ("join", "join a room"),
        ("create-join", "create a room if needed and join it"),
    ):
        room = commands.add_parser(name, help=help_text)
        room.add_argument("--control", type=_parse_address, required=True, help="control server HOST:PORT")
        room.add_argument("--room", default=None, help="room id")
        room.add_argument("--type", dest="room_type", default="bounce", help="room type (default: bounce)")
        room.add_argument("--hidden", action="store_true", help="hide the room from listings")
        room.add_argument("--data", action="append", metavar="KEY=VALUE", help="room data entry")
        room.add_argument("--join-data", action="append", metavar="KEY=VALUE", help="join data entry")
        room.add_argument("--dev-server", type=DevelopmentServer.parse, help="development server HOST[:PORT]")
        room.add_argument("--secure", action="store_true", help="use TLS for the room connection")

    return parser


def _run_probe(args: argparse.Namespace) -> int:
    reachable = is_port_open(args.host, args.port, args.timeout_ms, args.attempts)
    print(f"{args.host}:{args.port} {'reachable' if reachable else 'unreachable'}")
    return 0 if reachable else 1


def _run_room(args: argparse.Namespace) -> int:
    config = MultiplayerConfig.from_env()
    if args.dev_server is not None:
        config = replace(config, development_server=args.dev_server)
    if args.secure:
        config = replace(config, use_secure_connections=True)

    if args.command != "create" and not args.room:
        raise argparse.ArgumentTypeError(f"--room is required for {args.command}")

    room_data = _parse_pairs(args.data)
    join_data = _parse_pairs(args.join_data)
    host, port = args.control

    with RpcChannel(host, port, timeout=config.rpc_timeout) as channel:
        multiplayer = Multiplayer(channel, config)
        if args.command == "create":
            print(multiplayer.create_room(args.room, args.room_type, not args.hidden, room_data))
            return 0
        if args.command == "join":
            connection = multiplayer.join_room(args.room, join_data)
        else:
            connection = multiplayer.create_join_room(
                args.room, args.room_type, not args.hidden, room_data, join_data
            )
        with connection:
            print(connection.endpoint)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface.

    Returns:
        Exit code (0 for success).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        setup_logging(args.log_level)
    except ValueError as e:
        parser.error(str(e))

    try:
        if args.command == "probe":
            return _run_probe(args)
        return _run_room(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except (RoomLinkError, ConnectionError, ValueError) as e:
        logger.error("%s", e)
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
