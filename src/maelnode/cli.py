"""Command-line entry point: ``maelnode <program>``.

The network talks to the node over stdin/stdout, so every log line goes
to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from maelnode.codec import ParseError
from maelnode.config import GossipConfig, NodeConfig, load_config
from maelnode.core.actors import ActorFailed
from maelnode.core.transport import LineTransport, StreamTransport
from maelnode.dispatch import ProtocolViolationError
from maelnode.node import Node
from maelnode.programs import PROGRAMS
from maelnode.session import BootstrapError

log = logging.getLogger("maelnode.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="maelnode",
        description="Run a cluster node speaking line-delimited JSON on stdin/stdout.",
    )
    parser.add_argument("program", choices=sorted(PROGRAMS), help="Node program to run")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to maelnode.toml (default: discovered from the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level",
    )
    parser.add_argument(
        "--gossip-interval",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Override the configured gossip period",
    )
    parser.add_argument(
        "--fail-on-violation",
        action="store_true",
        help="Stop the node when it receives a message it should never get",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> NodeConfig:
    config = load_config(args.config)
    if args.log_level is not None:
        config = replace(config, log_level=args.log_level)
    if args.gossip_interval is not None:
        config = replace(config, gossip=GossipConfig(interval=args.gossip_interval))
    if args.fail_on_violation:
        config = replace(config, dispatch=replace(config.dispatch, on_violation="fail"))
    return config


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: LineTransport | None = None,
) -> int:
    """Run the selected program until end of input.

    Returns
    -------
    int
        ``0`` after a clean end of input, ``1`` when the node failed.
    """
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
    except (OSError, ValueError, TypeError) as exc:
        print(f"maelnode: invalid configuration: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(stream=sys.stderr, level=config.log_level, format=LOG_FORMAT)

    node = Node(PROGRAMS[args.program], transport or StreamTransport.stdio(), config)
    try:
        node.run()
    except (
        BootstrapError,
        ActorFailed,
        ProtocolViolationError,
        ParseError,
        OSError,
        RuntimeError,
    ) as exc:
        log.error("Node terminated: %s", exc)
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted")
        return 130
    return 0
