"""
kguardian advisor CLI entry point.
"""

from __future__ import annotations

import argparse
import logging
import sys

import yaml

from advisor import __version__
from advisor.broker import BrokerError
from advisor.cli_gen import add_gen_parser, cmd_gen
from advisor.config import AdvisorConfig, load_config_from_env
from advisor.network import PolicyError
from advisor.observability import configure_logging
from advisor.seccomp import SeccompError


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="advisor",
        description="kguardian advisor - security policies from observed pod behaviour",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"advisor {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log output format (default: text)",
    )
    parser.add_argument(
        "--config",
        help="Configuration file (JSON or YAML)",
    )
    parser.add_argument(
        "--broker-url",
        help="Broker base URL (default: http://127.0.0.1:9090)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    add_gen_parser(subparsers)

    return parser


def load_config(args: argparse.Namespace) -> AdvisorConfig:
    """Build configuration from file or environment, then global flags."""
    if args.config:
        config = AdvisorConfig.from_file(args.config)
    else:
        config = load_config_from_env()
    if args.broker_url:
        config.broker_url = args.broker_url
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logger = configure_logging(level=level, format=args.log_format)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    command_handlers = {
        "gen": cmd_gen,
    }

    handler = command_handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, config, logger)
    except (BrokerError, PolicyError, SeccompError) as e:
        logger.error(str(e), exc_info=args.verbose > 1)
        return 1


if __name__ == "__main__":
    sys.exit(main())
