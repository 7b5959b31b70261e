"""Command-line entry point for the MCP tool console."""

import argparse
import asyncio
from typing import Optional

from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging
from mcp_client.client import MCPClient
from mcp_cli.console import TerminalConsole
from mcp_cli.session import InteractiveSession

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="mcp-cli",
        description="Interactively call the tools of an MCP server.",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="Command line that launches the server (e.g. 'server.py', "
             "'npx -y @scope/server') or an http(s):// URL.",
    )
    parser.add_argument("--config", help="Path to a YAML settings file.")
    parser.add_argument("--log-level", help="Override the configured log level.")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Write logs as JSON lines to stderr.",
    )
    return parser


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_yaml(config_path)
    return get_settings()


def resolve_log_level(cli_level: Optional[str], settings: Settings) -> str:
    """CLI flag wins, then ``debug``, then the configured level."""
    if cli_level:
        return cli_level
    if settings.debug:
        return "DEBUG"
    return settings.log_level


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    target = args.target or settings.cli.default_target
    if not target:
        parser.error("a server target is required (or set cli.default_target)")

    json_logs = args.json_logs
    if json_logs is None:
        json_logs = settings.cli.json_logs or settings.environment == "production"
    setup_logging(resolve_log_level(args.log_level, settings), json_output=json_logs)

    session = InteractiveSession(
        client=MCPClient(settings.client),
        console=TerminalConsole(),
    )

    try:
        return asyncio.run(session.start(target))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
