"""``fmcp serve`` — run the MCP server on stdin/stdout."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from fmcp.cli_commands._output import configure_logging, err_console

logger = logging.getLogger(__name__)


@click.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Serve MCP requests over stdio (the default command)."""
    from fmcp.config import load_config
    from fmcp.errors import ConfigError
    from fmcp.runner import ServerRunner

    options = ctx.find_object(dict) or {}
    configure_logging(str(options.get("log_level") or "INFO"))

    overrides = {
        "api_key": options.get("api_key"),
        "api_url": options.get("api_url"),
        "base_path": options.get("base_path"),
        "api_version": options.get("api_version"),
    }
    try:
        config = load_config(overrides, config_path=options.get("config_path"))
    except ConfigError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    endpoint = options.get("otlp_endpoint")
    if endpoint:
        from fmcp.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(otlp_endpoint=str(endpoint))
        except ImportError as exc:
            logger.warning("%s", exc)

    try:
        asyncio.run(ServerRunner(config).run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    sys.exit(0)
