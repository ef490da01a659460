"""fmcp CLI entrypoint.

Running ``fmcp`` without a subcommand starts the stdio server, so MCP clients
can launch it as ``fmcp --api-key=... --stdio``.
"""

from __future__ import annotations

from pathlib import Path

import click

from fmcp import __version__


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="fmcp")
@click.option("--api-key", default=None, help="Backend API key (or API_KEY).")
@click.option("--api-url", default=None, help="Backend root URL (or API_URL).")
@click.option("--base-path", default=None, help="API base path (or API_BASE_PATH).")
@click.option("--api-version", default=None, help="API version segment (or API_VERSION).")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file.",
)
@click.option(
    "--log-level",
    envvar="FMCP_LOG_LEVEL",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for stderr diagnostics.",
)
@click.option(
    "--otlp-endpoint",
    envvar="OTEL_EXPORTER_OTLP_ENDPOINT",
    default=None,
    help="Export traces to this OTLP/gRPC endpoint.",
)
@click.option("--stdio", is_flag=True, hidden=True, help="Accepted for MCP client compatibility.")
@click.pass_context
def main(ctx: click.Context, stdio: bool, **options: object) -> None:
    """Flow Masters MCP server — exposes the Flow Masters API as MCP tools."""
    ctx.ensure_object(dict)
    ctx.obj.update(options)
    if ctx.invoked_subcommand is None:
        from fmcp.cli_commands.serve import serve

        ctx.invoke(serve)


# Register subcommands
from fmcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
