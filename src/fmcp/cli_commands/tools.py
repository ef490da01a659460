"""``fmcp tools`` — inspect the built-in tool catalogue without a backend."""

from __future__ import annotations

import click

from fmcp.cli_commands._output import console, print_tools_table
from fmcp.tools.discovery import ToolRegistry


def _registry() -> ToolRegistry:
    return ToolRegistry()


@click.group()
def tools() -> None:
    """Browse the tools this server exposes."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the MCP tools/list payload.")
@click.option("--category", default=None, help="Only tools in this category.")
def list_tools(as_json: bool, category: str | None) -> None:
    """List all tools."""
    registry = _registry()
    if as_json:
        console.print_json(data=registry.get_mcp_protocol_tools())
        return

    result = registry.get_tools_by_category(category) if category else registry.get_all_tools()
    if not result.tools:
        console.print("[yellow]No tools found.[/yellow]")
        return
    print_tools_table(result.tools, title=f"Tools ({len(result.tools)})")


@tools.command("search")
@click.argument("query")
def search_tools(query: str) -> None:
    """Search tools by name, description, purpose or use case."""
    result = _registry().search_tools(query)
    if not result.tools:
        console.print(f"[yellow]No tools match '{query}'.[/yellow]")
        return
    print_tools_table(result.tools, title=f"Matches for '{query}'")


@tools.command("show")
@click.argument("name")
def show_tool(name: str) -> None:
    """Show the full definition of tool NAME."""
    result = _registry().get_tool_by_name(name)
    if not result.success or result.tool is None:
        console.print(f"[red]Error:[/red] {result.error}")
        raise SystemExit(1)
    console.print_json(data=result.tool.model_dump(by_alias=True, mode="json"))


@tools.command("guide")
def guide() -> None:
    """Print the markdown usage guide for LLM agents."""
    click.echo(_registry().generate_llm_guidance())
