#!/usr/bin/env python3
"""
Specification Reference MCP Server

An MCP server that keeps a specification's external term references current:
- Scans terms directories for [[xref:...]] / [[tref:...]] markers
- Tracks which files use which external terms
- Fetches definitions from the referenced specifications' repositories
- Writes the snapshot consumed by the render stage
"""

from typing import Any

from mcp.server.fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from .core.logging import configure_logging
from .models import CollectReferencesInput, ReferenceStatusInput
from .tools.collect import collect_external_references
from .tools.status import reference_status

# Initialize the MCP server
mcp = FastMCP("specref_mcp")

# ============================================================================
# Register Tools
# ============================================================================

@mcp.tool(
    name="specref_collect_references",
    annotations=ToolAnnotations(
        title="Collect External References",
        readOnlyHint=False,  # Writes .cache/xtrefs-data.*
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True  # Fetches external repositories
    )
)
async def tool_specref_collect_references(
    project_path: str,
    github_token: str | None = None,
    ctx: Context | None = None
) -> dict[str, Any]:
    """Collect and resolve all external term references of a specification.

    Scans the terms directories declared in specs.json, drops references that
    no file uses anymore, fetches every referenced repository once and writes
    xtrefs-data.json / xtrefs-data.js plus a timestamped history copy.

    Run this before rendering the specification.
    """
    params = CollectReferencesInput(
        project_path=project_path,
        github_token=github_token
    )
    return await collect_external_references(params, ctx)


@mcp.tool(
    name="specref_reference_status",
    annotations=ToolAnnotations(
        title="External Reference Status (Read-Only)",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False
    )
)
async def tool_specref_reference_status(
    project_path: str,
    include_resolved: bool = False
) -> dict[str, Any]:
    """Report resolved and unresolved references from the last collection run."""
    params = ReferenceStatusInput(
        project_path=project_path,
        include_resolved=include_resolved
    )
    return await reference_status(params)


def main():
    """Entry point for the MCP server."""
    configure_logging()
    mcp.run()

if __name__ == "__main__":
    main()
