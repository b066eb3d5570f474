"""Tool implementations for specref MCP server."""

from .collect import collect_external_references
from .status import reference_status

__all__ = [
    "collect_external_references",
    "reference_status",
]
