"""Pydantic models for specref MCP server tool inputs."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _validate_project_path(v: str) -> str:
    """Shared validator for project_path fields.

    Args:
        v: Project path string

    Returns:
        Validated absolute path string

    Raises:
        ValueError: If path contains traversal sequences, doesn't exist, or isn't a directory
    """
    if not v:
        raise ValueError("Project path cannot be empty")

    if '..' in Path(v).parts:
        raise ValueError(
            "Invalid project path: contains path traversal sequence '..'. "
            "Use absolute paths only to prevent directory traversal attacks."
        )

    path = Path(v)
    if not path.is_absolute():
        raise ValueError(
            "Invalid project path: must be absolute path (e.g., '/home/user/spec'). "
            f"Got relative path: '{v}'"
        )

    if not path.exists():
        raise ValueError(f"Project path does not exist: {v}")

    if not path.is_dir():
        raise ValueError(f"Project path is not a directory: {v}")

    return str(path.resolve())


class CollectReferencesInput(BaseModel):
    """Input for collecting and resolving external references."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    project_path: str = Field(
        ...,
        description="Absolute path to the specification project root (the directory holding specs.json)",
        min_length=1
    )
    github_token: str | None = Field(
        default=None,
        description="GitHub personal access token. Falls back to $GITHUB_API_TOKEN; unauthenticated when neither is set",
        repr=False
    )

    @field_validator('project_path')
    @classmethod
    def validate_project_path(cls, v: str) -> str:
        """Validate project path using shared validator."""
        return _validate_project_path(v)

    @field_validator('github_token')
    @classmethod
    def normalize_token(cls, v: str | None) -> str | None:
        """Treat an empty token as no token."""
        return v or None


class ReferenceStatusInput(BaseModel):
    """Input for reporting on the persisted reference snapshot."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    project_path: str = Field(
        ...,
        description="Absolute path to the specification project root",
        min_length=1
    )
    include_resolved: bool = Field(
        default=False,
        description="List resolved references as well as unresolved ones"
    )

    @field_validator('project_path')
    @classmethod
    def validate_project_path(cls, v: str) -> str:
        """Validate project path using shared validator."""
        return _validate_project_path(v)
