"""Pydantic schema for the optional .specref.yml settings file.

Users create and edit this file; every field has a default so a project
without one behaves exactly like a project with an empty one.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    DEFAULT_BRANCH,
    DEFAULT_CACHE_DIR,
    GROUP_TIMEOUT,
    MAX_CONCURRENCY,
    REQUEST_TIMEOUT,
)


class SpecrefSettings(BaseModel):
    """Schema for .specref.yml."""

    model_config = ConfigDict(extra="allow")

    cache_dir: str = Field(
        default=DEFAULT_CACHE_DIR,
        description="Directory (relative to the project) for snapshots and caches"
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Filename globs of markdown files to skip"
    )
    request_timeout: float = Field(
        default=REQUEST_TIMEOUT,
        gt=0,
        description="Timeout in seconds for each HTTP request"
    )
    group_timeout: float = Field(
        default=GROUP_TIMEOUT,
        gt=0,
        description="Timeout in seconds for fetching one repository"
    )
    max_concurrency: int = Field(
        default=MAX_CONCURRENCY,
        ge=1,
        description="Repositories fetched in parallel"
    )
    history_limit: int | None = Field(
        default=None,
        ge=1,
        description="Keep at most this many history snapshots (all when unset)"
    )
    fallback_branch: str = Field(
        default=DEFAULT_BRANCH,
        description="Branch recorded when the current branch cannot be determined"
    )

    @field_validator("exclude", mode="before")
    @classmethod
    def normalize_exclude(cls, v: Any) -> list[str]:
        """Normalize None to empty list."""
        if v is None:
            return []
        return v


def validate_settings(data: dict[str, Any] | None) -> SpecrefSettings:
    """Validate .specref.yml data.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return SpecrefSettings.model_validate(data or {})
