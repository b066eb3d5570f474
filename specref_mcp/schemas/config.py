"""Pydantic schema for the specs.json project configuration.

specs.json is shared with the rest of the specification toolchain; only the
fields external reference collection relies on are declared, everything else
is allowed through untouched.

Two layouts exist in the wild. The current one lists repositories under
``external_specs``; the retired one used ``external_specs_repos``. The layout
is decided once, at validation time, and represented as a tagged variant so
later stages never probe fields to guess which one they hold.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.errors import ConfigValidationError

DEPRECATED_REPOSITORIES_KEY = "external_specs_repos"


class ExternalSpecRepository(BaseModel):
    """One external specification a local spec may reference."""

    model_config = ConfigDict(extra="allow")

    external_spec: str = Field(description="Key used in [[xref:...]] / [[tref:...]] markers")
    url: str | None = Field(default=None, description="Repository URL, e.g. https://github.com/owner/repo")
    terms_dir: str | None = Field(default=None, description="Terms directory inside the repository")
    gh_page: str | None = Field(default=None, description="Base URL of the published specification")
    avatar_url: str | None = Field(default=None, description="Optional avatar shown next to external terms")

    @field_validator("url", "gh_page", "terms_dir", "avatar_url", mode="before")
    @classmethod
    def normalize_blank(cls, v: Any) -> Any:
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SpecEntry(BaseModel):
    """A local specification declared in specs.json."""

    model_config = ConfigDict(extra="allow")

    spec_directory: str = Field(default="./spec", description="Root of the specification sources")
    spec_terms_directory: str = Field(description="Terms directory, relative to spec_directory")
    output_path: str | None = Field(default=None, description="Where the rendered site is written")
    external_specs: list[ExternalSpecRepository] | None = Field(
        default=None,
        description="External specifications referenced from this spec"
    )


class CurrentSpecsConfig(BaseModel):
    """specs.json in the current layout."""

    model_config = ConfigDict(extra="allow")

    schema_kind: Literal["current"] = "current"
    specs: list[SpecEntry] = Field(min_length=1)


class DeprecatedSpecsConfig(BaseModel):
    """specs.json still using ``external_specs_repos``.

    Local terms directories are still usable; repository metadata is not.
    """

    model_config = ConfigDict(extra="allow")

    schema_kind: Literal["deprecated"] = "deprecated"
    specs: list[SpecEntry] = Field(min_length=1)


SpecsConfig = CurrentSpecsConfig | DeprecatedSpecsConfig


def validate_specs_config(data: Any) -> SpecsConfig:
    """Validate specs.json data and resolve its layout.

    Args:
        data: Parsed JSON

    Returns:
        CurrentSpecsConfig or DeprecatedSpecsConfig

    Raises:
        ConfigValidationError: If the data is not a usable specs.json
    """
    if not isinstance(data, dict):
        raise ConfigValidationError("specs.json must contain a JSON object")

    raw_specs = data.get("specs")
    deprecated = isinstance(raw_specs, list) and any(
        isinstance(spec, dict) and DEPRECATED_REPOSITORIES_KEY in spec
        for spec in raw_specs
    )

    model = DeprecatedSpecsConfig if deprecated else CurrentSpecsConfig
    payload = {k: v for k, v in data.items() if k != "schema_kind"}
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid specs.json: {e}") from e
