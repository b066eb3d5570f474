"""Pydantic schemas for configuration files and persisted data."""

from .config import (
    CurrentSpecsConfig,
    DeprecatedSpecsConfig,
    ExternalSpecRepository,
    SpecEntry,
    SpecsConfig,
    validate_specs_config,
)
from .references import (
    ExternalReference,
    ReferenceSnapshot,
    RepositoryTerms,
    SourceFile,
    TermDefinition,
)
from .settings import SpecrefSettings, validate_settings

__all__ = [
    "CurrentSpecsConfig",
    "DeprecatedSpecsConfig",
    "ExternalReference",
    "ExternalSpecRepository",
    "ReferenceSnapshot",
    "RepositoryTerms",
    "SourceFile",
    "SpecEntry",
    "SpecrefSettings",
    "SpecsConfig",
    "TermDefinition",
    "validate_settings",
    "validate_specs_config",
]
