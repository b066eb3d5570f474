"""Configuration file loading.

This module loads the project's specs.json (shared with the rest of the
specification toolchain) and the optional .specref.yml tool settings.
"""

import json
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..constants import SETTINGS_FILE, SPECS_CONFIG_FILE
from ..schemas.config import (
    DeprecatedSpecsConfig,
    ExternalSpecRepository,
    SpecsConfig,
    validate_specs_config,
)
from ..schemas.settings import SpecrefSettings, validate_settings
from .errors import ConfigNotFoundError, ConfigValidationError, DeprecatedConfigError

logger = logging.getLogger(__name__)

SPECS_JSON_BOILERPLATE = (
    "https://github.com/trustoverip/spec-up-t/blob/master/src/install-from-boilerplate/boilerplate/specs.json"
)


def load_specs_config(project_path: Path) -> SpecsConfig:
    """Load and validate specs.json.

    Raises:
        ConfigNotFoundError: If specs.json does not exist
        ConfigValidationError: If it is not valid JSON or has an invalid shape
    """
    config_path = project_path / SPECS_CONFIG_FILE
    if not config_path.exists():
        raise ConfigNotFoundError(f"No {SPECS_CONFIG_FILE} found in project root")

    try:
        with open(config_path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"{SPECS_CONFIG_FILE} is not valid JSON: {e}") from e
    except OSError as e:
        raise ConfigValidationError(f"Could not read {SPECS_CONFIG_FILE}: {e}") from e

    return validate_specs_config(data)


def load_settings(project_path: Path) -> SpecrefSettings:
    """Load .specref.yml, falling back to defaults when absent or unusable."""
    settings_path = project_path / SETTINGS_FILE
    if not settings_path.exists():
        return SpecrefSettings()

    try:
        with open(settings_path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return validate_settings(data if isinstance(data, dict) else None)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.warning("Ignoring invalid %s, using defaults: %s", SETTINGS_FILE, e)
        return SpecrefSettings()


def require_repositories(config: SpecsConfig) -> list[ExternalSpecRepository]:
    """Return every configured external repository.

    Raises:
        DeprecatedConfigError: If the configuration uses the retired layout or
            declares no repository list at all
    """
    if isinstance(config, DeprecatedSpecsConfig):
        raise DeprecatedConfigError(
            f"Your {SPECS_CONFIG_FILE} file uses an outdated structure "
            f"(external_specs_repos). Update it using: {SPECS_JSON_BOILERPLATE}"
        )

    if all(spec.external_specs is None for spec in config.specs):
        raise DeprecatedConfigError(
            f"Your {SPECS_CONFIG_FILE} file has no external_specs list. "
            f"Add one using: {SPECS_JSON_BOILERPLATE}"
        )

    repositories: list[ExternalSpecRepository] = []
    for spec in config.specs:
        repositories.extend(spec.external_specs or [])
    return repositories


def terms_directories(config: SpecsConfig, project_path: Path) -> list[Path]:
    """Resolve every spec's terms directory against the project root."""
    return [
        (project_path / spec.spec_directory / spec.spec_terms_directory)
        for spec in config.specs
    ]
