"""Error types and error formatting utilities.

Per-reference and per-repository problems are recovered where they happen
and recorded as data. Only configuration and persistence errors are meant
to end a collection run.
"""

import logging
import re

logger = logging.getLogger(__name__)


class SpecrefError(Exception):
    """Base class for all specref errors."""


class MalformedReferenceError(SpecrefError, ValueError):
    """A reference marker is missing its spec or term."""

    def __init__(self, marker: str, reason: str):
        self.marker = marker
        self.reason = reason
        super().__init__(f"Malformed reference {marker!r}: {reason}")


class ConfigError(SpecrefError):
    """Base class for project configuration problems."""


class ConfigNotFoundError(ConfigError):
    """The project has no specs.json."""


class ConfigValidationError(ConfigError):
    """specs.json could not be parsed or has an invalid shape."""


class DeprecatedConfigError(ConfigError):
    """specs.json uses the retired external_specs_repos layout."""


class RepositoryFetchError(SpecrefError):
    """Term data for a repository could not be retrieved."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class RateLimitExceededError(RepositoryFetchError):
    """The GitHub API refused the request because the rate limit is spent."""

    def __init__(self, url: str, reset_at: str):
        self.reset_at = reset_at
        super().__init__(
            f"GitHub API rate limit exceeded for {url}. Try again after {reset_at}",
            url=url,
        )


class MalformedIndexError(RepositoryFetchError):
    """A published index has no terms-and-definitions list."""


class PersistenceError(SpecrefError):
    """Snapshot or cache files could not be read or written."""


def handle_error(e: Exception, context: str = "", log: bool = True) -> str:
    """Consistent error formatting across all tools.

    Args:
        e: Exception that occurred
        context: Context where error occurred (e.g., tool name, operation)
        log: Whether to log the error (default: True)

    Returns:
        Formatted error message string with absolute paths removed
    """
    error_msg = f"Error: {type(e).__name__}"
    if context:
        error_msg += f" in {context}"

    error_str = str(e)
    # Windows paths (C:\..., R:\...)
    error_str = re.sub(r'[A-Z]:\\[^\s]+', '[path]', error_str)
    # Unix paths (/home/..., /usr/...)
    error_str = re.sub(r'(?<![:/\w])/[\w.-]+/[\w./-]+', '[path]', error_str)

    error_msg += f": {error_str}"

    if log:
        logger.error(error_msg)

    return error_msg
