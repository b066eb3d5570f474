"""Constants and enums for specref MCP server."""

from enum import Enum

# Marker keywords (case is fixed)
WEAK_REFERENCE_KEYWORD = "xref"
TRANSCLUDING_REFERENCE_KEYWORD = "tref"

# Resolution sentinels
NOT_FOUND_COMMIT = "not found"
NOT_FOUND_CONTENT = "This term was not found in the external repository."

# Configuration files
SPECS_CONFIG_FILE = "specs.json"
SETTINGS_FILE = ".specref.yml"

# Output layout (relative to the cache directory)
DEFAULT_CACHE_DIR = ".cache"
SNAPSHOT_JSON = "xtrefs-data.json"
SNAPSHOT_JS = "xtrefs-data.js"
SNAPSHOT_JS_VARIABLE = "allXTrefs"
HISTORY_DIR = "xtrefs-history"
HISTORY_PREFIX = "xtrefs-data-"
REPOSITORY_CACHE_DIR = "github-cache"

# Network defaults
GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"
GITHUB_TOKEN_ENV = "GITHUB_API_TOKEN"
DEFAULT_BRANCH = "main"
REQUEST_TIMEOUT = 10  # Per-request timeout in seconds
GROUP_TIMEOUT = 60  # Per-repository timeout in seconds
MAX_CONCURRENCY = 4  # Repositories fetched in parallel
USER_AGENT = "specref-mcp"

# Published index markup
TERMS_LIST_SELECTOR = "dl.terms-and-definitions-list"
TERM_SPAN_SELECTOR = 'span[id^="term:"]'
ORIGINAL_TERM_SELECTOR = "span.term-local-original-term"
EXTERNAL_TERM_CLASS = "term-external"
REPO_INFO_META_PROPERTY = "spec-up-t:github-repo-info"

# Resource limits
MAX_FILES = 10_000  # Maximum markdown files scanned per run

# Environment
LOG_LEVEL_ENV = "SPECREF_LOG_LEVEL"


class ReferenceType(str, Enum):
    """Kinds of cross-specification reference markers."""
    WEAK = "weak-reference"
    TRANSCLUDING = "transcluding-reference"
    UNKNOWN = "unknown"

    @classmethod
    def from_keyword(cls, keyword: str | None) -> "ReferenceType":
        """Map a marker keyword (``xref``/``tref``) to its reference type."""
        if keyword == WEAK_REFERENCE_KEYWORD:
            return cls.WEAK
        if keyword == TRANSCLUDING_REFERENCE_KEYWORD:
            return cls.TRANSCLUDING
        return cls.UNKNOWN


class RunStatus(str, Enum):
    """Outcome of a collection run."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"
