"""Core utilities for specref MCP server.

This package contains focused modules for different utility categories:
- config: specs.json and .specref.yml loading
- errors: Error types and error formatting
- git: Git command execution and branch lookup
- logging: stderr logging setup
- project: Markdown source discovery

``config`` depends on the schemas package and is imported from its module
directly rather than re-exported here.
"""

# Error handling
from .errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    DeprecatedConfigError,
    MalformedIndexError,
    MalformedReferenceError,
    PersistenceError,
    RateLimitExceededError,
    RepositoryFetchError,
    SpecrefError,
    handle_error,
)

# Git operations
from .git import BranchProvider, GitBranchProvider, StaticBranchProvider, run_git_command

# Logging
from .logging import configure_logging

# Project files
from .project import find_term_files, read_term_files, should_process_file

__all__ = [
    "BranchProvider",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "DeprecatedConfigError",
    "GitBranchProvider",
    "MalformedIndexError",
    "MalformedReferenceError",
    "PersistenceError",
    "RateLimitExceededError",
    "RepositoryFetchError",
    "SpecrefError",
    "StaticBranchProvider",
    "configure_logging",
    "find_term_files",
    "handle_error",
    "read_term_files",
    "run_git_command",
    "should_process_file",
]
