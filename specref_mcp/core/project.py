"""Markdown source discovery for terminology directories.

This module finds the term definition files of every local specification
and loads their contents, keyed by the filename used for provenance.
"""

import fnmatch
import logging
from pathlib import Path

from ..constants import MAX_FILES

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md",)


def matches_exclude_pattern(name: str, exclude_patterns: list[str]) -> bool:
    """Check whether a terms-directory file matches any exclude glob.

    Patterns are matched against the bare filename; a leading ``**/`` is
    accepted and ignored since terms directories are scanned flat.
    """
    for pattern in exclude_patterns:
        normalized = pattern.replace('\\', '/')
        if normalized.startswith('**/'):
            normalized = normalized[3:]
        if fnmatch.fnmatch(name, normalized):
            return True
    return False


def should_process_file(name: str, exclude_patterns: list[str] | None = None) -> bool:
    """Return True for visible markdown files that are not excluded."""
    if name.startswith('.'):
        return False
    if not name.lower().endswith(MARKDOWN_SUFFIXES):
        return False
    return not matches_exclude_pattern(name, exclude_patterns or [])


def find_term_files(
    terms_directories: list[Path],
    exclude_patterns: list[str] | None = None,
    max_files: int | None = None
) -> list[Path]:
    """Find markdown files directly inside each terms directory.

    Args:
        terms_directories: Directories holding term definition files
        exclude_patterns: Filename globs to skip
        max_files: Maximum number of files. Defaults to MAX_FILES if None.

    Returns:
        Files in directory order, each directory sorted by name

    Raises:
        ValueError: If file count exceeds max_files
    """
    limit = max_files if max_files is not None else MAX_FILES
    files: list[Path] = []

    for directory in terms_directories:
        if not directory.is_dir():
            logger.warning("Terms directory not found: %s", directory)
            continue

        for entry in sorted(directory.iterdir()):
            if not entry.is_file() or not should_process_file(entry.name, exclude_patterns):
                continue
            if len(files) >= limit:
                raise ValueError(
                    f"File count limit exceeded (maximum: {limit:,} files)\n"
                    f"→ Consider excluding files or splitting the terms directory."
                )
            files.append(entry)

    return files


def read_term_files(files: list[Path]) -> dict[str, str]:
    """Load file contents keyed by filename.

    Unreadable files are logged and skipped. When two terms directories hold
    the same filename the later one wins, matching how provenance is keyed.
    """
    contents: dict[str, str] = {}
    for path in files:
        try:
            text = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable file %s: %s", path, e)
            continue
        if path.name in contents:
            logger.warning("Duplicate filename %s; later file replaces earlier one", path.name)
        contents[path.name] = text
    return contents
