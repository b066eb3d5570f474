"""Snapshot, history and repository term cache files.

Layout under the cache directory::

    xtrefs-data.json                    canonical snapshot
    xtrefs-data.js                      const allXTrefs = {...};
    xtrefs-history/xtrefs-data-<ms>.js  one immutable copy per run
    github-cache/<owner>-<repo>-terms.json

Concurrent runs against the same cache directory are not supported; callers
serialize invocations.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from ..constants import (
    HISTORY_DIR,
    HISTORY_PREFIX,
    REPOSITORY_CACHE_DIR,
    SNAPSHOT_JS,
    SNAPSHOT_JS_VARIABLE,
    SNAPSHOT_JSON,
)
from ..core.errors import PersistenceError
from ..schemas.references import ReferenceSnapshot, RepositoryTerms

logger = logging.getLogger(__name__)


@dataclass
class SavedSnapshot:
    """Paths written by one save."""

    json_path: Path
    js_path: Path
    history_path: Path


def render_js_assignment(payload: str) -> str:
    """Embeddable form of a serialized snapshot for generated HTML."""
    return f"const {SNAPSHOT_JS_VARIABLE} = {payload};"


def _dumps(snapshot: ReferenceSnapshot) -> str:
    return json.dumps(snapshot.to_json_data(), indent=2, ensure_ascii=False)


def _history_order(path: Path) -> tuple[int, int, str]:
    """Sort key (timestamp, collision suffix) parsed from a history filename."""
    stamp, _, suffix = path.stem[len(HISTORY_PREFIX):].partition("-")
    try:
        return (int(stamp), int(suffix or 0), path.name)
    except ValueError:
        return (0, 0, path.name)


class SnapshotStore:
    """Reads and writes the persisted reference dataset."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = cache_dir
        self.json_path = cache_dir / SNAPSHOT_JSON
        self.js_path = cache_dir / SNAPSHOT_JS
        self.history_dir = cache_dir / HISTORY_DIR
        self.repository_cache_dir = cache_dir / REPOSITORY_CACHE_DIR

    def ensure_directories(self) -> None:
        """Create the cache, history and repository cache directories."""
        try:
            for directory in (self.cache_dir, self.history_dir, self.repository_cache_dir):
                directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not create output directory {e.filename}: {e.strerror}") from e

    def load(self) -> ReferenceSnapshot:
        """Load the previous snapshot, or an empty one when there is none.

        Raises:
            PersistenceError: If the snapshot exists but cannot be read
        """
        if not self.json_path.exists():
            return ReferenceSnapshot()

        try:
            with open(self.json_path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read snapshot {self.json_path.name}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("xtrefs"), list):
            logger.warning("Snapshot %s has no xtrefs list; starting empty", self.json_path.name)
            return ReferenceSnapshot()

        try:
            return ReferenceSnapshot.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"Invalid snapshot {self.json_path.name}: {e}") from e

    def _history_path(self) -> Path:
        stamp = int(time.time() * 1000)
        path = self.history_dir / f"{HISTORY_PREFIX}{stamp}.js"
        suffix = 1
        # Never overwrite an earlier run written in the same millisecond
        while path.exists():
            path = self.history_dir / f"{HISTORY_PREFIX}{stamp}-{suffix}.js"
            suffix += 1
        return path

    def save(self, snapshot: ReferenceSnapshot) -> SavedSnapshot:
        """Write the snapshot, its JS form and a new history entry.

        Raises:
            PersistenceError: If any file cannot be written
        """
        self.ensure_directories()
        payload = _dumps(snapshot)
        js_payload = render_js_assignment(payload)
        history_path = self._history_path()

        try:
            self.json_path.write_text(payload, encoding='utf-8')
            self.js_path.write_text(js_payload, encoding='utf-8')
            with open(history_path, 'x', encoding='utf-8') as f:
                f.write(js_payload)
        except OSError as e:
            raise PersistenceError(f"Could not write snapshot: {e}") from e

        logger.info("Wrote %d references to %s", len(snapshot.xtrefs), self.json_path)
        return SavedSnapshot(json_path=self.json_path, js_path=self.js_path, history_path=history_path)

    def history(self) -> list[Path]:
        """History files, oldest first."""
        if not self.history_dir.exists():
            return []
        return sorted(self.history_dir.glob(f"{HISTORY_PREFIX}*.js"), key=_history_order)

    def prune_history(self, keep: int) -> list[Path]:
        """Delete the oldest history files beyond ``keep``; returns the removed paths."""
        files = self.history()
        excess = files[:-keep] if keep > 0 else files
        for path in excess:
            try:
                path.unlink()
            except OSError as e:
                raise PersistenceError(f"Could not remove history file {path.name}: {e}") from e
        if excess:
            logger.info("Pruned %d history snapshots", len(excess))
        return excess

    def repository_cache_path(self, repository: str) -> Path:
        owner, _, repo = repository.partition("/")
        return self.repository_cache_dir / f"{owner}-{repo}-terms.json"

    def write_repository_terms(self, terms: RepositoryTerms) -> Path:
        """Replace the cached term list of one repository."""
        self.ensure_directories()
        path = self.repository_cache_path(terms.repository)
        try:
            path.write_text(
                json.dumps(terms.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False),
                encoding='utf-8'
            )
        except OSError as e:
            raise PersistenceError(f"Could not write repository cache {path.name}: {e}") from e
        logger.info("Saved %d terms to %s", len(terms.terms), path)
        return path

    def read_repository_terms(self, owner: str, repo: str) -> RepositoryTerms | None:
        """Cached term list of a repository, or None when absent or unreadable."""
        path = self.repository_cache_path(f"{owner}/{repo}")
        if not path.exists():
            return None
        try:
            with open(path, encoding='utf-8') as f:
                return RepositoryTerms.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable repository cache %s: %s", path.name, e)
            return None
