"""Read-only report on the persisted reference snapshot."""

from pathlib import Path
from typing import Any

from ..constants import RunStatus
from ..core.config import load_settings
from ..core.errors import handle_error
from ..models import ReferenceStatusInput
from ..references import SnapshotStore


def _describe(reference) -> dict[str, Any]:
    return {
        "external_spec": reference.external_spec,
        "term": reference.term,
        "files": [source.file for source in reference.source_files],
        "commit": reference.commit_hash,
    }


async def reference_status(params: ReferenceStatusInput, ctx=None) -> dict[str, Any]:
    """Summarize the last collection run without touching the network.

    Args:
        params: ReferenceStatusInput with project_path
        ctx: Optional MCP context

    Returns:
        dict with reference counts, unresolved references and per-repository cache info
    """
    try:
        project_path = Path(params.project_path)
        settings = load_settings(project_path)
        store = SnapshotStore(project_path / settings.cache_dir)

        if not store.json_path.exists():
            return {
                "status": RunStatus.SKIPPED.value,
                "message": "No snapshot yet. Run specref_collect_references first."
            }

        snapshot = store.load()
        resolved = [reference for reference in snapshot.xtrefs if reference.is_resolved]
        unresolved = [reference for reference in snapshot.xtrefs if not reference.is_resolved]

        repositories = []
        seen: set[tuple[str, str]] = set()
        for reference in snapshot.xtrefs:
            if not reference.owner or not reference.repo or (reference.owner, reference.repo) in seen:
                continue
            seen.add((reference.owner, reference.repo))
            cached = store.read_repository_terms(reference.owner, reference.repo)
            repositories.append({
                "repository": f"{reference.owner}/{reference.repo}",
                "cached_terms": len(cached.terms) if cached else None,
                "sha": cached.sha if cached else None,
                "fetched_at": cached.timestamp if cached else None,
            })

        response: dict[str, Any] = {
            "status": RunStatus.SUCCESS.value,
            "references": len(snapshot.xtrefs),
            "resolved": len(resolved),
            "not_found": len(unresolved),
            "unresolved": [_describe(reference) for reference in unresolved],
            "repositories": repositories,
            "history_snapshots": len(store.history()),
        }
        if params.include_resolved:
            response["resolved_references"] = [_describe(reference) for reference in resolved]
        return response

    except Exception as e:
        return {
            "status": RunStatus.ERROR.value,
            "message": handle_error(e, "specref_reference_status")
        }
