"""External reference collection tool.

One run scans the local terms directories, reconciles the result with the
previous snapshot, enriches every reference with repository metadata,
resolves the terms against the external repositories and persists the
outcome for the render stage.
"""

import logging
import os
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

import httpx

from ..constants import GITHUB_API_URL, GITHUB_RAW_URL, GITHUB_TOKEN_ENV, RunStatus
from ..core.config import load_settings, load_specs_config, terms_directories
from ..core.errors import DeprecatedConfigError, handle_error
from ..core.git import BranchProvider, GitBranchProvider
from ..core.project import find_term_files, read_term_files
from ..models import CollectReferencesInput
from ..references import (
    ExternalTermResolver,
    GitHubClient,
    ReferenceCollection,
    SnapshotStore,
    create_http_client,
    enrich_references,
)
from ..schemas.config import CurrentSpecsConfig, SpecsConfig

logger = logging.getLogger(__name__)

TOKEN_HELP_URL = "https://blockchainbird.github.io/spec-up-t-website/docs/getting-started/github-token"


def _has_no_external_specs(config: SpecsConfig) -> bool:
    """True when specs.json declares repository lists and all of them are empty."""
    return (
        isinstance(config, CurrentSpecsConfig)
        and any(spec.external_specs is not None for spec in config.specs)
        and all(not spec.external_specs for spec in config.specs)
    )


async def collect_external_references(
    params: CollectReferencesInput,
    ctx=None,
    *,
    client: httpx.AsyncClient | None = None,
    branch_provider: BranchProvider | None = None,
    api_url: str = GITHUB_API_URL,
    raw_url: str = GITHUB_RAW_URL,
) -> dict[str, Any]:
    """Collect, resolve and persist every external reference of a project.

    Args:
        params: CollectReferencesInput with project_path and optional github_token
        ctx: Optional MCP context for progress reporting
        client: HTTP client to use instead of a fresh one (not closed here)
        branch_provider: Source of the current branch (defaults to git)
        api_url: GitHub API base URL
        raw_url: GitHub raw content base URL

    Returns:
        dict with status, counts and output paths

    Error Handling:
        - Missing or invalid specs.json ends the run with status "error"
        - Snapshot read/write failures end the run with status "error"
        - Repository and term failures are recorded as not-found references
    """
    try:
        project_path = Path(params.project_path)
        config = load_specs_config(project_path)
        settings = load_settings(project_path)

        if _has_no_external_specs(config):
            logger.info(
                "No external references were found in specs.json. "
                "Add external_specs entries to reference terms from other specifications."
            )
            return {
                "status": RunStatus.SKIPPED.value,
                "message": "No external specifications configured in specs.json"
            }

        token = params.github_token or os.environ.get(GITHUB_TOKEN_ENV) or None
        if not token:
            logger.warning(
                "No GitHub Personal Access Token found. Running without authentication "
                "(may hit rate limits). See %s", TOKEN_HELP_URL
            )

        store = SnapshotStore(project_path / settings.cache_dir)
        store.ensure_directories()
        collection = ReferenceCollection.from_snapshot(store.load())
        previous_count = len(collection)

        if ctx:
            await ctx.report_progress(progress=10, total=100)
            await ctx.info("Scanning terms directories...")

        files = find_term_files(terms_directories(config, project_path), settings.exclude)
        file_contents = read_term_files(files)

        removed = collection.reconcile(file_contents)
        collection.prune_sources(file_contents)
        for filename, text in file_contents.items():
            collection.ingest(text, filename)

        logger.info(
            "Found %d external references in %d files (%d from previous run, %d removed)",
            len(collection), len(file_contents), previous_count, len(removed)
        )

        if ctx:
            await ctx.report_progress(progress=30, total=100)
            await ctx.info("Enriching references with repository metadata...")

        enrichment_skipped = False
        try:
            enrich_references(
                collection.records,
                config,
                branch_provider or GitBranchProvider(project_path, settings.fallback_branch),
            )
        except DeprecatedConfigError as e:
            logger.error("Skipping repository enrichment: %s", e)
            # Linkage carried over from the previous snapshot is no longer backed by config
            collection.clear_linkage()
            enrichment_skipped = True

        if ctx:
            await ctx.report_progress(progress=40, total=100)
            await ctx.info("Fetching terms from external repositories...")

        async with AsyncExitStack() as stack:
            http = client
            if http is None:
                http = await stack.enter_async_context(create_http_client(settings.request_timeout))
            github = GitHubClient(http, token=token, api_url=api_url, raw_url=raw_url)
            resolver = ExternalTermResolver(
                github,
                max_concurrency=settings.max_concurrency,
                group_timeout=settings.group_timeout,
            )
            result = await resolver.resolve(collection.records)

        collection.replace_records(result.references)

        if ctx:
            await ctx.report_progress(progress=90, total=100)
            await ctx.info("Writing snapshot...")

        cache_files = [str(store.write_repository_terms(terms)) for terms in result.repositories]
        saved = store.save(collection.to_snapshot())
        if settings.history_limit:
            store.prune_history(settings.history_limit)

        if ctx:
            await ctx.report_progress(progress=100, total=100)

        return {
            "status": RunStatus.SUCCESS.value,
            "references": len(collection),
            "resolved": result.resolved_count,
            "not_found": result.not_found_count,
            "removed_stale": len(removed),
            "removed_incomplete": len(result.incomplete),
            "repositories": len(result.repositories) + len(result.failed_repositories),
            "failed_repositories": result.failed_repositories,
            "enrichment_skipped": enrichment_skipped,
            "files_scanned": len(file_contents),
            "outputs": {
                "json": str(saved.json_path),
                "js": str(saved.js_path),
                "history": str(saved.history_path),
                "repository_cache": cache_files,
            },
        }

    except Exception as e:
        return {
            "status": RunStatus.ERROR.value,
            "message": handle_error(e, "specref_collect_references")
        }
