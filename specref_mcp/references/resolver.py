"""Resolve referenced terms against the repositories that publish them.

References are grouped per repository and every repository is fetched
exactly once. Groups run concurrently up to ``max_concurrency``; inside a
group everything is sequential. A group that cannot be fetched marks all
of its references as not found and never affects other groups.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from ..constants import DEFAULT_BRANCH, EXTERNAL_TERM_CLASS, GROUP_TIMEOUT, MAX_CONCURRENCY
from ..core.errors import RateLimitExceededError, RepositoryFetchError
from ..schemas.references import ExternalReference, RepositoryTerms
from .github import GitHubClient
from .index_parser import parse_index

logger = logging.getLogger(__name__)


@dataclass
class RepositoryGroup:
    """References that point at the same (owner, repo)."""

    owner: str
    repo: str
    references: list[ExternalReference] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def repo_url(self) -> str:
        for reference in self.references:
            if reference.repo_url:
                return reference.repo_url
        return f"https://github.com/{self.key}"

    @property
    def gh_page_url(self) -> str | None:
        for reference in self.references:
            if reference.gh_page_url:
                return reference.gh_page_url
        return None


@dataclass
class ResolutionResult:
    """Outcome of resolving one collection."""

    references: list[ExternalReference] = field(default_factory=list)
    repositories: list[RepositoryTerms] = field(default_factory=list)
    incomplete: list[ExternalReference] = field(default_factory=list)
    failed_repositories: list[str] = field(default_factory=list)

    @property
    def resolved_count(self) -> int:
        return sum(1 for reference in self.references if reference.is_resolved)

    @property
    def not_found_count(self) -> int:
        return len(self.references) - self.resolved_count


def split_incomplete(
    references: list[ExternalReference]
) -> tuple[list[ExternalReference], list[ExternalReference]]:
    """Separate references that can be resolved from those missing linkage."""
    complete, incomplete = [], []
    for reference in references:
        if reference.has_complete_linkage:
            complete.append(reference)
        else:
            incomplete.append(reference)
            logger.error(
                "Removing incomplete reference: %s, %s (in %s)",
                reference.external_spec, reference.term, reference.source_file_names
            )
    return complete, incomplete


def group_by_repository(references: list[ExternalReference]) -> list[RepositoryGroup]:
    """Group references by (owner, repo) in first-seen order."""
    groups: dict[tuple[str, str], RepositoryGroup] = {}
    for reference in references:
        key = (reference.owner, reference.repo)
        if key not in groups:
            groups[key] = RepositoryGroup(owner=reference.owner, repo=reference.repo)  # type: ignore[arg-type]
        groups[key].references.append(reference)
    return list(groups.values())


def _normalize_output_path(output_path: str) -> str:
    normalized = output_path.strip()
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.strip("/")


def _index_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/index.html"


class ExternalTermResolver:
    """Fetches published terms per repository and matches references against them."""

    def __init__(
        self,
        github: GitHubClient,
        max_concurrency: int = MAX_CONCURRENCY,
        group_timeout: float = GROUP_TIMEOUT,
    ):
        self.github = github
        self.max_concurrency = max_concurrency
        self.group_timeout = group_timeout

    async def resolve(self, references: list[ExternalReference]) -> ResolutionResult:
        """Resolve every reference with complete repository linkage.

        Incomplete references are dropped from the returned list.
        """
        complete, incomplete = split_incomplete(references)
        groups = group_by_repository(complete)
        logger.info("Grouped %d terms into %d repositories", len(complete), len(groups))

        result = ResolutionResult(references=complete, incomplete=incomplete)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(group: RepositoryGroup) -> RepositoryTerms | None:
            async with semaphore:
                return await self.resolve_group(group)

        outcomes = await asyncio.gather(*(run(group) for group in groups))

        for group, terms in zip(groups, outcomes):
            if terms is None:
                result.failed_repositories.append(group.key)
            else:
                result.repositories.append(terms)
        return result

    async def resolve_group(self, group: RepositoryGroup) -> RepositoryTerms | None:
        """Fetch one repository and match its references; None when the fetch failed."""
        logger.info(
            "Processing repository: %s (%d terms) - %s",
            group.key, len(group.references), group.repo_url
        )

        terms: RepositoryTerms | None = None
        try:
            terms = await asyncio.wait_for(self.fetch_repository_terms(group), timeout=self.group_timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out after %ss fetching terms from %s (%s)", self.group_timeout, group.key, group.repo_url)
        except RateLimitExceededError as e:
            logger.error(
                "GitHub API rate limit exceeded while fetching %s (%s). Try again after %s",
                group.key, e.url, e.reset_at
            )
        except RepositoryFetchError as e:
            logger.error("Could not fetch terms from repository %s (%s): %s", group.key, e.url or group.repo_url, e)

        if terms is None:
            for reference in group.references:
                reference.mark_not_found()
                logger.error(
                    "Origin: %s - term %s in %s not resolved: repository %s unavailable",
                    reference.source_file_names, reference.term, reference.external_spec, group.repo_url
                )
            return None

        self.match_terms(group, terms)
        logger.info("Finished processing repository: %s (%s)", group.key, group.repo_url)
        return terms

    async def fetch_repository_terms(self, group: RepositoryGroup) -> RepositoryTerms | None:
        """Retrieve every term a repository publishes.

        Prefers the published site; falls back to the index.html committed at
        the output_path declared in the repository's own specs.json.

        Returns:
            RepositoryTerms, or None when a required artifact is missing (404)

        Raises:
            RepositoryFetchError: On transport errors, bad answers or a malformed index
        """
        owner, repo = group.owner, group.repo

        if group.gh_page_url:
            index_url = _index_url(group.gh_page_url)
            logger.info("Fetching index.html from published site: %s", index_url)
            html = await self.github.get_text(index_url)
            if html is None:
                logger.error("Could not find index.html at %s", index_url)
                return None
            index = parse_index(html, source=index_url)
            sha = await self.github.fetch_branch_sha(owner, repo, index.branch or DEFAULT_BRANCH)
        else:
            logger.warning("No published site configured for %s, falling back to repository contents", group.key)
            specs = await self.github.fetch_specs_json(owner, repo)
            if specs is None:
                logger.error("Could not find specs.json in repository %s", group.key)
                return None

            output_path = None
            entries = specs.get("specs")
            if isinstance(entries, list) and entries and isinstance(entries[0], dict):
                output_path = entries[0].get("output_path")
            if not isinstance(output_path, str) or not output_path.strip():
                raise RepositoryFetchError(f"No output_path found in specs.json for repository {group.key}")

            index_path = f"{_normalize_output_path(output_path)}/index.html".lstrip("/")
            index_url = self.github.raw_file_url(owner, repo, DEFAULT_BRANCH, index_path)
            logger.info("Fetching index.html from raw repository: %s", index_url)
            html = await self.github.get_text(index_url)
            if html is None:
                logger.error("Could not find index.html at %s", index_url)
                return None
            index = parse_index(html, source=index_url)
            sha = await self.github.fetch_file_commit_sha(owner, repo, index_path)
            if not sha:
                logger.warning("Could not get commit hash for %s, continuing without it", index_path)

        avatar_url = await self.github.fetch_avatar_url(owner, repo)
        logger.info("Found %d terms in %s", len(index.terms), index_url)

        return RepositoryTerms(
            timestamp=int(time.time() * 1000),
            repository=group.key,
            terms=index.terms,
            sha=sha,
            avatar_url=avatar_url,
        )

    def match_terms(self, group: RepositoryGroup, terms: RepositoryTerms) -> None:
        """Match each reference case-insensitively against the published terms."""
        lookup = terms.term_lookup()

        for reference in group.references:
            found = lookup.get(reference.term.lower())
            if found is None:
                reference.mark_not_found()
                logger.error(
                    "Origin: %s - no match found for term %s in %s (%s)",
                    reference.source_file_names, reference.term, reference.external_spec, group.repo_url
                )
                continue

            reference.mark_resolved(
                commit_hash=terms.sha,
                content=found.definition,
                avatar_url=reference.avatar_url or terms.avatar_url,
                classes=found.classes,
            )

            # A term that is itself transcluded makes a chain of transclusions
            if EXTERNAL_TERM_CLASS in found.classes and reference.has_transcluding_source:
                logger.error(
                    "Origin: %s - nested tref detected: term %s in %s is itself transcluded "
                    "from another spec. Consider using [[xref:%s,%s]] instead. (%s)",
                    reference.source_file_names, reference.term, reference.external_spec,
                    reference.external_spec, reference.term, reference.gh_page_url or group.repo_url
                )

            logger.info("Match found for term: %s in %s", reference.term, reference.external_spec)
