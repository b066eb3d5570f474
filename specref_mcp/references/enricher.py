"""Attach repository metadata from specs.json to reference records."""

import logging
from urllib.parse import urlparse

from ..core.config import require_repositories
from ..core.git import BranchProvider
from ..schemas.config import ExternalSpecRepository, SpecsConfig
from ..schemas.references import ExternalReference

logger = logging.getLogger(__name__)


def parse_owner_repo(repo_url: str) -> tuple[str | None, str | None]:
    """Take owner and repository name from the first two path segments of a URL.

    Examples:
        >>> parse_owner_repo("https://github.com/trustoverip/kmg")
        ('trustoverip', 'kmg')
    """
    segments = [segment for segment in urlparse(repo_url).path.split('/') if segment]
    owner = segments[0] if len(segments) > 0 else None
    repo = segments[1] if len(segments) > 1 else None
    if repo and repo.endswith('.git'):
        repo = repo[:-4]
    return owner, repo


def build_lookups(
    repositories: list[ExternalSpecRepository]
) -> tuple[dict[str, ExternalSpecRepository], dict[str, str]]:
    """Index repositories and published sites by external_spec key.

    A key declared twice keeps its first declaration.
    """
    repo_lookup: dict[str, ExternalSpecRepository] = {}
    site_lookup: dict[str, str] = {}
    for repository in repositories:
        if repository.external_spec in repo_lookup:
            logger.warning("external_spec '%s' is declared more than once; using the first", repository.external_spec)
            continue
        repo_lookup[repository.external_spec] = repository
        if repository.gh_page:
            site_lookup[repository.external_spec] = repository.gh_page
    return repo_lookup, site_lookup


def enrich_references(
    records: list[ExternalReference],
    config: SpecsConfig,
    branch_provider: BranchProvider
) -> None:
    """Reset and fill the repository linkage of every record in place.

    Raises:
        DeprecatedConfigError: If the configuration cannot describe repositories.
            Raised before any record is modified.
    """
    repositories = require_repositories(config)
    repo_lookup, site_lookup = build_lookups(repositories)
    branch = branch_provider.current_branch()

    for record in records:
        record.clear_linkage()
        record.branch = branch

        repository = repo_lookup.get(record.external_spec)
        if repository is None:
            logger.warning(
                "No external_specs entry for '%s' (term %s, in %s)",
                record.external_spec, record.term, record.source_file_names
            )
            continue

        record.repo_url = repository.url
        record.terms_dir = repository.terms_dir
        record.avatar_url = repository.avatar_url
        record.gh_page_url = repository.gh_page
        record.site = site_lookup.get(record.external_spec)

        if record.repo_url:
            record.owner, record.repo = parse_owner_repo(record.repo_url)
