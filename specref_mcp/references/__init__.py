"""External reference collection: parsing, aggregation, enrichment, resolution, persistence."""

from .aggregator import ReferenceCollection
from .enricher import enrich_references, parse_owner_repo
from .extractor import contains_reference, extract_references, reference_pattern
from .github import GitHubClient, create_http_client
from .index_parser import PublishedIndex, parse_index
from .parser import ReferenceDescriptor, parse_reference
from .persistence import SavedSnapshot, SnapshotStore
from .resolver import ExternalTermResolver, RepositoryGroup, ResolutionResult

__all__ = [
    "ExternalTermResolver",
    "GitHubClient",
    "PublishedIndex",
    "ReferenceCollection",
    "ReferenceDescriptor",
    "RepositoryGroup",
    "ResolutionResult",
    "SavedSnapshot",
    "SnapshotStore",
    "contains_reference",
    "create_http_client",
    "enrich_references",
    "extract_references",
    "parse_index",
    "parse_owner_repo",
    "parse_reference",
    "reference_pattern",
]
