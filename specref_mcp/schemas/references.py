"""Persisted shapes of the external reference pipeline.

Field aliases are the wire names read by the rendering stage, so snapshots
are always dumped with ``by_alias=True``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import NOT_FOUND_COMMIT, NOT_FOUND_CONTENT, ReferenceType


class SourceFile(BaseModel):
    """A (file, reference type) pair in which a reference was observed."""

    model_config = ConfigDict(frozen=True)

    file: str
    type: ReferenceType

    @field_validator("type", mode="before")
    @classmethod
    def accept_keywords(cls, v: Any) -> Any:
        """Accept the bare marker keywords written by older snapshots."""
        if v in ("xref", "tref"):
            return ReferenceType.from_keyword(v)
        return v


class ExternalReference(BaseModel):
    """Aggregated reference record, unique per (externalSpec, term)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    external_spec: str = Field(alias="externalSpec")
    term: str
    aliases: list[str] = Field(default_factory=list)
    source_files: list[SourceFile] = Field(default_factory=list, alias="sourceFiles")

    # Repository linkage
    repo_url: str | None = Field(default=None, alias="repoUrl")
    terms_dir: str | None = None
    owner: str | None = None
    repo: str | None = None
    site: str | None = None
    branch: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    gh_page_url: str | None = Field(default=None, alias="ghPageUrl")

    # Resolution result
    commit_hash: str | None = Field(default=None, alias="commitHash")
    content: str | None = None
    classes: list[str] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.external_spec, self.term)

    @property
    def has_complete_linkage(self) -> bool:
        return bool(self.owner and self.repo and self.repo_url)

    @property
    def has_transcluding_source(self) -> bool:
        return any(sf.type == ReferenceType.TRANSCLUDING for sf in self.source_files)

    @property
    def source_file_names(self) -> str:
        return ", ".join(sf.file for sf in self.source_files) or "(unknown file)"

    @property
    def is_resolved(self) -> bool:
        # A matched term may lack a commit hash; only the sentinel means unresolved
        return self.content is not None and self.commit_hash != NOT_FOUND_COMMIT

    def add_source(self, filename: str, reference_type: ReferenceType) -> bool:
        """Record a sighting; returns False when the pair was already tracked."""
        entry = SourceFile(file=filename, type=reference_type)
        if entry in self.source_files:
            return False
        self.source_files.append(entry)
        return True

    def clear_linkage(self) -> None:
        self.repo_url = None
        self.terms_dir = None
        self.owner = None
        self.repo = None
        self.site = None
        self.branch = None
        self.avatar_url = None
        self.gh_page_url = None

    def mark_not_found(self) -> None:
        self.commit_hash = NOT_FOUND_COMMIT
        self.content = NOT_FOUND_CONTENT
        self.avatar_url = None
        self.classes = []

    def mark_resolved(
        self,
        commit_hash: str | None,
        content: str,
        avatar_url: str | None,
        classes: list[str] | None = None
    ) -> None:
        # An unknown commit is recorded as missing, never as the not-found sentinel
        self.commit_hash = commit_hash
        self.content = content
        self.avatar_url = avatar_url
        self.classes = list(classes or [])


class ReferenceSnapshot(BaseModel):
    """The full aggregated collection as persisted between runs."""

    xtrefs: list[ExternalReference] = Field(default_factory=list)

    def to_json_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TermDefinition(BaseModel):
    """One term published by an external specification."""

    term: str
    definition: str
    classes: list[str] = Field(default_factory=list)


class RepositoryTerms(BaseModel):
    """Cached term list of one external repository."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: int
    repository: str
    terms: list[TermDefinition] = Field(default_factory=list)
    sha: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")

    def term_lookup(self) -> dict[str, TermDefinition]:
        """Case-insensitive index of the published terms; first entry wins."""
        lookup: dict[str, TermDefinition] = {}
        for definition in self.terms:
            lookup.setdefault(definition.term.lower(), definition)
        return lookup
