"""Aggregation of external references across files and runs.

A ``ReferenceCollection`` is the per-run aggregation context. The
orchestrator creates one (usually seeded from the previous snapshot),
passes it through every stage and persists it at the end.
"""

import logging
from collections.abc import Iterator, Mapping

from ..constants import ReferenceType
from ..core.errors import MalformedReferenceError
from ..schemas.references import ExternalReference, ReferenceSnapshot
from .extractor import contains_reference, extract_references
from .parser import ReferenceDescriptor, parse_reference

logger = logging.getLogger(__name__)


class ReferenceCollection:
    """Deduplicated, provenance-tracked external references.

    Records are keyed by ``(external_spec, term)``; the dict keeps first-seen
    insertion order so snapshots are reproducible.
    """

    def __init__(self, records: list[ExternalReference] | None = None):
        self._records: dict[tuple[str, str], ExternalReference] = {}
        for record in records or []:
            existing = self._records.get(record.key)
            if existing is None:
                self._records[record.key] = record
                continue
            # Repair snapshots that somehow hold the same pair twice
            logger.warning(
                "Merging duplicate reference %s, %s from snapshot",
                record.external_spec, record.term
            )
            for source in record.source_files:
                existing.add_source(source.file, source.type)

    @classmethod
    def from_snapshot(cls, snapshot: ReferenceSnapshot) -> "ReferenceCollection":
        return cls(list(snapshot.xtrefs))

    def to_snapshot(self) -> ReferenceSnapshot:
        return ReferenceSnapshot(xtrefs=self.records)

    @property
    def records(self) -> list[ExternalReference]:
        return list(self._records.values())

    def get(self, external_spec: str, term: str) -> ExternalReference | None:
        return self._records.get((external_spec, term))

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ExternalReference]:
        return iter(list(self._records.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def clear_linkage(self) -> None:
        """Drop repository linkage from every record."""
        for record in self._records.values():
            record.clear_linkage()

    def replace_records(self, records: list[ExternalReference]) -> None:
        """Keep only ``records`` (in their given order)."""
        self._records = {record.key: record for record in records}

    def add(self, descriptor: ReferenceDescriptor, filename: str | None = None) -> ExternalReference:
        """Insert or update the record for one parsed marker."""
        record = self._records.get(descriptor.key)

        if record is None:
            record = ExternalReference(
                external_spec=descriptor.external_spec,
                term=descriptor.term,
                aliases=list(descriptor.aliases),
            )
            if filename:
                record.add_source(filename, descriptor.reference_type)
            self._records[descriptor.key] = record
            return record

        if filename is None:
            return record

        # Transclusion aliases win over aliases seen on weak references
        if descriptor.reference_type == ReferenceType.TRANSCLUDING or not record.has_transcluding_source:
            record.aliases = list(descriptor.aliases)

        record.add_source(filename, descriptor.reference_type)
        return record

    def ingest(self, text: str, filename: str | None = None) -> int:
        """Add every marker found in ``text``.

        Args:
            text: Markdown content
            filename: Provenance key, usually the file's basename

        Returns:
            Number of markers accepted
        """
        accepted = 0
        for raw in extract_references(text):
            try:
                descriptor = parse_reference(raw)
            except MalformedReferenceError as e:
                logger.warning("Dropping malformed reference %s in %s: %s", raw, filename or "(unknown file)", e.reason)
                continue

            if descriptor.reference_type == ReferenceType.UNKNOWN:
                logger.warning("Dropping reference of unknown type %s in %s", raw, filename or "(unknown file)")
                continue

            self.add(descriptor, filename)
            accepted += 1
        return accepted

    def reconcile(self, file_contents: Mapping[str, str]) -> list[ExternalReference]:
        """Drop records no longer referenced by any of the given files.

        Matching is on spec and term only; alias suffixes are ignored.

        Returns:
            The removed records
        """
        removed: list[ExternalReference] = []
        kept: dict[tuple[str, str], ExternalReference] = {}

        for key, record in self._records.items():
            if any(contains_reference(text, record.external_spec, record.term) for text in file_contents.values()):
                kept[key] = record
            else:
                removed.append(record)
                logger.info(
                    "Removing stale reference %s, %s (last seen in %s)",
                    record.external_spec, record.term, record.source_file_names
                )

        self._records = kept
        return removed

    def prune_sources(self, file_contents: Mapping[str, str]) -> None:
        """Forget provenance entries for files that no longer hold the reference."""
        for record in self._records.values():
            record.source_files = [
                source for source in record.source_files
                if source.file in file_contents
                and contains_reference(file_contents[source.file], record.external_spec, record.term)
            ]
