"""Find external reference markers in markdown text.

Escaped markers are removed by the escaping pre-pass before text reaches
this module; everything matched here is a live marker.
"""

import re
from collections.abc import Iterator
from functools import lru_cache

from ..constants import TRANSCLUDING_REFERENCE_KEYWORD, WEAK_REFERENCE_KEYWORD

_KEYWORDS = f"{WEAK_REFERENCE_KEYWORD}|{TRANSCLUDING_REFERENCE_KEYWORD}"

# Non-greedy: the first "]]" closes the marker
MARKER_PATTERN = re.compile(rf"\[\[(?:{_KEYWORDS}):.*?\]\]")

# Horizontal whitespace only
_SPACE = r"[^\S\n]*"


class MarkerScan:
    """Lazy, restartable sequence of the raw markers in a text.

    Every iteration scans the text again from the start.
    """

    def __init__(self, text: str):
        self.text = text

    def __iter__(self) -> Iterator[str]:
        for match in MARKER_PATTERN.finditer(self.text):
            yield match.group(0)

    def __bool__(self) -> bool:
        return MARKER_PATTERN.search(self.text) is not None


def extract_references(text: str) -> MarkerScan:
    """Return the raw ``[[xref:...]]`` / ``[[tref:...]]`` markers in ``text``.

    Examples:
        >>> list(extract_references("See [[xref: kmg-1, ACDC]] and [[tref:vlei1,LEI,lei]]."))
        ['[[xref: kmg-1, ACDC]]', '[[tref:vlei1,LEI,lei]]']
    """
    return MarkerScan(text or "")


@lru_cache(maxsize=4096)
def reference_pattern(external_spec: str, term: str) -> re.Pattern[str]:
    """Compile the presence pattern for one (spec, term) pair.

    Either keyword matches, any alias suffix is tolerated, whitespace around
    commas and before the closing delimiter is ignored. Spec and term are
    matched case-sensitively. Like MARKER_PATTERN, a marker never spans
    a line break.
    """
    spec = re.escape(external_spec)
    escaped_term = re.escape(term)
    return re.compile(
        rf"\[\[(?:{_KEYWORDS}):{_SPACE}{spec}{_SPACE},{_SPACE}{escaped_term}{_SPACE}(?:,[^\]\n]*)?\]\]"
    )


def contains_reference(text: str, external_spec: str, term: str) -> bool:
    """Check whether ``text`` holds a marker for the given pair."""
    return reference_pattern(external_spec, term).search(text) is not None
