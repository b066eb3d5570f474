"""Parse a raw reference marker into a structured descriptor."""

import re
from dataclasses import dataclass

from ..constants import ReferenceType
from ..core.errors import MalformedReferenceError

_MARKER_PARTS = re.compile(r"^\[\[\s*([^:\]]*?)\s*:(.*)\]\]$", re.DOTALL)
ARGS_SEPARATOR = ","


@dataclass(frozen=True)
class ReferenceDescriptor:
    """Structured form of one ``[[type: spec, term, alias...]]`` marker."""

    external_spec: str
    term: str
    reference_type: ReferenceType
    aliases: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.external_spec, self.term)


def parse_reference(raw: str) -> ReferenceDescriptor:
    """Parse a raw marker string.

    Args:
        raw: Marker such as ``[[tref: vlei1, vlei-ecosystem-governance-framework, vEGF]]``

    Returns:
        ReferenceDescriptor; an unrecognised keyword yields ReferenceType.UNKNOWN

    Raises:
        MalformedReferenceError: If the marker has no spec or no term
    """
    match = _MARKER_PARTS.match(raw.strip())
    if not match:
        raise MalformedReferenceError(raw, "not a [[type: spec, term]] marker")

    keyword, arguments = match.groups()
    parts = [part.strip() for part in arguments.split(ARGS_SEPARATOR)]

    external_spec = parts[0]
    if not external_spec:
        raise MalformedReferenceError(raw, "missing external specification")
    if len(parts) < 2 or not parts[1]:
        raise MalformedReferenceError(raw, "missing term")

    return ReferenceDescriptor(
        external_spec=external_spec,
        term=parts[1],
        reference_type=ReferenceType.from_keyword(keyword),
        aliases=tuple(part for part in parts[2:] if part),
    )
