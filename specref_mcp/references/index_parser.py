"""Extract published terms from a rendered specification index.html."""

from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from ..constants import (
    ORIGINAL_TERM_SELECTOR,
    REPO_INFO_META_PROPERTY,
    TERM_SPAN_SELECTOR,
    TERMS_LIST_SELECTOR,
)
from ..core.errors import MalformedIndexError
from ..schemas.references import TermDefinition


@dataclass
class PublishedIndex:
    """Terms of one published specification plus the branch it was built from."""

    terms: list[TermDefinition] = field(default_factory=list)
    branch: str | None = None


def _term_text(dt: Tag, term_span: Tag) -> str:
    # The original-term span survives aliasing in the rendered title
    original = dt.select_one(ORIGINAL_TERM_SELECTOR)
    if original is not None:
        text = original.get_text(strip=True)
        if text:
            return text

    direct = "".join(s.strip() for s in term_span.find_all(string=True, recursive=False))
    return direct or term_span.get_text(strip=True)


def _definitions(dt: Tag) -> list[str]:
    definitions = []
    for sibling in dt.next_siblings:
        if not isinstance(sibling, Tag):
            continue
        if sibling.name != "dd":
            break
        definitions.append(str(sibling))
    return definitions


def _repo_info_branch(soup: BeautifulSoup) -> str | None:
    """Read the branch from ``<meta property="spec-up-t:github-repo-info" content="account,repo,branch">``."""
    tag = soup.find("meta", attrs={"property": REPO_INFO_META_PROPERTY})
    content = tag.get("content") if isinstance(tag, Tag) else None
    if not isinstance(content, str):
        return None
    parts = [part.strip() for part in content.split(",")]
    if len(parts) >= 3 and parts[2]:
        return parts[2]
    return None


def parse_index(html: str, source: str = "index.html") -> PublishedIndex:
    """Parse a published index into its term list.

    Args:
        html: index.html content
        source: URL used in error messages

    Returns:
        PublishedIndex with one entry per ``<dt>`` holding a term span

    Raises:
        MalformedIndexError: If the page has no terms-and-definitions list
    """
    soup = BeautifulSoup(html, "html.parser")
    terms_list = soup.select_one(TERMS_LIST_SELECTOR)
    if terms_list is None:
        raise MalformedIndexError(f"No terms-and-definitions-list found in {source}", url=source)

    terms = []
    for dt in terms_list.find_all("dt"):
        term_span = dt.select_one(TERM_SPAN_SELECTOR)
        if term_span is None:
            continue

        text = _term_text(dt, term_span)
        if not text:
            continue

        terms.append(TermDefinition(
            term=text,
            definition="\n".join(_definitions(dt)),
            classes=list(dt.get("class") or []),
        ))

    return PublishedIndex(terms=terms, branch=_repo_info_branch(soup))
