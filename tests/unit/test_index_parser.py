"""Unit tests for published index parsing."""

import pytest

from specref_mcp.core.errors import MalformedIndexError, RepositoryFetchError
from specref_mcp.references.index_parser import parse_index
from tests.conftest import build_index_html


class TestParseIndex:
    """Tests for parse_index."""

    def test_terms_and_definitions(self):
        """Test each dt with a term span yields a term and its dd."""
        html = build_index_html([
            {"term": "ACDC", "definition": "Authentic chained data container", "classes": ["term-local"]},
            {"term": "AID", "definition": "Autonomic identifier"},
        ])

        index = parse_index(html)

        assert [t.term for t in index.terms] == ["ACDC", "AID"]
        assert index.terms[0].definition == "<dd>Authentic chained data container</dd>"
        assert index.terms[0].classes == ["term-local"]
        assert index.terms[1].classes == []
        assert index.branch is None

    def test_original_term_wins_over_display_title(self):
        """Test the term-local-original-term span is used when the title differs."""
        html = build_index_html([{"term": "vlei", "title": "Verifiable LEI", "definition": "x"}])
        assert parse_index(html).terms[0].term == "vlei"

    def test_direct_text_without_original_span(self):
        """Test only the span's own text is used when nested markup adds more."""
        html = (
            '<dl class="terms-and-definitions-list">'
            '<dt><span id="term:kel">KEL <span class="badge">new</span></span></dt>'
            '<dd>Key event log</dd>'
            '</dl>'
        )
        assert parse_index(html).terms[0].term == "KEL"

    def test_multiple_definitions_stop_at_next_dt(self):
        """Test consecutive dd elements are joined with newlines."""
        html = (
            '<dl class="terms-and-definitions-list">'
            '<dt><span id="term:one">one</span></dt><dd>first</dd><dd>second</dd>'
            '<dt><span id="term:two">two</span></dt><dd>third</dd>'
            '</dl>'
        )

        index = parse_index(html)

        assert index.terms[0].definition == "<dd>first</dd>\n<dd>second</dd>"
        assert index.terms[1].definition == "<dd>third</dd>"

    def test_external_classes_are_kept(self):
        """Test a term that is itself transcluded keeps its term-external class."""
        html = build_index_html([{"term": "nested", "definition": "x", "classes": ["term-external"]}])
        assert parse_index(html).terms[0].classes == ["term-external"]

    def test_dt_without_term_span_is_skipped(self):
        """Test dt elements that are not term headings are ignored."""
        html = (
            '<dl class="terms-and-definitions-list">'
            '<dt>Heading</dt><dd>ignored</dd>'
            '<dt><span id="term:kept">kept</span></dt><dd>kept</dd>'
            '</dl>'
        )
        assert [t.term for t in parse_index(html).terms] == ["kept"]

    def test_branch_from_meta_tag(self):
        """Test the build branch is read from the repo info meta tag."""
        html = build_index_html([{"term": "a", "definition": "b"}], branch="gh-pages-src")
        assert parse_index(html).branch == "gh-pages-src"

    def test_empty_list(self):
        """Test a published spec with no terms."""
        html = '<dl class="terms-and-definitions-list"></dl>'
        assert parse_index(html).terms == []

    def test_missing_terms_list_raises(self):
        """Test a page without the terms list is reported as a fetch problem."""
        with pytest.raises(MalformedIndexError) as exc_info:
            parse_index("<html><body><p>Not a spec</p></body></html>", "https://example.org/index.html")

        assert isinstance(exc_info.value, RepositoryFetchError)
        assert exc_info.value.url == "https://example.org/index.html"
