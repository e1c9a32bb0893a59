"""Tests for frontmatter parsing."""

from __future__ import annotations

from corpusmd.frontmatter import parse_frontmatter


class TestParseFrontmatter:
    """Tests for parse_frontmatter."""

    def test_no_frontmatter(self) -> None:
        """Content without a leading block is returned untouched."""
        result = parse_frontmatter("# Title\n\nBody\n")
        assert not result.has_frontmatter
        assert result.data is None
        assert result.content == "# Title\n\nBody\n"
        assert result.parse_error is None

    def test_parses_mapping(self) -> None:
        """A YAML mapping becomes data and the body follows the closing line."""
        result = parse_frontmatter("---\ntitle: Intro\nlayer: 1\ndepends_on:\n  - a.md\n---\n# Intro\n")
        assert result.has_frontmatter
        assert result.data == {"title": "Intro", "layer": 1, "depends_on": ["a.md"]}
        assert result.content == "# Intro\n"
        assert result.raw == "---\ntitle: Intro\nlayer: 1\ndepends_on:\n  - a.md\n---\n"

    def test_empty_block(self) -> None:
        """The ---/--- form is frontmatter with no data."""
        result = parse_frontmatter("---\n---\nBody")
        assert result.has_frontmatter
        assert result.data == {}
        assert result.content == "Body"

    def test_malformed_yaml_is_not_fatal(self) -> None:
        """Bad YAML is reported and the body is still available."""
        result = parse_frontmatter("---\ntitle: [unclosed\n---\nBody text\n")
        assert result.has_frontmatter
        assert result.data is None
        assert result.parse_error
        assert result.content == "Body text\n"

    def test_non_mapping_payload(self) -> None:
        """A YAML list is reported as a parse error."""
        result = parse_frontmatter("---\n- a\n- b\n---\nBody")
        assert result.has_frontmatter
        assert result.data is None
        assert "mapping" in result.parse_error

    def test_later_rule_is_not_frontmatter(self) -> None:
        """Only a block at the very start counts."""
        content = "Intro\n---\ntitle: x\n---\n"
        result = parse_frontmatter(content)
        assert not result.has_frontmatter
        assert result.content == content

    def test_unclosed_block(self) -> None:
        """An opening delimiter without a closing one is plain content."""
        result = parse_frontmatter("---\ntitle: x\nBody")
        assert not result.has_frontmatter
