"""Tests for the per-file lint rules."""

from __future__ import annotations

import pytest

from corpusmd.lint_rules import RULE_SEVERITIES, LintRuleEngine
from corpusmd.schemas import FileNamingConfig, LintConfig


def _found(content: str, config: LintConfig | None = None) -> list[tuple[str, int | None]]:
    issues = LintRuleEngine(config).lint("docs/page.md", content)
    return [(issue.rule, issue.line) for issue in issues]


class TestWhitespaceRules:
    """Tests for trailing spaces and blank runs."""

    def test_trailing_spaces(self) -> None:
        assert _found("ok\ntrailing  \n") == [("no-trailing-spaces", 2)]

    def test_whitespace_only_line_is_blank(self) -> None:
        assert _found("a\n   \nb") == []

    def test_multiple_blanks(self) -> None:
        """The third consecutive blank line is reported."""
        assert _found("a\n\n\n\nb") == [("no-multiple-blanks", 4)]

    def test_two_blanks_allowed(self) -> None:
        assert _found("a\n\n\nb") == []

    def test_trailing_spaces_reported_inside_fences(self) -> None:
        assert _found("```\ncode  \n```") == [("no-trailing-spaces", 2)]

    def test_crlf_line_endings_are_not_trailing_spaces(self) -> None:
        content = "---\r\ntitle: x\r\n---\r\n# Title\r\n\r\nBody text\r\n- item\r\n"
        assert _found(content) == []

    def test_crlf_file_still_reports_real_trailing_spaces(self) -> None:
        assert _found("# Title\r\nBody  \r\n") == [("no-trailing-spaces", 2)]


class TestStructuralRules:
    """Tests for rules that ignore fenced code and frontmatter."""

    def test_setext_headings(self) -> None:
        assert _found("Title\n=====\n\nSub\n---\n") == [("heading-style", 1), ("heading-style", 4)]

    def test_list_markers(self) -> None:
        assert _found("* one\n+ two\n- three\n  * nested") == [
            ("list-marker-style", 1),
            ("list-marker-style", 2),
            ("list-marker-style", 4),
        ]

    def test_navigation_sections(self) -> None:
        content = "## See Also\n### Related Documents\n## Seeing things\n# 次のステップ\n"
        assert _found(content) == [
            ("no-navigation-sections", 1),
            ("no-navigation-sections", 2),
            ("no-navigation-sections", 4),
        ]

    def test_structural_bold(self) -> None:
        """List bold labels, consecutive bold and bold pseudo-headings."""
        content = "- **Name**: value\n**Name**: **Value**\n**Heading**:\nplain **bold** text"
        assert _found(content) == [
            ("no-structural-bold", 1),
            ("no-structural-bold", 2),
            ("no-structural-bold", 2),
            ("no-structural-bold", 3),
        ]

    def test_numbered_headings(self) -> None:
        content = "## 1. Intro\n## 2.1. Sub\n## 2024 Plans\n"
        assert _found(content) == [("no-numbered-headings", 1), ("no-numbered-headings", 2)]

    def test_suppressed_inside_fences(self) -> None:
        content = "```\n* item\n**Bold**: x\n## 1. Step\n## See Also\nTitle\n===\n```\n"
        assert _found(content) == []

    def test_suppressed_inside_frontmatter(self) -> None:
        content = "---\ntitle: x  \ntags:\n  - a\n---\n# Body\n"
        assert _found(content) == []

    def test_unclosed_leading_delimiter_is_not_frontmatter(self) -> None:
        """Without a closing ``---`` the lines below are ordinary body text."""
        assert _found("---\n* item\ntrailing  ") == [
            ("list-marker-style", 2),
            ("no-trailing-spaces", 3),
        ]

    def test_frontmatter_ends_at_first_closing_delimiter(self) -> None:
        content = "---\ntitle: x\n---\n* item\n\n---\n* other\n"
        assert _found(content) == [("list-marker-style", 4), ("list-marker-style", 7)]


class TestMermaidStyling:
    """Tests for no-mermaid-styling."""

    def test_only_inside_mermaid_blocks(self) -> None:
        content = (
            "```mermaid\n"
            "graph TD\n"
            "style A fill:#f9f\n"
            "classDef red fill:#f00\n"
            "```\n"
            "style outside x\n"
            "```python\n"
            "style A fill\n"
            "```\n"
        )
        assert _found(content) == [("no-mermaid-styling", 3), ("no-mermaid-styling", 4)]


class TestFrontmatterAndNaming:
    """Tests for file-level rules."""

    def test_invalid_frontmatter(self) -> None:
        issues = LintRuleEngine().lint("docs/page.md", "---\ntitle: [bad\n---\nBody")
        assert [(issue.rule, issue.severity, issue.line) for issue in issues] == [
            ("valid-frontmatter", "error", 1)
        ]

    def test_file_naming(self) -> None:
        config = LintConfig(
            file_naming=FileNamingConfig(pattern=r"^[a-z0-9-]+\.md$", message="Use kebab-case")
        )
        engine = LintRuleEngine(config)

        issues = engine.lint("docs/Bad_Name.md", "ok")

        assert [(issue.rule, issue.message, issue.line) for issue in issues] == [
            ("file-naming", "Use kebab-case", None)
        ]
        assert engine.lint("docs/good-name.md", "ok") == []

    def test_no_naming_rule_without_pattern(self) -> None:
        assert _found("ok") == []


class TestRuleConfiguration:
    """Tests for enabling rules and severities."""

    def test_disabled_rule_is_skipped(self) -> None:
        config = LintConfig(builtin_rules={"no-trailing-spaces": False})
        assert _found("trailing  ", config) == []

    @pytest.mark.parametrize(
        ("content", "severity"),
        [
            ("trailing  ", "warning"),
            ("* item", "info"),
            ("## 1. Intro", "warning"),
        ],
    )
    def test_severity(self, content: str, severity: str) -> None:
        issues = LintRuleEngine().lint("docs/page.md", content)
        assert [issue.severity for issue in issues] == [severity]
        assert RULE_SEVERITIES[issues[0].rule] == severity

    def test_issue_metadata(self) -> None:
        issue = LintRuleEngine().lint("docs/page.md", "x  ")[0]
        assert issue.file == "docs/page.md"
        assert issue.message == "Line has trailing spaces"
