"""Per-file lint rules.

All line rules share one pass over the file. Fenced code and ```mermaid
blocks are tracked independently; the frontmatter extent comes from the
same parser the builder uses.
"""

from __future__ import annotations

import re
from pathlib import PurePath

from corpusmd.code_blocks import CodeBlockTracker, MermaidBlockTracker
from corpusmd.frontmatter import parse_frontmatter
from corpusmd.schemas import Issue, LintConfig, Severity

RULE_SEVERITIES: dict[str, Severity] = {
    "valid-frontmatter": "error",
    "file-naming": "warning",
    "no-trailing-spaces": "warning",
    "no-multiple-blanks": "warning",
    "heading-style": "info",
    "list-marker-style": "info",
    "no-mermaid-styling": "warning",
    "no-navigation-sections": "warning",
    "no-structural-bold": "info",
    "no-numbered-headings": "warning",
}

MAX_CONSECUTIVE_BLANK_LINES = 2

NUMBERED_HEADING_RE = re.compile(r"^#{1,6}\s+\d+(?:\.\d+)*\.\s")
STRUCTURAL_BOLD_LIST_RE = re.compile(r"^\s*[-*+]\s+\*\*[^*]+\*\*:")
CONSECUTIVE_BOLD_RE = re.compile(r"\*\*[^*]+\*\*:\s*\*\*[^*]+\*\*")
BOLD_PSEUDO_HEADING_RE = re.compile(r"^\*\*[^*]+\*\*:")
SETEXT_UNDERLINE_RE = re.compile(r"^(?:=+|-+)$")
NAVIGATION_SECTIONS_RE = re.compile(
    r"^#{1,6}\s*(?:関連ドキュメント|次のステップ|Related Documents?|Next Steps?|See Also"
    r"|Navigation|Breadcrumbs?)\b",
    re.IGNORECASE,
)
MERMAID_STYLE_RE = re.compile(r"^\s*(?:style\s+\S+\s+\S|classDef\s+\S+\s+\S|linkStyle\s+\S)")
LIST_MARKER_RE = re.compile(r"^(\s*)([-*+])\s")

_MESSAGES = {
    "file-naming": "File name does not match naming convention",
    "no-trailing-spaces": "Line has trailing spaces",
    "no-multiple-blanks": "More than 2 blank lines in a row",
    "heading-style": "Use ATX-style headings (# Heading) instead of setext-style",
    "list-marker-style": "Use consistent list markers (-)",
    "no-mermaid-styling": "Mermaid style definitions waste tokens - LLMs don't see colors",
    "no-navigation-sections": (
        "Navigation sections are redundant in combined LLM output - use frontmatter instead"
    ),
    "no-numbered-headings": (
        "Heading contains numbering - remove numbers for better flexibility and token efficiency"
    ),
}


class LintRuleEngine:
    """Apply the enabled built-in rules to a single file."""

    def __init__(self, config: LintConfig | None = None) -> None:
        self.config = config or LintConfig()
        naming = self.config.file_naming
        self._file_name_re = re.compile(naming.pattern) if naming else None

    def enabled(self, rule: str) -> bool:
        return self.config.is_enabled(rule)

    def _issue(self, rule: str, message: str, file: str, line: int | None = None) -> Issue:
        return Issue(severity=RULE_SEVERITIES[rule], message=message, file=file, line=line, rule=rule)

    def lint(self, path: str, content: str) -> list[Issue]:
        """Return issues for one file's raw content, in line order."""
        issues: list[Issue] = []
        parsed = parse_frontmatter(content)
        if parsed.parse_error and self.enabled("valid-frontmatter"):
            issues.append(
                self._issue("valid-frontmatter", f"Invalid frontmatter: {parsed.parse_error}", path, 1)
            )
        frontmatter_lines = len(parsed.raw.rstrip("\n").split("\n")) if parsed.has_frontmatter else 0
        issues.extend(self.check_file_naming(path))
        issues.extend(
            self.check_lines(path, content.split("\n"), frontmatter_lines=frontmatter_lines)
        )
        return issues

    def check_file_naming(self, path: str) -> list[Issue]:
        if self._file_name_re is None or not self.enabled("file-naming"):
            return []
        if self._file_name_re.search(PurePath(path).name):
            return []
        message = self.config.file_naming.message or _MESSAGES["file-naming"]
        return [self._issue("file-naming", message, path)]

    def check_lines(self, path: str, lines: list[str], *, frontmatter_lines: int = 0) -> list[Issue]:
        """Run the line rules.

        The first ``frontmatter_lines`` lines are the frontmatter block,
        delimiters included. A trailing ``\\r`` is treated as part of the
        line ending, not as content.
        """
        issues: list[Issue] = []
        code = CodeBlockTracker()
        mermaid = MermaidBlockTracker()
        blank_run = 0
        lines = [line[:-1] if line.endswith("\r") else line for line in lines]

        for index, line in enumerate(lines):
            line_no = index + 1
            stripped = line.strip()
            is_frontmatter = index < frontmatter_lines

            in_fence = False
            if not is_frontmatter:
                code.process_line(line)
                mermaid.process_line(line)
                in_fence = code.in_code_block or code.is_fence_line
            structural = not is_frontmatter and not in_fence

            def report(rule: str, message: str | None = None) -> None:
                if self.enabled(rule):
                    issues.append(self._issue(rule, message or _MESSAGES[rule], path, line_no))

            if not is_frontmatter:
                if stripped and line != line.rstrip():
                    report("no-trailing-spaces")
                if stripped:
                    blank_run = 0
                else:
                    blank_run += 1
                    if blank_run > MAX_CONSECUTIVE_BLANK_LINES:
                        report("no-multiple-blanks")

            if structural and stripped and not SETEXT_UNDERLINE_RE.match(stripped):
                next_line = lines[index + 1].strip() if index + 1 < len(lines) else ""
                if next_line and SETEXT_UNDERLINE_RE.match(next_line):
                    report("heading-style")

            if structural:
                marker = LIST_MARKER_RE.match(line)
                if marker and marker.group(2) != "-":
                    report("list-marker-style")

            if (
                not is_frontmatter
                and mermaid.in_code_block
                and not mermaid.is_fence_line
                and MERMAID_STYLE_RE.match(line)
            ):
                report("no-mermaid-styling")

            if not structural:
                continue

            if NAVIGATION_SECTIONS_RE.match(line):
                report("no-navigation-sections")

            if STRUCTURAL_BOLD_LIST_RE.match(line):
                report(
                    "no-structural-bold",
                    'Structural bold in lists wastes tokens - use plain "Name: Value" format',
                )
            if CONSECUTIVE_BOLD_RE.search(line):
                report(
                    "no-structural-bold",
                    "Consecutive bold wastes tokens - use **Field**: Value instead",
                )
            if BOLD_PSEUDO_HEADING_RE.match(line):
                report(
                    "no-structural-bold",
                    "Section header as bold - consider using heading (###) instead",
                )

            if NUMBERED_HEADING_RE.match(line):
                report("no-numbered-headings")

        return issues
