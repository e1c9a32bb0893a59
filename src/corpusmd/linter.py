"""Lint a Markdown corpus and apply conservative automatic fixes."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from corpusmd.file_collector import collect_files
from corpusmd.frontmatter import parse_frontmatter
from corpusmd.io_utils import read_text_async, write_text_atomic_async
from corpusmd.lint_rules import MAX_CONSECUTIVE_BLANK_LINES, LintRuleEngine
from corpusmd.schemas import ConsistentStructureConfig, CorpusConfig, Issue

logger = logging.getLogger(__name__)

_OVERVIEW_NAMES = frozenset({"overview.md", "index.md"})
_OVERVIEW_RE = re.compile(r"^.*overview.*\.md$", re.IGNORECASE)


def _strip_trailing(line: str) -> str:
    if line.endswith("\r"):
        return line[:-1].rstrip() + "\r"
    return line.rstrip()


def is_overview_file(name: str) -> bool:
    return name in _OVERVIEW_NAMES or bool(_OVERVIEW_RE.match(name))


def check_structure_consistency(
    source_dir: Path, files: list[Path], config: ConsistentStructureConfig
) -> list[Issue]:
    """Directory-level checks across the whole corpus.

    The source root itself is exempt. Directories holding more Markdown
    files than ``directory_threshold`` get one warning each, and overview-like
    files not named ``overview_naming`` get a rename suggestion.
    """
    root = source_dir.resolve()
    by_dir: dict[Path, list[Path]] = {}
    for path in files:
        by_dir.setdefault(path.parent, []).append(path)

    issues: list[Issue] = []
    for directory in sorted(by_dir, key=lambda p: p.as_posix()):
        if directory == root:
            continue
        md_files = [path for path in by_dir[directory] if path.name.endswith(".md")]

        if len(md_files) > config.directory_threshold:
            issues.append(
                Issue(
                    severity="warning",
                    message=(
                        f"Directory has {len(md_files)} files (threshold: {config.directory_threshold})\n"
                        "  Suggestion: Consider creating subdirectories to organize files"
                    ),
                    file=str(directory),
                    rule="consistent-structure-threshold",
                )
            )

        for path in md_files:
            if is_overview_file(path.name) and path.name != config.overview_naming:
                issues.append(
                    Issue(
                        severity="warning",
                        message=(
                            f'Overview file name should be "{config.overview_naming}" '
                            f'(found: "{path.name}")\n'
                            f"  Suggestion: Rename to {config.overview_naming}"
                        ),
                        file=str(path),
                        rule="consistent-structure-naming",
                    )
                )
    return issues


class Linter:
    """Check a corpus against the configured rules.

    ``lint`` never raises for problems in individual files: unreadable files
    and malformed frontmatter are reported as issues alongside the rest.
    Pass/fail policy is left to the caller.
    """

    def __init__(self, config: CorpusConfig | None = None) -> None:
        self.config = config or CorpusConfig()
        self.engine = LintRuleEngine(self.config.lint)

    def collect_files(self, source_dir: Path) -> list[Path]:
        build = self.config.build
        return collect_files(source_dir, build.include, build.exclude)

    async def lint(self, source_dir: Path | str) -> list[Issue]:
        base = Path(source_dir).resolve()
        files = await asyncio.to_thread(self.collect_files, base)
        contents = await asyncio.gather(
            *(read_text_async(path) for path in files), return_exceptions=True
        )

        issues: list[Issue] = []
        for path, content in zip(files, contents):
            if isinstance(content, (OSError, UnicodeDecodeError)):
                logger.warning("Could not read %s: %s", path, content)
                issues.append(
                    Issue(
                        severity="error",
                        message=f"Could not read file: {content}",
                        file=str(path),
                        rule="file-read",
                    )
                )
                continue
            if isinstance(content, BaseException):
                raise content
            issues.extend(self.lint_document(str(path), content))

        structure = self.config.lint.rules.consistent_structure
        if structure.enabled:
            issues.extend(check_structure_consistency(base, files, structure))

        logger.info("Linted %d files, %d issues", len(files), len(issues))
        return issues

    def lint_document(self, path: str, content: str) -> list[Issue]:
        return self.engine.lint(path, content)

    def fix_content(self, content: str) -> str:
        """Trim trailing whitespace and collapse runs of 3+ blank lines.

        Frontmatter is re-emitted byte for byte and every line keeps its own
        ending, so a CRLF file stays CRLF. Applying this twice gives the same
        result as applying it once.
        """
        parsed = parse_frontmatter(content)
        prefix = parsed.raw if parsed.has_frontmatter else ""
        lines = parsed.content.split("\n")

        if self.engine.enabled("no-trailing-spaces"):
            lines = [_strip_trailing(line) for line in lines]

        if self.engine.enabled("no-multiple-blanks"):
            collapsed: list[str] = []
            blank_run = 0
            for line in lines:
                if line.strip():
                    blank_run = 0
                else:
                    blank_run += 1
                    if blank_run > MAX_CONSECUTIVE_BLANK_LINES:
                        continue
                collapsed.append(line)
            lines = collapsed

        return prefix + "\n".join(lines)

    async def fix(self, source_dir: Path | str) -> list[Path]:
        """Apply trivial fixes in place and return the files that changed."""
        base = Path(source_dir).resolve()
        files = await asyncio.to_thread(self.collect_files, base)
        contents = await asyncio.gather(
            *(read_text_async(path, newline="") for path in files)
        )

        changed: list[Path] = []
        for path, content in zip(files, contents):
            fixed = self.fix_content(content)
            if fixed != content:
                await write_text_atomic_async(path, fixed)
                changed.append(path)
        logger.info("Fixed %d of %d files", len(changed), len(files))
        return changed
