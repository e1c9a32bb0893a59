"""Dependency-aware document ordering.

Documents declare prerequisites with a ``depends_on`` frontmatter list of
paths relative to the source root. Ordering uses Kahn's algorithm with a
deterministic ``(layer, category, title)`` tie-break; documents caught in a
cycle are appended afterwards in their original order instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Literal, Sequence

from corpusmd.file_collector import relative_posix
from corpusmd.schemas import Document

logger = logging.getLogger(__name__)

DEFAULT_LAYER = 999

SortMode = Literal["path", "custom"]


@dataclass
class DependencyGraph:
    """Edges between documents, keyed by position in the input list.

    Attributes:
        in_degree: Number of resolved dependencies per document.
        dependents: For each document, the documents that depend on it, in
            first-declared order.
    """

    in_degree: dict[int, int] = field(default_factory=dict)
    dependents: dict[int, list[int]] = field(default_factory=dict)


def _normalize_ref(ref: object) -> str:
    return PurePosixPath(str(ref).replace("\\", "/")).as_posix()


def declared_dependencies(document: Document) -> list[str]:
    """Return the raw ``depends_on`` entries, ignoring non-list values."""
    deps = document.frontmatter.get("depends_on")
    if not isinstance(deps, list):
        return []
    return [_normalize_ref(dep) for dep in deps if dep is not None]


def build_dependency_graph(documents: Sequence[Document], base_path: Path) -> DependencyGraph:
    """Build dependency edges among ``documents``.

    References that do not resolve to a document in this set are dropped.
    Duplicate references to the same document count once.
    """
    index_by_path = {
        relative_posix(Path(doc.path), base_path): index
        for index, doc in enumerate(documents)
    }
    graph = DependencyGraph(
        in_degree={index: 0 for index in range(len(documents))},
        dependents={index: [] for index in range(len(documents))},
    )

    for index, doc in enumerate(documents):
        for ref in declared_dependencies(doc):
            dep_index = index_by_path.get(ref)
            if dep_index is None:
                logger.debug("Ignoring unresolved dependency %s in %s", ref, doc.path)
                continue
            if index in graph.dependents[dep_index]:
                continue
            graph.dependents[dep_index].append(index)
            graph.in_degree[index] += 1
    return graph


def metadata_sort_key(document: Document) -> tuple[float, str, str]:
    """Tie-break key: numeric ``layer`` (default 999), then ``category``, then ``title``."""
    frontmatter = document.frontmatter
    layer = frontmatter.get("layer")
    if isinstance(layer, bool) or not isinstance(layer, (int, float)):
        layer = DEFAULT_LAYER
    category = frontmatter.get("category")
    title = frontmatter.get("title")
    return (
        layer,
        category if isinstance(category, str) else "",
        title if isinstance(title, str) else "",
    )


def topological_sort(documents: Sequence[Document], base_path: Path) -> list[Document]:
    """Order ``documents`` so that dependencies precede their dependents.

    Ready documents are taken by ``metadata_sort_key`` and then by input
    position. Always terminates and returns every document exactly once;
    documents left unvisited because of a cycle keep their input order at
    the end.
    """
    graph = build_dependency_graph(documents, base_path)
    in_degree = dict(graph.in_degree)

    def key(index: int) -> tuple[float, str, str, int]:
        return (*metadata_sort_key(documents[index]), index)

    queue = [index for index in range(len(documents)) if in_degree[index] == 0]
    queue.sort(key=key)

    visited: list[int] = []
    while queue:
        current = queue.pop(0)
        visited.append(current)
        for dependent in graph.dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)
                queue.sort(key=key)

    if len(visited) < len(documents):
        seen = set(visited)
        remaining = [index for index in range(len(documents)) if index not in seen]
        logger.warning(
            "Circular dependencies among %d documents; appending in original order: %s",
            len(remaining),
            ", ".join(relative_posix(Path(documents[i].path), base_path) for i in remaining),
        )
        visited.extend(remaining)

    return [documents[index] for index in visited]


def group_by_pattern(
    documents: Sequence[Document], patterns: Sequence[str], base_path: Path
) -> list[list[Document]]:
    """Partition documents by the first substring pattern their path contains.

    Patterns are matched against the path relative to ``base_path`` so the
    location of the source root never influences grouping. Groups come back
    in pattern order; unmatched documents form a trailing catch-all group.
    Empty groups are omitted.
    """
    groups: list[list[Document]] = [[] for _ in range(len(patterns) + 1)]
    for doc in documents:
        relative = relative_posix(Path(doc.path), base_path)
        for position, pattern in enumerate(patterns):
            if pattern and pattern in relative:
                groups[position].append(doc)
                break
        else:
            groups[-1].append(doc)
    return [group for group in groups if group]


def sort_documents(
    documents: Sequence[Document],
    *,
    mode: SortMode = "path",
    patterns: Sequence[str] = (),
    base_path: Path,
) -> list[Document]:
    """Order documents for combination.

    ``"path"`` sorts lexicographically by path and ignores dependencies.
    ``"custom"`` groups by ``patterns`` and topologically sorts each group;
    with no patterns the whole set is one group.
    """
    if mode == "custom":
        ordered: list[Document] = []
        for group in group_by_pattern(documents, patterns, base_path):
            ordered.extend(topological_sort(group, base_path))
        return ordered
    return sorted(documents, key=lambda doc: doc.path)
