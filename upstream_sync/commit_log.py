"""
Commit logs, provenance annotations and the support-file workspace.

A downstream commit that came from upstream carries a line such as::

    (cherry picked from commit acme/widgets@3f2a9c1...)

Reading those lines back lets a run compare the upstream history with what
has already been ported, without keeping any state of its own.
"""

import re
from collections.abc import Iterable
from pathlib import Path


ANNOTATION_TEMPLATE = "(cherry picked from commit {slug}@{commit})"


def format_annotation(slug: str, commit: str) -> str:
    """Build the provenance annotation for an upstream commit."""
    return ANNOTATION_TEMPLATE.format(slug=slug, commit=commit)


def parse_annotations(message: str, slug: str) -> list[str]:
    """
    Extract the upstream identifiers annotated in a commit message.

    Only annotations for ``slug`` (``org/repo``) are returned, in order of
    appearance. A message may carry several of them.
    """
    pattern = re.compile(
        r"\(cherry picked from commit " + re.escape(slug) + r"@([^)\s]+)\)"
    )
    return [match.group(1) for match in pattern.finditer(message)]


def missing(source: Iterable[str], other: Iterable[str]) -> list[str]:
    """Return the entries of ``source`` that do not appear in ``other``, in order."""
    present = set(other)
    return [commit for commit in source if commit not in present]


def write_log(path: Path, commits: Iterable[str]) -> None:
    """Write a newline-delimited commit log, replacing any previous content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{commit}\n" for commit in commits))


def read_log(path: Path) -> list[str]:
    """Read a commit log written by :func:`write_log`, skipping blank lines."""
    if not path.exists():
        return []
    return [line.strip() for line in path.read_text().splitlines() if line.strip()]


class Workspace:
    """Support files of one upstream/downstream pair."""

    def __init__(self, root: Path, upstream_repo: str, downstream_repo: str):
        self.root = Path(root)
        self.upstream_log = self.root / f"{upstream_repo}-upstream.log"
        self.downstream_log = self.root / f"{downstream_repo}-downstream.log"
        self.missing_downstream = self.root / "missing-downstream"
        self.missing_upstream = self.root / "missing-upstream"

    @property
    def files(self) -> list[Path]:
        return [
            self.upstream_log,
            self.downstream_log,
            self.missing_downstream,
            self.missing_upstream,
        ]

    def clear(self) -> list[Path]:
        """Delete the support files, returning the ones that existed."""
        removed = []
        for path in self.files:
            if path.exists():
                path.unlink()
                removed.append(path)
        return removed
