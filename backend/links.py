"""Wiki-link text for a chosen suggestion."""

from __future__ import annotations

from models import EntryKind, IndexEntry


def link_target(kind: EntryKind, source_title: str, target: str) -> str:
    if kind == EntryKind.HEADING:
        return f"{source_title}#{target}"
    if kind == EntryKind.BLOCK:
        return f"{source_title}#^{target}"
    return target


def build_link(entry: IndexEntry, query: str = "") -> str:
    """Render ``entry`` as ``[[target|query]]``, keeping the typed text as label.

    Titles and tags link straight to their target; headings and blocks are
    anchored inside the owning document.
    """
    destination = link_target(entry.kind, entry.source_title, entry.target)
    if not query:
        return f"[[{destination}]]"
    return f"[[{destination}|{query}]]"
