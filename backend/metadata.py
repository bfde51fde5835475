"""Markdown metadata extraction: frontmatter tags, headings and block ids."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Tuple

import frontmatter

from models import DocumentMetadata

log = logging.getLogger("phraselink.metadata")


_CODE_FENCE_RE = re.compile(r"(?ms)^[ \t]{0,3}(```|~~~).*?^[ \t]{0,3}\1[^\n]*$")
_HEADING_LINE_RE = re.compile(r"(?m)^[ \t]{0,3}#{1,6}[ \t]+(.+?)[ \t]*$")
_CLOSING_HASHES_RE = re.compile(r"[ \t]+#+$")
_BLOCK_ID_RE = re.compile(r"(?m)(?:^|[ \t])\^([A-Za-z0-9-]+)[ \t]*$")


def normalize_tags(raw: Any) -> List[str]:
    """Canonicalize frontmatter tags into a list of strings.

    Accepts a list (``tags: [a, b]``) or a comma-separated string
    (``tags: a, b``); anything else contributes no tags.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        items: List[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        return []

    tags: List[str] = []
    for item in items:
        if item is None or isinstance(item, (dict, list, tuple)):
            continue
        tag = str(item).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _split_frontmatter(content: str) -> Tuple[dict, str]:
    try:
        post = frontmatter.loads(content)
    except Exception as exc:
        log.debug("Ignoring unreadable frontmatter: %s", exc)
        return {}, content
    return dict(post.metadata or {}), post.content


def _mask_code_fences(body: str) -> str:
    # Blank fenced code but keep line structure so regexes stay line-anchored.
    return _CODE_FENCE_RE.sub(lambda m: "\n" * m.group(0).count("\n"), body)


def extract_headings(body: str) -> List[str]:
    headings: List[str] = []
    for m in _HEADING_LINE_RE.finditer(_mask_code_fences(body)):
        title = _CLOSING_HASHES_RE.sub("", m.group(1)).strip()
        if title:
            headings.append(title)
    return headings


def extract_block_ids(body: str) -> List[str]:
    block_ids: List[str] = []
    for m in _BLOCK_ID_RE.finditer(_mask_code_fences(body)):
        block_id = m.group(1)
        if block_id not in block_ids:
            block_ids.append(block_id)
    return block_ids


def extract_metadata(content: str) -> DocumentMetadata:
    """Collect the linkable attributes of a markdown document."""
    meta, body = _split_frontmatter(content or "")
    return DocumentMetadata(
        tags=normalize_tags(meta.get("tags")),
        headings=extract_headings(body),
        block_ids=extract_block_ids(body),
    )
