from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from .config import NormalizerConfig
from .schema import NodeKind, is_doc_tag
from .text import has_link_mark

LINK_MARK_TYPE: str = "link"

# Compiled patterns hold no scan state; every call iterates with a fresh finditer.
URL_PATTERN = re.compile(r"(?:https?://|www\.)[^\s)]+")


def link_href(url: str) -> str:
    """Return the link target for a matched URL (bare www. hosts get https://)."""

    if url.startswith("www."):
        return f"https://{url}"
    return url


def linkify_document(doc: Any, *, config: Optional[NormalizerConfig] = None) -> Any:
    """Turn bare URLs inside plain text runs into link-marked runs.

    Meant for the read-only render path only. Text that already carries a
    link mark, and text inside code blocks, is left alone.

    Unchanged subtrees come back as the very same objects, so callers can
    use identity as a "nothing changed" signal. Anything that is not a doc
    is returned unchanged.

    Time:  O(n) in the number of nodes and characters
    Space: O(n)
    """

    if not isinstance(doc, Mapping) or not is_doc_tag(doc.get("type")):
        return doc
    cfg = config or NormalizerConfig()
    return _linkify_node(doc, 0, cfg.max_depth)


def _linkify_node(node: Mapping[str, Any], depth: int, max_depth: int) -> Any:
    content = node.get("content")
    if not isinstance(content, list) or depth >= max_depth:
        return node
    if node.get("type") == NodeKind.CODE_BLOCK.value:
        return node

    changed = False
    out: List[Any] = []
    for child in content:
        if not isinstance(child, Mapping):
            out.append(child)
            continue
        if child.get("type") == NodeKind.TEXT.value:
            runs = split_text_links(child)
            if len(runs) != 1 or runs[0] is not child:
                changed = True
            out.extend(runs)
            continue
        fixed = _linkify_node(child, depth + 1, max_depth)
        if fixed is not child:
            changed = True
        out.append(fixed)

    if not changed:
        return node
    return {**node, "content": out}


def split_text_links(node: Mapping[str, Any]) -> List[Any]:
    """Split one text node into alternating plain and link-marked runs.

    Returns ``[node]`` (the same object) when there is nothing to link.
    """

    text = node.get("text")
    if not isinstance(text, str) or has_link_mark(node):
        return [node]

    matches = list(URL_PATTERN.finditer(text))
    if not matches:
        return [node]

    raw_marks = node.get("marks")
    base_marks: List[Any] = list(raw_marks) if isinstance(raw_marks, list) else []

    runs: List[Dict[str, Any]] = []
    cursor = 0
    for match in matches:
        start, end = match.span()
        if start > cursor:
            runs.append({**node, "text": text[cursor:start]})
        url = match.group(0)
        link = {"type": LINK_MARK_TYPE, "attrs": {"href": link_href(url)}}
        runs.append({**node, "text": url, "marks": base_marks + [link]})
        cursor = end
    if cursor < len(text):
        runs.append({**node, "text": text[cursor:]})
    return runs
