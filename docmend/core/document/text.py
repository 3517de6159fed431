from __future__ import annotations

import re
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Tuple

ZERO_WIDTH_SPACE: str = "\u200b"

# Removed before the blank check; ZWSP is not whitespace to str.strip().
_INVISIBLE = re.compile("[\u00a0\u202f\u200b]")


def is_blank_text(value: str) -> bool:
    """Return True if a text value would render as nothing.

    Time:  O(len(value))
    Space: O(len(value))
    """

    return _INVISIBLE.sub("", value).strip() == ""


def is_valid_mark(mark: Any) -> bool:
    if not isinstance(mark, Mapping):
        return False
    tag = mark.get("type")
    return isinstance(tag, str) and tag.strip() != ""


def clean_marks(marks: Any) -> Tuple[List[Dict[str, Any]], int]:
    """Sanitize a marks sequence.

    Returns (marks, dropped). Marks without a usable type tag are dropped;
    well-formed marks keep their attrs verbatim (deep-copied) and lose any
    other keys.
    """

    if not isinstance(marks, (list, tuple)):
        return [], 0

    out: List[Dict[str, Any]] = []
    dropped = 0
    for mark in marks:
        if not is_valid_mark(mark):
            dropped += 1
            continue
        cleaned: Dict[str, Any] = {"type": mark["type"]}
        attrs = mark.get("attrs")
        if isinstance(attrs, Mapping):
            try:
                cleaned["attrs"] = deepcopy(dict(attrs))
            except RecursionError:
                dropped += 1
                continue
        out.append(cleaned)
    return out, dropped


def has_link_mark(node: Mapping[str, Any]) -> bool:
    marks = node.get("marks")
    if not isinstance(marks, (list, tuple)):
        return False
    return any(isinstance(m, Mapping) and m.get("type") == "link" for m in marks)
