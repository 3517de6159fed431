from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

DOC_TYPE: str = "doc"
# Accepted on input; output always uses DOC_TYPE.
DOC_TYPE_ALIASES: FrozenSet[str] = frozenset({"doc", "Document"})


class NodeKind(str, Enum):
    """Closed set of node kinds the normalizer knows how to repair.

    Any other type tag is an extension node (mentions, file attachments, ...)
    and goes through the passthrough fixer.
    """

    DOC = "doc"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "codeBlock"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    TABLE = "table"
    TABLE_ROW = "tableRow"
    TABLE_CELL = "tableCell"
    TABLE_HEADER = "tableHeader"
    HORIZONTAL_RULE = "horizontalRule"
    HARD_BREAK = "hardBreak"
    TEXT = "text"


_KINDS_BY_TAG: Dict[str, NodeKind] = {k.value: k for k in NodeKind}

LIST_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.BULLET_LIST, NodeKind.ORDERED_LIST})
CELL_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.TABLE_CELL, NodeKind.TABLE_HEADER})
INLINE_KINDS: FrozenSet[NodeKind] = frozenset({NodeKind.TEXT, NodeKind.HARD_BREAK})


class Slot(str, Enum):
    """Where a child sequence sits, which decides how strays are placed."""

    BLOCK = "block"
    PARAGRAPH = "paragraph"
    INLINE = "inline"
    LIST = "list"
    TABLE = "table"
    ROW = "row"
    OPEN = "open"


class Repair(str, Enum):
    """Kinds of repair recorded while normalizing a document."""

    NODE_DROPPED = "node_dropped"
    TEXT_TYPE_ADDED = "text_type_added"
    BLANK_TEXT_REPLACED = "blank_text_replaced"
    BLANK_TEXT_REMOVED = "blank_text_removed"
    MARK_DROPPED = "mark_dropped"
    HEADING_LEVEL_CLAMPED = "heading_level_clamped"
    CONTAINER_FILLED = "container_filled"
    NODE_WRAPPED = "node_wrapped"
    NODE_UNWRAPPED = "node_unwrapped"
    DEPTH_TRUNCATED = "depth_truncated"


def kind_of_tag(tag: Any) -> Optional[NodeKind]:
    """Return the NodeKind for a type tag, or None for extension/unknown tags."""

    if not isinstance(tag, str):
        return None
    if tag in DOC_TYPE_ALIASES:
        return NodeKind.DOC
    return _KINDS_BY_TAG.get(tag)


def is_doc_tag(tag: Any) -> bool:
    return isinstance(tag, str) and tag in DOC_TYPE_ALIASES


def kind_of(node: Any) -> Optional[NodeKind]:
    if not isinstance(node, Mapping):
        return None
    return kind_of_tag(node.get("type"))


# --- Canonical empty structures ---


def empty_paragraph() -> Dict[str, Any]:
    return {"type": NodeKind.PARAGRAPH.value, "content": []}


def empty_list_item() -> Dict[str, Any]:
    return {"type": NodeKind.LIST_ITEM.value, "content": [empty_paragraph()]}


def empty_table_cell() -> Dict[str, Any]:
    return {"type": NodeKind.TABLE_CELL.value, "content": [empty_paragraph()]}


def empty_table_row() -> Dict[str, Any]:
    return {"type": NodeKind.TABLE_ROW.value, "content": [empty_table_cell()]}


def empty_document() -> Dict[str, Any]:
    """Return the canonical empty document: doc[paragraph[]]."""

    return {"type": DOC_TYPE, "content": [empty_paragraph()]}


def build_document(content: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": DOC_TYPE, "content": content or [empty_paragraph()]}


def is_valid_document(candidate: Any) -> bool:
    """Cheap "looks parseable" check for a document tree.

    The root must be a mapping with a doc type tag and a list ``content``;
    every object reachable through ``content`` lists must be a mapping with a
    string ``type``. Deeper invariants (list/table children, heading levels,
    blank text) are not checked here; see ``describe_document`` for that.

    Walks with an explicit stack so deeply nested input cannot blow the
    interpreter's recursion limit.

    Time:  O(n) in the number of nodes
    Space: O(d) where d is the widest pending frontier
    """

    if not isinstance(candidate, Mapping):
        return False
    if not is_doc_tag(candidate.get("type")):
        return False
    content = candidate.get("content")
    if not isinstance(content, list):
        return False

    stack: List[list] = [content]
    seen: set = set()
    while stack:
        children = stack.pop()
        if id(children) in seen:
            continue
        seen.add(id(children))
        for child in children:
            if not isinstance(child, Mapping) or not isinstance(child.get("type"), str):
                return False
            nested = child.get("content")
            if isinstance(nested, list):
                stack.append(nested)
    return True
