from __future__ import annotations

import logging
from collections import Counter
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import NormalizerConfig
from .schema import (
    CELL_KINDS,
    INLINE_KINDS,
    NodeKind,
    Repair,
    Slot,
    build_document,
    empty_list_item,
    empty_paragraph,
    empty_table_cell,
    empty_table_row,
    is_doc_tag,
    is_valid_document,
    kind_of,
    kind_of_tag,
)
from .text import ZERO_WIDTH_SPACE, clean_marks, is_blank_text

log = logging.getLogger("docmend.document")

_SEQUENCE_TYPES = (list, tuple)

Node = Dict[str, Any]


@dataclass(frozen=True)
class NormalizationResult:
    """Structured output of a normalization call.

    document is always a structurally valid tree. repairs counts what had to
    change, keyed by Repair values; input_valid is the cheap validity check
    applied to the raw input.
    """

    document: Node
    repairs: Dict[str, int]
    input_valid: bool


@dataclass
class _RepairContext:
    max_depth: int
    repairs: Counter = field(default_factory=Counter)

    def note(self, repair: Repair, count: int = 1) -> None:
        if count:
            self.repairs[repair.value] += count


def normalize_document(raw: Any, *, config: Optional[NormalizerConfig] = None) -> Node:
    """Rewrite an untrusted value into a structurally valid document tree.

    Accepts None, a bare sequence of nodes (content of an implicit doc), a
    single non-doc node, or a doc. Never raises; anything unusable collapses
    to the canonical empty document ``doc[paragraph[]]``.

    The input is never mutated and the output shares no mutable objects
    with it.
    """

    return repair_document(raw, config=config).document


def repair_document(raw: Any, *, config: Optional[NormalizerConfig] = None) -> NormalizationResult:
    """Normalize a document and report which repairs were applied.

    Time:  O(n) in the number of input nodes and characters
    Space: O(n)
    """

    cfg = config or NormalizerConfig()
    ctx = _RepairContext(max_depth=cfg.max_depth)

    content: List[Node]
    if (
        isinstance(raw, Mapping)
        and is_doc_tag(raw.get("type"))
        and isinstance(raw.get("content"), _SEQUENCE_TYPES)
    ):
        content = _fix_children(raw["content"], ctx, 0, Slot.BLOCK)
    elif isinstance(raw, _SEQUENCE_TYPES):
        content = _fix_children(raw, ctx, 0, Slot.BLOCK)
    elif isinstance(raw, Mapping):
        content = _fix_children([raw], ctx, 0, Slot.BLOCK)
    else:
        content = []

    if not content:
        ctx.note(Repair.CONTAINER_FILLED)

    result = NormalizationResult(
        document=build_document(content),
        repairs=dict(ctx.repairs),
        input_valid=is_valid_document(raw),
    )
    if result.repairs:
        log.debug("document_repaired", extra={"repairs": result.repairs})
    return result


# --- Dispatch ---


def _node_tag(raw: Any, ctx: _RepairContext) -> Optional[str]:
    """Return the usable type tag of a raw node, or None if it cannot be classified."""

    if not isinstance(raw, Mapping):
        return None
    tag = raw.get("type")
    if isinstance(tag, str) and tag.strip():
        return tag
    # Untyped nodes with a str text value are text runs.
    if isinstance(raw.get("text"), str):
        ctx.note(Repair.TEXT_TYPE_ADDED)
        return NodeKind.TEXT.value
    return None


def _fix_node(raw: Any, ctx: _RepairContext, depth: int, slot: Slot) -> Optional[Node]:
    tag = _node_tag(raw, ctx)
    if tag is None:
        ctx.note(Repair.NODE_DROPPED)
        return None
    if depth > ctx.max_depth:
        ctx.note(Repair.DEPTH_TRUNCATED)
        return None

    kind = kind_of_tag(tag)
    if kind is None:
        return _fix_extension(raw, tag, ctx, depth)
    return _FIXERS[kind](raw, kind, ctx, depth, slot)


def _fix_children(content: Sequence[Any], ctx: _RepairContext, depth: int, slot: Slot) -> List[Node]:
    fixed: List[Node] = []
    for raw in content:
        node = _fix_node(raw, ctx, depth + 1, slot)
        if node is not None:
            fixed.append(node)
    return _place(fixed, slot, ctx)


# --- Fixers ---


def _copy_value(value: Any, ctx: _RepairContext) -> Tuple[bool, Any]:
    try:
        return True, deepcopy(value)
    except RecursionError:
        ctx.note(Repair.DEPTH_TRUNCATED)
        return False, None


def _copy_attrs(node: Mapping[str, Any], ctx: _RepairContext) -> Optional[Dict[str, Any]]:
    attrs = node.get("attrs")
    if not isinstance(attrs, Mapping):
        return None
    ok, copied = _copy_value(dict(attrs), ctx)
    return copied if ok else None


def _children(node: Mapping[str, Any]) -> Optional[Sequence[Any]]:
    content = node.get("content")
    return content if isinstance(content, _SEQUENCE_TYPES) else None


def _rebuild(
    tag: str, node: Mapping[str, Any], ctx: _RepairContext, content: Optional[List[Node]] = None
) -> Node:
    out: Node = {"type": tag}
    attrs = _copy_attrs(node, ctx)
    if attrs is not None:
        out["attrs"] = attrs
    if content is not None:
        out["content"] = content
    return out


# kind -> (slot of its children, factory for the fallback child or None)
_CONTAINERS: Dict[NodeKind, Tuple[Slot, Optional[Callable[[], Node]]]] = {
    NodeKind.PARAGRAPH: (Slot.PARAGRAPH, None),
    NodeKind.CODE_BLOCK: (Slot.INLINE, None),
    NodeKind.BLOCKQUOTE: (Slot.BLOCK, empty_paragraph),
    NodeKind.LIST_ITEM: (Slot.BLOCK, empty_paragraph),
    NodeKind.TABLE_CELL: (Slot.BLOCK, empty_paragraph),
    NodeKind.TABLE_HEADER: (Slot.BLOCK, empty_paragraph),
    NodeKind.BULLET_LIST: (Slot.LIST, empty_list_item),
    NodeKind.ORDERED_LIST: (Slot.LIST, empty_list_item),
    NodeKind.TABLE: (Slot.TABLE, empty_table_row),
    NodeKind.TABLE_ROW: (Slot.ROW, empty_table_cell),
}


def _fix_container(
    node: Mapping[str, Any], kind: NodeKind, ctx: _RepairContext, depth: int, slot: Slot
) -> Node:
    child_slot, fallback = _CONTAINERS[kind]
    content = _children(node)
    fixed = _fix_children(content, ctx, depth, child_slot) if content is not None else []
    if not fixed and fallback is not None:
        ctx.note(Repair.CONTAINER_FILLED)
        fixed = [fallback()]
    return _rebuild(kind.value, node, ctx, fixed)


def _fix_doc(node: Mapping[str, Any], kind: NodeKind, ctx: _RepairContext, depth: int, slot: Slot) -> Node:
    # Nested docs are spliced into their parent during placement.
    content = _children(node)
    fixed = _fix_children(content, ctx, depth, Slot.BLOCK) if content is not None else []
    if not fixed:
        ctx.note(Repair.CONTAINER_FILLED)
    return build_document(fixed)


def _heading_level(*candidates: Any) -> int:
    for value in candidates:
        if isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 6:
            return value
    return 1


def _fix_heading(node: Mapping[str, Any], kind: NodeKind, ctx: _RepairContext, depth: int, slot: Slot) -> Node:
    attrs = _copy_attrs(node, ctx) or {}
    original = attrs.get("level")
    level = _heading_level(original, node.get("level"))
    if isinstance(original, bool) or original != level:
        ctx.note(Repair.HEADING_LEVEL_CLAMPED)
    attrs["level"] = level

    content = _children(node)
    return {
        "type": kind.value,
        "attrs": attrs,
        "content": _fix_children(content, ctx, depth, Slot.INLINE) if content is not None else [],
    }


def _fix_leaf(node: Mapping[str, Any], kind: NodeKind, ctx: _RepairContext, depth: int, slot: Slot) -> Node:
    return _rebuild(kind.value, node, ctx)


def _fix_text(
    node: Mapping[str, Any], kind: NodeKind, ctx: _RepairContext, depth: int, slot: Slot
) -> Optional[Node]:
    """Fix a text node.

    Blank values (empty once NBSP, narrow NBSP and ZWSP are removed) become a
    single ZWSP so marks and cursor anchoring survive. Inside a paragraph a
    blank run with no marks carries nothing worth keeping and is removed.
    """

    raw = node.get("text")
    text = raw if isinstance(raw, str) else ""
    marks, dropped = clean_marks(node.get("marks"))
    ctx.note(Repair.MARK_DROPPED, dropped)

    if is_blank_text(text):
        if slot is Slot.PARAGRAPH and not marks:
            ctx.note(Repair.BLANK_TEXT_REMOVED)
            return None
        if text != ZERO_WIDTH_SPACE:
            ctx.note(Repair.BLANK_TEXT_REPLACED)
        text = ZERO_WIDTH_SPACE

    return {"type": NodeKind.TEXT.value, "text": text, "marks": marks}


def _fix_extension(node: Mapping[str, Any], tag: str, ctx: _RepairContext, depth: int) -> Node:
    """Pass an unknown node through, repairing only content, marks and attrs.

    Every other key is kept verbatim and in order. content and marks are
    touched only when they are sequences; no fallback content is injected.
    """

    out: Node = {"type": tag}
    for key, value in node.items():
        if key == "type":
            continue
        if key == "content":
            if isinstance(value, _SEQUENCE_TYPES):
                out["content"] = _fix_children(value, ctx, depth, Slot.OPEN)
        elif key == "marks":
            if isinstance(value, _SEQUENCE_TYPES):
                marks, dropped = clean_marks(value)
                ctx.note(Repair.MARK_DROPPED, dropped)
                out["marks"] = marks
        elif key == "attrs":
            if isinstance(value, Mapping):
                attrs = _copy_attrs(node, ctx)
                if attrs is not None:
                    out["attrs"] = attrs
        else:
            ok, copied = _copy_value(value, ctx)
            if ok:
                out[key] = copied
    return out


_FIXERS: Dict[NodeKind, Callable[..., Optional[Node]]] = {
    **{kind: _fix_container for kind in _CONTAINERS},
    NodeKind.DOC: _fix_doc,
    NodeKind.HEADING: _fix_heading,
    NodeKind.HORIZONTAL_RULE: _fix_leaf,
    NodeKind.HARD_BREAK: _fix_leaf,
    NodeKind.TEXT: _fix_text,
}

_missing = sorted(k.value for k in set(NodeKind) - set(_FIXERS))
if _missing:
    raise RuntimeError(f"no fixer registered for node kinds: {_missing}")


# --- Placement ---


def _stray_group(node: Node, slot: Slot) -> Optional[str]:
    """Return None if node belongs in slot, else the group strays are collected into."""

    kind = kind_of(node)

    if slot in (Slot.PARAGRAPH, Slot.INLINE):
        if kind is None or kind in INLINE_KINDS:
            return None
        return "flatten"

    if slot is Slot.LIST:
        return None if kind is NodeKind.LIST_ITEM else "item"

    if slot is Slot.TABLE:
        if kind is NodeKind.TABLE_ROW:
            return None
        return "row" if kind in CELL_KINDS else "cell"

    if slot is Slot.ROW:
        if kind in CELL_KINDS:
            return None
        return "splice" if kind is NodeKind.TABLE_ROW else "cell"

    # BLOCK and OPEN
    if kind is NodeKind.DOC:
        return "splice"
    if kind is NodeKind.LIST_ITEM:
        return "list"
    if kind is NodeKind.TABLE_ROW:
        return "table"
    if kind in CELL_KINDS:
        return "row_table"
    if slot is Slot.BLOCK and kind in INLINE_KINDS:
        return "paragraph"
    return None


def _place(nodes: List[Node], slot: Slot, ctx: _RepairContext) -> List[Node]:
    """Keep nodes that belong in slot; wrap or unwrap runs of consecutive strays."""

    out: List[Node] = []
    pending: List[Node] = []
    pending_group: Optional[str] = None

    for node in nodes:
        group = _stray_group(node, slot)
        if pending and group != pending_group:
            out.extend(_wrap(pending_group, pending, slot, ctx))
            pending = []
        pending_group = group
        if group is None:
            out.append(node)
        else:
            pending.append(node)

    if pending:
        out.extend(_wrap(pending_group, pending, slot, ctx))
    return out


def _wrap(group: Optional[str], nodes: List[Node], slot: Slot, ctx: _RepairContext) -> List[Node]:
    if group == "splice":
        ctx.note(Repair.NODE_UNWRAPPED, len(nodes))
        return [child for node in nodes for child in node.get("content", [])]

    if group == "flatten":
        ctx.note(Repair.NODE_UNWRAPPED, len(nodes))
        leaves = [leaf for node in nodes for leaf in _inline_leaves(node)]
        return _paragraph_inline(leaves, ctx) if slot is Slot.PARAGRAPH else leaves

    ctx.note(Repair.NODE_WRAPPED, len(nodes))
    if group == "paragraph":
        return [{"type": NodeKind.PARAGRAPH.value, "content": _paragraph_inline(nodes, ctx)}]
    if group == "list":
        return [{"type": NodeKind.BULLET_LIST.value, "content": nodes}]
    if group == "table":
        return [{"type": NodeKind.TABLE.value, "content": nodes}]
    if group == "row_table":
        row = {"type": NodeKind.TABLE_ROW.value, "content": nodes}
        return [{"type": NodeKind.TABLE.value, "content": [row]}]
    if group == "row":
        return [{"type": NodeKind.TABLE_ROW.value, "content": nodes}]
    if group == "item":
        blocks = _place(nodes, Slot.BLOCK, ctx) or [empty_paragraph()]
        return [{"type": NodeKind.LIST_ITEM.value, "content": blocks}]
    if group == "cell":
        blocks = _place(nodes, Slot.BLOCK, ctx) or [empty_paragraph()]
        cell = {"type": NodeKind.TABLE_CELL.value, "content": blocks}
        if slot is Slot.ROW:
            return [cell]
        return [{"type": NodeKind.TABLE_ROW.value, "content": [cell]}]
    raise ValueError(f"Unknown stray group: {group}")


def _inline_leaves(node: Node) -> List[Node]:
    """Collect the inline content of an already-fixed node, in order."""

    kind = kind_of(node)
    if kind is None or kind in INLINE_KINDS:
        return [node]
    if kind is NodeKind.HORIZONTAL_RULE:
        return []
    leaves: List[Node] = []
    for child in node.get("content", []):
        leaves.extend(_inline_leaves(child))
    return leaves


def _paragraph_inline(nodes: List[Node], ctx: _RepairContext) -> List[Node]:
    # Paragraph content drops blank, unmarked text runs.
    out: List[Node] = []
    for node in nodes:
        if kind_of(node) is NodeKind.TEXT and not node["marks"] and is_blank_text(node["text"]):
            ctx.note(Repair.BLANK_TEXT_REMOVED)
            continue
        out.append(node)
    return out
