from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .schema import (
    CELL_KINDS,
    INLINE_KINDS,
    LIST_KINDS,
    NodeKind,
    is_doc_tag,
    is_valid_document,
    kind_of,
)
from .text import ZERO_WIDTH_SPACE, is_blank_text, is_valid_mark

log = logging.getLogger("docmend.document")

# Kinds whose content must be non-empty.
_FILLED_KINDS = frozenset(
    {
        NodeKind.LIST_ITEM,
        NodeKind.BLOCKQUOTE,
        NodeKind.TABLE,
        NodeKind.TABLE_ROW,
        *LIST_KINDS,
        *CELL_KINDS,
    }
)
# Parents whose children must be block nodes.
_BLOCK_PARENTS = frozenset({NodeKind.DOC, NodeKind.LIST_ITEM, NodeKind.BLOCKQUOTE, *CELL_KINDS})


@dataclass(frozen=True)
class DocumentIssue:
    """One structural problem found in a candidate document.

    path is a JSONPath-like locator (``$.content[0].content[2]``); code is a
    stable machine-readable identifier.
    """

    path: str
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "code": self.code, "message": self.message}


def _short(value: Any, limit: int = 40) -> str:
    text = repr(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def describe_document(candidate: Any, *, limit: int = 500) -> List[DocumentIssue]:
    """List every place where a candidate tree breaks the document invariants.

    Unlike ``is_valid_document`` this checks the full set: list/table child
    constraints, heading levels, blank text, mark tags and empty containers.
    A normalized document always yields an empty list.

    Security notes:
    - Never echoes text content; messages carry type tags and paths only.
    - Iterative walk with cycle protection; at most ``limit`` issues.

    """

    if not isinstance(candidate, Mapping):
        return [
            DocumentIssue("$", "not_a_mapping", f"root is {type(candidate).__name__}, expected an object")
        ]

    issues: List[DocumentIssue] = []
    if not is_doc_tag(candidate.get("type")):
        issues.append(
            DocumentIssue("$", "root_type", f"root type is {_short(candidate.get('type'))}, expected 'doc'")
        )

    content = candidate.get("content")
    if not isinstance(content, list):
        issues.append(
            DocumentIssue("$.content", "root_content", f"content is {type(content).__name__}, expected a list")
        )
        return issues
    if not content:
        issues.append(DocumentIssue("$.content", "empty_container", "document has no content"))

    stack: List[Tuple[Any, str, Optional[NodeKind]]] = []
    seen = {id(content)}
    _push_children(stack, content, "$", NodeKind.DOC)

    while stack and len(issues) < limit:
        node, path, parent = stack.pop()
        issues.extend(_node_issues(node, path, parent))
        if not isinstance(node, Mapping):
            continue
        children = node.get("content")
        if isinstance(children, list) and id(children) not in seen:
            seen.add(id(children))
            _push_children(stack, children, path, kind_of(node))

    return issues[:limit]


def _push_children(stack: list, children: list, path: str, parent: Optional[NodeKind]) -> None:
    # Reversed so the walk reports issues in document order.
    for i in range(len(children) - 1, -1, -1):
        stack.append((children[i], f"{path}.content[{i}]", parent))


def _node_issues(node: Any, path: str, parent: Optional[NodeKind]) -> List[DocumentIssue]:
    if not isinstance(node, Mapping):
        return [DocumentIssue(path, "not_a_mapping", f"node is {type(node).__name__}, expected an object")]

    tag = node.get("type")
    if not isinstance(tag, str) or not tag.strip():
        return [DocumentIssue(path, "missing_type", "node has no type tag")]

    issues: List[DocumentIssue] = []
    kind = kind_of(node)

    misplaced = _misplacement(kind, parent)
    if misplaced:
        issues.append(DocumentIssue(path, "misplaced_node", misplaced))

    if kind is NodeKind.TEXT:
        text = node.get("text")
        if not isinstance(text, str):
            issues.append(DocumentIssue(path, "text_value", "text node value is not a string"))
        elif is_blank_text(text) and text != ZERO_WIDTH_SPACE:
            issues.append(DocumentIssue(path, "blank_text", "text node is empty or invisible whitespace"))

    marks = node.get("marks")
    if marks is not None:
        if not isinstance(marks, list):
            issues.append(DocumentIssue(path, "invalid_mark", "marks is not a list"))
        else:
            for i, mark in enumerate(marks):
                if not is_valid_mark(mark):
                    issues.append(DocumentIssue(f"{path}.marks[{i}]", "invalid_mark", "mark has no type tag"))

    if kind is NodeKind.HEADING:
        attrs = node.get("attrs")
        level = attrs.get("level") if isinstance(attrs, Mapping) else None
        if not isinstance(level, int) or isinstance(level, bool) or not 1 <= level <= 6:
            issues.append(DocumentIssue(path, "heading_level", f"heading level {_short(level)} is not in 1..6"))

    if kind in _FILLED_KINDS:
        children = node.get("content")
        if not isinstance(children, list) or not children:
            issues.append(DocumentIssue(path, "empty_container", f"{tag} has no content"))

    return issues


def _misplacement(kind: Optional[NodeKind], parent: Optional[NodeKind]) -> Optional[str]:
    if kind is NodeKind.DOC:
        return "doc nested inside another node"
    if kind is NodeKind.LIST_ITEM and parent not in LIST_KINDS:
        return "listItem outside a list"
    if kind is NodeKind.TABLE_ROW and parent is not NodeKind.TABLE:
        return "tableRow outside a table"
    if kind in CELL_KINDS and parent is not NodeKind.TABLE_ROW:
        return f"{kind.value} outside a tableRow"
    if parent in LIST_KINDS and kind is not NodeKind.LIST_ITEM:
        return f"{parent.value} child is not a listItem"
    if parent is NodeKind.TABLE and kind is not NodeKind.TABLE_ROW:
        return "table child is not a tableRow"
    if parent is NodeKind.TABLE_ROW and kind not in CELL_KINDS:
        return "tableRow child is not a cell"
    if parent in _BLOCK_PARENTS and kind in INLINE_KINDS:
        return f"inline {kind.value} directly inside {parent.value}"
    return None


def debug_document(candidate: Any, *, logger: Optional[logging.Logger] = None) -> List[DocumentIssue]:
    """Log the structural issues of a candidate document and return them.

    Diagnostic only: nothing is repaired. One warning per issue, then an
    info-level summary.
    """

    logger = logger or log
    issues = describe_document(candidate)
    for issue in issues:
        logger.warning("document_issue %s at %s: %s", issue.code, issue.path, issue.message)
    logger.info(
        "document_debug",
        extra={"issue_count": len(issues), "looks_valid": is_valid_document(candidate)},
    )
    return issues
