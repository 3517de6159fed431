"""Rich-text document tree repair.

Takes untrusted, possibly malformed TipTap/ProseMirror-style JSON (AI output,
partial edits, lossy imports) and rewrites it into a tree an editor can render
and re-serialize safely.

Security notes:
- Every input is treated as attacker-controlled; nothing here raises on bad shapes.
- Functions are pure: no I/O, no shared mutable state, safe to call concurrently.
"""

from .config import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT, NormalizerConfig
from .debug import DocumentIssue, debug_document, describe_document
from .linkify import URL_PATTERN, link_href, linkify_document, split_text_links
from .normalizer import NormalizationResult, normalize_document, repair_document
from .schema import (
    DOC_TYPE,
    DOC_TYPE_ALIASES,
    NodeKind,
    Repair,
    Slot,
    empty_document,
    is_valid_document,
)
from .text import ZERO_WIDTH_SPACE, clean_marks, is_blank_text

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "MAX_DEPTH_LIMIT",
    "NormalizerConfig",
    "NormalizationResult",
    "normalize_document",
    "repair_document",
    "linkify_document",
    "split_text_links",
    "link_href",
    "URL_PATTERN",
    "is_valid_document",
    "describe_document",
    "debug_document",
    "DocumentIssue",
    "DOC_TYPE",
    "DOC_TYPE_ALIASES",
    "NodeKind",
    "Repair",
    "Slot",
    "empty_document",
    "ZERO_WIDTH_SPACE",
    "clean_marks",
    "is_blank_text",
]
