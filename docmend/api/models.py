from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ApiError(BaseModel):
    """Standard API error payload."""

    error: str
    detail: Optional[str] = None


class NormalizeIn(BaseModel):
    """Untrusted document content; any JSON value is accepted."""

    content: Any = None


class NormalizeOut(BaseModel):
    """Normalization result."""

    document: Dict[str, Any]
    repairs: Dict[str, int] = Field(default_factory=dict)
    input_valid: bool


class RenderOut(BaseModel):
    """Read-only render view: normalized and linkified."""

    document: Dict[str, Any]


class ValidateIn(BaseModel):
    document: Any = None


class IssueOut(BaseModel):
    path: str
    code: str
    message: str


class ValidateOut(BaseModel):
    """Validity report.

    valid is the cheap structural check; issues lists every invariant the
    document breaks.
    """

    valid: bool
    issues: List[IssueOut] = Field(default_factory=list)
