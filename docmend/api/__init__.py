"""docmend API package.

This module provides an optional FastAPI service layer around the document
normalizer, linkifier and validity checks.
"""

from .server import create_app  # noqa: F401
