"""HTTP client utilities for talking to the docmend API.

Security notes:
- Treat server responses as untrusted input.
- Avoid printing or logging document text.
"""

from .http import DocmendHttpClient, HttpResponse  # noqa: F401
