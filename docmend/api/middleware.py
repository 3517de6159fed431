from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

log = logging.getLogger("docmend.api")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each normalize/render/validate call with an id for log correlation.

    The id is echoed in the X-Request-ID response header and carried into the
    access log. A caller-supplied id is reused only when it is 1..128
    characters of [A-Za-z0-9._-]; anything else (including ids carrying
    newlines that could forge log lines) is replaced with a fresh uuid4 hex.
    """

    _SAFE_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")

    def __init__(self, app, *, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self._header_name = header_name

    def _request_id(self, request: Request) -> str:
        supplied = request.headers.get(self._header_name, "")
        return supplied if self._SAFE_ID.fullmatch(supplied) else uuid4().hex

    async def dispatch(self, request: Request, call_next: Callable):
        request.state.request_id = rid = self._request_id(request)
        response: Response = await call_next(request)
        response.headers[self._header_name] = rid
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than max_bytes with 413.

    Relies on Content-Length; requests that omit it are passed through and
    bounded by the ASGI server.

    """

    def __init__(self, app, *, max_bytes: int):
        super().__init__(app)
        self._max_bytes = int(max_bytes)

    async def dispatch(self, request: Request, call_next: Callable):
        raw = request.headers.get("content-length")
        if raw is not None:
            try:
                size = int(raw)
            except ValueError:
                return JSONResponse({"error": "bad_content_length"}, status_code=400)
            if size > self._max_bytes:
                return JSONResponse(
                    {"error": "payload_too_large", "detail": f"limit is {self._max_bytes} bytes"},
                    status_code=413,
                )
        return await call_next(request)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Structured access logging.

    Security notes:
    - Never logs request bodies; documents may hold confidential policy text.

    """

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            return response
        finally:
            dur_ms = int((time.monotonic() - start) * 1000)
            log.info(
                "api_request",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": dur_ms,
                },
            )
