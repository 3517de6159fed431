from __future__ import annotations

import json
import ssl
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin
from urllib.request import Request, urlopen


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Status, headers and raw body of one docmend API call.

    Error statuses (413 for an oversized document, 422 for a body the
    service could not parse) come back as ordinary responses; callers
    check ``ok`` before reading a repaired document out of ``json()``.
    """

    status: int
    headers: Mapping[str, str]
    body_bytes: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        # UnicodeDecodeError and JSONDecodeError are both ValueError.
        return json.loads(self.body_bytes.decode("utf-8"))


class DocmendHttpClient:
    """Minimal stdlib-only HTTP client for the docmend API.

    Security notes:
    - Enforces a max body size so a huge document is rejected locally.
    - Does NOT disable TLS verification.

    """

    def __init__(self, base_url: str, *, timeout: float = 30.0, max_body_bytes: int = 2 * 1024 * 1024):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = float(timeout)
        self.max_body_bytes = int(max_body_bytes)

    def get(self, path: str) -> HttpResponse:
        """HTTP GET."""

        req = Request(url=self._url(path), method="GET")
        return _do_request(req, self.timeout)

    def post_json(self, path: str, payload: Any) -> HttpResponse:
        """HTTP POST with a JSON body."""

        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        if len(body) > self.max_body_bytes:
            raise ValueError(f"request body too large for client cap: {len(body)} > {self.max_body_bytes}")
        req = Request(url=self._url(path), data=body, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("Content-Length", str(len(body)))
        return _do_request(req, self.timeout)

    def normalize(self, content: Any) -> HttpResponse:
        return self.post_json("/normalize", {"content": content})

    def render(self, content: Any) -> HttpResponse:
        return self.post_json("/render", {"content": content})

    def validate(self, document: Any) -> HttpResponse:
        return self.post_json("/validate", {"document": document})

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))


def _do_request(req: Request, timeout: float) -> HttpResponse:
    # HTTPError subclasses URLError, so it has to be caught first.
    try:
        with urlopen(req, context=ssl.create_default_context(), timeout=timeout) as resp:
            return HttpResponse(status=int(resp.status), headers=dict(resp.headers.items()), body_bytes=resp.read())
    except HTTPError as e:
        return _error_response(e)
    except URLError as e:
        raise RuntimeError(f"cannot reach docmend API at {req.full_url}: {e.reason}") from e


def _error_response(e: HTTPError) -> HttpResponse:
    """Turn an HTTP error status from the service into a plain response."""

    headers = dict(e.headers.items()) if e.headers is not None else {}
    return HttpResponse(status=int(e.code), headers=headers, body_bytes=e.read() or b"")
