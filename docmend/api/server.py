from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict

from fastapi import FastAPI

from docmend.api.middleware import AccessLogMiddleware, BodySizeLimitMiddleware, RequestIdMiddleware
from docmend.api.models import (
    IssueOut,
    NormalizeIn,
    NormalizeOut,
    RenderOut,
    ValidateIn,
    ValidateOut,
)
from docmend.core.document import (
    NormalizerConfig,
    describe_document,
    is_valid_document,
    linkify_document,
    repair_document,
)

log = logging.getLogger("docmend.api")


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service."""

    max_body_bytes: int = 2 * 1024 * 1024
    log_level: str = "INFO"
    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)

    @staticmethod
    def from_env() -> "ServiceConfig":
        """Build the service config from the environment.

        - DOCMEND_MAX_BODY_BYTES (default 2 MiB)
        - DOCMEND_LOG_LEVEL (default INFO)
        - DOCMEND_MAX_DEPTH (see NormalizerConfig.from_env)

        Security notes:
        - Env vars are treated as trusted server configuration.

        """

        level = (os.environ.get("DOCMEND_LOG_LEVEL") or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            level = "INFO"
        return ServiceConfig(
            max_body_bytes=_env_int("DOCMEND_MAX_BODY_BYTES", 2 * 1024 * 1024),
            log_level=level,
            normalizer=NormalizerConfig.from_env(),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


def create_app(*, config: ServiceConfig | None = None) -> FastAPI:
    """Create the FastAPI app.

    The service is stateless: every endpoint is a pure transform of the
    request body.
    """

    cfg = config or ServiceConfig.from_env()

    # Logging: safe defaults (no request bodies), can be configured by host app.
    log.setLevel(cfg.log_level)

    app = FastAPI(title="docmend API", version="0.1")
    app.state.cfg = cfg

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=cfg.max_body_bytes)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(AccessLogMiddleware)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "max_depth": cfg.normalizer.max_depth}

    @app.post("/normalize", response_model=NormalizeOut)
    def normalize_endpoint(body: NormalizeIn) -> NormalizeOut:
        """Repair untrusted content into a valid document before editing."""

        res = repair_document(body.content, config=cfg.normalizer)
        return NormalizeOut(document=res.document, repairs=res.repairs, input_valid=res.input_valid)

    @app.post("/render", response_model=RenderOut)
    def render_endpoint(body: NormalizeIn) -> RenderOut:
        """Read-only render path: normalize, then turn bare URLs into links."""

        res = repair_document(body.content, config=cfg.normalizer)
        return RenderOut(document=linkify_document(res.document, config=cfg.normalizer))

    @app.post("/validate", response_model=ValidateOut)
    def validate_endpoint(body: ValidateIn) -> ValidateOut:
        issues = describe_document(body.document)
        return ValidateOut(
            valid=is_valid_document(body.document),
            issues=[IssueOut(**issue.to_dict()) for issue in issues],
        )

    return app
