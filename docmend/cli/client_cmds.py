from __future__ import annotations

import argparse
import json
import os
import sys

from docmend.client.http import DocmendHttpClient, HttpResponse


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def _client(args: argparse.Namespace) -> DocmendHttpClient:
    return DocmendHttpClient(args.url, timeout=args.timeout)


def _emit(r: HttpResponse) -> int:
    if not r.ok:
        print(r.body_bytes.decode("utf-8", errors="replace"), file=sys.stderr)
        return 2
    try:
        payload = r.json()
    except ValueError as e:
        print(f"error: response is not JSON: {e}", file=sys.stderr)
        return 2
    _print_json(payload)
    return 0


def _load(path: str):
    # Imported lazily to avoid a cycle with docmend.cli.main.
    from docmend.cli.main import read_json_input

    return read_json_input(path)


def cmd_client_health(args: argparse.Namespace) -> int:
    """Call GET /health.

    Security notes:
    - Treat server response as untrusted.

    """
    try:
        return _emit(_client(args).get("/health"))
    except RuntimeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


def cmd_client_normalize(args: argparse.Namespace) -> int:
    """Send a JSON document to POST /normalize (or /render with --linkify)."""
    try:
        content = _load(args.file)
    except (OSError, ValueError) as e:
        print(f"error: cannot read JSON input: {e}", file=sys.stderr)
        return 2
    c = _client(args)
    try:
        r = c.render(content) if args.linkify else c.normalize(content)
    except (RuntimeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return _emit(r)


def cmd_client_validate(args: argparse.Namespace) -> int:
    """Send a JSON document to POST /validate."""
    try:
        document = _load(args.file)
    except (OSError, ValueError) as e:
        print(f"error: cannot read JSON input: {e}", file=sys.stderr)
        return 2
    try:
        r = _client(args).validate(document)
    except (RuntimeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return _emit(r)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--url",
        default=os.environ.get("DOCMEND_URL", "http://127.0.0.1:8080"),
        help="API base URL (default: $DOCMEND_URL or http://127.0.0.1:8080)",
    )
    p.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")


def register_client_commands(sub: argparse._SubParsersAction) -> None:
    """Register API client subcommands."""

    ch = sub.add_parser("client-health", help="Call the API health endpoint")
    _add_common(ch)
    ch.set_defaults(func=cmd_client_health)

    cn = sub.add_parser("client-normalize", help="Normalize a JSON document via the API")
    cn.add_argument("file", help="Path to a JSON file, or - for stdin")
    cn.add_argument("--linkify", action="store_true", help="Use the read-only render endpoint")
    _add_common(cn)
    cn.set_defaults(func=cmd_client_normalize)

    cv = sub.add_parser("client-validate", help="Validate a JSON document via the API")
    cv.add_argument("file", help="Path to a JSON file, or - for stdin")
    _add_common(cv)
    cv.set_defaults(func=cmd_client_validate)
