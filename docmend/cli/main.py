from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List

from docmend.cli.client_cmds import register_client_commands
from docmend.core.document import (
    MAX_DEPTH_LIMIT,
    NormalizerConfig,
    describe_document,
    is_valid_document,
    linkify_document,
    repair_document,
)


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def read_json_input(path: str) -> Any:
    """Read a JSON document from a file path, or stdin when path is "-".

    Raises OSError when the file cannot be opened and ValueError when it is
    not JSON the decoder can handle, including nesting too deep to decode.
    """

    try:
        if path == "-":
            return json.loads(sys.stdin.read())
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except RecursionError as e:
        raise ValueError("JSON nesting is too deep") from e


def _depth_arg(raw: str) -> int:
    value = int(raw)
    if not 1 <= value <= MAX_DEPTH_LIMIT:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_DEPTH_LIMIT}")
    return value


def _config_from_args(args: argparse.Namespace) -> NormalizerConfig:
    if getattr(args, "max_depth", None):
        return NormalizerConfig(max_depth=args.max_depth)
    return NormalizerConfig.from_env()


def cmd_normalize(args: argparse.Namespace) -> int:
    """Normalize a JSON document and print the repaired tree."""

    try:
        raw = read_json_input(args.file)
    except (OSError, ValueError) as e:
        print(f"error: cannot read JSON input: {e}", file=sys.stderr)
        return 2

    cfg = _config_from_args(args)
    res = repair_document(raw, config=cfg)
    document = linkify_document(res.document, config=cfg) if args.linkify else res.document

    if args.report:
        _print_json({"document": document, "repairs": res.repairs, "input_valid": res.input_valid})
    else:
        _print_json(document)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Check a JSON document without repairing it.

    Exit code 0 when the document is clean, 1 when it has issues.
    """

    try:
        raw = read_json_input(args.file)
    except (OSError, ValueError) as e:
        print(f"error: cannot read JSON input: {e}", file=sys.stderr)
        return 2

    valid = is_valid_document(raw)
    issues = describe_document(raw)

    if args.json:
        _print_json({"valid": valid, "issues": [i.to_dict() for i in issues]})
    else:
        print(f"Looks valid: {'yes' if valid else 'no'}")
        print(f"Issues: {len(issues)}")
        for issue in issues:
            print(f"  {issue.path}  {issue.code}: {issue.message}")

    return 0 if valid and not issues else 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the docmend API server.

    Security notes:
    - Bind to 127.0.0.1 by default (safer than 0.0.0.0).

    """

    try:
        import uvicorn
    except Exception as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return 2

    try:
        from docmend.api.server import create_app
    except Exception as e:
        print(f"error: API server dependencies missing: {e}", file=sys.stderr)
        return 2

    app = create_app()
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="docmend", description="Rich-text document tree repair")
    sub = p.add_subparsers(dest="cmd", required=True)

    np = sub.add_parser("normalize", help="Repair a JSON document and print it")
    np.add_argument("file", help="Path to a JSON file, or - for stdin")
    np.add_argument("--linkify", action="store_true", help="Turn bare URLs into links (read-only view)")
    np.add_argument("--report", action="store_true", help="Also print repair counts")
    np.add_argument("--max-depth", type=_depth_arg, default=None, help="Nesting depth limit")
    np.set_defaults(func=cmd_normalize)

    vp = sub.add_parser("validate", help="Report structural issues without repairing")
    vp.add_argument("file", help="Path to a JSON file, or - for stdin")
    vp.add_argument("--json", action="store_true", help="Print JSON")
    vp.set_defaults(func=cmd_validate)

    sv = sub.add_parser("serve", help="Run the docmend FastAPI server")
    sv.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    sv.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    sv.add_argument("--log-level", default="info", help="Uvicorn log level")
    sv.set_defaults(func=cmd_serve)

    # --- API client ---
    register_client_commands(sub)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
