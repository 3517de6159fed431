from __future__ import annotations

import io
import json

import pytest

from docmend.cli.main import build_parser, main


def _write(tmp_path, obj, name="doc.json"):
    p = tmp_path / name
    p.write_text(json.dumps(obj), encoding="utf-8")
    return str(p)


def test_cli_normalize_prints_document(tmp_path, capsys):
    path = _write(tmp_path, {"type": "bulletList"})

    assert main(["normalize", path]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out == {
        "type": "doc",
        "content": [
            {
                "type": "bulletList",
                "content": [{"type": "listItem", "content": [{"type": "paragraph", "content": []}]}],
            }
        ],
    }


def test_cli_normalize_report_and_linkify(tmp_path, capsys):
    path = _write(tmp_path, [{"text": "see www.comp.ai"}])

    assert main(["normalize", path, "--report", "--linkify"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["input_valid"] is False
    assert out["repairs"]["text_type_added"] == 1
    runs = out["document"]["content"][0]["content"]
    assert runs[1]["marks"] == [{"type": "link", "attrs": {"href": "https://www.comp.ai"}}]


def test_cli_normalize_max_depth(tmp_path, capsys):
    nested = {"type": "blockquote", "content": [{"type": "blockquote", "content": [{"type": "paragraph"}]}]}
    path = _write(tmp_path, nested)

    assert main(["normalize", path, "--max-depth", "1"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["content"] == [{"type": "blockquote", "content": [{"type": "paragraph", "content": []}]}]


def test_cli_normalize_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO('{"type": "doc", "content": []}'))

    assert main(["normalize", "-"]) == 0

    assert json.loads(capsys.readouterr().out)["content"] == [{"type": "paragraph", "content": []}]


def test_cli_normalize_bad_input_exits_2(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")

    assert main(["normalize", str(bad)]) == 2
    assert main(["normalize", str(tmp_path / "missing.json")]) == 2
    assert "cannot read JSON input" in capsys.readouterr().err


def test_cli_validate_text_output(tmp_path, capsys):
    path = _write(tmp_path, {"type": "doc", "content": [{"type": "listItem", "content": []}]})

    assert main(["validate", path]) == 1

    out = capsys.readouterr().out
    assert "Looks valid: yes" in out
    assert "Issues: 2" in out
    assert "$.content[0]  misplaced_node" in out


def test_cli_validate_json_output_for_clean_document(tmp_path, capsys):
    path = _write(tmp_path, {"type": "doc", "content": [{"type": "paragraph", "content": []}]})

    assert main(["validate", path, "--json"]) == 0

    assert json.loads(capsys.readouterr().out) == {"valid": True, "issues": []}


def test_cli_parser_registers_client_commands():
    parser = build_parser()

    args = parser.parse_args(["client-normalize", "doc.json", "--linkify", "--url", "http://svc:9000"])
    assert args.linkify is True
    assert args.url == "http://svc:9000"
    assert args.func.__name__ == "cmd_client_normalize"

    args = parser.parse_args(["serve"])
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_cli_normalize_deeply_nested_json_exits_2(tmp_path, capsys):
    deep = tmp_path / "deep.json"
    deep.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")

    assert main(["normalize", str(deep)]) == 2
    assert main(["validate", str(deep)]) == 2
    assert "nesting is too deep" in capsys.readouterr().err


def test_cli_normalize_with_oversized_env_depth(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("DOCMEND_MAX_DEPTH", "1000")
    nested = tmp_path / "nested.json"
    levels = 250
    nested.write_text(
        '{"type": "blockquote", "content": [' * levels + '{"type": "paragraph"}' + "]}" * levels,
        encoding="utf-8",
    )

    assert main(["normalize", str(nested)]) == 0

    assert json.loads(capsys.readouterr().out)["type"] == "doc"


def test_cli_rejects_max_depth_above_limit(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["normalize", "doc.json", "--max-depth", "1000"])

    assert exc.value.code == 2
    assert "--max-depth" in capsys.readouterr().err
