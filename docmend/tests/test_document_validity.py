import logging

import pytest

from docmend.core.document import (
    debug_document,
    describe_document,
    empty_document,
    is_valid_document,
    normalize_document,
)


@pytest.mark.parametrize(
    "candidate",
    [
        {"type": "doc", "content": []},
        {"type": "Document", "content": []},
        {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Hi"}]}]},
        {"type": "doc", "content": [{"type": "bulletList"}]},
        {"type": "doc", "content": [{"type": "customWidget", "content": "not walked"}]},
    ],
)
def test_valid_documents(candidate) -> None:
    assert is_valid_document(candidate) is True


@pytest.mark.parametrize(
    "candidate",
    [
        None,
        "doc",
        [],
        {"type": "doc-typo"},
        {"type": "doc"},
        {"type": "doc", "content": "x"},
        {"type": "doc", "content": ({"type": "paragraph"},)},
        {"type": "paragraph", "content": []},
        {"type": "doc", "content": [None]},
        {"type": "doc", "content": [{"content": []}]},
        {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": 1}]}]},
        {"type": ["doc"], "content": []},
    ],
)
def test_invalid_documents(candidate) -> None:
    assert is_valid_document(candidate) is False


def test_validity_check_handles_very_deep_trees() -> None:
    node = {"type": "paragraph", "content": []}
    for _ in range(20000):
        node = {"type": "blockquote", "content": [node]}

    assert is_valid_document({"type": "doc", "content": [node]}) is True


def test_validity_check_survives_shared_and_cyclic_content() -> None:
    shared = [{"type": "paragraph"}]
    doc = {"type": "doc", "content": [{"type": "blockquote", "content": shared}, {"type": "blockquote", "content": shared}]}
    assert is_valid_document(doc) is True

    loop = {"type": "blockquote", "content": []}
    loop["content"].append(loop)
    assert is_valid_document({"type": "doc", "content": [loop]}) is True


def test_normalized_and_empty_documents_have_no_issues() -> None:
    assert describe_document(empty_document()) == []
    assert describe_document(normalize_document({"type": "table"})) == []


def test_describe_reports_root_problems() -> None:
    assert [i.code for i in describe_document("nope")] == ["not_a_mapping"]
    assert [i.code for i in describe_document({"type": "page"})] == ["root_type", "root_content"]
    assert [i.code for i in describe_document({"type": "doc", "content": []})] == ["empty_container"]


def test_describe_reports_issues_in_document_order_with_paths() -> None:
    candidate = {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": " "}]},
            {"type": "bulletList", "content": [{"type": "paragraph"}]},
            {"type": "heading", "attrs": {"level": 9}},
            {"type": "text", "text": "loose", "marks": [{"attrs": {}}]},
            {"type": "table", "content": [{"type": "tableCell", "content": [{"type": "paragraph"}]}]},
            {"content": []},
        ],
    }

    issues = [(i.path, i.code) for i in describe_document(candidate)]

    assert issues == [
        ("$.content[0].content[0]", "blank_text"),
        ("$.content[1].content[0]", "misplaced_node"),
        ("$.content[2]", "heading_level"),
        ("$.content[3]", "misplaced_node"),
        ("$.content[3].marks[0]", "invalid_mark"),
        ("$.content[4].content[0]", "misplaced_node"),
        ("$.content[5]", "missing_type"),
    ]


def test_describe_reports_empty_containers_and_bad_text() -> None:
    candidate = {
        "type": "doc",
        "content": [
            {"type": "blockquote", "content": []},
            {"type": "codeBlock", "content": [{"type": "text", "text": None}]},
        ],
    }

    codes = [i.code for i in describe_document(candidate)]

    assert codes == ["empty_container", "text_value"]


def test_describe_never_echoes_text_content() -> None:
    secret = "confidential-policy-text"
    candidate = {"type": "doc", "content": [{"type": "text", "text": secret, "marks": "bold"}]}

    issues = describe_document(candidate)

    assert issues
    assert all(secret not in i.message for i in issues)


def test_describe_respects_limit() -> None:
    candidate = {"type": "doc", "content": [{"type": "bulletList"} for _ in range(50)]}

    assert len(describe_document(candidate, limit=10)) == 10


def test_debug_logs_one_warning_per_issue(caplog) -> None:
    caplog.set_level(logging.INFO, logger="docmend.document")
    candidate = {"type": "doc", "content": [{"type": "listItem", "content": []}]}

    issues = debug_document(candidate)

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert [i.code for i in issues] == ["misplaced_node", "empty_container"]
    assert len(warnings) == 2
    assert "misplaced_node" in warnings[0].getMessage()
    summary = [r for r in caplog.records if r.getMessage() == "document_debug"]
    assert summary[0].issue_count == 2
    assert summary[0].looks_valid is True


def test_debug_accepts_a_custom_logger(caplog) -> None:
    logger = logging.getLogger("docmend.tests.debug")
    caplog.set_level(logging.INFO, logger="docmend.tests.debug")

    assert debug_document(empty_document(), logger=logger) == []
    assert [r.getMessage() for r in caplog.records if r.name == "docmend.tests.debug"] == ["document_debug"]


def test_issue_to_dict() -> None:
    (issue,) = describe_document("x")

    assert issue.to_dict() == {"path": "$", "code": "not_a_mapping", "message": issue.message}
