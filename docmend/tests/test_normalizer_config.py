import pytest

from docmend.core.document import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT, NormalizerConfig, repair_document


def test_defaults() -> None:
    assert NormalizerConfig().max_depth == DEFAULT_MAX_DEPTH == 100


def test_from_env_reads_max_depth(monkeypatch) -> None:
    monkeypatch.setenv("DOCMEND_MAX_DEPTH", "12")

    assert NormalizerConfig.from_env().max_depth == 12


@pytest.mark.parametrize("raw", ["", "  ", "abc", "0", "-5", "1.5"])
def test_from_env_falls_back_on_bad_values(monkeypatch, raw) -> None:
    monkeypatch.setenv("DOCMEND_MAX_DEPTH", raw)

    assert NormalizerConfig.from_env().max_depth == DEFAULT_MAX_DEPTH


def test_from_env_without_variable(monkeypatch) -> None:
    monkeypatch.delenv("DOCMEND_MAX_DEPTH", raising=False)

    assert NormalizerConfig.from_env() == NormalizerConfig()


@pytest.mark.parametrize("value, exc", [(0, ValueError), (-1, ValueError), (MAX_DEPTH_LIMIT + 1, ValueError), (1000, ValueError), ("10", TypeError), (True, TypeError), (2.0, TypeError)])
def test_rejects_bad_depth(value, exc) -> None:
    with pytest.raises(exc):
        NormalizerConfig(max_depth=value)


def test_is_frozen() -> None:
    cfg = NormalizerConfig()

    with pytest.raises(AttributeError):
        cfg.max_depth = 5  # type: ignore[misc]


def test_from_env_caps_depth_at_limit(monkeypatch) -> None:
    monkeypatch.setenv("DOCMEND_MAX_DEPTH", "1000")

    assert NormalizerConfig.from_env().max_depth == MAX_DEPTH_LIMIT


def test_deepest_allowed_config_survives_deeper_input() -> None:
    node = {"type": "paragraph", "content": [{"type": "text", "text": "deep"}]}
    for _ in range(600):
        node = {"type": "blockquote", "content": [node]}

    res = repair_document(node, config=NormalizerConfig(max_depth=MAX_DEPTH_LIMIT))

    assert res.document["type"] == "doc"
    assert res.repairs["depth_truncated"] == 1
