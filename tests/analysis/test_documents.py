from __future__ import annotations

from ayla_lsp.analysis import AnalysisOptions, DocumentStore
from ayla_lsp.config import AnalysisSettings


def test_store_keeps_one_snapshot_per_uri() -> None:
    store = DocumentStore()
    first = store.open("file:///a.ayla", "egg a = 1\n", version=1)
    assert store.get("file:///a.ayla") is first
    assert "file:///a.ayla" in store
    assert len(store) == 1

    second = store.replace("file:///a.ayla", "egg a = 2\n", version=2)
    assert store.get("file:///a.ayla") is second
    assert second.version == 2
    assert first.text == "egg a = 1\n"
    assert len(store) == 1


def test_close_and_clear_drop_documents() -> None:
    store = DocumentStore()
    store.open("file:///a.ayla", "")
    store.open("file:///b.ayla", "")

    closed = store.close("file:///a.ayla")
    assert closed is not None and closed.uri == "file:///a.ayla"
    assert store.get("file:///a.ayla") is None
    assert store.close("file:///a.ayla") is None

    store.clear()
    assert len(store) == 0
    assert "file:///b.ayla" not in store


def test_options_from_settings() -> None:
    settings = AnalysisSettings(hover_language="go", semantic_diagnostics=False, max_parse_errors=3)
    options = AnalysisOptions.from_settings(settings, filename="file:///a.ayla")
    assert options == AnalysisOptions(
        filename="file:///a.ayla",
        hover_language="go",
        semantic_diagnostics=False,
        max_parse_errors=3,
    )
