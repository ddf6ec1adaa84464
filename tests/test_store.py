"""Tests for arxiv_digest/store.py — cache index snapshot and atomic persistence."""

from unittest.mock import patch

import pytest

from arxiv_digest.models import ArtifactKind, WriteError
from arxiv_digest.store import (
    artifact,
    atomic_write,
    build_index,
    document_path,
    is_cached,
    persist_summary,
    summary_path,
)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def test_artifact_paths(tmp_path):
    assert document_path(tmp_path, "Paper") == tmp_path / "Paper.pdf"
    assert summary_path(tmp_path, "Paper") == tmp_path / "Paper-summary.md"


def test_artifact_descriptor(tmp_path):
    summary = artifact(tmp_path, "Paper", ArtifactKind.SUMMARY)
    assert summary.key == "Paper"
    assert summary.kind is ArtifactKind.SUMMARY
    assert summary.path == tmp_path / "Paper-summary.md"


# ---------------------------------------------------------------------------
# build_index / is_cached
# ---------------------------------------------------------------------------


def test_build_index_missing_dir_is_empty(tmp_path):
    store = tmp_path / "does-not-exist"
    assert build_index(store) == frozenset()
    assert not store.exists()


def test_build_index_collects_summary_keys(tmp_path):
    (tmp_path / "Alpha-summary.md").write_text("# a", encoding="utf-8")
    (tmp_path / "Beta-summary.md").write_text("# b", encoding="utf-8")
    index = build_index(tmp_path)
    assert index == frozenset({"Alpha", "Beta"})


def test_build_index_ignores_documents_and_temp_files(tmp_path):
    (tmp_path / "Alpha.pdf").write_bytes(b"%PDF")
    (tmp_path / ".Beta-summary.md.x1y2.tmp").write_text("partial", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("n", encoding="utf-8")
    assert build_index(tmp_path) == frozenset()


def test_build_index_ignores_directories(tmp_path):
    (tmp_path / "Odd-summary.md").mkdir()
    assert build_index(tmp_path) == frozenset()


def test_build_index_is_a_snapshot(tmp_path):
    """Files written after the scan are not reflected in the index."""
    index = build_index(tmp_path)
    (tmp_path / "Late-summary.md").write_text("# late", encoding="utf-8")
    assert not is_cached(index, "Late")


def test_is_cached_membership():
    index = frozenset({"Alpha"})
    assert is_cached(index, "Alpha") is True
    assert is_cached(index, "Beta") is False


# ---------------------------------------------------------------------------
# atomic_write
# ---------------------------------------------------------------------------


def test_atomic_write_creates_parent_and_file(tmp_path):
    path = tmp_path / "nested" / "out.bin"
    atomic_write(path, b"payload")
    assert path.read_bytes() == b"payload"
    assert sorted(p.name for p in path.parent.iterdir()) == ["out.bin"]


def test_atomic_write_replaces_existing_file(tmp_path):
    path = tmp_path / "out.bin"
    path.write_bytes(b"old")
    atomic_write(path, b"new")
    assert path.read_bytes() == b"new"


def test_atomic_write_failure_before_rename_leaves_no_file(tmp_path):
    path = tmp_path / "out.bin"
    with (
        patch("arxiv_digest.store.os.replace", side_effect=OSError("disk full")),
        pytest.raises(OSError, match="disk full"),
    ):
        atomic_write(path, b"payload")
    assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# persist_summary
# ---------------------------------------------------------------------------


def test_persist_summary_writes_markdown(tmp_path):
    store = tmp_path / "store"
    path = persist_summary(store, "Alpha", "# Alpha\n\nSummary text\n")
    assert path == store / "Alpha-summary.md"
    assert path.read_text(encoding="utf-8") == "# Alpha\n\nSummary text\n"
    assert build_index(store) == frozenset({"Alpha"})


def test_persist_summary_interrupted_write_is_not_cached(tmp_path):
    """A failure after the temp write but before rename is never observed."""
    store = tmp_path / "store"
    with (
        patch("arxiv_digest.store.os.replace", side_effect=OSError("killed")),
        pytest.raises(WriteError, match="Alpha-summary.md"),
    ):
        persist_summary(store, "Alpha", "# Alpha")

    assert not is_cached(build_index(store), "Alpha")
    assert list(store.iterdir()) == []


def test_persist_summary_write_error_chains_cause(tmp_path):
    store = tmp_path / "store"
    original = OSError("permission denied")
    with patch("arxiv_digest.store.os.replace", side_effect=original):
        with pytest.raises(WriteError) as exc_info:
            persist_summary(store, "Alpha", "# Alpha")
    assert exc_info.value.__cause__ is original
    assert exc_info.value.kind == "write_failed"
