"""Output store — cache index snapshot and atomic artifact writes.

Layout
------
All artifacts live flat under one store root::

    <store_root>/<key>.pdf          downloaded document (skips re-downloads)
    <store_root>/<key>-summary.md   finished summary (marks the paper as done)

The existence of a summary file is the only record that a paper has been
processed.  Files are written through ``atomic_write`` (temporary file in the
same directory, then ``os.replace``) so an interrupted run never leaves a
half-written artifact under its final name.  Temporary files are named
``.<final name>.<random>.tmp`` and therefore never match the summary pattern.

The store is never pruned; it grows by one document and one summary per
processed paper.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from arxiv_digest.models import ArtifactKind, CachedArtifact, WriteError
from arxiv_digest.naming import (
    document_filename,
    key_from_summary_filename,
    summary_filename,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Artifact paths
# ---------------------------------------------------------------------------


def artifact(store_root: Path, key: str, kind: ArtifactKind) -> CachedArtifact:
    """Return the ``CachedArtifact`` descriptor for ``key`` of the given kind."""
    if kind is ArtifactKind.DOCUMENT:
        name = document_filename(key)
    else:
        name = summary_filename(key)
    return CachedArtifact(key=key, kind=kind, path=store_root / name)


def document_path(store_root: Path, key: str) -> Path:
    return artifact(store_root, key, ArtifactKind.DOCUMENT).path


def summary_path(store_root: Path, key: str) -> Path:
    return artifact(store_root, key, ArtifactKind.SUMMARY).path


# ---------------------------------------------------------------------------
# Cache index
# ---------------------------------------------------------------------------


def build_index(store_root: Path) -> frozenset[str]:
    """Scan ``store_root`` once and return the keys of all finished summaries.

    A missing directory is an empty index.  The returned set is a snapshot:
    it is not refreshed while the run is in progress.
    """
    if not store_root.is_dir():
        return frozenset()

    keys: set[str] = set()
    with os.scandir(store_root) as entries:
        for entry in entries:
            if not entry.is_file():
                continue
            key = key_from_summary_filename(entry.name)
            if key is not None:
                keys.add(key)
    logger.debug("Indexed %d summaries under %s", len(keys), store_root)
    return frozenset(keys)


def is_cached(index: frozenset[str], key: str) -> bool:
    return key in index


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` so that readers see either nothing or all of it.

    Raises:
        OSError: on any filesystem failure.  The temporary file is removed
            and ``path`` is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise


def persist_summary(store_root: Path, key: str, markdown: str) -> Path:
    """Atomically write ``{key}-summary.md`` under ``store_root``.

    Raises:
        WriteError: wrapping the underlying ``OSError`` (disk full,
            permissions, ...).  No summary file is visible afterwards.
    """
    path = summary_path(store_root, key)
    try:
        atomic_write(path, markdown.encode("utf-8"))
    except OSError as e:
        raise WriteError(f"Failed to write {path.name}: {e}") from e
    return path
