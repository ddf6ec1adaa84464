"""Cache keys and artifact file names derived from paper titles."""

import re

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_MAX_KEY_CHARS = 200
# File names are limited to 255 bytes.  The longest name built from a key is
# the temporary summary file ``.{key}-summary.md.XXXXXXXX.tmp`` (key + 25).
_MAX_KEY_BYTES = 200
_PLACEHOLDER_KEY = "untitled"

DOCUMENT_SUFFIX = ".pdf"
SUMMARY_SUFFIX = "-summary.md"


def normalize(title: str) -> str:
    """Map a paper title to a stable, filesystem-safe cache key.

    Characters that are unsafe in file names are replaced with ``_``, the
    result is stripped and capped at 200 characters and at 200 UTF-8 bytes
    (a multibyte character is never split).  Titles that differ only in
    replaced characters map to the same key.  A title that normalizes to
    nothing falls back to ``"untitled"``.
    """
    key = _UNSAFE_CHARS.sub("_", title).strip()
    key = key[:_MAX_KEY_CHARS]
    encoded = key.encode("utf-8", "ignore")[:_MAX_KEY_BYTES]
    key = encoded.decode("utf-8", "ignore").rstrip()
    return key or _PLACEHOLDER_KEY


def document_filename(key: str) -> str:
    return f"{key}{DOCUMENT_SUFFIX}"


def summary_filename(key: str) -> str:
    return f"{key}{SUMMARY_SUFFIX}"


def key_from_summary_filename(name: str) -> str | None:
    """Return the cache key encoded in a summary file name, or ``None``."""
    if not name.endswith(SUMMARY_SUFFIX):
        return None
    key = name[: -len(SUMMARY_SUFFIX)]
    return key or None
