"""PDF retrieval with an on-disk document cache.

The cache file ``{key}.pdf`` is written to the store root after a successful
download and reused on subsequent runs.  Only bodies that look like a PDF are
ever cached: at least ``min_document_bytes`` long and starting with the
``%PDF`` header.  A cached file failing the same check (truncated download,
HTML error or captcha page from an older run) is a cache miss: it is deleted
and the document is downloaded again.
"""

import logging
from pathlib import Path

import requests

from arxiv_digest.models import Config, FetchError, PaperListing
from arxiv_digest.naming import normalize
from arxiv_digest.store import atomic_write, document_path

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def create_session(config: Config) -> requests.Session:
    """Create the HTTP session shared by the listing scraper and PDF downloads."""
    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    return session


def fetch_document(
    listing: PaperListing,
    config: Config,
    session: requests.Session,
) -> bytes:
    """Return the PDF bytes for ``listing``, downloading them only if needed.

    Raises:
        FetchError: if the download fails, times out, returns a non-2xx
            status, or yields a body that is not a PDF; also if the cached
            file cannot be read or removed.  No cache file is created on
            failure.
    """
    key = normalize(listing.title)
    path = document_path(config.store_root, key)

    try:
        cached = _read_cached(path, config.min_document_bytes)
    except OSError as e:
        raise FetchError(listing.source_url, f"unusable cached document: {e}") from e
    if cached is not None:
        logger.info("  PDF already cached: %s", path.name)
        return cached

    logger.info("  Downloading PDF: %s", listing.source_url)
    try:
        response = session.get(listing.source_url, timeout=config.fetch_timeout_s)
        response.raise_for_status()
        content = response.content
    except requests.RequestException as e:
        raise FetchError(listing.source_url, e) from e

    problem = _pdf_problem(content, config.min_document_bytes)
    if problem:
        raise FetchError(listing.source_url, f"response {problem}")

    try:
        atomic_write(path, content)
    except OSError as e:
        raise FetchError(listing.source_url, f"could not cache document: {e}") from e
    logger.info("  PDF saved: %s (%s bytes)", path.name, f"{len(content):,}")
    return content


def _read_cached(path: Path, min_bytes: int) -> bytes | None:
    """Return the cached document, or ``None`` after removing an unusable one.

    Raises:
        OSError: if the cache entry exists but cannot be read or deleted.
    """
    if not path.exists():
        return None
    content = path.read_bytes()
    problem = _pdf_problem(content, min_bytes)
    if problem is None:
        return content
    logger.warning("  Cached PDF rejected (%s); re-downloading: %s", problem, path.name)
    path.unlink()
    return None


def _pdf_problem(content: bytes, min_bytes: int) -> str | None:
    if len(content) < min_bytes:
        return f"too small ({len(content)} bytes), likely not a PDF"
    if not content.startswith(PDF_MAGIC):
        return "does not start with %PDF, likely an HTML page"
    return None
