"""arXiv "recent" listing scraper.

Turns ``https://arxiv.org/list/<category>/recent`` into ``PaperListing``
entries.  The page is a ``<dl>`` of ``<dt>``/``<dd>`` pairs: the ``<dt>``
holds the ``/abs/<id>`` link, the ``<dd>`` holds ``div.list-title``.

The default page only shows the first batch of entries; when it yields fewer
than ``limit`` papers a second, larger page (``?skip=0&show=N``) is merged in.
"""

import logging
import re

import requests
from bs4 import BeautifulSoup

from arxiv_digest.models import ListingError, PaperListing

logger = logging.getLogger(__name__)

ARXIV_LIST_URL = "https://arxiv.org/list"
ARXIV_PDF_URL = "https://arxiv.org/pdf"

_ID_PATTERN = re.compile(r"/abs/(\d+\.\d+)")
# Page sizes accepted by the arXiv listing ``show`` parameter.
_PAGE_SIZES = (25, 50, 100, 250, 500, 1000, 2000)


def list_recent(
    session: requests.Session,
    category: str = "cs.AI",
    limit: int = 100,
    timeout_s: int = 120,
) -> list[PaperListing]:
    """Return up to ``limit`` recent papers of ``category``, in page order.

    Entries are unique by arXiv id.  Titles are not deduplicated here.

    Raises:
        ListingError: if the primary listing page cannot be retrieved.
    """
    base_url = f"{ARXIV_LIST_URL}/{category}/recent"
    papers: list[PaperListing] = []
    seen_ids: set[str] = set()

    html = _fetch_page(session, base_url, timeout_s)
    _collect_entries(html, papers, seen_ids, limit)

    if len(papers) < limit:
        show_url = f"{base_url}?skip=0&show={_page_size_for(limit)}"
        try:
            html = _fetch_page(session, show_url, timeout_s)
        except ListingError as exc:
            logger.warning("Supplementary listing page failed, continuing: %s", exc)
        else:
            _collect_entries(html, papers, seen_ids, limit)

    logger.debug("Listing %s: %d entries (limit %d)", category, len(papers), limit)
    return papers


def _page_size_for(limit: int) -> int:
    for size in _PAGE_SIZES:
        if size >= limit:
            return size
    return _PAGE_SIZES[-1]


def _fetch_page(session: requests.Session, url: str, timeout_s: int) -> str:
    """Fetch a listing page and return its HTML.

    Raises:
        ListingError: wrapping any transport error or non-2xx status.
    """
    try:
        response = session.get(url, timeout=timeout_s)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ListingError(f"Failed to fetch listing {url}: {e}") from e
    return response.text


def _collect_entries(
    html: str, papers: list[PaperListing], seen_ids: set[str], limit: int
) -> None:
    """Parse ``html`` and append new entries to ``papers`` until ``limit``."""
    soup = BeautifulSoup(html, "html.parser")
    for dt, dd in zip(soup.find_all("dt"), soup.find_all("dd")):
        if len(papers) >= limit:
            break

        paper_id = _extract_id(dt)
        if not paper_id or paper_id in seen_ids:
            continue

        title = _extract_title(dd) or f"Paper-{paper_id}"
        seen_ids.add(paper_id)
        papers.append(
            PaperListing(
                title=title,
                source_url=f"{ARXIV_PDF_URL}/{paper_id}.pdf",
                paper_id=paper_id,
            )
        )


def _extract_id(dt) -> str | None:
    for link in dt.find_all("a", href=True):
        match = _ID_PATTERN.search(link["href"])
        if match:
            return match.group(1)
    return None


def _extract_title(dd) -> str:
    title_div = dd.find("div", class_="list-title")
    if title_div is None:
        return ""
    title = title_div.get_text(" ", strip=True)
    title = title.replace("Title:", "", 1)
    return " ".join(title.split())
