"""Run orchestration — list the feed, skip finished papers, process the rest.

Skip detection
--------------
Two independent caches live in the store root (see ``store.py``):

* **Summary** (handled here): a paper is skipped entirely if
  ``{key}-summary.md`` exists.  The store is scanned once, before the listing
  is processed, and the resulting key set is never refreshed during the run.
* **Document** (handled in ``fetch.py``): the PDF download is skipped if
  ``{key}.pdf`` exists and looks complete.

Ordering and concurrency
------------------------
Listing entries are deduplicated by cache key (first occurrence wins) before
any work starts, so each key belongs to exactly one item and no two workers
ever write the same artifact.  With the default single worker, items are
processed strictly in listing order.
"""

import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import requests
from tqdm.auto import tqdm

from arxiv_digest.fetch import create_session
from arxiv_digest.listing import list_recent
from arxiv_digest.llm import LLMClient, create_client
from arxiv_digest.models import (
    Config,
    FailedPaper,
    ItemState,
    ItemStatus,
    PaperListing,
    ProcessingResult,
    RunReport,
    RunState,
)
from arxiv_digest.naming import normalize
from arxiv_digest.pipeline import process_paper
from arxiv_digest.store import build_index, is_cached

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def deduplicate(listings: list[PaperListing]) -> list[PaperListing]:
    """Drop entries whose cache key was already seen, keeping listing order.

    Identical titles always share a key, so repeated titles collapse into a
    single item.
    """
    seen: set[str] = set()
    unique: list[PaperListing] = []
    for listing in listings:
        key = normalize(listing.title)
        if key in seen:
            logger.debug("Duplicate listing entry dropped: %s", listing.title)
            continue
        seen.add(key)
        unique.append(listing)
    return unique


def partition(
    listings: list[PaperListing], index: frozenset[str]
) -> tuple[list[PaperListing], list[ProcessingResult]]:
    """Split listings into papers to process and ``SKIPPED`` results."""
    pending: list[PaperListing] = []
    skipped: list[ProcessingResult] = []
    for listing in listings:
        key = normalize(listing.title)
        if is_cached(index, key):
            skipped.append(
                ProcessingResult(
                    title=listing.title,
                    key=key,
                    status=ItemStatus.SKIPPED,
                    history=[
                        ItemState.DISCOVERED,
                        ItemState.CACHE_CHECK,
                        ItemState.SKIPPED,
                    ],
                )
            )
        else:
            pending.append(listing)
    return pending, skipped


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


def run_batch(
    config: Config,
    session: requests.Session | None = None,
    client: LLMClient | None = None,
) -> RunReport:
    """Run one incremental pass over the category feed.

    1. Create the LLM client (unless given or in dry-run mode).  A missing
       API key raises ``ConfigError`` before any paper is touched.
    2. Snapshot the summary index of ``config.store_root``.
    3. Fetch up to ``config.limit`` listing entries; ``ListingError``
       propagates to the caller.
    4. Deduplicate by cache key and skip papers that already have a summary.
    5. Process the remaining papers through the worker pool.  Each item ends
       ``COMPLETED`` or ``FAILED``; failures never stop the run.

    Returns:
        A ``RunReport`` with per-state counts and per-item results.  Its
        ``state`` moves from ``LISTING`` to ``PROCESSING`` once the listing
        is known and ends at ``DONE``.
    """
    if client is None and not config.dry_run:
        client = create_client(config)
    if session is None:
        session = create_session(config)

    report = RunReport()

    index = build_index(config.store_root)
    report.existing = len(index)
    logger.info("Found %d existing summaries", len(index))

    logger.info("Fetching papers from arXiv (%s)...", config.category)
    listings = list_recent(
        session, config.category, config.limit, timeout_s=config.fetch_timeout_s
    )
    report.discovered = len(listings)
    report.state = RunState.PROCESSING
    logger.info("Found %d papers", len(listings))

    unique = deduplicate(listings)
    report.duplicates = len(listings) - len(unique)
    if report.duplicates:
        logger.info("Dropped %d duplicate entries", report.duplicates)

    jobs, skipped = partition(unique, index)
    report.skipped = len(skipped)
    report.results.extend(skipped)
    logger.info("%d papers need processing", len(jobs))

    if config.dry_run:
        report.pending = len(jobs)
        for listing in jobs:
            logger.info("  Would process: %s", listing.title)
        logger.info("Dry run mode: %d papers would be processed", len(jobs))
        report.state = RunState.DONE
        return report

    _process_jobs(jobs, config, session, client, report)
    report.state = RunState.DONE
    return report


def _process_jobs(
    jobs: list[PaperListing],
    config: Config,
    session: requests.Session,
    client: LLMClient,
    report: RunReport,
) -> None:
    total = len(jobs)
    if not total:
        return

    show_progress = sys.stderr.isatty()
    futures_to_listing: dict[Any, PaperListing] = {}

    with ThreadPoolExecutor(
        max_workers=config.workers,
        thread_name_prefix="worker",
    ) as executor:
        for listing in jobs:
            future = executor.submit(process_paper, listing, config, session, client)
            futures_to_listing[future] = listing

        with tqdm(
            total=total,
            desc="Process",
            unit="paper",
            disable=not show_progress,
            leave=True,
        ) as progress:
            for done, future in enumerate(as_completed(futures_to_listing), start=1):
                listing = futures_to_listing[future]
                try:
                    result = future.result()
                except Exception as exc:
                    logger.error("  Unexpected failure for %s: %s", listing.title, exc)
                    result = ProcessingResult(
                        title=listing.title,
                        key=normalize(listing.title),
                        status=ItemStatus.FAILED,
                        error_kind="unexpected",
                        reason=str(exc),
                        history=[
                            ItemState.DISCOVERED,
                            ItemState.CACHE_CHECK,
                            ItemState.FAILED,
                        ],
                    )
                _record(report, result)
                logger.info("Progress: %d/%d", done, total)
                progress.update(1)
                progress.set_postfix(ok=report.completed, failed=report.failed)


def _record(report: RunReport, result: ProcessingResult) -> None:
    report.results.append(result)
    if result.status is ItemStatus.COMPLETED:
        report.completed += 1
    elif result.status is ItemStatus.FAILED:
        report.failed += 1
        report.failed_papers.append(
            FailedPaper(
                title=result.title,
                error_kind=result.error_kind or "unknown",
                error=result.reason or "",
            )
        )
