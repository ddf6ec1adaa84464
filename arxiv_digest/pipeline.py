"""Per-paper state machine — drives one listing entry to a terminal state.

States: ``FETCHING → EXTRACTING → SUMMARIZING → PERSISTING → COMPLETED``.
Any ``StageError`` moves the item straight to ``FAILED``; the error is
recorded in the returned ``ProcessingResult`` instead of propagating, so the
orchestrator can continue with the next paper.  A failed item leaves no
summary file behind and is picked up again by the next run.
"""

import logging

import requests

from arxiv_digest.fetch import fetch_document
from arxiv_digest.llm import LLMClient, summarize
from arxiv_digest.models import (
    Config,
    ItemState,
    ItemStatus,
    PaperListing,
    ProcessingResult,
    StageError,
)
from arxiv_digest.naming import document_filename, normalize
from arxiv_digest.parser import extract_text
from arxiv_digest.renderer import render_summary
from arxiv_digest.store import persist_summary

logger = logging.getLogger(__name__)


def process_paper(
    listing: PaperListing,
    config: Config,
    session: requests.Session,
    client: LLMClient,
) -> ProcessingResult:
    """Fetch, extract, summarize and persist one paper.

    The caller is responsible for the cache check; this function assumes the
    paper has no summary yet, so its history starts at ``DISCOVERED`` and
    ``CACHE_CHECK``.

    Returns:
        A ``COMPLETED`` result with ``summary_path`` set, or a ``FAILED``
        result tagged with the failing stage and error kind.
    """
    key = normalize(listing.title)
    logger.info("Processing: %s", listing.title)

    history = [ItemState.DISCOVERED, ItemState.CACHE_CHECK]
    try:
        history.append(ItemState.FETCHING)
        document = fetch_document(listing, config, session)

        history.append(ItemState.EXTRACTING)
        logger.info("  Extracting text: %s", listing.title)
        text = extract_text(document, config.extractor, name=document_filename(key))

        history.append(ItemState.SUMMARIZING)
        logger.info("  Generating summary: %s", listing.title)
        summary_text = summarize(client, listing, text, config.max_chars)

        history.append(ItemState.PERSISTING)
        path = persist_summary(config.store_root, key, render_summary(listing, summary_text))
    except StageError as exc:
        state = history[-1]
        logger.error("  Failed while %s (%s): %s", state.value, exc.kind, exc)
        return ProcessingResult(
            title=listing.title,
            key=key,
            status=ItemStatus.FAILED,
            failed_at=state,
            error_kind=exc.kind,
            reason=str(exc),
            history=[*history, ItemState.FAILED],
        )

    logger.info("  Summary saved: %s", path.name)
    return ProcessingResult(
        title=listing.title,
        key=key,
        status=ItemStatus.COMPLETED,
        summary_path=str(path),
        history=[*history, ItemState.COMPLETED],
    )
