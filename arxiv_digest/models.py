"""Pydantic models, dataclass Config, and exceptions for the digest pipeline.

This module only defines the *schema* of the data that flows through a run:
the listing entries handed over by the feed scraper, per-item processing
results, the aggregate run report, runtime configuration and the error
taxonomy shared by all stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class PaperListing(BaseModel):
    """One entry discovered in the category feed.

    ``title`` is the human-readable identity of the paper and the input to
    the cache key; ``source_url`` points at the downloadable PDF.
    """

    title: str
    source_url: str
    paper_id: str | None = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value


# ---------------------------------------------------------------------------
# Cached artifacts
# ---------------------------------------------------------------------------


class ArtifactKind(str, Enum):
    DOCUMENT = "document"
    SUMMARY = "summary"


class CachedArtifact(BaseModel):
    """A file in the store whose name is derived from a paper's cache key."""

    key: str
    kind: ArtifactKind
    path: Path


# ---------------------------------------------------------------------------
# Per-item state machine
# ---------------------------------------------------------------------------


class ItemState(str, Enum):
    """States an item moves through during a single run."""

    DISCOVERED = "discovered"
    CACHE_CHECK = "cache_check"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    SUMMARIZING = "summarizing"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunState(str, Enum):
    """Run-level states.  A run starts in ``LISTING`` before any item is known."""

    LISTING = "listing"
    PROCESSING = "processing"
    DONE = "done"


class ItemStatus(str, Enum):
    """Terminal outcome of one item."""

    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessingResult(BaseModel):
    """Outcome of running the pipeline for one ``PaperListing``.

    For failed items ``failed_at`` names the stage that raised and
    ``error_kind`` carries the error tag (e.g. ``"rate_limited"``).
    ``history`` lists every state the item passed through, ending with its
    terminal state.
    """

    title: str
    key: str
    status: ItemStatus
    failed_at: ItemState | None = None
    error_kind: str | None = None
    reason: str | None = None
    summary_path: str | None = None
    history: list[ItemState] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Run reporting
# ---------------------------------------------------------------------------


class FailedPaper(BaseModel):
    """Records a single paper that could not be processed during a run."""

    title: str
    error_kind: str
    error: str


class RunReport(BaseModel):
    """Aggregate result of one run over the category feed."""

    state: RunState = RunState.LISTING
    discovered: int = 0
    duplicates: int = 0
    existing: int = 0
    completed: int = 0
    skipped: int = 0
    failed: int = 0
    pending: int = 0
    failed_papers: list[FailedPaper] = Field(default_factory=list)
    results: list[ProcessingResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Config (dataclass, not pydantic; holds runtime settings)
# ---------------------------------------------------------------------------

#: Characters of extracted paper text sent to the model.  Roughly 12 500
#: tokens of English text, which fits small-context models with room for the
#: instructions and a 2 000-token answer.
_DEFAULT_MAX_CHARS = 50_000

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)


def _default_store_root() -> Path:
    return Path.home() / "arxiv-digest"


@dataclass
class Config:
    """Runtime configuration for a digest run.

    All fields correspond to CLI flags.

    Attributes:
        store_root:         Directory holding ``<key>.pdf`` and
                            ``<key>-summary.md`` artifacts.  Created lazily.
        category:           arXiv category whose "recent" listing is scanned.
        limit:              Maximum number of listing entries considered.
        base_url:           OpenAI-compatible API base URL.
        model:              Model identifier passed to the API.
        api_key:            API key for the LLM backend.  ``None`` means the
                            key is resolved from the environment; a missing
                            key is a startup error.
        max_chars:          Maximum characters of paper text sent to the LLM.
                            Longer text is head-truncated.
        max_output_tokens:  Completion token cap per request (``None`` = no cap).
        timeout_s:          Seconds before an LLM call is abandoned.
        fetch_timeout_s:    Seconds before a listing/PDF download is abandoned.
        min_document_bytes: PDFs smaller than this are treated as corrupt.
        extractor:          Text extraction backend: ``pypdf``, ``docling``, or
                            ``auto`` (docling with pypdf fallback).
        workers:            Worker threads processing items.  ``1`` keeps the
                            run strictly sequential in listing order.
        dry_run:            List what would be processed, without fetching,
                            calling the LLM or writing files.
        verbose:            DEBUG-level logging.
        user_agent:         User-Agent header for arXiv requests.
    """

    store_root: Path = field(default_factory=_default_store_root)
    category: str = "cs.AI"
    limit: int = 100
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    api_key: str | None = None
    max_chars: int = _DEFAULT_MAX_CHARS
    max_output_tokens: int | None = 2000
    timeout_s: int = 120
    fetch_timeout_s: int = 120
    min_document_bytes: int = 1000
    extractor: Literal["auto", "docling", "pypdf"] = "pypdf"
    workers: int = 1
    dry_run: bool = False
    verbose: bool = False
    user_agent: str = _DEFAULT_USER_AGENT


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DigestError(Exception):
    """Base class for all errors raised by the digest package."""


class ConfigError(DigestError):
    """Raised at startup when required configuration (e.g. the API key) is missing."""


class ListingError(DigestError):
    """Raised when the category listing cannot be retrieved at all."""


class StageError(DigestError):
    """Base class for item-level failures.

    Stage errors fail a single item; the orchestrator records them and moves
    on to the next paper.  ``kind`` is the tag stored in ``ProcessingResult``.
    """

    kind = "stage_failed"


class FetchError(StageError):
    """Raised when a paper's PDF cannot be downloaded.

    Attributes:
        url:   The URL that was requested.
        cause: The underlying transport error or validation message.
    """

    kind = "fetch_failed"

    def __init__(self, url: str, cause: Exception | str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {cause}")


class ExtractionError(StageError):
    """Raised when text cannot be extracted from a PDF (corrupt, empty, etc.)."""

    kind = "extraction_failed"


class RateLimitedError(StageError):
    """Raised when the LLM endpoint signals throttling (HTTP 429)."""

    kind = "rate_limited"


class ModelError(StageError):
    """Raised for any other LLM endpoint failure, including timeouts."""

    kind = "model_error"


class EmptyResponseError(StageError):
    """Raised when the LLM returns no choices or blank content."""

    kind = "empty_response"


class WriteError(StageError):
    """Raised when an artifact cannot be written to the store."""

    kind = "write_failed"
