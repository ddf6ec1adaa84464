"""Tests for arxiv_digest/models.py — pydantic models, dataclass Config, exceptions."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from arxiv_digest.models import (
    Config,
    ConfigError,
    DigestError,
    EmptyResponseError,
    ExtractionError,
    FetchError,
    ItemState,
    ItemStatus,
    ListingError,
    ModelError,
    PaperListing,
    ProcessingResult,
    RateLimitedError,
    RunReport,
    RunState,
    StageError,
    WriteError,
)

# ---------------------------------------------------------------------------
# PaperListing
# ---------------------------------------------------------------------------


def test_paper_listing_strips_title():
    listing = PaperListing(title="  Padded Title \n", source_url="https://x/p.pdf")
    assert listing.title == "Padded Title"
    assert listing.paper_id is None


@pytest.mark.parametrize("title", ["", "   ", "\n\t"])
def test_paper_listing_rejects_blank_title(title):
    with pytest.raises(ValidationError):
        PaperListing(title=title, source_url="https://x/p.pdf")


def test_paper_listing_requires_source_url():
    with pytest.raises(ValidationError):
        PaperListing(title="T")


# ---------------------------------------------------------------------------
# ProcessingResult / RunReport
# ---------------------------------------------------------------------------


def test_processing_result_failed_fields():
    result = ProcessingResult(
        title="T",
        key="T",
        status=ItemStatus.FAILED,
        failed_at=ItemState.SUMMARIZING,
        error_kind="rate_limited",
        reason="429",
    )
    assert result.failed_at is ItemState.SUMMARIZING
    assert result.summary_path is None


def test_run_report_defaults_are_independent():
    first = RunReport()
    second = RunReport()
    first.results.append(ProcessingResult(title="T", key="T", status=ItemStatus.SKIPPED))
    assert second.results == []
    assert first.completed == first.failed == first.skipped == 0


def test_run_report_starts_in_listing_state():
    assert RunReport().state is RunState.LISTING
    assert ProcessingResult(title="T", key="T", status=ItemStatus.SKIPPED).history == []


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def test_config_defaults():
    config = Config()
    assert config.store_root == Path.home() / "arxiv-digest"
    assert config.category == "cs.AI"
    assert config.limit == 100
    assert config.model == "gpt-4o-mini"
    assert config.api_key is None
    assert config.max_chars == 50_000
    assert config.max_output_tokens == 2000
    assert config.timeout_s == 120
    assert config.fetch_timeout_s == 120
    assert config.min_document_bytes == 1000
    assert config.extractor == "pypdf"
    assert config.workers == 1
    assert config.dry_run is False


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "exc_cls, kind",
    [
        (ExtractionError, "extraction_failed"),
        (RateLimitedError, "rate_limited"),
        (ModelError, "model_error"),
        (EmptyResponseError, "empty_response"),
        (WriteError, "write_failed"),
    ],
)
def test_stage_error_kinds(exc_cls, kind):
    err = exc_cls("boom")
    assert isinstance(err, StageError)
    assert err.kind == kind


def test_fetch_error_carries_url_and_cause():
    cause = OSError("connection reset")
    err = FetchError("https://arxiv.org/pdf/1.pdf", cause)
    assert err.url == "https://arxiv.org/pdf/1.pdf"
    assert err.cause is cause
    assert err.kind == "fetch_failed"
    assert "connection reset" in str(err)


@pytest.mark.parametrize("exc_cls", [ConfigError, ListingError])
def test_fatal_errors_are_not_stage_errors(exc_cls):
    err = exc_cls("fatal")
    assert isinstance(err, DigestError)
    assert not isinstance(err, StageError)
