"""Shared pytest fixtures for the arxiv_digest test suite."""

import logging
from unittest.mock import MagicMock

import pytest

from arxiv_digest.models import Config, PaperListing


# ---------------------------------------------------------------------------
# Logger isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_digest_logger():
    """Clear the arxiv_digest logger between tests.

    Tests that call ``main()`` trigger ``setup_logging()``, which attaches
    handlers and sets ``propagate=False``.  Without this fixture the state
    leaks into subsequent tests and breaks ``caplog`` capture.
    """
    logger = logging.getLogger("arxiv_digest")
    for h in logger.handlers[:]:
        try:
            h.close()
        except Exception:
            pass
        logger.removeHandler(h)
    logger.propagate = True
    yield
    for h in logger.handlers[:]:
        try:
            h.close()
        except Exception:
            pass
        logger.removeHandler(h)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Config and listings
# ---------------------------------------------------------------------------

#: Large enough to pass the default ``min_document_bytes`` check.
FAKE_PDF_BYTES = b"%PDF-1.4\n" + b"0" * 2048


@pytest.fixture
def config(tmp_path):
    """Config with the store pointing at a tmp directory and a dummy API key."""
    return Config(
        store_root=tmp_path / "store",
        api_key="sk-test",
        model="test-model",
    )


@pytest.fixture
def listing() -> PaperListing:
    return PaperListing(
        title="Scaling Laws for Sparse Agents",
        source_url="https://arxiv.org/pdf/2510.00001.pdf",
        paper_id="2510.00001",
    )


def make_listing(title: str, paper_id: str = "2510.00001") -> PaperListing:
    return PaperListing(
        title=title,
        source_url=f"https://arxiv.org/pdf/{paper_id}.pdf",
        paper_id=paper_id,
    )


def make_session(content: bytes = FAKE_PDF_BYTES) -> MagicMock:
    """A stand-in ``requests.Session`` whose GET returns ``content``."""
    session = MagicMock()
    session.get.return_value = MagicMock(content=content, status_code=200)
    return session


def make_client(text: str = "## Overview\nA summary.") -> MagicMock:
    """A stand-in ``LLMClient`` whose completions return ``text``."""
    client = MagicMock()
    client.model = "test-model"
    client.base_url = "https://api.openai.com/v1"
    client.complete.return_value = MagicMock(text=text)
    return client
