"""PDF to text extraction — thin wrapper around pypdf and docling.

Extraction works on the in-memory document bytes and keeps no cache of its
own: documents served from the PDF cache are simply extracted again, which is
cheap compared to the download and the LLM call.
"""

import logging
import threading
from io import BytesIO

from docling.datamodel.base_models import DocumentStream
from docling.document_converter import DocumentConverter
from pypdf import PdfReader

from arxiv_digest.models import ExtractionError

logger = logging.getLogger(__name__)

_DOCLING_LOCK = threading.Lock()


def extract_text(document: bytes, extractor: str = "pypdf", name: str = "paper.pdf") -> str:
    """Convert PDF bytes to plain text suitable for prompting.

    Args:
        document:  Raw PDF bytes.
        extractor: Extraction strategy: ``pypdf`` (pypdf only), ``docling``
                   (docling only), ``auto`` (docling with pypdf fallback).
        name:      File name used in log and error messages.

    Returns:
        The extracted text, stripped of surrounding whitespace.

    Raises:
        ExtractionError: if the document is unreadable or contains no text.
    """
    logger.info("Running %s extraction on: %s", extractor, name)
    if extractor == "docling":
        with _DOCLING_LOCK:
            text = _run_docling(document, name)
    elif extractor == "pypdf":
        text = _extract_text_with_pypdf(document, name)
    else:
        text = _run_docling_with_fallback(document, name)

    text = text.strip()
    if not text:
        raise ExtractionError(f"Failed to extract {name}: no text content")
    logger.info("Extraction complete: %s chars", f"{len(text):,}")
    return text


def _run_docling_with_fallback(document: bytes, name: str) -> str:
    """Run docling, then fall back to pypdf text extraction on failure."""
    try:
        # Docling conversion is not thread-safe; serialize it across workers.
        with _DOCLING_LOCK:
            return _run_docling(document, name)
    except ExtractionError as docling_exc:
        logger.warning(
            "Docling extraction failed for %s; attempting pypdf fallback: %s",
            name,
            docling_exc,
        )
        try:
            return _extract_text_with_pypdf(document, name)
        except ExtractionError as fallback_exc:
            root_cause = docling_exc.__cause__ or docling_exc
            raise ExtractionError(
                f"Failed to extract {name}: docling and pypdf fallback failed ({fallback_exc})"
            ) from root_cause


def _run_docling(document: bytes, name: str) -> str:
    """Run docling on the document and return its markdown export.

    Raises:
        ExtractionError: wrapping any exception raised by docling.
    """
    try:
        converter = DocumentConverter()
        result = converter.convert(DocumentStream(name=name, stream=BytesIO(document)))
        return result.document.export_to_markdown()
    except Exception as e:
        raise ExtractionError(f"Failed to extract {name}: {e}") from e


def _extract_text_with_pypdf(document: bytes, name: str) -> str:
    try:
        reader = PdfReader(BytesIO(document))
        pages: list[str] = []
        for page in reader.pages:
            pages.append(page.extract_text() or "")
        return "\n\n".join(pages)
    except Exception as e:
        raise ExtractionError(f"Failed to extract {name}: pypdf error: {e}") from e
