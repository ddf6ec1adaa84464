"""Render a generated summary into the markdown document stored per paper.

No file I/O is performed here — the caller (``pipeline.py``) hands the
returned string to ``store.persist_summary``.
"""

from arxiv_digest.models import PaperListing


def render_summary(listing: PaperListing, summary_text: str) -> str:
    """Wrap the model's summary with a header identifying the paper.

    Layout::

        # <title>

        **arXiv ID**: <id>
        **PDF**: <url>

        ---

        <summary>
    """
    lines = [f"# {listing.title}", ""]
    if listing.paper_id:
        lines.append(f"**arXiv ID**: {listing.paper_id}")
    lines.append(f"**PDF**: {listing.source_url}")
    lines += ["", "---", "", summary_text.strip(), ""]
    return "\n".join(lines)
