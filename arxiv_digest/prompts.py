"""LLM prompt builder and input truncation.

``build_summary_prompt`` returns a self-contained prompt: the task framing,
the paper's identity, the (possibly truncated) extracted text and the section
structure the summary must follow.  Every call is stateless.
"""

import logging

from arxiv_digest.models import PaperListing

logger = logging.getLogger(__name__)


def truncate_head(text: str, max_chars: int) -> tuple[str, int]:
    """Keep the first ``max_chars`` characters of ``text``.

    The head of a paper (abstract, introduction) carries most of the content
    a summary needs, so the tail is dropped.

    Returns:
        ``(kept_text, dropped_chars)`` where ``dropped_chars`` is 0 when no
        truncation happened.
    """
    if len(text) <= max_chars:
        return text, 0
    return text[:max_chars], len(text) - max_chars


def build_summary_prompt(listing: PaperListing, paper_text: str, max_chars: int) -> str:
    """Build the summarization prompt for one paper.

    Text beyond ``max_chars`` is cut from the end and a warning naming the
    number of dropped characters is logged.

    Args:
        listing:    The listing entry (title, arXiv id, PDF URL).
        paper_text: Full extracted text of the paper.
        max_chars:  Maximum characters of paper text embedded in the prompt.

    Returns:
        A prompt string ready to send to the LLM.
    """
    kept, dropped = truncate_head(paper_text, max_chars)
    if dropped:
        logger.warning(
            "Paper text truncated for prompt: kept first %s of %s chars (%s dropped): %s",
            f"{len(kept):,}",
            f"{len(paper_text):,}",
            f"{dropped:,}",
            listing.title,
        )

    return f"""\
Please provide a comprehensive, evidence-based summary of the following academic paper based on the provided text.

Title: {listing.title}
arXiv ID: {listing.paper_id or "not available"}
PDF URL: {listing.source_url}

Paper Content:
{kept}

Analyze the text provided and structure your summary using the following sections:
1. **Overview**: A concise description of the paper's core mission, what it introduces (e.g., benchmarks, datasets, or models), and its primary goal.
2. **Key Results**: Detailed quantitative findings. Do not be vague. Extract specific metrics, rankings, scores (e.g., "Model X scored 56.1%"), and domain-specific performance comparisons.
3. **Methodology**: The specific approach used. Detail the dataset composition (e.g., number of test cases, expert sources) and the evaluation or grading process.
4. **Critical Insights**: Nuances, limitations, or specific behaviors observed in the study, such as failure modes (e.g., hallucinations), performance gaps between domains, or qualitative observations made by the authors.

**Constraint:** Do not hallucinate. Base the summary *strictly* on the provided text."""
