"""Command-line interface for arxiv-digest.

Entry point: ``arxiv-digest`` (configured in ``pyproject.toml``).

Usage:
    arxiv-digest [options]

Key options:
    --store-dir, --category, --limit, --model, --base-url,
    --max-chars, --max-output-tokens, --timeout, --fetch-timeout,
    --extractor, --workers, --dry-run, --verbose/--no-verbose, --log-file.

The API key is read from ``LLM_API_KEY``, ``OPENAI_API_KEY`` or
``OPEN_AI_API_KEY`` (a ``.env`` file in the working directory is loaded
first).  A missing key or an unreachable listing page ends the process with
exit code 1; failures of individual papers do not.
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from arxiv_digest import __version__
from arxiv_digest.batch import run_batch
from arxiv_digest.log import setup_logging
from arxiv_digest.models import (
    Config,
    ConfigError,
    ListingError,
    RunReport,
    _DEFAULT_MAX_CHARS,
)

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return parsed


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI arguments, validate environment, and run one digest pass."""
    load_dotenv()

    parser = _build_parser()
    args = parser.parse_args()

    # Configure logging before any other output
    if args.log_file:
        log_file = Path(args.log_file)
    else:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = Path("logs") / f"run_{ts}.log"
    setup_logging(verbose=args.verbose, log_file=log_file)

    config = Config(
        store_root=Path(args.store_dir).expanduser(),
        category=args.category,
        limit=args.limit,
        base_url=args.base_url,
        model=args.model,
        max_chars=args.max_chars,
        max_output_tokens=args.max_output_tokens,
        timeout_s=args.timeout,
        fetch_timeout_s=args.fetch_timeout,
        extractor=args.extractor,
        workers=args.workers,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )

    _log_banner(config)

    try:
        report = run_batch(config)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)
    except ListingError as exc:
        logger.error("Cannot retrieve the paper listing: %s", exc)
        sys.exit(1)

    _log_report(report)


def _log_banner(config: Config) -> None:
    logger.info("arxiv-digest %s", __version__)
    logger.info(
        "Category: %s  limit: %d  model: %s", config.category, config.limit, config.model
    )
    logger.info("Store: %s", config.store_root)


def _log_report(report: RunReport) -> None:
    logger.info(
        "Completed: %d, skipped: %d, failed: %d",
        report.completed,
        report.skipped,
        report.failed,
    )
    if report.failed_papers:
        logger.warning("Failed papers (will be retried on the next run):")
        for fp in report.failed_papers:
            logger.warning("  %s [%s]: %s", fp.title, fp.error_kind, fp.error)
    logger.info("Done!")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arxiv-digest",
        description=(
            "Summarise newly listed arXiv papers with an OpenAI-compatible LLM. "
            "Papers that already have a summary in the store are skipped."
        ),
    )

    _default_store = os.environ.get("ARXIV_DIGEST_STORE", str(Path.home() / "arxiv-digest"))
    parser.add_argument(
        "--store-dir",
        metavar="DIR",
        default=_default_store,
        help=(
            "Directory for cached PDFs and summaries "
            f"(default: ARXIV_DIGEST_STORE env var, currently {_default_store!r})."
        ),
    )
    parser.add_argument(
        "--category",
        metavar="CAT",
        default="cs.AI",
        help="arXiv category to scan (default: cs.AI).",
    )
    parser.add_argument(
        "--limit",
        metavar="N",
        type=_positive_int,
        default=100,
        help="Maximum number of listed papers considered per run (default: 100).",
    )
    _default_model = os.environ.get("LLM_MODEL", "gpt-4o-mini")
    parser.add_argument(
        "--model",
        metavar="MODEL",
        default=_default_model,
        help=f"LLM model identifier (default: LLM_MODEL env var, currently {_default_model!r}).",
    )
    parser.add_argument(
        "--base-url",
        metavar="URL",
        default="https://api.openai.com/v1",
        help="OpenAI-compatible API base URL (default: https://api.openai.com/v1).",
    )
    parser.add_argument(
        "--max-chars",
        metavar="N",
        type=_positive_int,
        default=_DEFAULT_MAX_CHARS,
        help=(
            f"Maximum characters of paper text sent to the LLM; longer text keeps "
            f"only its beginning (default: {_DEFAULT_MAX_CHARS:,})."
        ),
    )
    parser.add_argument(
        "--max-output-tokens",
        metavar="N",
        type=_positive_int,
        default=2000,
        help="Maximum tokens the LLM may generate per summary (default: 2000).",
    )
    parser.add_argument(
        "--timeout",
        metavar="S",
        type=_positive_int,
        default=120,
        help="LLM call timeout in seconds (default: 120).",
    )
    parser.add_argument(
        "--fetch-timeout",
        metavar="S",
        type=_positive_int,
        default=120,
        help="Listing and PDF download timeout in seconds (default: 120).",
    )
    parser.add_argument(
        "--extractor",
        choices=["auto", "docling", "pypdf"],
        default="pypdf",
        help="PDF text extraction backend (default: pypdf).",
    )
    parser.add_argument(
        "--workers",
        metavar="N",
        type=_positive_int,
        default=1,
        help="Number of papers processed in parallel (default: 1, sequential).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="List papers that would be processed without downloading or calling the LLM.",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable DEBUG-level logging (default: off).",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        default=None,
        help="Write log output to FILE (default: logs/run_TIMESTAMP.log).",
    )

    return parser


if __name__ == "__main__":
    main()
