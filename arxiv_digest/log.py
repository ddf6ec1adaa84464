"""Logging setup for the arxiv-digest CLI.

``setup_logging`` is called once from ``cli.main()``.  It configures the
``"arxiv_digest"`` package logger; every module logs through a child logger
obtained with ``logging.getLogger(__name__)``.

A run talks to arxiv.org and the LLM endpoint over HTTP and parses hundreds
of PDFs, so the loggers of those libraries are held at WARNING unless
``verbose`` is set.
"""

import logging
import sys
from pathlib import Path

_FMT = "%(asctime)s  %(levelname)-7s [%(threadName)s] %(message)s"
_DATE = "%H:%M:%S"

#: Third-party loggers that emit one record per request or per malformed page.
_NOISY_LOGGERS = ("urllib3", "httpx", "openai", "pypdf", "docling")


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Configure the ``arxiv_digest`` logger for a CLI session.

    Args:
        verbose:  DEBUG level for the package (index sizes, prompt lengths,
                  dropped duplicates) and INFO for the HTTP/PDF libraries.
                  Default is INFO for the package and WARNING for libraries.
        log_file: If provided, also write to this file.  Parent directories
                  are created.

    Safe to call more than once; handlers from a previous call are removed.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("arxiv_digest")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    fmt = logging.Formatter(_FMT, datefmt=_DATE)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    library_level = logging.INFO if verbose else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    return logger
