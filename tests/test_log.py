"""Tests for arxiv_digest/log.py — logging setup."""

import logging
import re

import pytest

from arxiv_digest.log import _NOISY_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def _restore_library_levels():
    saved = {name: logging.getLogger(name).level for name in _NOISY_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def _handlers_of(kind):
    return [h for h in logging.getLogger("arxiv_digest").handlers if type(h) is kind]


def test_setup_logging_returns_package_logger():
    assert setup_logging() is logging.getLogger("arxiv_digest")


def test_setup_logging_console_only_by_default():
    setup_logging()
    assert len(_handlers_of(logging.StreamHandler)) == 1
    assert _handlers_of(logging.FileHandler) == []


@pytest.mark.parametrize("verbose, level", [(False, logging.INFO), (True, logging.DEBUG)])
def test_setup_logging_package_level(verbose, level):
    setup_logging(verbose=verbose)
    assert logging.getLogger("arxiv_digest").level == level


@pytest.mark.parametrize(
    "verbose, level", [(False, logging.WARNING), (True, logging.INFO)]
)
def test_setup_logging_quiets_library_loggers(verbose, level):
    setup_logging(verbose=verbose)
    for name in ("urllib3", "openai", "pypdf"):
        assert logging.getLogger(name).level == level


def test_setup_logging_file_handler_creates_parent_dirs(tmp_path):
    log_file = tmp_path / "deep" / "logs" / "run.log"
    setup_logging(log_file=log_file)
    assert len(_handlers_of(logging.FileHandler)) == 1
    assert log_file.exists()


def test_setup_logging_is_idempotent(tmp_path):
    """A second call replaces handlers instead of stacking them."""
    setup_logging(log_file=tmp_path / "a.log")
    setup_logging()
    assert len(_handlers_of(logging.StreamHandler)) == 1
    assert _handlers_of(logging.FileHandler) == []


def test_setup_logging_output_format(capsys):
    setup_logging()
    logging.getLogger("arxiv_digest.batch").info("Found 3 papers")
    err = capsys.readouterr().err
    assert re.search(r"\d{2}:\d{2}:\d{2}  INFO    \[MainThread\] Found 3 papers", err)
