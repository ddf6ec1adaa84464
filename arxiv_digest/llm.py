"""LLM client setup and inference — wraps the openai SDK.

Supports any OpenAI-compatible backend (OpenAI, OpenRouter, LM Studio).  The
``create_client`` factory resolves the API key and fails fast when none is
configured.  ``summarize`` is the summarization stage: one request per paper,
no retries; failures are classified into ``RateLimitedError``,
``ModelError`` or ``EmptyResponseError`` and left to the orchestrator.
"""

import logging
import os
import re
import time

import openai as _openai

from arxiv_digest.models import (
    Config,
    ConfigError,
    EmptyResponseError,
    ModelError,
    PaperListing,
    RateLimitedError,
)
from arxiv_digest.prompts import build_summary_prompt

logger = logging.getLogger(__name__)

_API_KEY_ENV_VARS = ("LLM_API_KEY", "OPENAI_API_KEY", "OPEN_AI_API_KEY")


# ---------------------------------------------------------------------------
# Client wrapper
# ---------------------------------------------------------------------------


class _CompletionResponse:
    """Thin wrapper presenting an openai chat response as ``response.text``."""

    __slots__ = ("text",)

    def __init__(self, text: str | None) -> None:
        self.text = text


class LLMClient:
    """OpenAI-compatible chat completion client.

    Wraps ``openai.OpenAI`` so that the model name is stored at construction
    time and call sites use ``client.complete(prompt)``.  The SDK's own retry
    loop is disabled; a failed call fails the item and is retried on the next
    run.

    Attributes:
        model: The model identifier passed to every completion request.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str,
        extra_headers: dict | None = None,
        timeout_s: int = 120,
        max_output_tokens: int | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.max_output_tokens = max_output_tokens
        self._client = _openai.OpenAI(
            base_url=base_url,
            api_key=api_key,
            default_headers=extra_headers or {},
            max_retries=0,
        )

    def complete(self, prompt: str) -> _CompletionResponse:
        """Send a chat completion request and return the model's reply."""
        kwargs: dict = dict(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            timeout=self.timeout_s,
        )
        if self.max_output_tokens is not None:
            kwargs["max_completion_tokens"] = self.max_output_tokens
        response = self._client.chat.completions.create(**kwargs)
        if not response.choices:
            return _CompletionResponse(text=None)
        return _CompletionResponse(text=response.choices[0].message.content)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def resolve_api_key(config: Config) -> str:
    """Return the API key from config or environment.

    Resolution order: ``config.api_key``, then the ``LLM_API_KEY``,
    ``OPENAI_API_KEY`` and ``OPEN_AI_API_KEY`` environment variables.

    Raises:
        ConfigError: if no key is found.
    """
    if config.api_key:
        return config.api_key
    for name in _API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    raise ConfigError(
        "No LLM API key configured; set one of " + ", ".join(_API_KEY_ENV_VARS)
    )


def create_client(config: Config) -> LLMClient:
    """Create a client from configuration, resolving API key and headers.

    OpenRouter headers are injected automatically when ``config.base_url``
    contains ``"openrouter.ai"``.

    Raises:
        ConfigError: if no API key is available.
    """
    api_key = resolve_api_key(config)

    extra_headers: dict = {}
    if "openrouter.ai" in config.base_url:
        extra_headers = {
            "HTTP-Referer": "https://github.com/arxiv-digest",
            "X-Title": "arxiv-digest",
        }

    return LLMClient(
        model=config.model,
        base_url=config.base_url,
        api_key=api_key,
        extra_headers=extra_headers,
        timeout_s=config.timeout_s,
        max_output_tokens=config.max_output_tokens,
    )


def summarize(
    client: LLMClient, listing: PaperListing, paper_text: str, max_chars: int
) -> str:
    """Summarize one paper and return the generated text.

    Raises:
        RateLimitedError: if the endpoint answers with HTTP 429.
        ModelError: for any other failure of the call (including timeouts).
        EmptyResponseError: if the reply has no choices or blank content.
    """
    prompt = build_summary_prompt(listing, paper_text, max_chars)
    logger.debug(
        "Built prompt (%s chars, ~%s tokens)",
        f"{len(prompt):,}",
        f"{len(prompt) // 4:,}",
    )

    logger.info("Calling LLM  model=%s  backend=%s", client.model, client.base_url)
    t0 = time.monotonic()
    try:
        response = client.complete(prompt)
    except Exception as exc:
        if _extract_status_code(exc) == 429:
            raise RateLimitedError(f"LLM endpoint rate limited: {exc}") from exc
        raise ModelError(f"LLM call failed: {exc}") from exc
    elapsed = time.monotonic() - t0

    text = (response.text or "").strip()
    if not text:
        raise EmptyResponseError(f"LLM returned an empty response for {listing.title!r}")
    logger.info("Response received (%.1fs, %s chars)", elapsed, f"{len(text):,}")
    return text


def _extract_status_code(exc: Exception) -> int | None:
    """Extract HTTP status code from common exception shapes or message text."""
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value

    code_attr = getattr(exc, "code", None)
    if isinstance(code_attr, int) and 100 <= code_attr <= 599:
        return code_attr

    message = str(exc)
    patterns = [
        r"Error code:\s*(\d{3})",
        r"status(?:\s*code)?\s*[:=]\s*(\d{3})",
    ]
    for pattern in patterns:
        match = re.search(pattern, message, flags=re.IGNORECASE)
        if match:
            return int(match.group(1))

    return None
