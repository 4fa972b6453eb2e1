"""LLM client — multi-provider support (Google, OpenAI, Anthropic).

Every call is a coroutine so bulk generation can fan out one request per ad
group on a single event loop. The API key is passed per call (it belongs to
the user's session), and provider clients are cached per (provider, key).

Includes built-in cost tracking: every LLM call records token usage and
calculates cost based on per-model pricing. Use reset_usage(), get_usage_log(),
and get_usage_summary() to access the accumulated data.

Error handling:
  - 400-level errors (bad request, auth) are NOT retried — they won't fix themselves.
  - 429 (rate limit) and 5xx (server errors) ARE retried with exponential backoff.
  - All errors are extracted into clean, readable messages.
"""

from __future__ import annotations

import logging
import socket
import time as _time
from typing import Any

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cost tracking
# ---------------------------------------------------------------------------

# Pricing per 1M tokens: { model_prefix: (input_$/1M, output_$/1M) }
# Models are matched longest-prefix-first, so "gemini-2.5-flash-lite" matches
# before "gemini-2.5-flash".
MODEL_PRICING: dict[str, tuple[float, float]] = {
    # Google
    "gemini-2.5-flash-lite": (0.10,  0.40),
    "gemini-2.5-flash":      (0.30,  2.50),
    "gemini-2.5-pro":        (1.25, 10.00),
    "gemini-2.0-flash":      (0.10,  0.40),
    # OpenAI
    "gpt-4.1-mini":          (0.40,  1.60),
    "gpt-4.1-nano":          (0.10,  0.40),
    "gpt-4.1":               (2.00,  8.00),
    "gpt-4o-mini":           (0.15,  0.60),
    "gpt-4o":                (2.50, 10.00),
    # Anthropic
    "claude-sonnet-4":       (3.00, 15.00),
    "claude-haiku-4":        (1.00,  5.00),
    "claude-opus-4":         (15.00, 75.00),
}

# Fallback pricing if a model isn't in the table (conservative estimate)
_FALLBACK_PRICING = (2.50, 10.00)

_usage_log: list[dict[str, Any]] = []


def _get_pricing(model: str) -> tuple[float, float]:
    """Find pricing for a model by longest-prefix match."""
    best_match = ""
    for prefix in MODEL_PRICING:
        if model.startswith(prefix) and len(prefix) > len(best_match):
            best_match = prefix
    if best_match:
        return MODEL_PRICING[best_match]
    logger.warning("No pricing found for model '%s' — using fallback $%.2f/$%.2f per 1M", model, *_FALLBACK_PRICING)
    return _FALLBACK_PRICING


def _record_usage(provider: str, model: str, input_tokens: int, output_tokens: int):
    """Record a single LLM call's token usage and cost."""
    in_price, out_price = _get_pricing(model)
    cost = (input_tokens * in_price + output_tokens * out_price) / 1_000_000
    _usage_log.append({
        "provider": provider,
        "model": model,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "cost": cost,
        "timestamp": _time.time(),
    })
    logger.info(
        "Token usage: %s/%s — in=%d out=%d cost=$%.4f",
        provider, model, input_tokens, output_tokens, cost,
    )


def reset_usage():
    """Clear all accumulated usage data."""
    _usage_log.clear()


def get_usage_log() -> list[dict[str, Any]]:
    """Return a copy of the full usage log."""
    return list(_usage_log)


def get_usage_summary() -> dict[str, Any]:
    """Return aggregated cost and token totals."""
    entries = list(_usage_log)
    total_input = sum(e["input_tokens"] for e in entries)
    total_output = sum(e["output_tokens"] for e in entries)
    total_cost = sum(e["cost"] for e in entries)
    return {
        "total_input_tokens": total_input,
        "total_output_tokens": total_output,
        "total_tokens": total_input + total_output,
        "total_cost": round(total_cost, 4),
        "calls": len(entries),
    }


# ---------------------------------------------------------------------------
# Error helpers
# ---------------------------------------------------------------------------

class LLMError(Exception):
    """Clean error from an LLM call with a human-readable message."""

    def __init__(self, message: str, provider: str = "", model: str = "", cause: Exception | None = None):
        self.provider = provider
        self.model = model
        self.cause = cause
        super().__init__(message)


def _is_retryable(exc: BaseException) -> bool:
    """Return True if the error is transient and worth retrying.

    We retry on:
      - Rate limits (429)
      - Server errors (500, 502, 503, 529)
      - Connection / timeout errors
    We do NOT retry on:
      - 400 Bad Request (invalid params, won't fix itself)
      - 401/403 Auth errors (key is wrong)
      - 404 (model doesn't exist)
    """
    # Google errors
    from google.genai import errors as genai_errors
    if isinstance(exc, genai_errors.ServerError):
        return True
    if isinstance(exc, genai_errors.APIError) and getattr(exc, "code", None) == 429:
        return True

    # OpenAI errors
    from openai import (
        APIConnectionError,
        APITimeoutError,
        InternalServerError,
        RateLimitError,
    )
    if isinstance(exc, (RateLimitError, InternalServerError, APIConnectionError, APITimeoutError)):
        return True

    # Anthropic errors
    from anthropic import (
        APIConnectionError as AnthropicConnError,
        APITimeoutError as AnthropicTimeout,
        InternalServerError as AnthropicInternal,
        RateLimitError as AnthropicRateLimit,
    )
    if isinstance(exc, (AnthropicRateLimit, AnthropicInternal, AnthropicConnError, AnthropicTimeout)):
        return True

    # Generic connection / timeout
    if isinstance(exc, (ConnectionError, TimeoutError, socket.timeout)):
        return True

    return False


def _extract_error_message(exc: Exception, provider: str, model: str) -> str:
    """Pull out a clean, human-readable error message from an API exception."""

    msg = str(exc)

    # Google: APIError carries the HTTP code and the server message
    from google.genai import errors as genai_errors
    if isinstance(exc, genai_errors.APIError):
        code = getattr(exc, "code", None)
        detail = getattr(exc, "message", None) or msg
        if "api key not valid" in msg.lower() or code in (401, 403):
            return f"[{provider}] Authentication failed — API key not valid. Please pass a valid API key."
        if code == 404:
            return f"[{provider}] Model '{model}' not found. Check DEFAULT_MODEL in config.py or .env."
        if code == 400:
            return f"[{provider}/{model}] Bad request: {detail}"

    # OpenAI
    from openai import BadRequestError, AuthenticationError, NotFoundError, PermissionDeniedError
    if isinstance(exc, BadRequestError):
        body = getattr(exc, "body", None)
        if isinstance(body, dict):
            inner = body.get("error", {})
            msg = inner.get("message", msg)
        return f"[{provider}/{model}] Bad request: {msg}"
    if isinstance(exc, AuthenticationError):
        return f"[{provider}] Authentication failed — check your API key."
    if isinstance(exc, NotFoundError):
        return f"[{provider}] Model '{model}' not found. Check the model name in config.py or .env."
    if isinstance(exc, PermissionDeniedError):
        return f"[{provider}] Permission denied — your API key may not have access to '{model}'."

    # Anthropic
    from anthropic import BadRequestError as AnthropicBadReq, AuthenticationError as AnthropicAuth, NotFoundError as AnthropicNotFound
    if isinstance(exc, AnthropicBadReq):
        return f"[{provider}/{model}] Bad request: {msg}"
    if isinstance(exc, AnthropicAuth):
        return f"[{provider}] Authentication failed — check your API key."
    if isinstance(exc, AnthropicNotFound):
        return f"[{provider}] Model '{model}' not found."

    # Generic fallback, truncated
    if len(msg) > 300:
        msg = msg[:300] + "..."
    return f"[{provider}/{model}] {msg}"


# ---------------------------------------------------------------------------
# Provider clients (lazy, one per provider + key)
# ---------------------------------------------------------------------------

_clients: dict[tuple[str, str], Any] = {}


def _get_client(provider: str, api_key: str):
    if not api_key:
        raise LLMError(
            "No API key for this session. Enter your API key first.",
            provider=provider,
        )
    key = (provider, api_key)
    client = _clients.get(key)
    if client is not None:
        return client

    if provider == "google":
        from google import genai
        client = genai.Client(api_key=api_key)
    elif provider == "openai":
        from openai import AsyncOpenAI
        client = AsyncOpenAI(api_key=api_key)
    elif provider == "anthropic":
        from anthropic import AsyncAnthropic
        client = AsyncAnthropic(api_key=api_key)
    else:
        raise LLMError(f"Unknown provider: '{provider}'", provider=provider)

    _clients[key] = client
    return client


def forget_client(api_key: str):
    """Drop cached clients for a key (called on sign-out)."""
    for cache_key in [k for k in _clients if k[1] == api_key]:
        _clients.pop(cache_key, None)


# ---------------------------------------------------------------------------
# Provider-specific call implementations
# ---------------------------------------------------------------------------

async def _call_google(
    prompt: str,
    api_key: str,
    model: str,
    temperature: float,
    max_tokens: int,
    use_search: bool = False,
) -> str:
    from google.genai import types

    client = _get_client("google", api_key)
    cfg = types.GenerateContentConfig(
        temperature=temperature,
        max_output_tokens=max_tokens,
    )
    if use_search:
        # Grounding can't be combined with a JSON mime type; the prompt asks for raw JSON instead.
        cfg.tools = [types.Tool(google_search=types.GoogleSearch())]

    start = _time.time()
    response = await client.aio.models.generate_content(
        model=model,
        contents=prompt,
        config=cfg,
    )
    content = response.text or ""
    logger.info(
        "Google [%s]: %d chars in %.1fs (search=%s)",
        model, len(content), _time.time() - start, use_search,
    )

    meta = getattr(response, "usage_metadata", None)
    if meta:
        in_tok = getattr(meta, "prompt_token_count", 0) or 0
        out_tok = getattr(meta, "candidates_token_count", 0) or 0
        _record_usage("google", model, in_tok, out_tok)
    return content


async def _call_openai(
    prompt: str,
    api_key: str,
    model: str,
    temperature: float,
    max_tokens: int,
    use_search: bool = False,
) -> str:
    client = _get_client("openai", api_key)
    if use_search:
        logger.debug("OpenAI [%s]: search grounding not supported here, ignoring", model)

    start = _time.time()
    response = await client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        temperature=temperature,
        max_completion_tokens=max_tokens,
    )
    content = response.choices[0].message.content or ""
    logger.info("OpenAI [%s]: %d chars in %.1fs", model, len(content), _time.time() - start)

    usage = getattr(response, "usage", None)
    if usage:
        _record_usage("openai", model, usage.prompt_tokens or 0, usage.completion_tokens or 0)
    return content


async def _call_anthropic(
    prompt: str,
    api_key: str,
    model: str,
    temperature: float,
    max_tokens: int,
    use_search: bool = False,
) -> str:
    client = _get_client("anthropic", api_key)
    if use_search:
        logger.debug("Anthropic [%s]: search grounding not supported here, ignoring", model)

    start = _time.time()
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=[{"role": "user", "content": prompt}],
    )
    content = "".join(block.text for block in response.content if hasattr(block, "text"))
    logger.info("Anthropic [%s]: %d chars in %.1fs", model, len(content), _time.time() - start)

    _record_usage(
        "anthropic", model,
        response.usage.input_tokens or 0,
        response.usage.output_tokens or 0,
    )
    return content


# Provider dispatch
_PROVIDERS = {
    "google": _call_google,
    "openai": _call_openai,
    "anthropic": _call_anthropic,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def _call(
    prompt: str,
    api_key: str,
    provider: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    use_search: bool,
    pass_transient: bool,
) -> str:
    """One provider call. Transient errors are re-raised as-is when pass_transient
    is set (so tenacity can retry them), otherwise wrapped in LLMError."""
    provider = provider or config.DEFAULT_PROVIDER
    model = model or config.default_model_for(provider)
    temperature = config.LLM_TEMPERATURE if temperature is None else temperature
    max_tokens = max_tokens or config.LLM_MAX_TOKENS

    call_fn = _PROVIDERS.get(provider)
    if not call_fn:
        raise LLMError(
            f"Unknown provider: '{provider}'. Available: {list(_PROVIDERS.keys())}",
            provider=provider,
            model=model,
        )

    logger.info("LLM call: provider=%s, model=%s, temp=%.1f, prompt=%d chars", provider, model, temperature, len(prompt))
    try:
        return await call_fn(prompt, api_key, model, temperature, max_tokens, use_search=use_search)
    except LLMError:
        raise
    except Exception as exc:
        clean_msg = _extract_error_message(exc, provider, model)
        logger.error("LLM call failed: %s", clean_msg)
        if pass_transient and _is_retryable(exc):
            raise  # let tenacity retry
        raise LLMError(clean_msg, provider=provider, model=model, cause=exc) from exc


@retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    reraise=True,
)
async def call_llm(
    prompt: str,
    *,
    api_key: str,
    provider: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    use_search: bool = False,
) -> str:
    """Call an LLM and return raw text. Provider-agnostic.

    Retries on transient errors (rate limits, server errors).
    Raises LLMError immediately for bad requests or auth errors.
    """
    return await _call(prompt, api_key, provider, model, temperature, max_tokens, use_search, pass_transient=True)


async def call_llm_once(
    prompt: str,
    *,
    api_key: str,
    provider: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    use_search: bool = False,
) -> str:
    """Single attempt, no transient retry. Every failure comes back as LLMError.

    For callers that run their own attempt loop (single-item regeneration).
    """
    return await _call(prompt, api_key, provider, model, temperature, max_tokens, use_search, pass_transient=False)
