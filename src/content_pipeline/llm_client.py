"""LLM client — Anthropic Claude API wrapper.

Provides ``TextModelClient``: one system prompt + one user message in, free-form
text out, bounded by a deadline. ``complete_json()`` additionally pulls the JSON
object out of the reply and validates it into a Pydantic model.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
from concurrent.futures import Future, wait
from typing import Any, Optional, Type, TypeVar

import anthropic
from pydantic import BaseModel, ValidationError

from content_pipeline.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    EXCERPT_CHARS,
    MODEL_PREFIXES,
)
from content_pipeline.errors import (
    InvalidCredentialsError,
    MalformedOutputError,
    ModelTimeoutError,
    ModelUnavailableError,
    PipelineCancelled,
    ProviderError,
    RateLimitedError,
    TextModelError,
    UnknownModelError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

# How often a wait with a cancel event re-checks it
_CANCEL_POLL_SECONDS = 0.1


def resolve_model(model_name: Optional[str] = None) -> str:
    """Model id from the argument or MODEL env var, provider prefix stripped."""
    model_id = model_name or os.environ.get("MODEL") or DEFAULT_MODEL
    for prefix in MODEL_PREFIXES:
        if model_id.startswith(prefix):
            model_id = model_id[len(prefix):]
    return model_id


def resolve_timeout(timeout: Optional[float] = None) -> float:
    """Per-call deadline in seconds from the argument or PIPELINE_TIMEOUT env var."""
    if timeout is not None:
        return float(timeout)
    raw = os.environ.get("PIPELINE_TIMEOUT")
    if raw:
        try:
            return float(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric PIPELINE_TIMEOUT=%r", raw)
    return DEFAULT_TIMEOUT_SECONDS


def extract_json(text: str) -> dict[str, Any]:
    """Pull the JSON object out of a free-form model reply.

    Takes the inside of the first fenced block when there is one, otherwise the
    whole text, then drops anything before the first ``{`` and after the last
    ``}`` (models like to add a remark after the payload).
    """
    match = _FENCE_RE.search(text)
    json_text = match.group(1) if match else text

    first_brace = json_text.find("{")
    if first_brace > 0:
        json_text = json_text[first_brace:]
    last_brace = json_text.rfind("}")
    if last_brace != -1:
        json_text = json_text[: last_brace + 1]

    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(
            f"Failed to parse model response as JSON: {e}", excerpt=text[:EXCERPT_CHARS]
        ) from e

    if not isinstance(payload, dict):
        raise MalformedOutputError(
            "Model response JSON is not an object", excerpt=text[:EXCERPT_CHARS]
        )
    return payload


def _provider_message(exc: Exception) -> str:
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return getattr(exc, "message", None) or str(exc)


def classify_error(exc: Exception, model: str, timeout: float) -> TextModelError:
    """Map an SDK/transport exception onto the pipeline's error kinds."""
    if isinstance(exc, TextModelError):
        return exc
    if isinstance(exc, anthropic.APITimeoutError):
        return ModelTimeoutError(timeout)

    status = getattr(exc, "status_code", None)
    if isinstance(exc, anthropic.AuthenticationError) or status == 401:
        return InvalidCredentialsError("Invalid API key. Please check your ANTHROPIC_API_KEY.")
    if isinstance(exc, anthropic.NotFoundError) or status == 404:
        return ModelUnavailableError(
            f"Model '{model}' not found. Your API key may not have access to this model."
        )
    if isinstance(exc, anthropic.RateLimitError) or status == 429:
        return RateLimitedError("Rate limit exceeded. Please try again later.")
    if isinstance(exc, anthropic.APIError) or status is not None:
        return ProviderError(f"Anthropic API error: {_provider_message(exc)}")
    return UnknownModelError(f"Model call failed: {exc}")


class TextModelClient:
    """Deadline-bounded request/response calls to Claude."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        self._api_key = api_key
        self._client = client
        self.model = resolve_model(model)
        self.timeout = resolve_timeout(timeout)

    def _get_client(self) -> anthropic.Anthropic:
        """Create the Anthropic client on first use."""
        if self._client is None:
            api_key = self._api_key or os.environ.get("ANTHROPIC_API_KEY")
            if not api_key:
                raise InvalidCredentialsError("ANTHROPIC_API_KEY environment variable is not set")
            self._client = anthropic.Anthropic(api_key=api_key)
        return self._client

    def _send(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        response = self._get_client().messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            timeout=timeout,
        )

        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning("Reply from %s hit max_tokens=%d; JSON may be truncated", model, max_tokens)

        text_parts = [
            block.text for block in response.content
            if getattr(block, "type", None) == "text" and block.text
        ]
        if not text_parts:
            raise MalformedOutputError("Model returned no text content")
        return "\n".join(text_parts)

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: Optional[float] = None,
        model: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Send one message and return the reply text.

        The call runs on a daemon thread; this method returns or raises no
        later than ``timeout`` seconds, whether or not the call has finished.

        Raises:
            ModelTimeoutError: the deadline passed first.
            PipelineCancelled: ``cancel`` was set while waiting.
            TextModelError: any other classified failure.
        """
        model_id = resolve_model(model) if model else self.model
        deadline = self.timeout if timeout is None else timeout
        future: Future[str] = Future()

        def _call() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(
                    self._send(system_prompt, user_prompt, model_id, temperature, max_tokens, deadline)
                )
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=_call, name="text-model-call", daemon=True).start()

        try:
            return self._wait(future, deadline, cancel)
        except TextModelError:
            raise
        except Exception as e:
            raise classify_error(e, model_id, deadline) from e

    @staticmethod
    def _wait(future: Future, deadline: float, cancel: Optional[threading.Event]) -> str:
        expires = time.monotonic() + deadline
        while True:
            remaining = expires - time.monotonic()
            if remaining <= 0:
                raise ModelTimeoutError(deadline)
            step = min(remaining, _CANCEL_POLL_SECONDS) if cancel is not None else remaining
            done, _ = wait([future], timeout=step)
            if done:
                return future.result()
            if cancel is not None and cancel.is_set():
                raise PipelineCancelled()

    def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        result_type: Type[ModelT],
        **options: Any,
    ) -> ModelT:
        """``generate()`` then parse the reply into ``result_type``."""
        text = self.generate(system_prompt, user_prompt, **options)
        try:
            payload = extract_json(text)
            return result_type.model_validate(payload)
        except ValidationError as e:
            error = MalformedOutputError(
                f"Model response did not match {result_type.__name__} "
                f"({e.error_count()} invalid field(s))",
                excerpt=text[:EXCERPT_CHARS],
            )
            logger.debug("Malformed %s reply: %s", result_type.__name__, error.excerpt)
            raise error from e
        except MalformedOutputError as e:
            logger.debug("Unparseable %s reply: %s", result_type.__name__, e.excerpt)
            raise
