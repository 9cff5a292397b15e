"""Construction of the HTTP requests sent to the Ollama API."""

from __future__ import annotations

import json
from typing import Any, Dict

from .catalog import normalize_model_name
from .errors import InvalidInputError, InvalidRequestBodyError
from .models import GenerationOptions, HttpRequest

# Large local models can take a while to load on the first request.
CHAT_TIMEOUT_SECONDS: float = 90.0
PULL_TIMEOUT_SECONDS: float = 600.0
LIST_TIMEOUT_SECONDS: float = 30.0

_JSON_HEADERS = {"Content-Type": "application/json"}


def _endpoint(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _encode(payload: Dict[str, Any]) -> bytes:
    try:
        return json.dumps(payload, allow_nan=False, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise InvalidRequestBodyError() from exc


def build_chat_request(
    base_url: str,
    message: str,
    model: str,
    options: GenerationOptions,
    *,
    timeout: float = CHAT_TIMEOUT_SECONDS,
) -> HttpRequest:
    """Return the ``/api/chat`` request for a single user turn.

    The message is trimmed before sending. Streaming is always disabled so the
    server answers with one complete envelope.

    Raises:
        InvalidInputError: If the message or the model name is blank.
        InvalidRequestBodyError: If the options cannot be encoded as JSON.
    """

    trimmed = (message or "").strip()
    if not trimmed:
        raise InvalidInputError("User message cannot be empty.")
    model_name = (model or "").strip()
    if not model_name:
        raise InvalidInputError("Model name cannot be empty.")

    payload = {
        "model": model_name,
        "messages": [{"role": "user", "content": trimmed}],
        "options": options.to_json(),
        "stream": False,
    }
    return HttpRequest(
        method="POST",
        url=_endpoint(base_url, "api/chat"),
        headers=dict(_JSON_HEADERS),
        body=_encode(payload),
        timeout=timeout,
    )


def build_pull_request(
    base_url: str, name: str, *, timeout: float = PULL_TIMEOUT_SECONDS
) -> HttpRequest:
    """Return the ``/api/pull`` request for *name*, normalised to ``name:tag``."""

    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidInputError("Model name cannot be empty.")

    payload = {"name": normalize_model_name(trimmed), "stream": False}
    return HttpRequest(
        method="POST",
        url=_endpoint(base_url, "api/pull"),
        headers=dict(_JSON_HEADERS),
        body=_encode(payload),
        timeout=timeout,
    )


def build_tags_request(base_url: str, *, timeout: float = LIST_TIMEOUT_SECONDS) -> HttpRequest:
    return HttpRequest(
        method="GET",
        url=_endpoint(base_url, "api/tags"),
        headers={},
        body=None,
        timeout=timeout,
    )
