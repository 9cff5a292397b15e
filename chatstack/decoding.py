"""Translate raw Ollama responses and transport failures into domain results."""

from __future__ import annotations

import json
from typing import List, Optional

import requests

from .errors import (
    FailedToParseResponseError,
    NetworkError,
    ServerError,
    UnexpectedResponseFormatError,
)
from .models import ChatEntry, ChatResponse, ModelTagsResponse

EMPTY_ERROR_BODY = "Server returned an error with empty response body."
UNKNOWN_SERVER_ERROR = "Unknown server error"


def _load_json(raw_body: bytes):
    try:
        return json.loads(raw_body)
    except (RecursionError, ValueError) as exc:
        raise FailedToParseResponseError(str(exc)) from exc


def decode_chat_entry(raw_body: bytes, original_message: str, model: str) -> ChatEntry:
    """Decode a ``/api/chat`` body into a :class:`ChatEntry`.

    An ``error`` field takes priority over any message content.

    Raises:
        ServerError: If the envelope carries a non-empty ``error``.
        UnexpectedResponseFormatError: If there is no usable message content.
        FailedToParseResponseError: If the body is not a valid envelope.
    """

    payload = _load_json(raw_body)
    try:
        envelope = ChatResponse.from_json(payload)
    except ValueError as exc:
        raise FailedToParseResponseError(str(exc)) from exc

    if envelope.error:
        raise ServerError(envelope.error)

    content = envelope.message.content if envelope.message else None
    if content is None or not content.strip():
        raise UnexpectedResponseFormatError()

    return ChatEntry(
        question=original_message,
        response_markdown=content,
        model_name=model,
    )


def decode_model_names(raw_body: bytes) -> List[str]:
    """Return the sorted model names of a ``/api/tags`` body."""

    payload = _load_json(raw_body)
    try:
        envelope = ModelTagsResponse.from_json(payload)
    except ValueError as exc:
        raise FailedToParseResponseError(str(exc)) from exc
    return sorted(envelope.names)


def extract_server_error_text(raw_body: Optional[bytes]) -> str:
    """Best-effort human readable message for a non-2xx response body."""

    if raw_body is None:
        return EMPTY_ERROR_BODY

    try:
        envelope = ChatResponse.from_json(json.loads(raw_body))
    except (RecursionError, ValueError):
        envelope = None
    if envelope is not None and envelope.error:
        return envelope.error

    try:
        text = raw_body.decode("utf-8")
    except UnicodeDecodeError:
        text = ""
    if text:
        return text
    return UNKNOWN_SERVER_ERROR


def classify_transport_error(exc: Exception, base_url: str) -> NetworkError:
    """Map a transport exception onto a :class:`NetworkError` with a useful hint."""

    if isinstance(exc, requests.Timeout):
        return NetworkError("The request timed out. Check if Ollama is running.")
    if isinstance(exc, requests.ConnectionError):
        return NetworkError(f"Cannot connect to Ollama server at {base_url}.")
    description = str(exc).strip() or type(exc).__name__
    return NetworkError(description)
