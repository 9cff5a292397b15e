"""HTTP client for interacting with the Ollama REST API."""

from __future__ import annotations

from typing import List, Optional

import requests

from .catalog import normalize_model_name
from .config import OllamaConfig
from .decoding import (
    classify_transport_error,
    decode_chat_entry,
    decode_model_names,
    extract_server_error_text,
)
from .errors import InvalidServerResponseError, NoDataReceivedError, ServerError
from .logging import get_logger
from .models import ChatEntry, GenerationOptions, HttpRequest
from .payloads import build_chat_request, build_pull_request, build_tags_request

LOGGER = get_logger(__name__)


class OllamaClient:
    """Blocking client for the chat, tags and pull endpoints.

    Every public method either returns its result or raises a
    :class:`~chatstack.errors.ChatClientError` subclass. Nothing is retried;
    callers decide whether to try again.
    """

    def __init__(
        self,
        config: Optional[OllamaConfig] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or OllamaConfig()
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.config.host.rstrip("/")

    # ------------------------------------------------------------------
    # Chat interaction
    # ------------------------------------------------------------------
    def chat(
        self,
        message: str,
        model: str,
        options: Optional[GenerationOptions] = None,
    ) -> ChatEntry:
        request = build_chat_request(
            self.base_url,
            message,
            model,
            options or GenerationOptions(),
            timeout=self.config.chat_timeout,
        )
        body = self._send(request)
        if not body:
            raise NoDataReceivedError()
        return decode_chat_entry(body, message, model.strip())

    # ------------------------------------------------------------------
    # Model catalog
    # ------------------------------------------------------------------
    def list_models(self) -> List[str]:
        request = build_tags_request(self.base_url, timeout=self.config.list_timeout)
        body = self._send(request)
        if not body:
            raise NoDataReceivedError()
        return decode_model_names(body)

    def pull_model(self, name: str) -> str:
        """Download *name* onto the server and return the normalised name.

        The call blocks until the server reports completion; the updated
        catalog has to be fetched with :meth:`list_models` afterwards.
        """

        request = build_pull_request(self.base_url, name, timeout=self.config.pull_timeout)
        self._send(request)
        return normalize_model_name(name.strip())

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _send(self, request: HttpRequest) -> bytes:
        LOGGER.debug("%s %s (timeout=%ss)", request.method, request.url, request.timeout)
        try:
            response = self._session.request(
                request.method,
                request.url,
                data=request.body,
                headers=request.headers,
                timeout=request.timeout,
            )
            status = getattr(response, "status_code", None)
            body = getattr(response, "content", None)
        except (requests.RequestException, OSError) as exc:
            LOGGER.debug("Transport failure for %s: %s", request.url, exc)
            raise classify_transport_error(exc, self.base_url) from exc

        if not isinstance(status, int) or (body is not None and not isinstance(body, bytes)):
            raise InvalidServerResponseError()

        if not 200 <= status <= 299:
            message = extract_server_error_text(body or None)
            raise ServerError(f"HTTP {status}: {message}")
        return body or b""
