"""Classified failures raised by the Ollama client."""

from __future__ import annotations


class ChatClientError(RuntimeError):
    """Base exception for every failure surfaced by the chat client."""

    message = "Chat client error."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(self._render())

    def _render(self) -> str:
        return self.message


class _DetailedError(ChatClientError):
    prefix = ""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)

    def _render(self) -> str:
        return f"{self.prefix}: {self.detail}"


class InvalidInputError(_DetailedError):
    """Raised when caller-supplied data is rejected before any network call."""

    prefix = "Invalid input"


class InvalidRequestBodyError(ChatClientError):
    """Raised when the outgoing payload cannot be serialised."""

    message = "Failed to encode the request body as JSON."


class NoDataReceivedError(ChatClientError):
    """Raised when a successful response carries no body."""

    message = "No data was received from the server."


class ServerError(_DetailedError):
    """Raised for error payloads and non-2xx responses."""

    prefix = "Server error"


class InvalidServerResponseError(ChatClientError):
    """Raised when the transport returned something that is not an HTTP response."""

    message = "Invalid response from the server."


class UnexpectedResponseFormatError(ChatClientError):
    """Raised when a JSON response lacks the expected success fields."""

    message = "Unexpected response format from the server."


class NetworkError(_DetailedError):
    """Raised for transport-level failures (timeouts, refused connections...)."""

    prefix = "Network error"


class FailedToParseResponseError(_DetailedError):
    """Raised when the response cannot be decoded into the expected envelope."""

    prefix = "Failed to parse the server response"


__all__ = [
    "ChatClientError",
    "FailedToParseResponseError",
    "InvalidInputError",
    "InvalidRequestBodyError",
    "InvalidServerResponseError",
    "NetworkError",
    "NoDataReceivedError",
    "ServerError",
    "UnexpectedResponseFormatError",
]
