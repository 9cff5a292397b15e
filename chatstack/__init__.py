"""High-level public API for the Ollama chat client and its history store."""

from .catalog import (
    best_model_for_family,
    family_of,
    filter_hidden,
    normalize_model_name,
    recommended_models,
)
from .config import AppConfig, ModelConfig, OllamaConfig, StorageConfig
from .decoding import (
    classify_transport_error,
    decode_chat_entry,
    decode_model_names,
    extract_server_error_text,
)
from .errors import (
    ChatClientError,
    FailedToParseResponseError,
    InvalidInputError,
    InvalidRequestBodyError,
    InvalidServerResponseError,
    NetworkError,
    NoDataReceivedError,
    ServerError,
    UnexpectedResponseFormatError,
)
from .history import ChatHistoryStore, NoPendingUndo, PendingUndo
from .models import ChatEntry, GenerationOptions, HttpRequest
from .ollama import OllamaClient
from .payloads import build_chat_request, build_pull_request, build_tags_request
from .service import ChatService
from .settings import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

__all__ = [
    "AppConfig",
    "ModelConfig",
    "OllamaConfig",
    "StorageConfig",
    "ChatClientError",
    "FailedToParseResponseError",
    "InvalidInputError",
    "InvalidRequestBodyError",
    "InvalidServerResponseError",
    "NetworkError",
    "NoDataReceivedError",
    "ServerError",
    "UnexpectedResponseFormatError",
    "ChatEntry",
    "GenerationOptions",
    "HttpRequest",
    "build_chat_request",
    "build_pull_request",
    "build_tags_request",
    "classify_transport_error",
    "decode_chat_entry",
    "decode_model_names",
    "extract_server_error_text",
    "best_model_for_family",
    "family_of",
    "filter_hidden",
    "normalize_model_name",
    "recommended_models",
    "OllamaClient",
    "ChatHistoryStore",
    "NoPendingUndo",
    "PendingUndo",
    "ChatService",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
]
