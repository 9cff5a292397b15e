from __future__ import annotations

import pytest
import requests

from chatstack.config import OllamaConfig
from chatstack.errors import (
    FailedToParseResponseError,
    InvalidInputError,
    InvalidServerResponseError,
    NetworkError,
    NoDataReceivedError,
    ServerError,
)
from chatstack.models import GenerationOptions
from chatstack.ollama import OllamaClient

CHAT_REPLY = {
    "model": "llama3.1",
    "message": {"role": "assistant", "content": "Rayleigh scattering..."},
    "done": True,
}


def test_chat_posts_request_and_returns_entry(make_session, make_response):
    session = make_session(make_response(payload=CHAT_REPLY))
    client = OllamaClient(OllamaConfig(), session=session)

    entry = client.chat("Why is the sky blue?", "llama3.1", GenerationOptions(0.2, 7, 20))

    assert entry.question == "Why is the sky blue?"
    assert entry.response_markdown == "Rayleigh scattering..."
    assert entry.model_name == "llama3.1"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://localhost:11434/api/chat"
    assert call["timeout"] == 90
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["json"]["options"] == {"seed": 7, "temperature": 0.2, "top_k": 20}
    assert call["json"]["stream"] is False


def test_chat_records_trimmed_model_name(make_session, make_response):
    session = make_session(make_response(payload=CHAT_REPLY))
    client = OllamaClient(session=session)

    entry = client.chat("Why is the sky blue?", "  llama3.1 ", GenerationOptions())

    assert session.calls[0]["json"]["model"] == "llama3.1"
    assert entry.model_name == "llama3.1"


def test_chat_rejects_blank_message_without_network(make_session):
    session = make_session()
    client = OllamaClient(session=session)

    with pytest.raises(InvalidInputError):
        client.chat("   ", "llama3.1")

    assert session.calls == []


def test_chat_reports_http_status_with_server_message(make_session, make_response):
    session = make_session(make_response(404, {"error": "model 'llama3.1' not found"}))
    client = OllamaClient(session=session)

    with pytest.raises(ServerError) as excinfo:
        client.chat("Hello", "llama3.1")

    assert excinfo.value.detail == "HTTP 404: model 'llama3.1' not found"


def test_chat_reports_http_status_with_empty_body(make_session, make_response):
    session = make_session(make_response(500))
    client = OllamaClient(session=session)

    with pytest.raises(ServerError) as excinfo:
        client.chat("Hello", "llama3.1")

    assert excinfo.value.detail == "HTTP 500: Server returned an error with empty response body."


def test_chat_non_2xx_ignores_success_shaped_body(make_session, make_response):
    session = make_session(make_response(503, CHAT_REPLY))
    client = OllamaClient(session=session)

    with pytest.raises(ServerError) as excinfo:
        client.chat("Hello", "llama3.1")

    assert excinfo.value.detail.startswith("HTTP 503: ")


def test_chat_without_body_raises_no_data(make_session, make_response):
    client = OllamaClient(session=make_session(make_response(200)))

    with pytest.raises(NoDataReceivedError):
        client.chat("Hello", "llama3.1")


def test_chat_classifies_timeouts(make_session):
    client = OllamaClient(session=make_session(error=requests.ReadTimeout("read timed out")))

    with pytest.raises(NetworkError) as excinfo:
        client.chat("Hello", "llama3.1")

    assert "timed out" in excinfo.value.detail
    assert isinstance(excinfo.value.__cause__, requests.ReadTimeout)


def test_chat_classifies_unreachable_host(make_session):
    config = OllamaConfig(host="http://gpu-box:11434/")
    client = OllamaClient(config, session=make_session(error=requests.ConnectionError("refused")))

    with pytest.raises(NetworkError) as excinfo:
        client.chat("Hello", "llama3.1")

    assert excinfo.value.detail == "Cannot connect to Ollama server at http://gpu-box:11434."


def test_chat_rejects_non_http_results(make_session):
    client = OllamaClient(session=make_session(object()))

    with pytest.raises(InvalidServerResponseError):
        client.chat("Hello", "llama3.1")


def test_list_models_returns_sorted_names(make_session, make_response):
    payload = {"models": [{"name": "mistral"}, {"name": "llama3.1"}]}
    session = make_session(make_response(payload=payload))
    client = OllamaClient(session=session)

    assert client.list_models() == ["llama3.1", "mistral"]
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == "http://localhost:11434/api/tags"
    assert session.calls[0]["timeout"] == 30


def test_list_models_requires_body(make_session, make_response):
    client = OllamaClient(session=make_session(make_response(200)))

    with pytest.raises(NoDataReceivedError):
        client.list_models()


def test_list_models_reports_parse_failures(make_session, make_response):
    client = OllamaClient(session=make_session(make_response(200, content=b"<html>")))

    with pytest.raises(FailedToParseResponseError):
        client.list_models()


def test_list_models_uses_configured_timeout(make_session, make_response):
    session = make_session(make_response(payload={"models": []}))
    client = OllamaClient(OllamaConfig(list_timeout=5), session=session)

    assert client.list_models() == []
    assert session.calls[0]["timeout"] == 5


def test_pull_model_sends_normalised_name(make_session, make_response):
    session = make_session(make_response(200))
    client = OllamaClient(session=session)

    assert client.pull_model("qwen2.5") == "qwen2.5:latest"
    call = session.calls[0]
    assert call["url"] == "http://localhost:11434/api/pull"
    assert call["json"] == {"name": "qwen2.5:latest", "stream": False}
    assert call["timeout"] == 600


def test_pull_model_rejects_blank_name(make_session):
    session = make_session()
    client = OllamaClient(session=session)

    with pytest.raises(InvalidInputError):
        client.pull_model("  ")

    assert session.calls == []


def test_pull_model_reports_server_failure(make_session, make_response):
    session = make_session(make_response(500, {"error": "pull model manifest: file does not exist"}))
    client = OllamaClient(session=session)

    with pytest.raises(ServerError) as excinfo:
        client.pull_model("does-not-exist")

    assert "file does not exist" in str(excinfo.value)
