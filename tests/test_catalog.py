from __future__ import annotations

import pytest

from chatstack.catalog import (
    best_model_for_family,
    family_of,
    filter_hidden,
    normalize_model_name,
    recommended_models,
)


def test_normalize_model_name_adds_latest_tag():
    assert normalize_model_name("qwen2.5") == "qwen2.5:latest"
    assert normalize_model_name("qwen2.5:7b") == "qwen2.5:7b"


def test_filter_hidden_is_case_insensitive_and_keeps_order():
    models = ["mistral:latest", "Nomic-Embed-Text:latest", "llama3.1:8b", "all-minilm:l6"]

    result = filter_hidden(models, ["nomic-embed", "ALL-MINILM"])

    assert result == ["mistral:latest", "llama3.1:8b"]


def test_filter_hidden_without_prefixes_returns_everything():
    assert filter_hidden(["b", "a"], []) == ["b", "a"]


@pytest.mark.parametrize(
    ("name", "family"),
    [
        ("llama3.1:latest", "llama3.1"),
        ("Llama3.2:3b", "llama3.2"),
        ("hf.co/org/Mistral-7B-Instruct:Q4_K_M", "mistral"),
        ("gemma3:12b", "gemma3"),
        ("codellama:7b", "codellama"),
        ("qwen2.5:7b", "qwen2.5"),
        ("phi3", "phi3"),
    ],
)
def test_family_of(name, family):
    assert family_of(name) == family


def test_best_model_for_family_prefers_latest_tag():
    models = ["llama3.1:8b", "llama3.1:latest", "mistral:latest"]

    assert best_model_for_family(models, "llama3.1") == "llama3.1:latest"


def test_best_model_for_family_falls_back_to_shortest_name():
    models = ["mistral:7b-instruct", "mistral:7b", "mistral:v2"]

    # "mistral:7b" and "mistral:v2" tie on length; input order wins.
    assert best_model_for_family(models, "mistral") == "mistral:7b"


def test_best_model_for_family_without_members():
    assert best_model_for_family(["mistral:latest"], "llama3.2") is None


def test_recommended_models_appends_custom_selection():
    models = ["llama3.1:latest", "mistral:7b", "qwen2.5:latest"]

    assert recommended_models(models, "qwen2.5:latest") == [
        "llama3.1:latest",
        "mistral:7b",
        "qwen2.5:latest",
    ]
    assert recommended_models(models, "mistral:7b") == ["llama3.1:latest", "mistral:7b"]
