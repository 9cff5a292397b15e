"""Configuration models and helpers for the chat client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .models import GenerationOptions
from .payloads import CHAT_TIMEOUT_SECONDS, LIST_TIMEOUT_SECONDS, PULL_TIMEOUT_SECONDS

PROJECT_ROOT = Path(__file__).resolve().parent.parent

_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return

    env_file = os.getenv("ENV_FILE", ".env")
    env_path = Path(env_file)
    if not env_path.is_absolute():
        env_path = PROJECT_ROOT / env_file
    if env_path.exists():
        load_dotenv(env_path, override=False)
    _DOTENV_LOADED = True


def _env(key: str) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _update_dataclass(instance: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if hasattr(instance, key):
            setattr(instance, key, value)


def _default_data_dir() -> Path:
    if (PROJECT_ROOT / "pyproject.toml").exists():
        return PROJECT_ROOT / "data"
    return Path.home() / ".chatstack"


def _split_prefixes(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class OllamaConfig:
    """Connection details for the Ollama HTTP API."""

    host: str = "http://localhost:11434"
    chat_timeout: float = CHAT_TIMEOUT_SECONDS
    list_timeout: float = LIST_TIMEOUT_SECONDS
    pull_timeout: float = PULL_TIMEOUT_SECONDS


@dataclass
class ModelConfig:
    """Default model selection and the models hidden from the picker."""

    default_model: str = "llama3.1"
    hidden_prefixes: List[str] = field(
        default_factory=lambda: ["nomic-embed", "mxbai-embed", "all-minilm"]
    )


@dataclass
class StorageConfig:
    """Where the file-backed settings store keeps its values."""

    data_dir: Path = field(default_factory=_default_data_dir)

    def apply_overrides(self, overrides: Dict[str, Any]) -> None:
        if "data_dir" in overrides:
            self.data_dir = Path(overrides["data_dir"]).expanduser().resolve()

    def ensure_directories(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class AppConfig:
    """Aggregate configuration container used throughout the project."""

    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    models: ModelConfig = field(default_factory=ModelConfig)
    options: GenerationOptions = field(default_factory=GenerationOptions)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def load(cls, *, config_path: Optional[Path] = None) -> "AppConfig":
        """Create an :class:`AppConfig` from YAML/JSON and environment overrides."""

        _load_dotenv_once()
        instance = cls()

        file_path = config_path or _env("APP_CONFIG_FILE")
        if file_path is None:
            yaml_path = PROJECT_ROOT / "config.yaml"
            json_path = PROJECT_ROOT / "config.json"
            file_path = yaml_path if yaml_path.exists() or not json_path.exists() else json_path
        file_path = Path(file_path)
        if not file_path.is_absolute():
            file_path = PROJECT_ROOT / file_path
        if file_path.exists():
            with file_path.open("r", encoding="utf-8") as handle:
                if file_path.suffix.lower() in {".yaml", ".yml"}:
                    payload = yaml.safe_load(handle) or {}
                else:
                    payload = json.load(handle)
            instance.apply_mapping(payload)

        instance.apply_environment()
        return instance

    # ------------------------------------------------------------------
    # Override helpers
    # ------------------------------------------------------------------
    def apply_mapping(self, payload: Dict[str, Any]) -> None:
        if not payload:
            return

        if "ollama" in payload:
            _update_dataclass(self.ollama, payload["ollama"])
        if "models" in payload:
            _update_dataclass(self.models, payload["models"])
        if "options" in payload:
            self.options = GenerationOptions.from_json(
                {**self.options.to_json(), **payload["options"]}
            )
        if "storage" in payload:
            self.storage.apply_overrides(payload["storage"])

    def apply_environment(self) -> None:
        ollama_host = _env("OLLAMA_HOST")
        if ollama_host:
            self.ollama.host = ollama_host
        chat_timeout = _env("OLLAMA_CHAT_TIMEOUT")
        if chat_timeout:
            self.ollama.chat_timeout = float(chat_timeout)
        list_timeout = _env("OLLAMA_LIST_TIMEOUT")
        if list_timeout:
            self.ollama.list_timeout = float(list_timeout)
        pull_timeout = _env("OLLAMA_PULL_TIMEOUT")
        if pull_timeout:
            self.ollama.pull_timeout = float(pull_timeout)

        default_model = _env("LLM_MODEL")
        if default_model:
            self.models.default_model = default_model
        hidden = _env("HIDDEN_MODEL_PREFIXES")
        if hidden:
            self.models.hidden_prefixes = _split_prefixes(hidden)

        temperature = _env("LLM_TEMPERATURE")
        if temperature:
            self.options.temperature = float(temperature)
        seed = _env("LLM_SEED")
        if seed:
            self.options.seed = int(seed)
        top_k = _env("LLM_TOP_K")
        if top_k:
            self.options.top_k = int(top_k)

        data_dir = _env("CHATSTACK_DATA_DIR")
        if data_dir:
            self.storage.data_dir = Path(data_dir).expanduser().resolve()
