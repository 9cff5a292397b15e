"""Key-value settings collaborators and the values persisted through them."""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from .logging import get_logger
from .models import GenerationOptions

LOGGER = get_logger(__name__)

GENERATION_OPTIONS_KEY = "generationOptions"
SELECTED_MODEL_KEY = "selectedModel"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    """Minimal persistence primitive the history store and settings rely on."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store, handy for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._values: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._values.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._values[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._values


class FileKeyValueStore:
    """Stores every key as ``<directory>/<key>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash never leaves a half-written value behind.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid settings key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def load_generation_options(
    store: KeyValueStore, default: Optional[GenerationOptions] = None
) -> GenerationOptions:
    """Return the persisted options, falling back to *default* when unusable."""

    fallback = default or GenerationOptions()
    try:
        raw = store.get(GENERATION_OPTIONS_KEY)
    except OSError as exc:
        LOGGER.warning("Failed to read generation options: %s", exc)
        return fallback
    if raw is None:
        return fallback
    try:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("generation options must be a JSON object")
        return GenerationOptions.from_json({**fallback.to_json(), **payload})
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Ignoring unreadable generation options: %s", exc)
        return fallback


def save_generation_options(store: KeyValueStore, options: GenerationOptions) -> None:
    try:
        store.set(GENERATION_OPTIONS_KEY, json.dumps(options.to_json()).encode("utf-8"))
    except (OSError, TypeError, ValueError) as exc:
        LOGGER.warning("Failed to persist generation options: %s", exc)


def load_selected_model(store: KeyValueStore) -> Optional[str]:
    try:
        raw = store.get(SELECTED_MODEL_KEY)
    except OSError as exc:
        LOGGER.warning("Failed to read the selected model: %s", exc)
        return None
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(value, str):
        return None
    return value.strip() or None


def save_selected_model(store: KeyValueStore, model: str) -> None:
    try:
        store.set(SELECTED_MODEL_KEY, json.dumps(model).encode("utf-8"))
    except OSError as exc:
        LOGGER.warning("Failed to persist the selected model: %s", exc)
