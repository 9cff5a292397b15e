"""Asynchronous chat session tying the client, the catalog and the history together."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, List, Optional, Sequence

import requests

from .catalog import best_model_for_family, family_of, filter_hidden, recommended_models
from .config import AppConfig
from .errors import InvalidInputError
from .history import ChatHistoryStore
from .logging import get_logger
from .models import ChatEntry, GenerationOptions
from .ollama import OllamaClient
from .settings import (
    FileKeyValueStore,
    KeyValueStore,
    load_generation_options,
    load_selected_model,
    save_generation_options,
    save_selected_model,
)

LOGGER = get_logger(__name__)


class ChatService:
    """Single-user session around an :class:`OllamaClient`.

    Network round trips run on a worker thread; every coroutine resumes on
    the event loop before touching the history, so store mutations and their
    writes happen one at a time and in the order the calls complete.
    """

    def __init__(
        self,
        client: OllamaClient,
        history: ChatHistoryStore,
        settings: KeyValueStore,
        *,
        default_model: str = "llama3.1",
        hidden_prefixes: Sequence[str] = (),
        default_options: Optional[GenerationOptions] = None,
    ) -> None:
        self.client = client
        self.history = history
        self.settings = settings
        self.hidden_prefixes = tuple(hidden_prefixes)
        self.options = load_generation_options(settings, default_options)
        self.selected_model = load_selected_model(settings) or default_model
        self.available_models: List[str] = []

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        settings: Optional[KeyValueStore] = None,
        session: Optional[requests.Session] = None,
    ) -> "ChatService":
        if settings is None:
            config.storage.ensure_directories()
            settings = FileKeyValueStore(config.storage.data_dir)
        client = OllamaClient(config.ollama, session=session)
        return cls(
            client,
            ChatHistoryStore(settings),
            settings,
            default_model=config.models.default_model,
            hidden_prefixes=config.models.hidden_prefixes,
            default_options=config.options,
        )

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------
    async def ask(
        self,
        prompt: str,
        *,
        model: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> ChatEntry:
        """Run one chat turn and archive the exchange on success."""

        target = model or self.selected_model
        LOGGER.debug("Asking %s (%s)", target, options or self.options)
        entry = await asyncio.to_thread(
            self.client.chat, prompt, target, options or self.options
        )
        self.history.add(entry)
        return entry

    # ------------------------------------------------------------------
    # Model catalog
    # ------------------------------------------------------------------
    async def refresh_models(self) -> List[str]:
        """Fetch the installed models, hiding utility models from selection."""

        models = await asyncio.to_thread(self.client.list_models)
        self.available_models = filter_hidden(models, self.hidden_prefixes)
        if self.available_models and self.selected_model not in self.available_models:
            fallback = best_model_for_family(self.available_models, family_of(self.selected_model))
            self.select_model(fallback or self.available_models[0])
        return list(self.available_models)

    async def add_model(self, name: str) -> List[str]:
        """Pull *name* and return the refreshed catalog, selecting the new model."""

        pulled = await asyncio.to_thread(self.client.pull_model, name)
        LOGGER.info("Pulled model '%s'.", pulled)
        models = await self.refresh_models()
        if pulled in models:
            self.select_model(pulled)
        return models

    def recommended_models(self) -> List[str]:
        return recommended_models(self.available_models, self.selected_model)

    def select_model(self, name: str) -> None:
        model = (name or "").strip()
        if not model:
            raise InvalidInputError("Model name cannot be empty.")
        self.selected_model = model
        save_selected_model(self.settings, model)

    # ------------------------------------------------------------------
    # Generation options
    # ------------------------------------------------------------------
    def update_options(self, **changes: Any) -> GenerationOptions:
        unknown = set(changes) - {"temperature", "seed", "top_k"}
        if unknown:
            raise InvalidInputError(f"Unknown generation option(s): {', '.join(sorted(unknown))}.")
        self.options = replace(self.options, **changes)
        save_generation_options(self.settings, self.options)
        return self.options
