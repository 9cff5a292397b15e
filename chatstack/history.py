"""Durable chat history with single-step undo of deletions."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .logging import get_logger
from .models import ChatEntry
from .settings import KeyValueStore

LOGGER = get_logger(__name__)

HISTORY_KEY = "chatEntries"


@dataclass(frozen=True)
class NoPendingUndo:
    """Nothing can be restored."""


@dataclass(frozen=True)
class PendingUndo:
    """The entry removed by the most recent single-entry delete."""

    entry: ChatEntry


UndoState = Union[NoPendingUndo, PendingUndo]
NO_PENDING_UNDO = NoPendingUndo()


class HistoryDecodeError(ValueError):
    """Raised when persisted history bytes cannot be turned into entries."""


def encode_entries(entries: Sequence[ChatEntry]) -> bytes:
    return json.dumps([entry.to_json() for entry in entries], ensure_ascii=False).encode("utf-8")


def decode_entries(raw: bytes) -> List[ChatEntry]:
    try:
        payload = json.loads(raw)
        if not isinstance(payload, list):
            raise ValueError("stored history must be a JSON array")
        return [ChatEntry.from_json(item) for item in payload]
    except (RecursionError, TypeError, ValueError) as exc:
        raise HistoryDecodeError(str(exc)) from exc


class ChatHistoryStore:
    """Owns the ordered collection of past exchanges.

    The store is the only writer of its key in the settings collaborator.
    Every mutation is written back immediately; persistence problems are
    logged and never raised, so the in-memory list stays authoritative.

    A delete that removes exactly one entry keeps it in a pending-undo slot
    until the next mutation. Any later ``add`` or delete replaces or clears
    that slot, so only the most recent deletion can be reverted.
    """

    def __init__(self, settings: KeyValueStore, *, key: str = HISTORY_KEY) -> None:
        self.settings = settings
        self.key = key
        self._entries: List[ChatEntry] = []
        self._undo: UndoState = NO_PENDING_UNDO
        self.load()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def entries(self) -> Tuple[ChatEntry, ...]:
        return tuple(self._entries)

    @property
    def pending_undo(self) -> UndoState:
        return self._undo

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChatEntry]:
        return iter(tuple(self._entries))

    def get(self, entry_id: uuid.UUID) -> Optional[ChatEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def sorted_entries(self) -> List[ChatEntry]:
        """Entries for display, most recent first."""

        return sorted(self._entries, key=lambda entry: entry.date, reverse=True)

    def search(self, text: str) -> List[ChatEntry]:
        """Case-insensitive match against questions and responses, newest first."""

        needle = text.strip().lower()
        entries = self.sorted_entries()
        if not needle:
            return entries
        return [
            entry
            for entry in entries
            if needle in entry.question.lower() or needle in entry.response_markdown.lower()
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, entry: ChatEntry) -> None:
        self._append(entry)
        self._undo = NO_PENDING_UNDO

    def delete(self, entry_id: uuid.UUID) -> None:
        """Remove the entry with *entry_id*; unknown ids are ignored."""

        remaining = [entry for entry in self._entries if entry.id != entry_id]
        self._commit_removal(remaining)

    def delete_indices(self, indices: Iterable[int]) -> None:
        """Remove the entries at *indices* of the insertion-ordered list."""

        targets = {index for index in indices if 0 <= index < len(self._entries)}
        remaining = [entry for index, entry in enumerate(self._entries) if index not in targets]
        self._commit_removal(remaining)

    def undo_last_delete(self) -> Optional[ChatEntry]:
        """Re-append the most recently deleted entry, if there is one."""

        state = self._undo
        if not isinstance(state, PendingUndo):
            return None
        self._undo = NO_PENDING_UNDO
        self._append(state.entry)
        return state.entry

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> Tuple[ChatEntry, ...]:
        """Replace the in-memory list with the persisted one.

        Missing data yields an empty history. Corrupted data is removed from
        the settings store so it cannot break the next launch either.
        """

        self._entries = []
        self._undo = NO_PENDING_UNDO
        try:
            raw = self.settings.get(self.key)
        except OSError as exc:
            LOGGER.warning("Failed to read chat history '%s': %s", self.key, exc)
            return self.entries
        if raw is None:
            return self.entries

        try:
            self._entries = decode_entries(raw)
        except HistoryDecodeError as exc:
            LOGGER.warning("Discarding unreadable chat history '%s': %s", self.key, exc)
            try:
                self.settings.remove(self.key)
            except OSError as remove_exc:
                LOGGER.warning("Failed to clear chat history '%s': %s", self.key, remove_exc)
        return self.entries

    def save(self) -> None:
        try:
            self.settings.set(self.key, encode_entries(self._entries))
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.warning("Failed to persist chat history '%s': %s", self.key, exc)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _append(self, entry: ChatEntry) -> None:
        if self.get(entry.id) is not None:
            raise ValueError(f"Chat entry {entry.id} is already in the history.")
        self._entries.append(entry)
        self.save()

    def _commit_removal(self, remaining: List[ChatEntry]) -> None:
        if len(remaining) == len(self._entries):
            return
        kept = {entry.id for entry in remaining}
        removed = [entry for entry in self._entries if entry.id not in kept]
        self._entries = remaining
        self._undo = PendingUndo(removed[0]) if len(removed) == 1 else NO_PENDING_UNDO
        self.save()
