"""Data structures shared by the client, the decoder and the history store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatEntry:
    """One persisted exchange between the user and a model."""

    question: str
    response_markdown: str
    model_name: str
    date: datetime = field(default_factory=utcnow)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_json(self) -> dict:
        return {
            "id": str(self.id),
            "question": self.question,
            "responseMarkdown": self.response_markdown,
            "date": self.date.isoformat(),
            "modelName": self.model_name,
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "ChatEntry":
        """Build an entry from its stored form.

        Raises:
            ValueError: If a field is missing or malformed.
        """

        if not isinstance(payload, Mapping):
            raise ValueError(f"Chat entry must be an object, got {type(payload).__name__}.")
        values: Dict[str, str] = {}
        for key in ("id", "question", "responseMarkdown", "date", "modelName"):
            if key not in payload:
                raise ValueError(f"Chat entry is missing the '{key}' field.")
            value = payload[key]
            if not isinstance(value, str):
                raise ValueError(f"Chat entry field '{key}' must be a string.")
            values[key] = value

        created = datetime.fromisoformat(values["date"].replace("Z", "+00:00"))
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return cls(
            id=uuid.UUID(values["id"]),
            question=values["question"],
            response_markdown=values["responseMarkdown"],
            date=created,
            model_name=values["modelName"],
        )


@dataclass
class GenerationOptions:
    """Sampling parameters forwarded to the model with every chat turn."""

    temperature: float = 0.8
    seed: int = 42
    top_k: int = 40

    def to_json(self) -> dict:
        return {"seed": self.seed, "temperature": self.temperature, "top_k": self.top_k}

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "GenerationOptions":
        defaults = cls()
        return cls(
            temperature=float(payload.get("temperature", defaults.temperature)),
            seed=int(payload.get("seed", defaults.seed)),
            top_k=int(payload.get("top_k", defaults.top_k)),
        )


@dataclass(frozen=True)
class HttpRequest:
    """A fully prepared request, ready to be handed to the transport."""

    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[bytes]
    timeout: float


@dataclass
class ChatMessage:
    role: str
    content: str


@dataclass
class ChatResponse:
    """Envelope returned by ``/api/chat``; every field is optional."""

    model: Optional[str] = None
    created_at: Optional[str] = None
    message: Optional[ChatMessage] = None
    error: Optional[str] = None
    done: Optional[bool] = None

    @classmethod
    def from_json(cls, payload: Any) -> "ChatResponse":
        """Validate *payload* against the envelope schema.

        Raises:
            ValueError: If the payload is not an object or a field has the
                wrong type.
        """

        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}.")

        for key in ("model", "created_at", "error"):
            value = payload.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Field '{key}' must be a string.")
        done = payload.get("done")
        if done is not None and not isinstance(done, bool):
            raise ValueError("Field 'done' must be a boolean.")

        message: Optional[ChatMessage] = None
        raw_message = payload.get("message")
        if raw_message is not None:
            if not isinstance(raw_message, dict):
                raise ValueError("Field 'message' must be an object.")
            role = raw_message.get("role")
            content = raw_message.get("content")
            if not isinstance(role, str) or not isinstance(content, str):
                raise ValueError("Field 'message' requires string 'role' and 'content'.")
            message = ChatMessage(role=role, content=content)

        return cls(
            model=payload.get("model"),
            created_at=payload.get("created_at"),
            message=message,
            error=payload.get("error"),
            done=done,
        )


@dataclass
class ModelTagsResponse:
    """Envelope returned by ``/api/tags``."""

    names: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "ModelTagsResponse":
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}.")
        models = payload.get("models")
        if not isinstance(models, list):
            raise ValueError("Field 'models' must be a list.")
        names: List[str] = []
        for index, entry in enumerate(models):
            name = entry.get("name") if isinstance(entry, dict) else None
            if not isinstance(name, str):
                raise ValueError(f"Field 'models[{index}].name' must be a string.")
            names.append(name)
        return cls(names=names)
