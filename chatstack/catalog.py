"""Pure helpers for naming, filtering and grouping installed models."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

DEFAULT_TAG = "latest"

# Evaluated in order against the lower-cased model name.
FAMILY_RULES: Tuple[Tuple[str, str], ...] = (
    ("llama3.2", "llama3.2"),
    ("llama3.1", "llama3.1"),
    ("mistral", "mistral"),
    ("gemma3", "gemma3"),
    ("codellama", "codellama"),
)

PREFERRED_FAMILIES: Tuple[str, ...] = ("llama3.1", "llama3.2", "mistral")


def normalize_model_name(name: str) -> str:
    """Return *name* with an explicit tag, appending ``:latest`` when missing."""

    if ":" in name:
        return name
    return f"{name}:{DEFAULT_TAG}"


def filter_hidden(models: Iterable[str], hidden_prefixes: Iterable[str]) -> List[str]:
    """Drop models whose lower-cased name starts with one of *hidden_prefixes*."""

    prefixes = tuple(prefix.lower() for prefix in hidden_prefixes if prefix)
    if not prefixes:
        return list(models)
    return [model for model in models if not model.lower().startswith(prefixes)]


def family_of(name: str, rules: Sequence[Tuple[str, str]] = FAMILY_RULES) -> str:
    """Classify *name* into a display family.

    Known substrings win over the generic ``family:tag`` split so that
    ``hf.co/org/llama3.1-gguf:q4`` is still grouped with ``llama3.1``.
    """

    lower = name.lower()
    for needle, family in rules:
        if needle in lower:
            return family
    return name.split(":", 1)[0]


def best_model_for_family(models: Sequence[str], family: str) -> Optional[str]:
    """Pick the representative model of *family* among *models*.

    A ``:latest`` tag is preferred; otherwise the shortest name wins, with
    ties resolved by input order.
    """

    matches = [model for model in models if family_of(model) == family]
    if not matches:
        return None
    for model in matches:
        if model.endswith(f":{DEFAULT_TAG}"):
            return model
    return min(matches, key=len)


def recommended_models(
    models: Sequence[str],
    selected: Optional[str] = None,
    families: Sequence[str] = PREFERRED_FAMILIES,
) -> List[str]:
    result: List[str] = []
    for family in families:
        match = best_model_for_family(models, family)
        if match is not None and match not in result:
            result.append(match)
    if selected and selected not in result:
        result.append(selected)
    return result
