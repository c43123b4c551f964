"""Adapter registration and model prefix → provider routing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional, Type, TypeVar, Union

from ..exceptions import UnknownProviderError
from ..models import Provider

if TYPE_CHECKING:
    from ._base import BaseAdapter

logger = logging.getLogger(__name__)

_A = TypeVar("_A", bound="type[BaseAdapter]")

_adapter_registry: Dict[Provider, "Type[BaseAdapter]"] = {}

# Explicit prefix map: "provider/model" → provider
_PREFIX_MAP: Dict[str, Provider] = {
    "openai/": Provider.OPENAI,
    "anthropic/": Provider.ANTHROPIC,
    "gemini/": Provider.GOOGLE,
    "google/": Provider.GOOGLE,
    "mcp/": Provider.MCP,
}

# Bare model name prefix → provider (no explicit prefix)
_BARE_PREFIX_MAP: Dict[str, Provider] = {
    "gpt-": Provider.OPENAI,
    "o1-": Provider.OPENAI,
    "o3-": Provider.OPENAI,
    "o4-": Provider.OPENAI,
    "chatgpt-": Provider.OPENAI,
    "claude-": Provider.ANTHROPIC,
    "gemini-": Provider.GOOGLE,
}

# Exact bare model names that don't have a dash suffix
_EXACT_MODEL_MAP: Dict[str, Provider] = {
    "o1": Provider.OPENAI,
    "o3": Provider.OPENAI,
    "o4": Provider.OPENAI,
}


def register_adapter(provider: Union[Provider, str]) -> Callable[[_A], _A]:
    """
    Decorator to register adapter classes.

    Args:
        provider: The provider tag the adapter serves.
    """
    key = Provider(provider)

    def decorator(cls: _A) -> _A:
        if key in _adapter_registry and _adapter_registry[key] is not cls:
            logger.warning(
                f"Adapter for '{key.value}' is already registered. "
                f"Overwriting with {cls.__name__}."
            )
        _adapter_registry[key] = cls
        logger.info(f"Registered adapter: '{key.value}' -> {cls.__name__}")
        return cls

    return decorator


def get_adapter_class(provider: Union[Provider, str]) -> "Type[BaseAdapter]":
    try:
        key = Provider(provider)
    except ValueError:
        raise UnknownProviderError(f"Invalid provider type: '{provider}'.") from None
    cls = _adapter_registry.get(key)
    if cls is None:
        available = [p.value for p in _adapter_registry]
        raise UnknownProviderError(
            f"No adapter registered for provider '{key.value}'. Available: {available}"
        )
    return cls


def registered_providers() -> Dict[Provider, "Type[BaseAdapter]"]:
    return dict(_adapter_registry)


def bare_model_name(model: str) -> str:
    """Strip the ``provider/`` prefix to get the bare model name."""
    return model.split("/", 1)[-1] if "/" in model else model


def resolve_provider_key(model: Optional[str]) -> Optional[Provider]:
    """Infer the provider from a model name, or ``None`` if unrecognised.

    Checks explicit ``provider/model`` prefix first, then bare model name
    prefixes.
    """
    if not model:
        return None
    lower = model.lower()

    for prefix, key in _PREFIX_MAP.items():
        if lower.startswith(prefix):
            return key

    bare = bare_model_name(lower)
    for prefix, key in _BARE_PREFIX_MAP.items():
        if bare.startswith(prefix):
            return key

    return _EXACT_MODEL_MAP.get(bare)
