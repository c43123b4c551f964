# llm_unified/providers/__init__.py
import logging
from typing import Any, Optional, Union

from ..exceptions import ConfigurationError
from ..models import Provider
from ._base import BaseAdapter
from ._registry import (
    bare_model_name,
    get_adapter_class,
    register_adapter,
    registered_providers,
    resolve_provider_key,
)

# Importing the adapter modules registers them.
from .anthropic import AnthropicAdapter
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter

module_logger = logging.getLogger(__name__)


def create_adapter(
    provider: Union[Provider, str], api_key: Optional[str] = None, **kwargs: Any
) -> BaseAdapter:
    """
    Creates an instance of the adapter registered for *provider*.

    Args:
        provider: Provider tag (e.g. ``"openai"``).
        api_key: Passed to the adapter; environment variables are used when omitted.
        **kwargs: Additional keyword arguments for the adapter constructor
                  (e.g. ``base_url``, ``timeout``).

    Raises:
        UnknownProviderError: No adapter is registered for *provider*.
        ConfigurationError: The adapter could not be constructed.
    """
    adapter_class = get_adapter_class(provider)
    if api_key:
        kwargs["api_key"] = api_key
    try:
        return adapter_class(**kwargs)
    except TypeError as e:
        module_logger.error(f"Failed to instantiate adapter '{provider}': {e}", exc_info=True)
        raise ConfigurationError(f"Could not create instance of adapter '{provider}': {e}") from e


__all__ = [
    "BaseAdapter",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "GeminiAdapter",
    "register_adapter",
    "get_adapter_class",
    "registered_providers",
    "create_adapter",
    "resolve_provider_key",
    "bare_model_name",
]
