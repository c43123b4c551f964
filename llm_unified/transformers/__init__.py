from typing import Any, Dict, Union

from ..exceptions import UnknownProviderError
from ..models import Provider, UnifiedRequest, UnifiedResponse
from .request import (
    AnthropicRequestTransformer,
    GoogleRequestTransformer,
    OpenAIRequestTransformer,
    RequestTransformer,
)
from .response import (
    AnthropicResponseTransformer,
    GoogleResponseTransformer,
    OpenAIResponseTransformer,
    ResponseTransformer,
)
from .reverse import ReverseTransformer, to_original

_REQUEST_TRANSFORMERS: Dict[Provider, RequestTransformer] = {
    Provider.ANTHROPIC: AnthropicRequestTransformer(),
    Provider.OPENAI: OpenAIRequestTransformer(),
    Provider.GOOGLE: GoogleRequestTransformer(),
}

_RESPONSE_TRANSFORMERS: Dict[Provider, ResponseTransformer] = {
    Provider.ANTHROPIC: AnthropicResponseTransformer(),
    Provider.OPENAI: OpenAIResponseTransformer(),
    Provider.GOOGLE: GoogleResponseTransformer(),
}


def _lookup(table: Dict[Provider, Any], provider: Union[Provider, str], kind: str) -> Any:
    try:
        transformer = table.get(Provider(provider))
    except ValueError:
        transformer = None
    if transformer is None:
        raise UnknownProviderError(f"No {kind} transformer for provider: {provider}")
    return transformer


def to_vendor_request(
    request: UnifiedRequest, provider: Union[Provider, str]
) -> Dict[str, Any]:
    """Translate *request* into the body expected by *provider*."""
    return _lookup(_REQUEST_TRANSFORMERS, provider, "request").transform(request)


def from_vendor_response(response: Any, provider: Union[Provider, str]) -> UnifiedResponse:
    """Translate a vendor response body into a :class:`UnifiedResponse`."""
    return _lookup(_RESPONSE_TRANSFORMERS, provider, "response").transform(response)


__all__ = [
    "RequestTransformer",
    "AnthropicRequestTransformer",
    "OpenAIRequestTransformer",
    "GoogleRequestTransformer",
    "ResponseTransformer",
    "AnthropicResponseTransformer",
    "OpenAIResponseTransformer",
    "GoogleResponseTransformer",
    "ReverseTransformer",
    "to_original",
    "to_vendor_request",
    "from_vendor_response",
]
