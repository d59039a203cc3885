"""Gateway exception hierarchy.

``ProviderError`` and its subclasses are runtime conditions of a single
backend call: the dispatch loop catches them, cools the provider down and
moves on. ``UnknownProviderError`` / ``UnknownFormatError`` signal a registry
or configuration bug and are allowed to propagate.
"""


class GatewayError(Exception):
    """Base exception for the LLM gateway."""


class ProviderError(GatewayError):
    """A call to one provider failed."""

    def __init__(self, message: str, *, provider: str = "unknown", status_code: int = 0):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ConfigurationError(ProviderError):
    """The provider is missing its credential; nothing was sent."""


class TransportError(ProviderError):
    """Non-2xx status, network failure, or a malformed body."""


class RateLimitError(TransportError):
    """HTTP 429 that survived the fallback-model downgrade."""


class EmptyResponseError(TransportError):
    """The backend answered 2xx but with no extractable text."""


class UnknownProviderError(GatewayError, KeyError):
    def __init__(self, provider_id: str):
        super().__init__(provider_id)
        self.provider_id = provider_id

    def __str__(self) -> str:
        return f"Unknown provider: {self.provider_id}"


class UnknownFormatError(GatewayError, ValueError):
    """No adapter is registered for a wire format tag."""


class CustomProviderError(GatewayError):
    """Invalid custom-provider operation (missing fields, bad base URL...)."""


class CustomProviderNotFoundError(CustomProviderError):
    """The user has no custom provider configured."""
