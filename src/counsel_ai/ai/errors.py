"""Exception hierarchy for the model gateway and completion provider."""
from __future__ import annotations

_DIAGNOSTIC_CHARS = 1000


class GatewayError(Exception):
    """Response-shape failure detected by the gateway."""


class EmptyResponseError(GatewayError):
    def __init__(self, model: str) -> None:
        super().__init__(f"No text content in response from {model}")
        self.model = model


class InvalidJsonResponseError(GatewayError):
    """Model output could not be parsed as JSON even after extraction."""

    def __init__(self, raw_text: str, extracted_text: str, reason: str = "") -> None:
        self.raw_text = raw_text
        self.extracted_text = extracted_text
        super().__init__(
            "Model did not return valid JSON"
            + (f" ({reason})" if reason else "")
            + f"\nraw: {raw_text[:_DIAGNOSTIC_CHARS]}"
            + f"\nextracted: {extracted_text[:_DIAGNOSTIC_CHARS]}"
        )


class ProviderError(Exception):
    """Failure reported by (or while reaching) the completion provider.

    ``status_code`` carries the HTTP status when the provider answered;
    ``code`` carries a symbolic network error code otherwise. Both feed
    retry classification.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ProviderTimeoutError(ProviderError):
    def __init__(self, message: str = "Provider request timeout") -> None:
        super().__init__(message, code="ETIMEDOUT")


class ProviderConnectionError(ProviderError):
    def __init__(self, message: str, code: str = "NETWORK_ERROR") -> None:
        super().__init__(message, code=code)


class RateLimitedError(ProviderError):
    def __init__(self, message: str = "Provider rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class ProviderServerError(ProviderError):
    pass


class ProviderRequestError(ProviderError):
    """4xx other than 429: bad request, auth failure, unknown model."""


class MalformedResponseError(ProviderError):
    pass
