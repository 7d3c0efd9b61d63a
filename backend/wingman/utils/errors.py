"""Custom exception classes."""

from fastapi import HTTPException, status


class WingmanError(Exception):
    """Base exception for assistant errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(WingmanError):
    """Missing or invalid provider credential/endpoint."""

    pass


class ProviderError(WingmanError):
    """Error reported by (or while reaching) an LLM provider."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, details)


class TransientProviderError(ProviderError):
    """Provider is overloaded; waiting and retrying may help."""

    pass


class RateLimitError(ProviderError):
    """Provider rejected the request for quota or rate-limit reasons."""

    pass


class TransportError(ProviderError):
    """Provider unreachable or returned a non-2xx response."""

    pass


class EmptyResponseError(WingmanError):
    """Provider returned no usable text where some was required."""

    pass


class MalformedStructuredOutputError(WingmanError):
    """Structured output was not valid JSON."""

    def __init__(self, message: str, raw_text: str = "", details: dict | None = None):
        self.raw_text = raw_text
        super().__init__(message, details)


def http_error(
    status_code: int,
    message: str,
    headers: dict | None = None,
) -> HTTPException:
    """Create an HTTPException with the given parameters."""
    return HTTPException(
        status_code=status_code,
        detail=message,
        headers=headers,
    )


def not_found(resource: str = "Resource") -> HTTPException:
    """Create a 404 Not Found exception."""
    return http_error(status.HTTP_404_NOT_FOUND, f"{resource} not found")


def bad_request(message: str) -> HTTPException:
    """Create a 400 Bad Request exception."""
    return http_error(status.HTTP_400_BAD_REQUEST, message)


def bad_gateway(message: str) -> HTTPException:
    """Create a 502 Bad Gateway exception (provider failure)."""
    return http_error(status.HTTP_502_BAD_GATEWAY, message)


def service_unavailable(message: str = "No LLM provider configured") -> HTTPException:
    """Create a 503 Service Unavailable exception."""
    return http_error(status.HTTP_503_SERVICE_UNAVAILABLE, message)


def to_http_error(error: Exception) -> HTTPException:
    """Map an assistant error to the matching HTTPException."""
    if isinstance(error, FileNotFoundError):
        return not_found("File")
    if isinstance(error, (ConfigurationError, ValueError)):
        return bad_request(str(error))
    if isinstance(error, RateLimitError):
        return http_error(status.HTTP_429_TOO_MANY_REQUESTS, str(error))
    return bad_gateway(str(error) or type(error).__name__)
