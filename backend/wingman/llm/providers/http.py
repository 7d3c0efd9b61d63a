"""Shared httpx plumbing for the HTTP-based providers."""

import logging
from typing import Any, Optional

import httpx

from wingman.utils.errors import RateLimitError, TransientProviderError, TransportError

logger = logging.getLogger(__name__)


def build_timeout(seconds: float) -> httpx.Timeout:
    """Per-attempt timeout; connect is capped so dead local endpoints fail fast."""
    return httpx.Timeout(seconds, connect=min(seconds, 10.0))


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or "")
        if error:
            return str(error)
    return ""


def raise_for_provider_status(response: httpx.Response, provider: str, label: str) -> None:
    """Translate a non-2xx response to the provider error taxonomy."""
    if response.is_success:
        return
    detail = _error_message(response)
    message = f"{label} API error: {response.status_code} {response.reason_phrase}"
    if detail:
        message = f"{message}. {detail}"
    if response.status_code == 429:
        raise RateLimitError(message, provider=provider, status_code=429)
    if response.status_code == 503:
        raise TransientProviderError(message, provider=provider, status_code=503)
    raise TransportError(message, provider=provider, status_code=response.status_code)


async def request_json(
    method: str,
    url: str,
    *,
    provider: str,
    label: str,
    unreachable_hint: str,
    timeout_seconds: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    headers: Optional[dict[str, str]] = None,
    json_body: Optional[dict[str, Any]] = None,
) -> dict:
    """Issue one request and return the decoded JSON body.

    Raises:
        TransportError: invalid endpoints, connection failures, timeouts,
            undecodable bodies and non-2xx statuses (429/503 map to their specific subclasses).
    """
    try:
        async with httpx.AsyncClient(
            timeout=build_timeout(timeout_seconds), transport=transport
        ) as client:
            response = await client.request(method, url, headers=headers, json=json_body)
    except httpx.InvalidURL as e:
        logger.error(f"[{label}] Invalid endpoint {url}: {e}")
        raise TransportError(
            f"Invalid {label} endpoint {url}: {str(e) or type(e).__name__}",
            provider=provider,
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"[{label}] Request to {url} failed: {e}")
        raise TransportError(
            f"Failed to connect to {label}: {str(e) or type(e).__name__}. {unreachable_hint}",
            provider=provider,
        ) from e

    raise_for_provider_status(response, provider, label)

    try:
        payload = response.json()
    except ValueError as e:
        raise TransportError(
            f"{label} returned a non-JSON response", provider=provider
        ) from e
    if not isinstance(payload, dict):
        raise TransportError(f"{label} returned an unexpected payload", provider=provider)
    return payload
