"""Retry and credential failover for Gemini calls.

Two failure classes get special handling:

- rate-limited (quota / 429): waiting does not help, so the controller swaps
  to the fallback API key once and retries inside the same attempt slot.
- overloaded (503): transient, so the call is retried with exponential
  backoff (1s, 2s, ...) up to ``max_attempts`` total attempts.

Everything else propagates to the caller unchanged.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from wingman.utils.errors import RateLimitError, TransientProviderError

from .config import CredentialState
from .providers.gemini import create_gemini_client

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_MARKERS = (
    "429",
    "quota",
    "rate limit",
    "rate_limit",
    "ratelimit",
    "resource_exhausted",
    "too many requests",
)
OVERLOAD_MARKERS = (
    "503",
    "overloaded",
    "unavailable",
)


class ErrorKind(Enum):
    """Failure classes the retry loop branches on."""

    RATE_LIMITED = "rate_limited"
    OVERLOADED = "overloaded"
    OTHER = "other"


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0


def _status_code(exception: BaseException) -> Optional[int]:
    # google-genai APIError exposes ``code``; our ProviderError ``status_code``
    for attr in ("status_code", "code"):
        value = getattr(exception, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_rate_limit_error(exception: BaseException) -> bool:
    """Check if an exception is a quota / rate limit error."""
    if isinstance(exception, RateLimitError):
        return True
    if _status_code(exception) == 429:
        return True
    error_str = str(exception).lower()
    return any(marker in error_str for marker in RATE_LIMIT_MARKERS)


def is_overloaded_error(exception: BaseException) -> bool:
    """Check if an exception signals a busy/overloaded server."""
    if isinstance(exception, TransientProviderError):
        return True
    if _status_code(exception) == 503:
        return True
    error_str = str(exception).lower()
    return any(marker in error_str for marker in OVERLOAD_MARKERS)


def classify_error(exception: BaseException) -> ErrorKind:
    """Classify a provider failure.

    Rate limiting wins when an error carries both kinds of marker.
    """
    if is_rate_limit_error(exception):
        return ErrorKind.RATE_LIMITED
    if is_overloaded_error(exception):
        return ErrorKind.OVERLOADED
    return ErrorKind.OTHER


class FailoverController:
    """Wraps Gemini calls with bounded backoff and one-time key failover."""

    def __init__(
        self,
        credentials: CredentialState,
        config: Optional[RetryConfig] = None,
        client_factory: Callable[..., Any] = create_gemini_client,
        timeout_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the controller.

        Args:
            credentials: Primary/fallback Gemini keys
            config: Retry configuration
            client_factory: Builds a client for an API key
            timeout_seconds: Per-attempt timeout passed to the client
            sleep: Awaitable used for backoff waits
        """
        self.config = config or RetryConfig()
        self._credentials = credentials
        self._client_factory = client_factory
        self._timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._client: Any = None

    @property
    def credentials(self) -> CredentialState:
        return self._credentials

    @property
    def using_fallback(self) -> bool:
        return self._credentials.using_fallback

    def reset(self, credentials: CredentialState) -> None:
        """Install new credentials (explicit switch); the client is rebuilt lazily."""
        self._credentials = credentials
        self._client = None

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = self._credentials.active_key
            if not api_key:
                raise RuntimeError("No LLM client configured")
            self._client = self._client_factory(
                api_key, timeout_seconds=self._timeout_seconds
            )
        return self._client

    def _engage_fallback(self) -> None:
        state = self._credentials.engage_fallback()
        client = self._client_factory(state.fallback, timeout_seconds=self._timeout_seconds)
        # Publish key and client together
        self._credentials, self._client = state, client

    async def _attempt(self, call: Callable[[Any], Awaitable[T]]) -> T:
        """One attempt slot; a key failover retries within the slot."""
        while True:
            client = self._get_client()
            try:
                return await call(client)
            except Exception as e:
                if classify_error(e) is ErrorKind.RATE_LIMITED and self._credentials.can_fail_over:
                    logger.warning(
                        f"[Retry] Rate limit hit ({e}), switching to fallback API key"
                    )
                    self._engage_fallback()
                    continue
                raise

    async def probe(self, call: Callable[[Any], Awaitable[T]]) -> T:
        """Single attempt with the current key: no failover, no backoff."""
        return await call(self._get_client())

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.info(
            f"[Retry] Model overloaded, retrying in {delay:.1f}s "
            f"(attempt {retry_state.attempt_number}/{self.config.max_attempts})"
        )

    async def execute(self, call: Callable[[Any], Awaitable[T]]) -> T:
        """Run ``call(client)`` under the retry/failover policy.

        Args:
            call: Coroutine function receiving the current Gemini client

        Returns:
            Whatever ``call`` returns on the first successful attempt

        Raises:
            Exception: The last failure, unchanged, once no retry applies
        """
        async for attempt_state in AsyncRetrying(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_exponential(
                multiplier=self.config.initial_delay,
                exp_base=self.config.backoff_factor,
                max=self.config.max_delay,
            ),
            retry=retry_if_exception(is_overloaded_error),
            before_sleep=self._log_backoff,
            sleep=self._sleep,
            reraise=True,
        ):
            with attempt_state:
                return await self._attempt(call)

        # Should not reach here, but type checker needs this
        raise RuntimeError("Unexpected state in retry loop")
