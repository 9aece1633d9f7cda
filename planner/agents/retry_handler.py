"""Retry handler for collaborator calls with circuit breaker pattern."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from pydantic_ai.exceptions import ModelRetry, UnexpectedModelBehavior

from planner.core.config import settings
from planner.core.errors import ErrorCategory, classify_collaborator_error


logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.RATE_LIMIT_EXCEEDED,
        ErrorCategory.NETWORK_ERROR,
        ErrorCategory.MALFORMED_RESPONSE,
    }
)


class ErrorRetryability(Enum):
    """Classification of whether an error should be retried."""

    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 2
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay: float = 10.0
    timeout: float = 30.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_cooldown: float = 60.0


class CircuitBreakerState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """Stops calling the collaborator after repeated failures, until a cooldown passes."""

    def __init__(self, threshold: int = 5, cooldown: float = 60.0) -> None:
        self.threshold = threshold
        self.cooldown = cooldown
        self.failure_count = 0
        self.last_failure_time = 0.0
        self.state = CircuitBreakerState.CLOSED

    def record_success(self) -> None:
        """Record a successful request."""
        self.failure_count = 0
        self.state = CircuitBreakerState.CLOSED

    def record_failure(self) -> None:
        """Record a failed request."""
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.failure_count >= self.threshold:
            self.state = CircuitBreakerState.OPEN
            logger.warning(
                "circuit_breaker_opened",
                extra={"failure_count": self.failure_count, "cooldown": self.cooldown},
            )

    def can_attempt(self) -> bool:
        """Check if a request can be attempted."""
        if self.state == CircuitBreakerState.CLOSED:
            return True

        if self.state == CircuitBreakerState.OPEN:
            if time.monotonic() - self.last_failure_time >= self.cooldown:
                self.state = CircuitBreakerState.HALF_OPEN
                logger.info("circuit_breaker_half_open", extra={"cooldown_elapsed": True})
                return True
            return False

        # HALF_OPEN: allow one trial call
        return True


class CollaboratorRetryHandler:
    """Runs collaborator calls with a timeout, exponential backoff and a circuit breaker."""

    def __init__(self, config: RetryConfig | None = None) -> None:
        self.config = config or RetryConfig()
        self.circuit_breaker = CircuitBreaker(
            threshold=self.config.circuit_breaker_threshold,
            cooldown=self.config.circuit_breaker_cooldown,
        )

    def classify_error(self, exception: Exception) -> ErrorRetryability:
        """Decide whether a failed attempt is worth repeating."""
        if isinstance(exception, ModelRetry | UnexpectedModelBehavior):
            return ErrorRetryability.RETRYABLE

        category, _ = classify_collaborator_error(exception)
        if category in _RETRYABLE_CATEGORIES:
            return ErrorRetryability.RETRYABLE
        # Unknown errors are not retried to avoid hammering a broken endpoint
        return ErrorRetryability.NON_RETRYABLE

    def calculate_delay(self, attempt: int) -> float:
        """Exponential backoff delay in seconds for the given 0-indexed attempt."""
        delay = self.config.base_delay * (self.config.backoff_multiplier**attempt)
        return min(delay, self.config.max_delay)

    async def execute_with_retry(self, func: Callable[[], Awaitable[T]]) -> T:
        """Run ``func`` until it succeeds, fails non-retryably, or attempts run out.

        Raises:
            RuntimeError: If the circuit breaker is open
            Exception: The last failure once retries are exhausted
        """
        for attempt in range(self.config.max_attempts):
            if not self.circuit_breaker.can_attempt():
                logger.warning(
                    "circuit_breaker_blocked",
                    extra={"attempt": attempt, "state": self.circuit_breaker.state.value},
                )
                raise RuntimeError("Circuit breaker is open. Collaborator temporarily unavailable.")

            try:
                result = await asyncio.wait_for(func(), timeout=self.config.timeout)
            except Exception as e:
                retryability = self.classify_error(e)
                logger.warning(
                    "collaborator_error",
                    extra={
                        "attempt": attempt + 1,
                        "max_attempts": self.config.max_attempts,
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                        "retryable": retryability.value,
                    },
                )

                last_attempt = attempt >= self.config.max_attempts - 1
                if retryability == ErrorRetryability.NON_RETRYABLE or last_attempt:
                    self.circuit_breaker.record_failure()
                    raise

                delay = self.calculate_delay(attempt)
                logger.info(
                    "collaborator_retry",
                    extra={"attempt": attempt + 1, "delay_seconds": delay, "next_attempt": attempt + 2},
                )
                await asyncio.sleep(delay)
            else:
                self.circuit_breaker.record_success()
                if attempt > 0:
                    logger.info("collaborator_retry_success", extra={"total_attempts": attempt + 1})
                return result

        msg = "max_attempts must be at least 1"
        raise ValueError(msg)


_retry_handler: CollaboratorRetryHandler | None = None


def get_retry_handler() -> CollaboratorRetryHandler:
    """Get or create the global retry handler instance."""
    global _retry_handler  # noqa: PLW0603
    if _retry_handler is None:
        _retry_handler = CollaboratorRetryHandler(
            RetryConfig(
                max_attempts=settings.collaborator_max_attempts,
                timeout=settings.collaborator_timeout_seconds,
            )
        )
    return _retry_handler
