"""Unit tests for the collaborator retry handler."""

import json
import time
from unittest.mock import AsyncMock, patch

import pytest

from planner.agents.retry_handler import (
    CircuitBreaker,
    CircuitBreakerState,
    CollaboratorRetryHandler,
    ErrorRetryability,
    RetryConfig,
)


@pytest.fixture(autouse=True)
def mock_asyncio_sleep():
    """Mock asyncio.sleep to avoid actual delays in retry tests."""
    with patch("planner.agents.retry_handler.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.mark.unit
class TestCollaboratorRetryHandler:
    """Tests for retry logic with circuit breaker."""

    @pytest.fixture
    def retry_handler(self):
        """Create a retry handler with test configuration."""
        config = RetryConfig(
            max_attempts=3,
            base_delay=0.01,
            backoff_multiplier=2.0,
            circuit_breaker_threshold=2,
            circuit_breaker_cooldown=0.1,
        )
        return CollaboratorRetryHandler(config)

    def test_classify_error_retryable_rate_limit(self, retry_handler):
        """Rate limit errors are retried."""
        assert retry_handler.classify_error(Exception("Rate limit exceeded")) == ErrorRetryability.RETRYABLE

    def test_classify_error_retryable_network(self, retry_handler):
        """Network errors are retried."""
        assert retry_handler.classify_error(ConnectionError("Connection timeout")) == ErrorRetryability.RETRYABLE

    def test_classify_error_retryable_malformed(self, retry_handler):
        """Malformed output may be fine on a second try."""
        try:
            json.loads("[broken")
        except json.JSONDecodeError as e:
            assert retry_handler.classify_error(e) == ErrorRetryability.RETRYABLE

    def test_classify_error_non_retryable_auth(self, retry_handler):
        """Auth errors are not retried."""
        assert retry_handler.classify_error(Exception("Invalid API key")) == ErrorRetryability.NON_RETRYABLE

    def test_classify_error_non_retryable_quota(self, retry_handler):
        """Exhausted credits will not come back within a retry."""
        assert retry_handler.classify_error(Exception("insufficient credits")) == ErrorRetryability.NON_RETRYABLE

    def test_classify_error_non_retryable_unknown(self, retry_handler):
        """Unrecognised errors are not retried."""
        assert retry_handler.classify_error(ValueError("Invalid input")) == ErrorRetryability.NON_RETRYABLE

    def test_calculate_delay_exponential_backoff(self, retry_handler):
        """Test exponential backoff calculation."""
        assert retry_handler.calculate_delay(0) == 0.01
        assert retry_handler.calculate_delay(1) == 0.02
        assert retry_handler.calculate_delay(2) == 0.04

    def test_calculate_delay_capped(self):
        """Delays never exceed max_delay."""
        handler = CollaboratorRetryHandler(RetryConfig(base_delay=5.0, max_delay=8.0))

        assert handler.calculate_delay(3) == 8.0

    @pytest.mark.asyncio
    async def test_execute_with_retry_success_first_attempt(self, retry_handler):
        """Successful calls return immediately."""
        mock_func = AsyncMock(return_value="success")

        result = await retry_handler.execute_with_retry(mock_func)

        assert result == "success"
        assert mock_func.call_count == 1

    @pytest.mark.asyncio
    async def test_execute_with_retry_success_after_retries(self, retry_handler, mock_asyncio_sleep):
        """Transient failures are retried with backoff."""
        mock_func = AsyncMock(side_effect=[Exception("Rate limit exceeded"), ConnectionError("timeout"), "success"])

        result = await retry_handler.execute_with_retry(mock_func)

        assert result == "success"
        assert mock_func.call_count == 3
        assert [c.args[0] for c in mock_asyncio_sleep.call_args_list] == [0.01, 0.02]

    @pytest.mark.asyncio
    async def test_execute_with_retry_non_retryable_error(self, retry_handler):
        """Non-retryable errors are raised after one attempt."""
        mock_func = AsyncMock(side_effect=Exception("Invalid API key"))

        with pytest.raises(Exception, match="Invalid API key"):
            await retry_handler.execute_with_retry(mock_func)

        assert mock_func.call_count == 1

    @pytest.mark.asyncio
    async def test_execute_with_retry_max_attempts_exhausted(self, retry_handler):
        """The last error is raised once attempts run out."""
        mock_func = AsyncMock(side_effect=Exception("Rate limit exceeded"))

        with pytest.raises(Exception, match="Rate limit exceeded"):
            await retry_handler.execute_with_retry(mock_func)

        assert mock_func.call_count == 3

    @pytest.mark.asyncio
    async def test_circuit_breaker_blocks_after_failures(self, retry_handler):
        """Repeated failed calls open the circuit."""
        mock_func = AsyncMock(side_effect=Exception("Invalid API key"))

        for _ in range(2):
            with pytest.raises(Exception, match="Invalid API key"):
                await retry_handler.execute_with_retry(mock_func)

        with pytest.raises(RuntimeError, match="Circuit breaker is open"):
            await retry_handler.execute_with_retry(AsyncMock(return_value="success"))


@pytest.mark.unit
class TestCircuitBreaker:
    """Tests for circuit breaker state transitions."""

    def test_opens_at_threshold(self):
        """The breaker opens after threshold failures."""
        breaker = CircuitBreaker(threshold=2, cooldown=60)
        breaker.record_failure()
        assert breaker.state == CircuitBreakerState.CLOSED

        breaker.record_failure()

        assert breaker.state == CircuitBreakerState.OPEN
        assert breaker.can_attempt() is False

    def test_half_open_after_cooldown(self):
        """After the cooldown one trial call is allowed."""
        breaker = CircuitBreaker(threshold=1, cooldown=0.05)
        breaker.record_failure()

        time.sleep(0.06)

        assert breaker.can_attempt() is True
        assert breaker.state == CircuitBreakerState.HALF_OPEN

    def test_success_closes(self):
        """A success resets the breaker."""
        breaker = CircuitBreaker(threshold=1, cooldown=60)
        breaker.record_failure()

        breaker.record_success()

        assert breaker.state == CircuitBreakerState.CLOSED
        assert breaker.failure_count == 0
