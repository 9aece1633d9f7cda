"""Unit tests for error classification utilities."""

import json

import pytest
from pydantic import BaseModel, ValidationError

from planner.core.errors import (
    CollaboratorUnavailableError,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    classify_collaborator_error,
    not_found_response,
    validation_rejected_response,
)


class _Strict(BaseModel):
    value: int


@pytest.mark.unit
class TestClassifyCollaboratorError:
    """Tests for classify_collaborator_error."""

    def test_quota_exceeded(self):
        """Quota and credit errors are service quota problems."""
        category, message = classify_collaborator_error(Exception("OpenRouter API error: quota exceeded"))

        assert category == ErrorCategory.SERVICE_QUOTA_EXCEEDED
        assert "quota" in message.lower()

    def test_payment_required(self):
        """HTTP 402 means credits are exhausted."""
        category, _ = classify_collaborator_error(Exception("status_code: 402, Payment Required"))

        assert category == ErrorCategory.SERVICE_QUOTA_EXCEEDED

    def test_rate_limit(self):
        """Rate limiting is recognised."""
        category, message = classify_collaborator_error(Exception("429 Too Many Requests"))

        assert category == ErrorCategory.RATE_LIMIT_EXCEEDED
        assert "wait" in message.lower()

    def test_missing_credential(self):
        """A missing API key is an authentication problem."""
        category, _ = classify_collaborator_error(ValueError("OpenRouter API key credential not configured."))

        assert category == ErrorCategory.AUTHENTICATION_FAILED

    def test_network_by_type(self):
        """Connection and timeout exceptions are network errors."""
        assert classify_collaborator_error(ConnectionError())[0] == ErrorCategory.NETWORK_ERROR
        assert classify_collaborator_error(TimeoutError())[0] == ErrorCategory.NETWORK_ERROR

    def test_circuit_breaker_open(self):
        """An open circuit breaker is reported as unavailable service."""
        category, _ = classify_collaborator_error(
            RuntimeError("Circuit breaker is open. Collaborator temporarily unavailable.")
        )

        assert category == ErrorCategory.NETWORK_ERROR

    def test_malformed_json(self):
        """Undecodable output is malformed, even if the message mentions other words."""
        try:
            json.loads("{connection: 429")
        except json.JSONDecodeError as e:
            category, _ = classify_collaborator_error(e)

        assert category == ErrorCategory.MALFORMED_RESPONSE

    def test_malformed_validation_error(self):
        """Model validation failures are malformed output."""
        try:
            _Strict.model_validate({"value": "many"})
        except ValidationError as e:
            category, _ = classify_collaborator_error(e)

        assert category == ErrorCategory.MALFORMED_RESPONSE

    def test_collaborator_unavailable(self):
        """Our own empty-output error is malformed output."""
        category, _ = classify_collaborator_error(CollaboratorUnavailableError("Empty response from collaborator"))

        assert category == ErrorCategory.MALFORMED_RESPONSE

    def test_unknown(self):
        """Anything else is unknown."""
        category, message = classify_collaborator_error(Exception("Something odd happened"))

        assert category == ErrorCategory.UNKNOWN
        assert "unexpected" in message.lower()


@pytest.mark.unit
class TestErrorResponses:
    """Tests for the HTTP error payload builders."""

    def test_validation_rejected_response(self):
        """The rejection reason is the message."""
        response = validation_rejected_response("Task title cannot be empty")

        assert response.code == ErrorCode.ERR_VALIDATION_REJECTED
        assert response.message == "Task title cannot be empty"
        assert response.severity == ErrorSeverity.LOW

    def test_not_found_response(self):
        """The stale id is named."""
        response = not_found_response("abc123")

        assert response.code == ErrorCode.ERR_TASK_NOT_FOUND
        assert "abc123" in response.message

    def test_not_found_response_for_subtask(self):
        """A missing subtask is named alongside its existing task."""
        response = not_found_response("abc123", "sub9")

        assert response.code == ErrorCode.ERR_TASK_NOT_FOUND
        assert response.message == "Subtask sub9 was not found on task abc123."
