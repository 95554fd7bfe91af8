"""
Tests for retry logic.
"""

import pytest
from talentflow.errors import Conflict, TransactionFailure
from talentflow.faults import FailAt
from talentflow.retry import (
    exponential_backoff,
    RetryError,
)


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Function that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1)
        def succeeds():
            call_count[0] += 1
            return "success"

        result = succeeds()
        assert result == "success"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        """Function that fails then succeeds should retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConnectionError("Temporary failure")
            return "success"

        result = fails_twice()
        assert result == "success"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        """Should raise RetryError after all attempts fail."""
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ValueError("Always fails")

        with pytest.raises(RetryError):
            always_fails()

        assert call_count[0] == 3  # Initial + 2 retries

    def test_only_catches_specified_exceptions(self):
        """Should only retry on specified exception types."""
        call_count = [0]

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exceptions=(ConnectionError,)
        )
        def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        # Should not retry, raises original exception
        with pytest.raises(ValueError):
            raises_value_error()

        assert call_count[0] == 1  # No retries

    def test_exponential_delay(self):
        """Delay should increase exponentially."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=on_retry_callback
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        # Check delays are increasing
        assert len(delays) == 3
        assert delays[0] == 0.01
        assert delays[1] == 0.02
        assert delays[2] == 0.04

    def test_max_delay_cap(self):
        """Delay should not exceed max_delay."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=5,
            base_delay=1.0,
            max_delay=2.0,
            exponential_base=3.0,
            on_retry=on_retry_callback
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        # All delays should be capped at max_delay
        assert all(d <= 2.0 for d in delays)



class TestRetryingStoreFailures:
    """Retrying a failed unit of work is safe because nothing changed."""

    def test_reorder_retried_after_transaction_failure(self, seeded_service, ids_by_title):
        seeded_service.store.fault_hook = FailAt("before_commit", operation="reorder", times=2)
        job_id = ids_by_title["Job 5"]

        @exponential_backoff(max_retries=3, base_delay=0.001, exceptions=(TransactionFailure,))
        def move():
            return seeded_service.reorder_job(job_id, 5, 1)

        assert move()["order"] == 1
        assert seeded_service.store.fault_hook.fired == 2
        assert seeded_service.verify_ordering() == 5

    def test_conflict_not_retried(self, seeded_service, ids_by_title):
        calls = [0]

        @exponential_backoff(max_retries=3, base_delay=0.001, exceptions=(TransactionFailure,))
        def move():
            calls[0] += 1
            return seeded_service.reorder_job(ids_by_title["Job 5"], 2, 1)

        with pytest.raises(Conflict):
            move()
        assert calls[0] == 1
