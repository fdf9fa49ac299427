"""
Unit tests for retry utility functions.
"""

import pytest

from src.utils.retry import RetryConfig, retry_async


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class TestRetryConfig:
    """Tests for RetryConfig dataclass."""

    def test_default_config(self):
        """Test default configuration values."""
        config = RetryConfig()
        assert config.max_retries == 2
        assert config.base_delay == 1.0
        assert config.max_delay == 30.0
        assert config.exponential_base == 2.0

    def test_validation_negative_retries(self):
        """Test that negative retries raises error."""
        with pytest.raises(ValueError, match="max_retries"):
            RetryConfig(max_retries=-1)

    def test_validation_invalid_base_delay(self):
        """Test that zero/negative base_delay raises error."""
        with pytest.raises(ValueError, match="base_delay"):
            RetryConfig(base_delay=0)

    def test_validation_max_delay_less_than_base(self):
        """Test that max_delay < base_delay raises error."""
        with pytest.raises(ValueError, match="max_delay"):
            RetryConfig(base_delay=10.0, max_delay=5.0)

    def test_validation_exponential_base(self):
        with pytest.raises(ValueError, match="exponential_base"):
            RetryConfig(exponential_base=1.0)

    def test_delay_is_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert [config.delay_for(a) for a in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


class TestRetryAsync:
    """Tests for retry_async function."""

    @pytest.mark.asyncio
    async def test_succeeds_on_first_try(self):
        """Test function that succeeds immediately."""
        sleep = FakeSleep()
        calls = []

        async def success():
            calls.append(1)
            return "success"

        assert await retry_async(success, sleep=sleep) == "success"
        assert len(calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_succeeds_after_retries(self):
        """Test function that succeeds after some failures."""
        sleep = FakeSleep()
        calls = []

        async def eventual_success():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("Transient error")
            return "success"

        config = RetryConfig(max_retries=5, base_delay=0.5)
        assert await retry_async(eventual_success, config, sleep=sleep) == "success"
        assert len(calls) == 3
        assert sleep.delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_exhausts_retries(self):
        """All retries are used, then the last error is raised."""
        sleep = FakeSleep()
        calls = []

        async def always_fails():
            calls.append(1)
            raise TimeoutError(f"attempt {len(calls)}")

        with pytest.raises(TimeoutError, match="attempt 3"):
            await retry_async(always_fails, RetryConfig(max_retries=2), sleep=sleep)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_only_retries_listed_exceptions(self):
        """Exceptions outside retry_on propagate at once."""
        calls = []

        async def bad_input():
            calls.append(1)
            raise ValueError("not transient")

        with pytest.raises(ValueError):
            await retry_async(bad_input, retry_on=(ConnectionError,), sleep=FakeSleep())
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        """on_retry sees the attempt number and the error."""
        seen = []

        async def flaky():
            if not seen:
                raise ConnectionError("first")
            return "ok"

        result = await retry_async(
            flaky, on_retry=lambda attempt, exc: seen.append((attempt, str(exc))), sleep=FakeSleep()
        )
        assert result == "ok"
        assert seen == [(1, "first")]

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        calls = []

        async def fails():
            calls.append(1)
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            await retry_async(fails, RetryConfig(max_retries=0), sleep=FakeSleep())
        assert len(calls) == 1
