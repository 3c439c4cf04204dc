"""
Unit tests for instrumentation module.

Tests timing decorators and threshold logging.
"""

import asyncio
import logging
import time
from unittest.mock import patch

import pytest

from mqtt_matter_bridge.instrumentation import measure_time, timed, timed_async


class TestMeasureTime:
    """Tests for measure_time function"""

    def test_measure_time_returns_milliseconds(self):
        """Test that measure_time returns elapsed time in milliseconds"""
        start = time.perf_counter()
        time.sleep(0.01)
        elapsed_ms = measure_time(start)

        assert 5 < elapsed_ms < 200

    def test_measure_time_zero_elapsed(self):
        """Test measure_time with no elapsed time"""
        elapsed_ms = measure_time(time.perf_counter())

        assert isinstance(elapsed_ms, float)
        assert 0 <= elapsed_ms < 5


class TestTimedDecorator:
    """Tests for timed decorator (sync)"""

    def test_wrapped_function_executes(self):
        """Test that the wrapped function runs and returns its result"""

        @timed("test_operation")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_preserves_function_name(self):
        """Test that functools.wraps metadata is kept"""

        @timed()
        def dispatch_message():
            """Docstring"""

        assert dispatch_message.__name__ == "dispatch_message"
        assert dispatch_message.__doc__ == "Docstring"

    def test_exception_propagates(self):
        """Test that exceptions from the wrapped function are re-raised"""

        @timed("failing")
        def fail():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            fail()

    def test_slow_call_logs_warning(self, caplog):
        """Test calls over the threshold are logged as warnings"""

        @timed("slow_operation")
        def slow():
            time.sleep(0.01)

        with patch("mqtt_matter_bridge.const.BRIDGE_PERF_THRESHOLD_MS", 1):
            slow()

        warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
        assert any("[slow_operation] completed in" in record.getMessage() for record in warnings)

    def test_tracking_disabled(self, caplog):
        """Test nothing is logged when tracking is off"""

        @timed("untracked")
        def slow():
            time.sleep(0.005)

        with (
            patch("mqtt_matter_bridge.const.BRIDGE_PERF_TRACKING", False),
            patch("mqtt_matter_bridge.const.BRIDGE_PERF_THRESHOLD_MS", 0),
        ):
            slow()

        assert "untracked" not in caplog.text


class TestTimedAsyncDecorator:
    """Tests for timed_async decorator"""

    @pytest.mark.asyncio
    async def test_wrapped_coroutine_executes(self):
        """Test that the wrapped coroutine is awaited and returns its result"""

        @timed_async("async_operation")
        async def fetch():
            await asyncio.sleep(0)
            return "result"

        assert await fetch() == "result"

    @pytest.mark.asyncio
    async def test_exception_propagates(self):
        """Test that exceptions from the coroutine are re-raised"""

        @timed_async("failing")
        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await fail()

    @pytest.mark.asyncio
    async def test_slow_coroutine_logs_warning(self, caplog):
        """Test slow coroutines are logged with structured context"""

        @timed_async("device_initialize")
        async def slow():
            await asyncio.sleep(0.01)

        with patch("mqtt_matter_bridge.const.BRIDGE_PERF_THRESHOLD_MS", 1):
            await slow()

        record = next(r for r in caplog.records if "[device_initialize]" in r.getMessage())
        assert record.levelno == logging.WARNING
        assert record.extra_data["operation"] == "device_initialize"
        assert record.extra_data["exceeded_threshold"] is True
