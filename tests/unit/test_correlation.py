"""
Unit tests for correlation module.

Tests correlation ID generation, scoping and propagation into async tasks.
"""

import asyncio

import pytest

from mqtt_matter_bridge.correlation import (
    correlation_context,
    ensure_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def clear_correlation_id():
    set_correlation_id(None)
    yield
    set_correlation_id(None)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id function"""

    def test_generates_unique_hex_ids(self):
        """Test that IDs are unique 32-character UUID4 hex strings"""
        ids = [generate_correlation_id() for _ in range(10)]

        assert len(set(ids)) == 10
        assert all(len(corr_id) == 32 for corr_id in ids)
        assert all(c in "0123456789abcdef" for c in ids[0])


class TestGetSetCorrelationId:
    """Tests for get_correlation_id and set_correlation_id functions"""

    def test_get_returns_none_initially(self):
        """Test that get_correlation_id returns None when not set"""
        assert get_correlation_id() is None

    def test_set_and_clear(self):
        """Test setting, overwriting and clearing the ID"""
        set_correlation_id("first-id")
        assert get_correlation_id() == "first-id"

        set_correlation_id("second-id")
        assert get_correlation_id() == "second-id"

        set_correlation_id(None)
        assert get_correlation_id() is None


class TestCorrelationContext:
    """Tests for correlation_context context manager"""

    def test_context_auto_generates_id(self):
        """Test that context manager auto-generates correlation ID"""
        with correlation_context() as corr_id:
            assert corr_id is not None
            assert len(corr_id) == 32
            assert get_correlation_id() == corr_id

    def test_context_with_custom_id(self):
        """Test context manager with provided correlation ID"""
        with correlation_context(correlation_id="custom-correlation-id") as corr_id:
            assert corr_id == "custom-correlation-id"
            assert get_correlation_id() == "custom-correlation-id"

    def test_context_restores_previous_id(self):
        """Test that the previous ID is restored on exit"""
        set_correlation_id("previous-id")

        with correlation_context():
            assert get_correlation_id() != "previous-id"

        assert get_correlation_id() == "previous-id"

    def test_context_restores_on_error(self):
        """Test that the previous ID is restored when the block raises"""
        with pytest.raises(RuntimeError), correlation_context():
            raise RuntimeError("handler failed")

        assert get_correlation_id() is None

    def test_context_with_auto_generate_false(self):
        """Test context manager with auto_generate=False"""
        with correlation_context(auto_generate=False) as corr_id:
            assert corr_id is None
            assert get_correlation_id() is None

    def test_nested_contexts(self):
        """Test nested correlation contexts restore outer IDs"""
        with correlation_context(correlation_id="outer"):
            with correlation_context(correlation_id="inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"


class TestEnsureCorrelationId:
    """Tests for ensure_correlation_id function"""

    def test_creates_id_when_missing(self):
        """Test an ID is created and kept when none is set"""
        corr_id = ensure_correlation_id()

        assert len(corr_id) == 32
        assert get_correlation_id() == corr_id

    def test_keeps_existing_id(self):
        """Test an existing ID is returned unchanged"""
        set_correlation_id("existing-id")

        assert ensure_correlation_id() == "existing-id"


class TestAsyncPropagation:
    """Tests for correlation IDs across asyncio tasks"""

    @pytest.mark.asyncio
    async def test_task_inherits_id(self):
        """Test tasks created inside a context see its ID"""

        async def read_id():
            return get_correlation_id()

        with correlation_context(correlation_id="message-1"):
            task = asyncio.create_task(read_id())

        assert await task == "message-1"

    @pytest.mark.asyncio
    async def test_concurrent_contexts_are_isolated(self):
        """Test concurrent handlers keep their own IDs"""

        async def handle(corr_id):
            with correlation_context(correlation_id=corr_id):
                await asyncio.sleep(0.001)
                return get_correlation_id()

        results = await asyncio.gather(handle("a"), handle("b"), handle("c"))

        assert results == ["a", "b", "c"]
