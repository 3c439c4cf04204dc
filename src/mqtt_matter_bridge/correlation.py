"""
Correlation ID tracking across the bridge's async handlers.

Every inbound MQTT message and every startup phase runs inside its own
correlation context, so the log lines produced while an MQTT message turns
into an endpoint write (or an endpoint change turns into a publish) can be
grouped together.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "bridge_correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Return a new UUID4 hex correlation ID (32 chars, no dashes)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set (or clear with None) the correlation ID of the current context."""
    _ = _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Scope a correlation ID to a block.

    Args:
        correlation_id: ID to use; generated when None and auto_generate is set
        auto_generate: Generate a new ID if correlation_id is None

    Yields:
        The correlation ID active inside the block

    Example:
        with correlation_context() as corr_id:
            bridge.dispatch(topic, payload)
    """
    previous_id = get_correlation_id()

    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)


def ensure_correlation_id() -> str:
    """Return the current correlation ID, creating one when none is set."""
    current_id = get_correlation_id()
    if current_id is None:
        current_id = generate_correlation_id()
        set_correlation_id(current_id)
    return current_id
