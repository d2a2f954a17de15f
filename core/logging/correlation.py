"""
Correlation IDs for valuation requests.
Ties every log line emitted while serving a request to that request.
"""

import uuid
import contextvars
from contextlib import contextmanager
from typing import Optional, Dict, Any, Iterator

# Context variable to store correlation ID for the current request
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)

# Context variable to store additional correlation context
_correlation_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    'correlation_context', default={}
)


class CorrelationIdManager:
    """Access to the correlation ID of the current request"""

    @staticmethod
    def generate_correlation_id() -> str:
        """Generate a new correlation ID using UUID4."""
        return str(uuid.uuid4())

    @staticmethod
    def get_correlation_id() -> Optional[str]:
        """Get the current correlation ID from context."""
        return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None, **context: Any) -> Iterator[str]:
    """
    Run a block under a correlation ID, restoring the previous one afterwards.

    Tasks created inside the block inherit the ID through contextvars.
    """
    cid = correlation_id or CorrelationIdManager.generate_correlation_id()
    id_token = _correlation_id.set(cid)
    merged = _correlation_context.get().copy()
    merged.update(context)
    ctx_token = _correlation_context.set(merged)
    try:
        yield cid
    finally:
        _correlation_context.reset(ctx_token)
        _correlation_id.reset(id_token)


def add_correlation_context(logger, method_name, event_dict):
    """structlog processor adding the current correlation ID and context."""
    cid = _correlation_id.get()
    if cid and "correlation_id" not in event_dict:
        event_dict["correlation_id"] = cid
    for key, value in _correlation_context.get().items():
        event_dict.setdefault(key, value)
    return event_dict
