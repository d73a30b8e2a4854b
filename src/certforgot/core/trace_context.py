"""Trace id context variable for logging"""

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager

# Create a context variable to store the trace_id
trace_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id", default=None
)


@contextmanager
def trace_scope(trace_id: str) -> Iterator[None]:
    """
    Bind a trace id to every log line emitted inside the block.

    Usage:
        with trace_scope("renew:www.example.com"):
            certificate = await source.get()
            await installer.install(certificate, key)
    """
    token = trace_id_context.set(trace_id)
    try:
        yield
    finally:
        trace_id_context.reset(token)
