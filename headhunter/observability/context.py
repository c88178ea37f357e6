"""
Request and build context carried in context variables.

The request id is set per HTTP request by CorrelationIdMiddleware; the
workspace id is bound for the duration of one snapshot build. The log
formatters read both. Work handed to a thread pool only sees them when it
runs inside a copied context (contextvars.copy_context().run).
"""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
_workspace_id_var: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "workspace_id", default=None
)


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def set_request_id(request_id: str) -> contextvars.Token:
    """Set the request ID in context. Returns token for reset."""
    return _request_id_var.set(request_id)


def generate_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


def get_workspace_id() -> Optional[int]:
    return _workspace_id_var.get()


@contextmanager
def bind_workspace(workspace_id: int) -> Iterator[None]:
    """Tag every log record emitted inside the block with workspace_id."""
    token = _workspace_id_var.set(workspace_id)
    try:
        yield
    finally:
        _workspace_id_var.reset(token)


def context_fields() -> dict:
    """The bound request/workspace ids, omitting unset ones."""
    fields = {"request_id": _request_id_var.get(), "workspace_id": _workspace_id_var.get()}
    return {key: value for key, value in fields.items() if value is not None}


class RequestContext:
    """
    Context manager scoping a request ID.

    Usage:
        with RequestContext() as ctx:
            service.get_dashboard_snapshot(workspace_id=3)

        with RequestContext(request_id="req-abc123"):
            ...
    """

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "RequestContext":
        self._token = set_request_id(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_id_var.reset(self._token)
