"""
Error types surfaced by the snapshot service.

Derivation code never raises for bad data; it degrades to None/0/empty.
Only lookups the caller must know about raise.
"""


class NotFoundError(Exception):
    """Raised when the requested (or default) workspace cannot be resolved."""

    pass
