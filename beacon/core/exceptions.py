# ==============================================================================
# Collector Exceptions
# ==============================================================================
"""
Exceptions raised by storage adapters and caught by the collector.

Session-creation conflicts are not exceptions: repositories report them as
``CreateResult.CONFLICT``.
"""


class CollectorError(Exception):
    """Base class for collector errors."""


class StorageError(CollectorError):
    """A storage operation failed for a reason other than a uniqueness conflict."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


def serialize_error(error: BaseException) -> dict:
    """Operator-facing description of an exception and its cause chain."""
    data = {
        "name": type(error).__name__,
        "message": str(error),
    }
    cause = getattr(error, "cause", None) or error.__cause__
    if cause is not None and cause is not error:
        data["cause"] = serialize_error(cause)
    return data
