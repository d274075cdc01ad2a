"""Exceptions raised by the leave tracker."""


class LeaveError(RuntimeError):
    """Base class for errors that are reported back to the caller."""


class ValidationError(LeaveError):
    """Raised when a request is malformed before any record is touched."""


class StoreIOError(LeaveError):
    """Raised when the entries file cannot be read or written."""


__all__ = ["LeaveError", "StoreIOError", "ValidationError"]
