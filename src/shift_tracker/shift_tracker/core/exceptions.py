class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the tag reported to callers, ``retryable`` tells them whether
    repeating the same request may succeed.
    """

    code = "DOMAIN_ERROR"
    retryable = False


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"


class ShiftError(DomainError):
    """Base class for rejected shift lifecycle requests."""


class DuplicateActiveShiftError(ShiftError):
    code = "DUPLICATE_ACTIVE_SHIFT"


class NoActiveShiftError(ShiftError):
    code = "NO_ACTIVE_SHIFT"


class NoOpenBreakError(ShiftError):
    code = "NO_OPEN_BREAK"


class InvalidBreakTypeError(ShiftError):
    code = "INVALID_BREAK_TYPE"


class InvalidTransitionError(ShiftError):
    code = "INVALID_TRANSITION"


class ShiftNotFoundError(ShiftError):
    code = "SHIFT_NOT_FOUND"


class ConcurrentModificationError(ShiftError):
    """The conditional write lost a race against another writer."""

    code = "CONCURRENT_MODIFICATION"
    retryable = True


class StorageFailureError(DomainError):
    """The storage collaborator failed; nothing was persisted."""

    code = "STORAGE_FAILURE"
    retryable = True


class NotificationNotFoundError(DomainError):
    """No notification with that id belongs to the requesting employee."""

    code = "NOTIFICATION_NOT_FOUND"
