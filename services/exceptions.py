class SchoolError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(SchoolError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidAmountError(ValidationError):
    """Raised when a fee payment amount is non-positive or exceeds the due."""


class ConflictError(SchoolError):
    """Raised when a record already exists. Carries the existing record."""

    def __init__(self, message, existing_record=None):
        super().__init__(message)
        self.existing_record = existing_record


class NotFoundError(SchoolError):
    status_code = 404


class PermissionDeniedError(SchoolError):
    """Raised when the acting role may not perform an action."""

    status_code = 403


class StorageError(SchoolError):
    """Raised when the data file cannot be written."""

    status_code = 500
