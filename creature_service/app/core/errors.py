"""
Error categories surfaced to callers of the creature service.

Every failure of a service operation is raised as one of the three
subclasses of ``CreatureServiceError``.  Each class carries a short
machine-readable ``code`` and the HTTP status the API layer answers
with, so the routes never need to inspect the message text.
"""


class CreatureServiceError(Exception):
    """Base class for errors returned to callers."""

    code = "unknown"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class InvalidArgumentError(CreatureServiceError):
    """The identifier cannot be parsed into a storage key."""

    code = "invalid_argument"
    status_code = 400


class NotFoundError(CreatureServiceError):
    """No record matches the identifier."""

    code = "not_found"
    status_code = 404


class InternalError(CreatureServiceError):
    """Storage failure or a record that could not be decoded."""

    code = "internal"
    status_code = 500
