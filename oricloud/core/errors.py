"""Domain errors surfaced to API callers."""

from __future__ import annotations


class OriCloudError(Exception):
    code = "internal_error"

    def __init__(self, message: str = "", *, details: dict | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class AuthenticationError(OriCloudError):
    code = "unauthenticated"


class AuthorizationError(OriCloudError):
    code = "forbidden"


class NotFoundError(OriCloudError):
    code = "not_found"


class ValidationError(OriCloudError):
    code = "validation_error"


class DatabaseError(OriCloudError):
    code = "database_error"
