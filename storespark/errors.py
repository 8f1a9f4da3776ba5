"""
Error taxonomy shared by the services and the HTTP layer.

Services never raise for domain failures. They return ``None``/``False`` and
keep the most recent failure in their ``error`` attribute; the API turns that
into an ``HTTPException``.
"""
from enum import Enum

from pydantic import BaseModel


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    FAILURE = "failure"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHORIZATION: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE: 409,
    ErrorKind.FAILURE: 500,
}


class ServiceError(BaseModel):
    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class DuplicateEmailError(Exception):
    """Raised by a repository when a user's email is already taken."""
