from typing import Iterable, Optional


class DomainError(Exception):
    """Base for every rule-engine failure; carries the HTTP status it maps to."""

    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedInput(DomainError):
    status_code = 422
    default_message = "Invalid Params"


class MissingField(MalformedInput):
    def __init__(self, fields: Iterable[str], message: Optional[str] = None):
        self.fields = list(fields)
        super().__init__(message)


class InvalidReference(DomainError):
    default_message = "Invalid reference"


class ThemeNotFound(InvalidReference):
    default_message = "Theme not found"


class CategoryNotAllowed(DomainError):
    default_message = "Some categories are not allowed"


class NotFound(DomainError):
    default_message = "Not found"


class Forbidden(DomainError):
    status_code = 403
    default_message = "No access"


class StillReferenced(DomainError):
    default_message = "Still referenced"


class AlreadyExists(DomainError):
    default_message = "Already exists"


class InvalidCredentials(DomainError):
    default_message = "Username / Password incorrect"


class StoreError(DomainError):
    default_message = "Store error"
