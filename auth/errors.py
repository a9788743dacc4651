"""
auth/errors.py -- Error taxonomy shared by the Session Store and its callers.

Every error carries a human-readable message that callers render verbatim.
There are no structured error codes beyond the class itself; the API layer
maps classes to HTTP status codes.

Layer rule: no first-party imports. records/ reuses these classes.
"""


class BoilerplateError(Exception):
    """Base class. The message is what the user sees."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BoilerplateError):
    """Input rejected before any store call (e.g. password too short)."""

    code = "validation_error"


class AuthError(BoilerplateError):
    """Sign-up or sign-in refused by the Session Store."""

    code = "auth_error"


class NotAuthenticatedError(BoilerplateError):
    """A gated operation was attempted without a valid session."""

    code = "unauthorized"

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotFoundError(BoilerplateError):
    """The referenced record does not exist (or is not visible to the caller)."""

    code = "not_found"
