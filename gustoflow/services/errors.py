"""
Domain errors raised by the client-side operations before or instead of a
store call.
"""


class OperationError(Exception):
    """Base class for domain operation failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OperationError):
    """Input rejected locally; no store call was made."""


class AuthenticationError(OperationError):
    """Unknown username or unacceptable password."""


class NotFoundError(OperationError):
    """The referenced record is not in the current snapshot/store."""
