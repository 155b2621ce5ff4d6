"""Failure types raised by the debate services.

The HTTP layer maps these onto status codes; the rollover trigger only
reports success or failure.
"""


class DebateError(RuntimeError):
    """Base class for debate domain failures."""

    status_code = 400


class NotFoundError(DebateError):
    """Raised when a referenced question, answer or user does not exist."""

    status_code = 404


class ConflictError(DebateError):
    """Raised when a write would break a uniqueness or state rule.

    Duplicate answers and likes, self-likes and writes against a question
    that is not active all end up here.
    """

    status_code = 409
