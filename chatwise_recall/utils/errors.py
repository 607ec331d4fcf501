"""
Error taxonomy shared by the search, merge and view operations.

Every error carries an ``error_type`` tag so tool responses can report a
structured failure that callers can tell apart from an empty result.
"""


class ChatwiseRecallError(Exception):
    """Base class for failures reported back to the tool caller."""

    error_type = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ChatwiseRecallError):
    """Conversation or database does not exist."""

    error_type = "not_found"


class InvalidArgumentError(ChatwiseRecallError):
    """Caller supplied arguments that cannot be used."""

    error_type = "invalid_argument"


class UnavailableError(ChatwiseRecallError):
    """The backing store could not be opened or queried."""

    error_type = "unavailable"


class InternalError(ChatwiseRecallError):
    """Unexpected local failure."""

    error_type = "internal"
