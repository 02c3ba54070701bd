"""Exceptions for AI-related operations."""


class AIStreamError(Exception):
    """Errors during stream processing.

    Raised when handling a streaming response fails in a way that cannot be recovered, such as a
    data line that still is not valid JSON after more of the stream has arrived.
    """
