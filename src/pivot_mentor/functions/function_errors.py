"""Errors raised by the serverless functions."""


class FunctionError(Exception):
    """
    An error reported to the caller as `{error: message}` with an HTTP status.

    The message is returned to the caller verbatim.
    """

    def __init__(self, message: str, status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ConfigurationError(FunctionError):
    """A required API key has not been configured."""

    def __init__(self, key_name: str) -> None:
        super().__init__(f"{key_name} not configured")
        self.key_name = key_name


class UpstreamStatusError(FunctionError):
    """An upstream service answered with a non-success status."""

    def __init__(self, service: str, upstream_status: int, body: str) -> None:
        super().__init__(f"{service} error {upstream_status}")
        self.service = service
        self.upstream_status = upstream_status
        self.body = body
