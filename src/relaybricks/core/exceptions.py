"""
Custom exception classes for the relaybricks client.

Errors fall in three families:
- endpoint errors, raised or delivered when talking to the backend fails;
- registry errors, raised on misuse of the type parser registry;
- builder errors, raised synchronously on misuse of query/topic builders.
"""

from typing import Any, Optional


class RelayBricksException(Exception):
    """Base exception class for all relaybricks exceptions."""

    pass


class EndpointError(RelayBricksException):
    """
    Raised when a request to the backend endpoint does not succeed.

    Carries the underlying reason (an HTTP response, a transport exception
    or a structured error returned by the backend) as ``cause``.
    """

    def __init__(self, message: str, cause: Any = None):
        super().__init__(message)
        self.cause = cause


class EndpointConnectionError(EndpointError):
    """
    Raised when the endpoint cannot be reached and no response is received.

    Usually caused by a wrong endpoint address or missing network connectivity.
    """

    def __init__(self, error: BaseException):
        super().__init__(str(error) or type(error).__name__, error)


class ClientRequestError(EndpointError):
    """Raised when the endpoint responds with a ``4xx`` status code."""

    def __init__(self, response: Any):
        status = getattr(response, "status_code", "?")
        reason = getattr(response, "reason_phrase", "") or "client error"
        super().__init__(f"{status} {reason}", response)


class UnexpectedStatusError(EndpointError):
    """Raised for an informational or redirect (``1xx`` or ``3xx``) status code."""

    def __init__(self, response: Any):
        status = getattr(response, "status_code", "?")
        reason = getattr(response, "reason_phrase", "") or "unexpected status"
        super().__init__(f"{status} {reason}", response)


class ServerProcessingError(EndpointError):
    """Raised when the endpoint responds with a ``5xx`` status code."""

    def __init__(self, response: Any):
        status = getattr(response, "status_code", "?")
        reason = getattr(response, "reason_phrase", "") or "server error"
        super().__init__(f"{status} {reason}", response)


class ResponseProcessingError(ServerProcessingError):
    """Raised when a successful response carries a body that cannot be read."""

    def __init__(self, cause: BaseException):
        EndpointError.__init__(self, str(cause) or type(cause).__name__, cause)


class CommandProcessingError(EndpointError):
    """
    Raised when the backend acknowledges a command with an error status.

    The command was not accepted for further processing, e.g. because
    it failed validation.
    """

    def __init__(self, error: dict):
        super().__init__(str(error.get("message", "command processing error")), error)

    @property
    def type(self) -> Optional[str]:
        return self.cause.get("type")

    @property
    def code(self) -> Optional[int]:
        return self.cause.get("code")

    @property
    def validation_error(self) -> Optional[dict]:
        return self.cause.get("validationError") or self.cause.get("validation_error")


class CommandRejectionError(EndpointError):
    """
    Raised when the backend rejects a command for business reasons.

    Unlike :class:`CommandProcessingError` this is a domain outcome, not a
    technical failure.
    """

    def __init__(self, rejection: dict):
        message = rejection.get("message") if isinstance(rejection, dict) else None
        super().__init__(str(message or "command rejected"), rejection)

    @property
    def rejection(self) -> dict:
        return self.cause


class ProtocolError(RelayBricksException):
    """Raised when the backend acknowledgment does not have the expected shape."""

    pass


class ParserError(RelayBricksException):
    """Base class for type parser registry errors."""

    pass


class InvalidParserError(ParserError):
    """Raised when registering something that is not an ``ObjectParser``."""

    pass


class ParserNotFoundError(ParserError):
    """Raised when no parser is registered for the requested type URL."""

    def __init__(self, type_url: str):
        self.type_url = type_url
        super().__init__(f"The parser for {type_url!r} was not found")


class BuilderError(RelayBricksException):
    """Base class for query and topic builder misuse."""

    pass


class DuplicateBuilderCallError(BuilderError):
    """Raised when a one-shot builder setter is invoked a second time."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"#{method}() can not be invoked more than once")


class InconsistentIdTypeError(BuilderError):
    """Raised when IDs passed in one ``by_ids`` call are of different kinds."""

    pass


class MixedFilterKindError(BuilderError):
    """Raised when column filters and composite filters are mixed in one call."""

    pass
