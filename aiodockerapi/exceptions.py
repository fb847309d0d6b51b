from typing import Any


class DockerError(Exception):
    """Base exception for all aiodockerapi errors.

    This is the root of the exception hierarchy. All exceptions raised by
    aiodockerapi are subclasses of this exception, making it easy to catch
    all errors coming from a Docker Engine call with a single except clause.

    Attributes:
        status: The HTTP status code from the Docker API response (if applicable).
        message: The error message.
    """

    status: int

    def __init__(self, status: int, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.status = status
        self.message = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.status}, {self.message!r})"

    def __str__(self) -> str:
        return f"[{self.status}] {self.message}"


class ApiError(DockerError):
    """Raised when the daemon answers with a non-2xx HTTP status.

    Attributes:
        status: The HTTP status code of the response.
        message: The ``message`` field of the daemon's JSON error body,
            or the raw body text for non-JSON responses.
    """

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600


class TransportError(DockerError):
    """Raised when the connection to the daemon cannot be used.

    The status is always 900, a value outside of the HTTP range which
    marks that no response was received at all.
    """

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(900, message, *args)


class DecodeError(DockerError):
    """Raised when a response body does not match the expected schema.

    Attributes:
        status: The HTTP status of the response that carried the body,
            or 0 when decoding happened outside of a request.
        message: Details of the mismatch.
    """

    def __init__(self, message: str, status: int = 0, *args: Any) -> None:
        super().__init__(status, message, *args)


class SerializationError(DockerError):
    """Raised when request options cannot be encoded as JSON."""

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(0, message, *args)
