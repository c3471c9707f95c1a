"""Exception types raised by the client.

Every failure reaches the caller as one of these, identifying the phase
that failed:

- TransportError: the HTTP exchange failed or returned a non-2xx status
- MalformedXmlError: a response body is not XML at all
- ParseError: XML parsed but does not match the listing schema
- DecodeError: account JSON does not match the account schema
- ConfigError: account configuration could not be located or read
"""

from typing import Optional


class S3SpacesError(Exception):
    """Base class for all client errors."""

    pass


class TransportError(S3SpacesError):
    """Raised when the HTTP exchange does not yield a usable response."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[bytes] = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body


class MalformedPayload(TransportError):
    """Raised by an exchange that received a body it would not accept.

    The dispatcher recovers the attached body and headers and treats
    them as a successful response.
    """

    def __init__(
        self,
        message: str,
        body: bytes,
        status: int = 200,
        headers: Optional[list[tuple[str, str]]] = None,
    ):
        super().__init__(message, status=status, body=body)
        self.headers = list(headers or [])


class MalformedXmlError(S3SpacesError):
    """Raised when a response body does not parse as XML."""

    pass


class ParseError(S3SpacesError):
    """Raised when XML does not match the expected document schema."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
        self.detail = message


class ConfigError(S3SpacesError):
    """Raised when account configuration loading fails."""

    pass


class DecodeError(ConfigError):
    """Raised when an account document does not match the account schema."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
        self.detail = message
