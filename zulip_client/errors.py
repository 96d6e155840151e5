"""Error classification for Zulip API calls.

Every failure of a request surfaces as a single ``ZulipError`` of one of
three kinds:

- ``BUILD``: the request could not be constructed (bad base address, bad URL).
- ``TRANSPORT``: network failure, 5xx response, or a body that cannot be decoded.
- ``APPLICATION``: the server answered 4xx with a structured error payload.

Application errors carry an ``ApplicationError`` whose optional ``code`` is
one of the ``ErrorCode`` variants, selected by the ``code`` tag of the body.
Unknown tags leave ``code`` as ``None``.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type

import requests


class ErrorKind(str, Enum):
    BUILD = "build"
    TRANSPORT = "transport"
    APPLICATION = "application"


class ErrorCode:
    """Base class for the server error codes."""

    TAG: str = ""

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "ErrorCode":
        return cls()


@dataclass(frozen=True)
class BadRequest(ErrorCode):
    TAG = "BAD_REQUEST"


@dataclass(frozen=True)
class RequestVariableMissing(ErrorCode):
    TAG = "REQUEST_VARIABLE_MISSING"

    var_name: str

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "RequestVariableMissing":
        var_name = body["var_name"]
        if not isinstance(var_name, str):
            raise TypeError(f"var_name must be a string, got {type(var_name).__name__}")
        return cls(var_name=var_name)


@dataclass(frozen=True)
class UserDeactivated(ErrorCode):
    TAG = "USER_DEACTIVATED"


@dataclass(frozen=True)
class RealmDeactivated(ErrorCode):
    TAG = "REALM_DEACTIVATED"


@dataclass(frozen=True)
class RateLimitHit(ErrorCode):
    TAG = "RATE_LIMIT_HIT"

    retry_after: float

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "RateLimitHit":
        retry_after = body["retry_after"]
        if isinstance(retry_after, bool) or not isinstance(retry_after, (int, float)):
            raise TypeError(f"retry_after must be a number, got {retry_after!r}")
        return cls(retry_after=float(retry_after))


@dataclass(frozen=True)
class AuthenticationFailed(ErrorCode):
    TAG = "AUTHENTICATION_FAILED"


ERROR_CODES: Dict[str, Type[ErrorCode]] = {
    code.TAG: code
    for code in (
        BadRequest,
        RequestVariableMissing,
        UserDeactivated,
        RealmDeactivated,
        RateLimitHit,
        AuthenticationFailed,
    )
}


def parse_error_code(body: Dict[str, Any]) -> Optional[ErrorCode]:
    """Select the error code variant for a response body, or None."""
    tag = body.get("code")
    code_cls = ERROR_CODES.get(tag) if isinstance(tag, str) else None
    if code_cls is None:
        return None
    try:
        return code_cls.from_body(body)
    except (KeyError, TypeError, ValueError):
        # A known tag without its extra field is treated like an unknown code
        return None


@dataclass(frozen=True)
class ApplicationError:
    """Structured error payload returned by the server."""

    message: str
    code: Optional[ErrorCode] = None

    @classmethod
    def from_dict(cls, body: Any) -> "ApplicationError":
        if not isinstance(body, dict):
            raise ValueError(f"error body must be an object, got {type(body).__name__}")
        message = body.get("message")
        if not isinstance(message, str):
            raise ValueError("error body has no 'message'")
        return cls(message=message, code=parse_error_code(body))

    def is_bad_request(self) -> bool:
        return isinstance(self.code, BadRequest)

    def is_variable_missing(self) -> bool:
        return isinstance(self.code, RequestVariableMissing)

    def is_user_deactivated(self) -> bool:
        return isinstance(self.code, UserDeactivated)

    def is_realm_deactivated(self) -> bool:
        return isinstance(self.code, RealmDeactivated)

    def is_rate_limit_hit(self) -> bool:
        return isinstance(self.code, RateLimitHit)

    def is_auth_failed(self) -> bool:
        return isinstance(self.code, AuthenticationFailed)

    @property
    def retry_after(self) -> Optional[float]:
        """Seconds to wait before retrying, for rate limit errors."""
        if isinstance(self.code, RateLimitHit):
            return self.code.retry_after
        return None

    def __str__(self) -> str:
        code = self.code
        if isinstance(code, BadRequest):
            return f"bad request: {self.message}"
        if isinstance(code, RateLimitHit):
            return f"rate limit hit, retry after {code.retry_after}s"
        if isinstance(code, RealmDeactivated):
            return f"realm deactivated: {self.message}"
        if isinstance(code, UserDeactivated):
            return f"account deactivated: {self.message}"
        if isinstance(code, RequestVariableMissing):
            return f"missing '{code.var_name}' argument"
        if isinstance(code, AuthenticationFailed):
            return f"authentication failed: {self.message}"
        return self.message


class ZulipError(Exception):
    """Failure of a Zulip API call.

    Attributes:
        kind: Which of the three failure classes this is.
        source: Underlying exception, if any.
        application: Server error payload for APPLICATION errors.
        status_code: HTTP status code when a response was received.
    """

    def __init__(
        self,
        kind: ErrorKind,
        *,
        source: Optional[BaseException] = None,
        application: Optional[ApplicationError] = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.source = source
        self.application = application
        self.status_code = status_code
        super().__init__(self._describe())

    @classmethod
    def build(cls, source: BaseException) -> "ZulipError":
        return cls(ErrorKind.BUILD, source=source)

    @classmethod
    def transport(cls, source: BaseException, status_code: Optional[int] = None) -> "ZulipError":
        return cls(ErrorKind.TRANSPORT, source=source, status_code=status_code)

    @classmethod
    def from_application(cls, error: ApplicationError, status_code: int) -> "ZulipError":
        return cls(ErrorKind.APPLICATION, application=error, status_code=status_code)

    def is_build(self) -> bool:
        return self.kind is ErrorKind.BUILD

    def is_transport(self) -> bool:
        return self.kind is ErrorKind.TRANSPORT

    def is_application(self) -> bool:
        return self.kind is ErrorKind.APPLICATION

    @property
    def code(self) -> Optional[ErrorCode]:
        return self.application.code if self.application else None

    def _describe(self) -> str:
        if self.kind is ErrorKind.BUILD:
            return f"builder error: {self.source}" if self.source else "builder error"
        if self.kind is ErrorKind.APPLICATION:
            return f"zulip error: {self.application}"
        return f"http client error: {self.source}"

    def __repr__(self) -> str:
        parts = [f"kind={self.kind.value}"]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        if self.application is not None:
            parts.append(f"application={self.application!r}")
        if self.source is not None:
            parts.append(f"source={self.source!r}")
        return f"{self.__class__.__name__}({', '.join(parts)})"


# Raised by requests while preparing a request, before anything is sent
BUILD_EXCEPTIONS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.URLRequired,
    requests.exceptions.InvalidHeader,
)


def error_from_request_exception(exc: requests.RequestException) -> ZulipError:
    """Classify an exception raised by requests."""
    if isinstance(exc, BUILD_EXCEPTIONS):
        return ZulipError.build(exc)
    return ZulipError.transport(exc)


def check_response(response: requests.Response) -> Any:
    """Return the decoded JSON body of a successful response.

    Raises:
        ZulipError: For 4xx (APPLICATION, or TRANSPORT when the body is not a
            structured error), 5xx and undecodable 2xx bodies (TRANSPORT).
        AssertionError: For 1xx and 3xx statuses, which the transport must
            never hand back.
    """
    status = response.status_code

    if 200 <= status < 300:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ZulipError.transport(e, status_code=status) from e

    if 400 <= status < 500:
        try:
            error = ApplicationError.from_dict(response.json())
        except ValueError as e:
            http_error = requests.HTTPError(
                f"{status} Client Error: {response.reason} for url: {response.url}",
                response=response,
            )
            raise ZulipError.transport(http_error, status_code=status) from e
        raise ZulipError.from_application(error, status)

    if status >= 500:
        http_error = requests.HTTPError(
            f"{status} Server Error: {response.reason} for url: {response.url}",
            response=response,
        )
        raise ZulipError.transport(http_error, status_code=status)

    raise AssertionError(f"transport returned unsupported HTTP status {status} for {response.url}")
