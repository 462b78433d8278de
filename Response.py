import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Tuple, Union

from URL import GeminiError

logger = logging.getLogger(__name__)

# 1024 bytes of meta plus "NN " and CRLF
MAX_HEADER_LENGTH = 1029


class Category(Enum):
    INPUT = "input"
    SUCCESS = "success"
    REDIRECT = "redirect"
    TEMPORARY_FAILURE = "temporary failure"
    PERMANENT_FAILURE = "permanent failure"
    CLIENT_CERTIFICATE = "client certificate"


class Status(IntEnum):
    INPUT = 10
    SENSITIVE_INPUT = 11
    SUCCESS = 20
    REDIRECT_TEMPORARY = 30
    REDIRECT_PERMANENT = 31
    TEMPORARY_FAILURE = 40
    SERVER_UNAVAILABLE = 41
    CGI_ERROR = 42
    PROXY_ERROR = 43
    SLOW_DOWN = 44
    NOT_FOUND = 51
    GONE = 52
    PROXY_REQUEST_REFUSED = 53
    BAD_REQUEST = 59
    CLIENT_CERTIFICATE_REQUIRED = 60
    CERTIFICATE_NOT_AUTHORISED = 61
    CERTIFICATE_NOT_VALID = 62

    @property
    def category(self) -> Category:
        return _CATEGORIES[self.value // 10]

    @property
    def meaning(self) -> str:
        return _MEANINGS[self]


_CATEGORIES = {
    1: Category.INPUT,
    2: Category.SUCCESS,
    3: Category.REDIRECT,
    4: Category.TEMPORARY_FAILURE,
    5: Category.PERMANENT_FAILURE,
    6: Category.CLIENT_CERTIFICATE,
}

_MEANINGS = {
    Status.INPUT: "input required",
    Status.SENSITIVE_INPUT: "sensitive input required",
    Status.SUCCESS: "success",
    Status.REDIRECT_TEMPORARY: "temporary redirect",
    Status.REDIRECT_PERMANENT: "permanent redirect",
    Status.TEMPORARY_FAILURE: "temporary failure",
    Status.SERVER_UNAVAILABLE: "server unavailable",
    Status.CGI_ERROR: "CGI error",
    Status.PROXY_ERROR: "proxy error",
    Status.SLOW_DOWN: "slow down",
    Status.NOT_FOUND: "not found",
    Status.GONE: "gone",
    Status.PROXY_REQUEST_REFUSED: "proxy request refused",
    Status.BAD_REQUEST: "bad request",
    Status.CLIENT_CERTIFICATE_REQUIRED: "client certificate required",
    Status.CERTIFICATE_NOT_AUTHORISED: "certificate not authorised",
    Status.CERTIFICATE_NOT_VALID: "certificate not valid",
}


def is_error(code: int) -> bool:
    return 40 <= int(code) < 60


@dataclass(frozen=True)
class UnknownStatus:
    code: int

    def __int__(self):
        return self.code


StatusCode = Union[Status, UnknownStatus]


@dataclass(frozen=True)
class ResponseMeta:
    code: StatusCode
    detail: str


class ProtocolError(GeminiError):
    UNEXPECTED_EOF = "unexpected_eof"
    INVALID_STATUS_CODE = "invalid_status_code"
    HEADER_TOO_LONG = "header_too_long"

    def __init__(self, reason, raw=b""):
        message = reason.replace("_", " ")
        if raw:
            message += f": {raw!r}"
        super().__init__(message)
        self.reason = reason
        self.raw = raw


def parse_status_line(first_chunk: bytes) -> Tuple[ResponseMeta, bytes]:
    """Split the status line off the first chunk of a response.

    Returns the parsed meta and whatever bytes followed the line terminator;
    those belong to the body.
    """
    if not first_chunk:
        raise ProtocolError(ProtocolError.UNEXPECTED_EOF)

    line, sep, rest = first_chunk.partition(b"\n")
    text = line.decode("utf8", errors="replace").rstrip("\r\n")
    token, _, detail = text.partition(" ")
    if not (token.isascii() and token.isdigit()):
        raise ProtocolError(ProtocolError.INVALID_STATUS_CODE, line)

    value = int(token)
    try:
        code = Status(value)
    except ValueError:
        code = UnknownStatus(value)
    return ResponseMeta(code, detail.strip()), rest


def read_status_line(stream) -> Tuple[ResponseMeta, bytes]:
    """Read from ``stream`` until the status line is complete and parse it."""
    buf = b""
    while b"\n" not in buf:
        chunk = stream.read_chunk()
        if not chunk:
            break
        buf += chunk
        if b"\n" not in buf and len(buf) > MAX_HEADER_LENGTH:
            raise ProtocolError(ProtocolError.HEADER_TOO_LONG, buf[:64])
    end = buf.find(b"\n")
    if end >= MAX_HEADER_LENGTH:
        raise ProtocolError(ProtocolError.HEADER_TOO_LONG, buf[:64])
    meta, rest = parse_status_line(buf)
    logger.debug("status %s %r (%d body bytes in first read)", int(meta.code), meta.detail, len(rest))
    return meta, rest


# -----------------------
# Classification
# -----------------------
@dataclass(frozen=True)
class RenderBody:
    pass


@dataclass(frozen=True)
class ReportFailure:
    code: Status
    detail: str


@dataclass(frozen=True)
class ReportUnknown:
    code: int
    detail: str


Action = Union[RenderBody, ReportFailure, ReportUnknown]


def classify(meta: ResponseMeta) -> Action:
    if isinstance(meta.code, UnknownStatus):
        return ReportUnknown(meta.code.code, meta.detail)
    if meta.code.category is Category.SUCCESS:
        return RenderBody()
    # redirects and input requests are not followed; the user enters a new address
    return ReportFailure(meta.code, meta.detail)
