import logging
import re
import socket
import ssl
from urllib.parse import urlsplit, urljoin, uses_netloc, uses_relative

logger = logging.getLogger(__name__)

SCHEME = "gemini"
PREFIX = SCHEME + "://"
PORT = 1965
TIMEOUT = 10.0
CHUNK_SIZE = 4096
# Gemini 요청 URL의 최대 길이 (CRLF 제외)
MAX_REQUEST_LENGTH = 1024

# urljoin이 gemini:// 주소를 상대 경로로 해석할 수 있도록 등록
if SCHEME not in uses_relative:
    uses_relative.append(SCHEME)
if SCHEME not in uses_netloc:
    uses_netloc.append(SCHEME)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_RELATIVE_PREFIXES = ("/", "./", "../", "?")


class GeminiError(Exception):
    """Base class for everything that can go wrong during one request."""


class AddressError(GeminiError):
    def __init__(self, raw, reason):
        super().__init__(f"{reason}: {raw!r}")
        self.raw = raw
        self.reason = reason


class ConnectError(GeminiError):
    def __init__(self, host, port, message):
        super().__init__(f"Unable to connect to {host}:{port} - {message}")
        self.host = host
        self.port = port


class StreamError(GeminiError):
    """Reading from or writing to an open stream failed."""


class URL:
    """gemini:// 주소를 파싱하고 관리하는 클래스"""

    def __init__(self, url):
        try:
            parsed = urlsplit(url)
        except ValueError as e:
            raise AddressError(url, str(e))
        if parsed.scheme != SCHEME:
            raise AddressError(url, f"unsupported scheme {parsed.scheme!r}")
        if parsed.username is not None or parsed.password is not None:
            raise AddressError(url, "userinfo is not allowed")
        if not parsed.hostname:
            raise AddressError(url, "missing host")
        try:
            port = parsed.port
        except ValueError:
            raise AddressError(url, "invalid port")

        self.scheme = SCHEME
        self.host = parsed.hostname
        # None이면 기본 포트(1965)를 사용
        self.port = port
        self.path = parsed.path
        self.query = parsed.query

        try:
            encoded = self.text.encode("utf8")
        except UnicodeEncodeError:
            raise AddressError(url, "address is not valid UTF-8")
        if len(encoded) > MAX_REQUEST_LENGTH:
            raise AddressError(url, f"address longer than {MAX_REQUEST_LENGTH} bytes")

    @property
    def effective_port(self):
        return self.port if self.port is not None else PORT

    @property
    def text(self):
        host = f"[{self.host}]" if ":" in self.host else self.host
        text = f"{self.scheme}://{host}"
        if self.port is not None:
            text += f":{self.port}"
        text += self.path
        if self.query:
            text += "?" + self.query
        return text

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"URL({self.text!r})"

    def __eq__(self, other):
        if not isinstance(other, URL):
            return NotImplemented
        return self.text == other.text

    def __hash__(self):
        return hash(self.text)

    def request_line(self) -> bytes:
        return (self.text + "\r\n").encode("utf8")


def resolve(raw, base=None):
    """Turn what the user typed into a full gemini:// URL.

    Input that already starts with ``gemini://`` is parsed as-is. Relative
    references (``/docs``, ``./next``, ``../up``, ``?query``) are joined onto
    ``base`` when one is given. Everything else is treated as a bare
    host/path and gets the ``gemini://`` prefix.
    """
    text = raw.strip()
    if not text:
        raise AddressError(raw, "empty address")

    if text.lower().startswith(PREFIX):
        return URL(text)
    if _SCHEME_RE.match(text):
        raise AddressError(raw, "unsupported scheme")
    if base is not None and text.startswith(_RELATIVE_PREFIXES):
        joined = urljoin(base.text, text)
        logger.debug("resolved %r against %s -> %s", text, base, joined)
        return URL(joined)
    return URL(PREFIX + text)


class SecureStream:
    """An open TLS connection to a Gemini server.

    Closed by ``close()`` or by leaving a ``with`` block.
    """

    def __init__(self, sock):
        self._sock = sock
        self.closed = False

    def write_line(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise StreamError(f"Failed to send request - {e}") from e

    def read_chunk(self) -> bytes:
        """Return the next chunk of data, or b"" once the server closed the connection."""
        try:
            return self._sock.recv(CHUNK_SIZE)
        except OSError as e:
            raise StreamError(f"Failed to read response - {e}") from e

    def chunks(self):
        while True:
            chunk = self.read_chunk()
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._sock.close()
        except OSError as e:
            logger.debug("error while closing socket: %s", e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def connect(host, port=PORT, timeout=TIMEOUT):
    """TCP 연결 후 TLS로 감싸서 SecureStream을 반환"""
    logger.debug("connecting to %s:%s", host, port)
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except (OSError, UnicodeError) as e:
        raise ConnectError(host, port, str(e)) from e

    # 인증서 신뢰 정책은 다루지 않음: 검증 없이 암호화만 사용
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    try:
        tls = ctx.wrap_socket(sock, server_hostname=host)
    except (OSError, UnicodeError) as e:
        sock.close()
        raise ConnectError(host, port, str(e)) from e

    logger.debug("TLS established with %s:%s (%s)", host, port, tls.version())
    return SecureStream(tls)


def emit(stream, url):
    """Send the one and only request line for this connection."""
    logger.debug("request: %s", url.text)
    stream.write_line(url.request_line())
