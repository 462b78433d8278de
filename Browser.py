import logging
from enum import Enum
from itertools import chain
from typing import Iterable, Iterator, Optional

from Response import ReportFailure, ReportUnknown, ProtocolError, Category, classify, read_status_line
from Terminal import Color, Terminal
from URL import TIMEOUT, AddressError, ConnectError, StreamError, URL, connect, emit, resolve

logger = logging.getLogger(__name__)

GEMTEXT = "text/gemini"


class LineStyle(Enum):
    BLANK = "blank"
    HEADING = "heading"
    LIST_ITEM = "list item"
    LINK = "link"
    PLAIN = "plain"


LINE_COLORS = {
    LineStyle.HEADING: Color.CYAN,
    LineStyle.LIST_ITEM: Color.YELLOW,
    LineStyle.LINK: Color.GREEN,
    LineStyle.PLAIN: Color.WHITE,
}


def classify_line(line: str) -> LineStyle:
    if not line:
        return LineStyle.BLANK
    if line[0] == "#":
        return LineStyle.HEADING
    if line[0] == "*":
        return LineStyle.LIST_ITEM
    if line.startswith("=>"):
        return LineStyle.LINK
    return LineStyle.PLAIN


def iter_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Yield complete lines from arbitrarily split chunks.

    A line that straddles a chunk boundary is held back until its newline
    arrives (or the stream ends).
    """
    pending = b""
    for chunk in chunks:
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            yield _decode(line)
    if pending:
        yield _decode(pending)


def _decode(line: bytes) -> str:
    return line.decode("utf8", errors="replace").rstrip("\r")


class GemtextRenderer:
    def __init__(self, terminal: Terminal):
        self.terminal = terminal

    def render(self, stream, mime: str = GEMTEXT, leading: bytes = b"") -> None:
        """Write the body of a successful response to the terminal.

        ``leading`` holds body bytes that arrived together with the status line.
        """
        mime_type = mime.split(";", 1)[0].strip().lower()
        if mime_type and not mime_type.startswith("text/"):
            self.terminal.info(f"Cannot display {mime_type} content")
            return
        gemtext = not mime_type or mime_type == GEMTEXT

        try:
            for line in iter_lines(chain([leading], stream.chunks())):
                self.render_line(line, gemtext)
        except StreamError as e:
            logger.warning("response body truncated: %s", e)

    def render_line(self, line: str, gemtext: bool = True) -> None:
        if gemtext:
            style = classify_line(line)
        else:
            style = LineStyle.PLAIN if line else LineStyle.BLANK

        if style is LineStyle.BLANK:
            self.terminal.write("\n")
        else:
            self.terminal.print(line + "\n", fg=LINE_COLORS[style])


class Browser:
    def __init__(self, terminal: Optional[Terminal] = None, timeout: float = TIMEOUT):
        self.terminal = terminal or Terminal()
        self.renderer = GemtextRenderer(self.terminal)
        self.timeout = timeout
        self.last_visited: Optional[URL] = None

    def prompt(self) -> str:
        if self.last_visited is not None:
            return f"Please enter a URL to connect to ({self.last_visited}): "
        return "Please enter a URL to connect to: "

    def load(self, raw: str) -> bool:
        """Fetch and render one address. Returns True when the page was shown."""
        try:
            url = resolve(raw, self.last_visited)
        except AddressError as e:
            self.terminal.err(f"Failed parsing URL: {e}")
            return False

        try:
            with connect(url.host, url.effective_port, timeout=self.timeout) as stream:
                emit(stream, url)
                meta, rest = read_status_line(stream)
                action = classify(meta)
                if isinstance(action, ReportFailure):
                    self.report_failure(action)
                    return False
                if isinstance(action, ReportUnknown):
                    self.terminal.err(f"[{action.code}] unknown status: {action.detail}")
                    return False
                self.renderer.render(stream, mime=meta.detail, leading=rest)
        except (ConnectError, StreamError) as e:
            self.terminal.err(str(e))
            return False
        except ProtocolError as e:
            self.terminal.err(f"Malformed response from {url.host}: {e}")
            return False

        self.last_visited = url
        return True

    def report_failure(self, action: ReportFailure) -> None:
        code = action.code
        self.terminal.err(f"[{code.value}] {action.detail or code.meaning}")
        if code.category is Category.REDIRECT:
            self.terminal.info(f"Redirected to {action.detail}; enter it to follow")
        elif code.category is Category.INPUT:
            self.terminal.info("The server asks for input; add it as a ?query to the address")
