import pytest

from URL import StreamError


class FakeStream:
    """Stands in for SecureStream: hands out prepared chunks and records writes."""

    def __init__(self, chunks, fail_after=None):
        self._chunks = list(chunks)
        self._fail_after = fail_after
        self._reads = 0
        self.written = []
        self.closed = False

    def write_line(self, data):
        self.written.append(data)

    def read_chunk(self):
        if self._fail_after is not None and self._reads >= self._fail_after:
            raise StreamError("Failed to read response - connection reset")
        self._reads += 1
        if not self._chunks:
            return b""
        return self._chunks.pop(0)

    def chunks(self):
        while True:
            chunk = self.read_chunk()
            if not chunk:
                return
            yield chunk

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class RecordingTerminal:
    def __init__(self):
        self.calls = []

    def clear(self):
        self.calls.append(("clear", None, None))

    def write(self, text):
        self.calls.append(("write", text, None))

    def print(self, text, fg=None, bg=None):
        self.calls.append(("print", text, fg))

    def info(self, message):
        self.calls.append(("info", message, None))

    def err(self, message):
        self.calls.append(("err", message, None))

    def output(self):
        return "".join(text for kind, text, _ in self.calls if kind in ("write", "print"))

    def messages(self, kind):
        return [text for k, text, _ in self.calls if k == kind]


@pytest.fixture
def terminal():
    return RecordingTerminal()


@pytest.fixture
def make_stream():
    return FakeStream
