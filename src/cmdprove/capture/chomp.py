"""Streaming removal of trailing newlines at end of output."""
from typing import BinaryIO


class ChompWriter:
    """Binary writer that drops the newlines ending a stream.

    Newline bytes are held back until non-newline data follows them, at
    which point they are written out unchanged. Blank lines in the middle
    of the stream are therefore preserved; only the newlines still pending
    when the writer is closed are discarded.

    Example:
        >>> import io
        >>> buf = io.BytesIO()
        >>> w = ChompWriter(buf)
        >>> w.write(b"a\\n\\nb\\n\\n")
        >>> w.close()
        >>> buf.getvalue()
        b'a\\n\\nb'
    """

    def __init__(self, sink: BinaryIO) -> None:
        self.sink = sink
        self.pending = 0

    def write(self, data: bytes) -> None:
        if not data:
            return
        body = data.rstrip(b"\n")
        trailing = len(data) - len(body)
        if body:
            if self.pending:
                self.sink.write(b"\n" * self.pending)
            self.sink.write(body)
            self.pending = trailing
        else:
            self.pending += trailing

    def flush(self) -> None:
        self.sink.flush()

    def close(self) -> None:
        self.pending = 0
        self.sink.flush()
