"""Newline framing for chunked text streams."""


class LineBuffer:
    """Accumulates text chunks and releases complete lines.

    Chunks may split a line anywhere. Every complete line is returned once;
    the trailing fragment after the last newline is held back until more
    text arrives.
    """

    def __init__(self) -> None:
        self._pending = ""

    def push(self, chunk: str) -> list[str]:
        """Append a chunk and return the lines it completed (without newlines)."""
        if not chunk:
            return []
        self._pending += chunk
        lines = self._pending.split("\n")
        self._pending = lines.pop()
        return lines

    @property
    def remainder(self) -> str:
        """The incomplete trailing fragment."""
        return self._pending

    def drain(self) -> str:
        """Return and clear the trailing fragment."""
        pending, self._pending = self._pending, ""
        return pending
