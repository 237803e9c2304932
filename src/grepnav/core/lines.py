"""Offset to line translation over a byte reader.

Lines are separated by ``\\n``. A line owns every offset from its first byte up
to and including its terminator, so an offset that points at a ``\\n`` (or at
the ``\\r`` of a CRLF pair) resolves to the line that byte ends. All positions
are byte positions; the content is never decoded here.
"""

from __future__ import annotations

from dataclasses import dataclass

from grepnav.core.errors import InvalidInput
from grepnav.core.io import Reader
from grepnav.core.search import DEFAULT_CHUNK_SIZE, find_bytes

NEWLINE = b"\n"
CR = b"\r"


@dataclass(frozen=True)
class LineInfo:
    line_number: int  # 1-based
    start: int  # absolute offset of the first byte of the line
    raw: bytes  # line bytes, terminator and one trailing \r stripped

    @property
    def length(self) -> int:
        return len(self.raw)

    def column(self, offset: int) -> int:
        return offset - self.start


class LineIndex:
    """Resolve absolute offsets to lines by scanning the reader in chunks.

    Resolving offsets in ascending order resumes from the previous scan point,
    so walking every match in a file stays a single pass.
    """

    def __init__(self, reader: Reader, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise InvalidInput("chunk_size must be positive")
        self._reader = reader
        self._chunk_size = int(chunk_size)
        # (scanned_to, newlines before scanned_to, offset of last newline before it or -1)
        self._mark: tuple[int, int, int] = (0, 0, -1)

    def _scan_to(self, offset: int) -> tuple[int, int]:
        pos, count, last_nl = self._mark
        if offset < pos:
            pos, count, last_nl = 0, 0, -1
        while pos < offset:
            end = min(offset, pos + self._chunk_size)
            data = self._reader.read(pos, end - pos)
            if not data:
                break
            n = data.count(NEWLINE)
            if n:
                count += n
                last_nl = pos + data.rfind(NEWLINE)
            pos += len(data)
        self._mark = (pos, count, last_nl)
        return count, last_nl

    def resolve(self, offset: int) -> LineInfo:
        """Return the line containing `offset`.

        Raises `InvalidInput` when `offset` is outside ``[0, size)``.
        """
        size = self._reader.size
        if offset < 0 or offset >= size:
            raise InvalidInput(f"offset {offset} outside file of {size} bytes")

        count, last_nl = self._scan_to(offset)
        start = last_nl + 1
        nl = find_bytes(self._reader, NEWLINE, offset, chunk_size=self._chunk_size)
        end = size if nl is None else nl
        raw = self._reader.read(start, end - start)
        if raw.endswith(CR):
            raw = raw[:-1]
        return LineInfo(line_number=count + 1, start=start, raw=raw)

    def locate(self, offset: int) -> tuple[int, int, bytes]:
        """(line_number, column, line bytes) for `offset`."""
        info = self.resolve(offset)
        return info.line_number, info.column(offset), info.raw
