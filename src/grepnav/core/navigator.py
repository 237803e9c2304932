"""Step through fixed-pattern occurrences in a file, forward or backward."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from grepnav.core.config import DEFAULT_PROFILE, NavigatorConfig
from grepnav.core.errors import InvalidInput, IoFailure
from grepnav.core.io import ByteSource, BytesSource, FileSource, Reader
from grepnav.core.lines import LineIndex
from grepnav.core.search import find_bytes, iter_matches, rfind_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hit:
    offset: int  # absolute byte offset of the match
    line_number: int  # 1-based
    column: int  # 0-based byte offset within the line
    line_text: str  # decoded line, terminator and trailing \r stripped
    line_bytes: bytes = b""

    def format(self, *, with_offset: bool = True) -> str:
        """Render as ``line,column,offset,text`` (or ``line,column,text``)."""
        if with_offset:
            return f"{self.line_number},{self.column},{self.offset},{self.line_text}"
        return f"{self.line_number},{self.column},{self.line_text}"

    def __str__(self) -> str:
        return self.format()


def _as_source(
    source: ByteSource | str | os.PathLike[str] | bytes, config: NavigatorConfig
) -> ByteSource:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesSource(bytes(source))
    if isinstance(source, (str, os.PathLike)):
        return FileSource(
            source,
            page_size=config.page_size,
            cache_pages=config.cache_pages,
            use_mmap=config.use_mmap,
        )
    return source


class Navigator:
    """Cursor-based next/previous navigation over pattern matches.

    `next()` reports the first match strictly after the cursor and leaves the
    cursor one past it; `previous()` reports the last match strictly before
    the cursor and leaves the cursor on it, so a step forward followed by a
    step back lands on the same match. When `next()` runs off the end straight
    after a forward hit (wrap off), the cursor settles back on that match;
    otherwise a fruitless search leaves the cursor alone.

    With wrap enabled, a search that finds nothing in its direction falls back
    to the first (or last) match in the whole file.

    Each call reads the source afresh. A failed read raises `IoFailure` and
    leaves the cursor where it was. Not safe for concurrent use.
    """

    def __init__(
        self,
        source: ByteSource | str | os.PathLike[str] | bytes,
        pattern: bytes | str,
        *,
        wrap: bool | None = None,
        config: NavigatorConfig | None = None,
    ) -> None:
        self._config = config or DEFAULT_PROFILE
        if isinstance(pattern, str):
            try:
                pattern = pattern.encode(self._config.encoding)
            except UnicodeEncodeError as e:
                raise InvalidInput(
                    f"pattern not encodable as {self._config.encoding}: {e}"
                ) from None
        if not pattern:
            raise InvalidInput("pattern must be non-empty")
        self._pattern = bytes(pattern)
        self._source = _as_source(source, self._config)
        self._wrap = self._config.wrap if wrap is None else bool(wrap)
        self._cursor = 0

    @property
    def pattern(self) -> bytes:
        return self._pattern

    @property
    def source(self) -> ByteSource:
        return self._source

    @property
    def config(self) -> NavigatorConfig:
        return self._config

    # State accessors

    @property
    def cursor(self) -> int:
        return self._cursor

    def get_cursor(self) -> int:
        return self._cursor

    def set_cursor(self, offset: int) -> None:
        self._cursor = max(0, int(offset))

    @property
    def wrap_enabled(self) -> bool:
        return self._wrap

    def set_wrap_enabled(self, enabled: bool) -> None:
        self._wrap = bool(enabled)

    # Navigation

    @contextmanager
    def _reading(self) -> Iterator[Reader]:
        """Open a reader for one call; OS-level errors surface as `IoFailure`."""
        try:
            with self._source.open() as reader:
                yield reader
        except IoFailure:
            raise
        except OSError as e:
            raise IoFailure(f"Cannot read {self._source!r}: {e}") from e

    def next(self) -> Hit | None:
        """Move to the first match after the cursor; None when there is none."""
        chunk = self._config.chunk_size
        hit = None
        cursor = self._cursor
        with self._reading() as reader:
            offset = find_bytes(reader, self._pattern, cursor + 1, chunk_size=chunk)
            if offset is None and self._wrap:
                logger.debug("next: nothing after %d, wrapping to start", cursor)
                offset = find_bytes(reader, self._pattern, 0, chunk_size=chunk)
            if offset is not None:
                hit = self._build_hit(LineIndex(reader, chunk_size=chunk), offset)
                cursor = offset + 1
            else:
                # Ran off the end right after a forward hit: rest on that match.
                last = rfind_bytes(reader, self._pattern, cursor, chunk_size=chunk)
                if last is not None and last == cursor - 1:
                    cursor = last
        self._cursor = cursor
        if hit is None:
            logger.debug("next: no match for %r after cursor", self._pattern)
        else:
            logger.debug("next: hit at %d (line %d)", hit.offset, hit.line_number)
        return hit

    def previous(self) -> Hit | None:
        """Move to the last match before the cursor; None when there is none."""
        chunk = self._config.chunk_size
        with self._reading() as reader:
            offset = rfind_bytes(reader, self._pattern, self._cursor, chunk_size=chunk)
            if offset is None and self._wrap:
                logger.debug("previous: nothing before %d, wrapping to end", self._cursor)
                offset = rfind_bytes(reader, self._pattern, reader.size, chunk_size=chunk)
            if offset is None:
                logger.debug("previous: no match for %r before %d", self._pattern, self._cursor)
                return None
            hit = self._build_hit(LineIndex(reader, chunk_size=chunk), offset)
        self._cursor = offset
        logger.debug("previous: hit at %d (line %d)", offset, hit.line_number)
        return hit

    def iter_hits(self) -> Iterator[Hit]:
        """Yield every match in the file in ascending order. The cursor is not touched."""
        chunk = self._config.chunk_size
        with self._reading() as reader:
            index = LineIndex(reader, chunk_size=chunk)
            for offset in iter_matches(reader, self._pattern, chunk_size=chunk):
                yield self._build_hit(index, offset)

    def _build_hit(self, index: LineIndex, offset: int) -> Hit:
        info = index.resolve(offset)
        return Hit(
            offset=offset,
            line_number=info.line_number,
            column=info.column(offset),
            line_text=info.raw.decode(self._config.encoding, self._config.errors),
            line_bytes=info.raw,
        )
