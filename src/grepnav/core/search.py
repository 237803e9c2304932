from __future__ import annotations

from collections.abc import Iterator

from grepnav.core.io import Reader

DEFAULT_CHUNK_SIZE = 64 * 1024


def _window(needle: bytes, chunk_size: int) -> tuple[int, int]:
    overlap = max(0, len(needle) - 1)
    # A window must hold a whole needle plus room to advance past the overlap.
    return max(int(chunk_size), len(needle) * 2, 1), overlap


def find_bytes(
    reader: Reader, needle: bytes, start: int, *, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int | None:
    """Find `needle` bytes at or after `start`. Returns offset or None.

    Chunked scan without loading the entire file. Overlaps chunks by
    len(needle)-1 to catch boundary matches.
    """
    if start < 0:
        start = 0
    if not needle:
        return start if start <= reader.size else None
    size = reader.size
    if start >= size:
        return None

    chunk, overlap = _window(needle, chunk_size)
    pos = start
    while pos < size:
        end = min(size, pos + chunk)
        data = reader.read(pos, end - pos)
        idx = data.find(needle)
        if idx != -1:
            return pos + idx
        if end >= size:
            break
        pos = end - overlap
    return None


def rfind_bytes(
    reader: Reader, needle: bytes, end: int, *, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int | None:
    """Find the last `needle` occurrence whose start is strictly before `end`.

    The match itself may extend past `end`; only fully contained occurrences
    count. Scans backward in chunks overlapped by len(needle)-1.
    """
    if not needle:
        raise ValueError("needle must be non-empty")
    size = reader.size
    if end <= 0 or size == 0:
        return None

    chunk, overlap = _window(needle, chunk_size)
    hi = min(size, end - 1 + len(needle))
    while hi > 0:
        lo = max(0, hi - chunk)
        data = reader.read(lo, hi - lo)
        idx = data.rfind(needle)
        if idx != -1:
            return lo + idx
        if lo == 0:
            break
        hi = lo + overlap
    return None


def iter_matches(
    reader: Reader, needle: bytes, start: int = 0, *, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[int]:
    """Yield every offset >= `start` where `needle` occurs, ascending.

    Overlapping occurrences are each reported. A match fully contained in one
    chunk always starts before the next chunk's overlap, so none repeat.
    """
    if not needle:
        raise ValueError("needle must be non-empty")
    start = max(0, start)
    size = reader.size
    chunk, overlap = _window(needle, chunk_size)
    pos = start
    while pos < size:
        end = min(size, pos + chunk)
        data = reader.read(pos, end - pos)
        idx = data.find(needle)
        while idx != -1:
            yield pos + idx
            idx = data.find(needle, idx + 1)
        if end >= size:
            break
        pos = end - overlap
