from __future__ import annotations

import logging
import os
from collections import OrderedDict
from contextlib import suppress
from typing import Protocol

from grepnav.core.errors import InvalidInput, IoFailure

try:
    import mmap as _mmap_mod  # type: ignore
except Exception:  # pragma: no cover - platform-specific
    _mmap_mod = None  # type: ignore

logger = logging.getLogger(__name__)


class InvalidOffset(InvalidInput):
    """Negative offset or length passed to a reader."""


class Reader(Protocol):
    """Read-only, offset-addressed view of a byte sequence."""

    @property
    def size(self) -> int: ...

    def read(self, offset: int, length: int) -> bytes: ...

    def close(self) -> None: ...

    def __enter__(self) -> Reader: ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


class ByteSource(Protocol):
    """Something that can hand out a fresh reader for one search call."""

    def open(self) -> Reader: ...


class PagedReader:
    """Reader over one file, opened for the span of a single search call.

    Slices come from a read-only mmap when one can be made, otherwise from
    fixed-size pages kept in a small LRU. The size is fixed at open time.
    """

    def __init__(
        self,
        path: str,
        *,
        page_size: int = 64 * 1024,
        cache_pages: int = 16,
        use_mmap: bool = True,
    ) -> None:
        if page_size <= 0:
            raise InvalidInput("page_size must be positive")
        if cache_pages <= 0:
            raise InvalidInput("cache_pages must be positive")

        self._path = path
        try:
            st = os.stat(path)
            self._fh = open(path, "rb", buffering=0)  # noqa: SIM115
        except FileNotFoundError as e:
            raise IoFailure(f"File not found: {path}") from e
        except OSError as e:
            raise IoFailure(f"Cannot open {path}: {e.strerror or e}") from e

        self._size = int(st.st_size)
        self._page_size = int(page_size)
        self._cache_limit = int(cache_pages)
        self._cache: OrderedDict[int, bytes] = OrderedDict()

        self._mmap = None
        if use_mmap and _mmap_mod is not None and self._size > 0:
            try:
                self._mmap = _mmap_mod.mmap(
                    self._fh.fileno(),
                    length=0,
                    access=_mmap_mod.ACCESS_READ,
                )
            except (OSError, ValueError) as e:
                logger.warning("mmap unavailable for %s (%s); using buffered reads", path, e)
                self._mmap = None

    def close(self) -> None:
        if getattr(self, "_mmap", None) is not None:
            with suppress(Exception):
                self._mmap.close()  # type: ignore[union-attr]
            self._mmap = None
        with suppress(Exception):
            self._fh.close()

    def __enter__(self) -> PagedReader:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def size(self) -> int:
        """File size in bytes, as of open."""
        return self._size

    @property
    def path(self) -> str:
        return self._path

    @property
    def mapped(self) -> bool:
        return self._mmap is not None

    def _page(self, index: int) -> bytes:
        cached = self._cache.get(index)
        if cached is not None:
            self._cache.move_to_end(index)
            return cached

        start = index * self._page_size
        try:
            self._fh.seek(start)
            data = self._fh.read(min(self._page_size, self._size - start))
        except OSError as e:
            raise IoFailure(f"Read failed for {self._path} at {start}: {e}") from e

        self._cache[index] = data
        if len(self._cache) > self._cache_limit:
            self._cache.popitem(last=False)
        return data

    def read(self, offset: int, length: int) -> bytes:
        """Bytes in ``[offset, offset + length)``, clipped to the end of the file.

        Negative arguments raise `InvalidOffset`; read errors raise `IoFailure`.
        """
        if offset < 0:
            raise InvalidOffset("offset must be >= 0")
        if length < 0:
            raise InvalidOffset("length must be >= 0")
        if length == 0 or offset >= self._size:
            return b""

        end = min(self._size, offset + length)
        if self._mmap is not None:
            try:
                return bytes(self._mmap[offset:end])  # type: ignore[index]
            except (OSError, ValueError) as e:
                raise IoFailure(f"Read failed for {self._path} at {offset}: {e}") from e

        first, last = offset // self._page_size, (end - 1) // self._page_size
        joined = b"".join(self._page(i) for i in range(first, last + 1))
        skip = offset - first * self._page_size
        return joined[skip : skip + (end - offset)]


class BytesReader:
    """In-memory reader with the same contract as `PagedReader`."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    def read(self, offset: int, length: int) -> bytes:
        if offset < 0:
            raise InvalidOffset("offset must be >= 0")
        if length < 0:
            raise InvalidOffset("length must be >= 0")
        return self._data[offset : offset + length]

    def close(self) -> None:
        pass

    def __enter__(self) -> BytesReader:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FileSource:
    """Byte source backed by a path; every `open()` sees the file as it is now."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        page_size: int = 64 * 1024,
        cache_pages: int = 16,
        use_mmap: bool = True,
    ) -> None:
        self.path = os.fspath(path)
        self._page_size = page_size
        self._cache_pages = cache_pages
        self._use_mmap = use_mmap

    def open(self) -> PagedReader:
        return PagedReader(
            self.path,
            page_size=self._page_size,
            cache_pages=self._cache_pages,
            use_mmap=self._use_mmap,
        )

    def __repr__(self) -> str:
        return f"FileSource({self.path!r})"


class BytesSource:
    """Byte source over an immutable in-memory buffer."""

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)

    def open(self) -> BytesReader:
        return BytesReader(self.data)

    def __repr__(self) -> str:
        return f"BytesSource(<{len(self.data)} bytes>)"
