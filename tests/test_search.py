from __future__ import annotations

from pathlib import Path

import pytest

from grepnav.core.io import BytesReader, PagedReader
from grepnav.core.search import find_bytes, iter_matches, rfind_bytes


def test_find_bytes_basic(tmp_path: Path) -> None:
    data = bytearray(b"hello world\x00\x01\x02DEADBEEFtrail")
    p = tmp_path / "data.bin"
    p.write_bytes(data)
    with PagedReader(str(p)) as r:
        assert find_bytes(r, b"DEADBEEF", 0) == data.index(b"DEADBEEF")
        assert find_bytes(r, b"NOPE", 0) is None
        # start past the only match
        assert find_bytes(r, b"DEADBEEF", data.index(b"DEADBEEF") + 1) is None


@pytest.mark.parametrize("use_mmap", [True, False])
def test_find_bytes_boundary(tmp_path: Path, use_mmap: bool) -> None:
    # Needle crosses a 64k boundary
    chunk = 64 * 1024
    buf = bytearray(b"A" * (chunk + 10))
    needle = b"XYZW"
    start = chunk - 2
    buf[start : start + len(needle)] = needle
    p = tmp_path / "boundary.bin"
    p.write_bytes(buf)
    with PagedReader(str(p), use_mmap=use_mmap) as r:
        assert find_bytes(r, needle, 0) == start
        assert rfind_bytes(r, needle, r.size) == start


def test_partial_match_at_eof_is_ignored() -> None:
    r = BytesReader(b"xxERR")
    assert find_bytes(r, b"ERROR", 0) is None
    assert rfind_bytes(r, b"ERROR", r.size) is None
    assert list(iter_matches(r, b"ERROR")) == []


def test_rfind_bytes_strictly_before_end() -> None:
    r = BytesReader(b"abcXabcXabc")
    assert rfind_bytes(r, b"abc", 11) == 8
    assert rfind_bytes(r, b"abc", 9) == 8
    assert rfind_bytes(r, b"abc", 8) == 4
    # match may run past `end`
    assert rfind_bytes(r, b"abc", 5) == 4
    assert rfind_bytes(r, b"abc", 1) == 0
    assert rfind_bytes(r, b"abc", 0) is None


def test_rfind_bytes_small_chunks_cross_boundary() -> None:
    buf = bytearray(b"A" * 50)
    buf[15:19] = b"XYZW"
    r = BytesReader(bytes(buf))
    assert rfind_bytes(r, b"XYZW", 50, chunk_size=8) == 15
    assert rfind_bytes(r, b"XYZW", 15, chunk_size=8) is None
    assert find_bytes(r, b"XYZW", 0, chunk_size=8) == 15


def test_iter_matches_overlapping_across_chunks() -> None:
    r = BytesReader(b"a" * 10)
    assert list(iter_matches(r, b"aa", chunk_size=4)) == list(range(9))
    assert list(iter_matches(r, b"aa", 7, chunk_size=4)) == [7, 8]


def test_iter_matches_file(tmp_path: Path) -> None:
    p = tmp_path / "log.txt"
    body = b"".join(b"line %d ERROR\n" % i for i in range(5000))
    p.write_bytes(body)
    expected = []
    i = body.find(b"ERROR")
    while i != -1:
        expected.append(i)
        i = body.find(b"ERROR", i + 1)
    with PagedReader(str(p), use_mmap=False, page_size=4096) as r:
        assert list(iter_matches(r, b"ERROR", chunk_size=1000)) == expected


def test_empty_needle_rejected_for_reverse_scans() -> None:
    r = BytesReader(b"abc")
    with pytest.raises(ValueError):
        rfind_bytes(r, b"", 3)
    with pytest.raises(ValueError):
        list(iter_matches(r, b""))
