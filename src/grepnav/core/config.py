"""Navigator configuration.

Profiles only tune how bytes are read and decoded (chunk sizes, mmap, text
encoding) and the initial wrap setting. They never change which offsets match.
"""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, fields, replace
from typing import Any

import yaml

from grepnav.core.errors import InvalidInput, IoFailure


@dataclass(frozen=True)
class NavigatorConfig:
    """Configuration for a Navigator.

    Attributes:
        chunk_size: Bytes scanned per read when searching and indexing lines
        page_size: Page size of the buffered (non-mmap) file reader
        cache_pages: Number of pages kept in the buffered reader's LRU cache
        use_mmap: Map files into memory when the platform allows it
        encoding: Encoding used for str patterns and for decoding line text
        errors: Codec error handler used when decoding line text
        wrap: Initial wrap setting for new navigators
    """

    chunk_size: int = 64 * 1024
    page_size: int = 64 * 1024
    cache_pages: int = 16
    use_mmap: bool = True
    encoding: str = "utf-8"
    errors: str = "replace"
    wrap: bool = False

    def __post_init__(self) -> None:
        for name in ("chunk_size", "page_size", "cache_pages"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidInput(f"{name} must be a positive integer")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise InvalidInput(f"unknown encoding '{self.encoding}'") from None
        try:
            codecs.lookup_error(self.errors)
        except LookupError:
            raise InvalidInput(f"unknown error handler '{self.errors}'") from None


# ============================================================================
# PROFILE DEFINITIONS
# ============================================================================

DEFAULT_PROFILE = NavigatorConfig()

LARGE_PROFILE = NavigatorConfig(
    chunk_size=1024 * 1024,  # Fewer reads on multi-GB logs
    page_size=1024 * 1024,
    cache_pages=8,
)

BUFFERED_PROFILE = NavigatorConfig(
    use_mmap=False,  # Network filesystems and files that may be truncated underneath us
)

PROFILES = {
    "default": DEFAULT_PROFILE,
    "large": LARGE_PROFILE,
    "buffered": BUFFERED_PROFILE,
}


def get_profile(name: str) -> NavigatorConfig:
    """Get a configuration profile by name.

    Raises:
        KeyError: If profile name not found
    """
    return PROFILES[name]


_BOOL_KEYS = {"use_mmap", "wrap"}
_STR_KEYS = {"encoding", "errors"}


def load_config(text: str) -> NavigatorConfig:
    """Build a NavigatorConfig from YAML text.

    An optional ``profile`` key selects the base profile; the remaining keys
    override its fields.
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise InvalidInput(f"YAML parse error: {e}") from None

    if not isinstance(data, dict):
        raise InvalidInput("Top-level YAML must be a mapping")

    data = dict(data)
    profile_name = data.pop("profile", "default")
    try:
        base = get_profile(str(profile_name))
    except KeyError:
        raise InvalidInput(
            f"unknown profile '{profile_name}' (expected one of: {', '.join(PROFILES)})"
        ) from None

    known = {f.name for f in fields(NavigatorConfig)}
    errors: list[str] = []
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            errors.append(f"unknown key '{key}'")
        elif key in _BOOL_KEYS and not isinstance(value, bool):
            errors.append(f"{key} must be true or false")
        elif key in _STR_KEYS and not isinstance(value, str):
            errors.append(f"{key} must be a string")
        else:
            overrides[key] = value
    if errors:
        raise InvalidInput("; ".join(errors))

    return replace(base, **overrides)


def load_config_file(path: str | os.PathLike[str]) -> NavigatorConfig:
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as e:
        raise IoFailure(f"Cannot read config {os.fspath(path)}: {e.strerror or e}") from e
    return load_config(text)
