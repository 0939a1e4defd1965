import stat
from dataclasses import dataclass
from email.utils import formatdate
from typing import Optional

from aiohttp import hdrs


@dataclass(frozen=True)
class FileMetadata:
    size: int
    mtime: float
    is_dir: bool = False

    @classmethod
    def from_stat(cls, st):
        return cls(size=st.st_size, mtime=st.st_mtime, is_dir=stat.S_ISDIR(st.st_mode))


@dataclass(frozen=True)
class Validator:
    etag: str
    last_modified: str

    @classmethod
    def of(cls, meta):
        return cls(
            etag=f'W/"{meta.size}-{int(meta.mtime * 1000)}"',
            last_modified=formatdate(meta.mtime, usegmt=True),
        )


@dataclass(frozen=True)
class Negotiation:
    status: int
    validator: Validator
    start: int = 0
    end: int = -1  # inclusive
    content_range: Optional[str] = None

    @property
    def length(self):
        return max(self.end - self.start + 1, 0)

    @property
    def has_body(self):
        return self.status in (200, 206)


def parse_range(header, size):
    """Parse ``bytes=<start>-<end>`` into an inclusive ``(start, end)`` pair.

    A missing end runs to the end of the file and a missing start means 0;
    suffix ranges are not supported. Returns None when the header is
    malformed or either bound lies outside a file of ``size`` bytes.
    """
    unit, _, ranges = header.strip().partition("=")
    if unit.strip().lower() != "bytes" or "," in ranges:
        return None
    first, sep, last = ranges.partition("-")
    if not sep:
        return None
    try:
        start = int(first) if first.strip() else 0
        end = int(last) if last.strip() else size - 1
    except ValueError:
        return None
    if start >= size or end >= size or start > end:
        return None
    return start, end


def negotiate(meta, headers):
    validator = Validator.of(meta)

    if headers.get(hdrs.IF_NONE_MATCH) == validator.etag:
        return Negotiation(304, validator)

    header = headers.get(hdrs.RANGE)
    if not header:
        return Negotiation(200, validator, 0, meta.size - 1)

    window = parse_range(header, meta.size)
    if window is None:
        return Negotiation(416, validator, content_range=f"bytes */{meta.size}")
    start, end = window
    return Negotiation(206, validator, start, end, content_range=f"bytes {start}-{end}/{meta.size}")
