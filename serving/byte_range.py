import dataclasses
import re

_RANGE_SPEC = re.compile(r'^(\d*)-(\d*)$')


class RangeNotSatisfiable(ValueError):
    pass


@dataclasses.dataclass(frozen=True)
class ByteRange:
    start: int
    end: int  # inclusive, as in the Content-Range header

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f'bytes {self.start}-{self.end}/{size}'


def parse_range(header: str | None, size: int) -> ByteRange | None:
    """
    Parses a single range of a Range header against a content of the given size

    Returns None when the whole content should be sent: no header, a unit other than bytes
    or a multi range request. Raises RangeNotSatisfiable for malformed specs and ranges starting
    at or past the end of the content.
    """
    if not header:
        return None
    unit, sep, spec = header.partition('=')
    if not sep or unit.strip().casefold() != 'bytes':
        return None
    if ',' in spec:
        return None

    match = _RANGE_SPEC.match(spec.strip())
    if match is None:
        raise RangeNotSatisfiable(f"Malformed range: {header}")
    first, last = match.groups()

    if not first:
        if not last:
            raise RangeNotSatisfiable(f"Malformed range: {header}")
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise RangeNotSatisfiable(f"Empty suffix range: {header}")
        return ByteRange(max(size - suffix, 0), size - 1)

    start = int(first)
    if start >= size:
        raise RangeNotSatisfiable(f"Range starts past the end ({size}): {header}")
    end = size - 1 if not last else min(int(last), size - 1)
    if end < start:
        raise RangeNotSatisfiable(f"Range ends before it starts: {header}")
    return ByteRange(start, end)
