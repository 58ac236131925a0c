import io
import logging
import os
import threading
from typing import BinaryIO

from overlay.errors import ConstructionError, InvalidSeekError, UnderlyingIOError
from overlay.modification import Modification


class OverlayReader(io.RawIOBase):
    """
    A read-only, seekable view of a base resource with byte-range modifications applied on top

    The base resource is never written, closed or re-measured. Every modification is appended to a log,
    reads resolve each position to the most recently appended modification covering it, then to the base
    resource, and finally to zeros for the gap between the base end and a modification past it.
    """

    def __init__(self, base: BinaryIO, logger: logging.Logger | None = None):
        super().__init__()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._base: BinaryIO = base
        self._lock = threading.Lock()
        try:
            self._original_size: int = base.seek(0, os.SEEK_END)
            base.seek(0, os.SEEK_SET)
        except (OSError, ValueError, AttributeError) as e:
            raise ConstructionError(f"Cannot measure base resource: {e}") from e
        self._modifications: list[Modification] = []
        self._virtual_size: int = self._original_size
        self._position: int = 0
        self.logger.debug(f"Overlay created - original size: {self._original_size}")

    @property
    def original_size(self) -> int:
        return self._original_size

    @property
    def virtual_size(self) -> int:
        with self._lock:
            return self._virtual_size

    @property
    def modifications(self) -> tuple[Modification, ...]:
        """
        Snapshot of the modification log in append order
        """
        with self._lock:
            return tuple(self._modifications)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def _check_open(self):
        if self.closed:
            raise ValueError("I/O operation on closed overlay")

    def modify(self, offset: int, data: bytes):
        """
        Appends a modification, the newest one wins wherever it overlaps older ones

        Offsets past the current virtual size are allowed, the gap reads as zeros.
        """
        if offset < 0:
            raise ValueError(f"Negative modification offset: {offset}")
        modification = Modification(offset, bytes(data))
        with self._lock:
            self._check_open()
            self._modifications.append(modification)
            if modification.end > self._virtual_size:
                self._virtual_size = modification.end
            self.logger.debug(f"Modification {len(self._modifications)} - "
                              f"[{modification.offset}, {modification.end}) - "
                              f"virtual size: {self._virtual_size}")

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        with self._lock:
            self._check_open()
            match whence:
                case os.SEEK_SET:
                    position = offset
                case os.SEEK_CUR:
                    position = self._position + offset
                case os.SEEK_END:
                    position = self._virtual_size + offset
                case _:
                    raise InvalidSeekError(f"Invalid whence: {whence}")
            if position < 0:
                raise InvalidSeekError(f"Negative seek position: {position}")
            self._position = position
            return position

    def tell(self) -> int:
        with self._lock:
            self._check_open()
            return self._position

    def readinto(self, buffer) -> int:
        with self._lock:
            self._check_open()
            return self._readinto(memoryview(buffer).cast('B'))

    def read_at(self, offset: int, size: int) -> bytes:
        """
        Seeks to offset and reads up to size bytes as one step, so concurrent readers sharing
        the overlay cannot move the cursor in between

        A negative size reads to the end of the stream, as read(-1) does.
        """
        if offset < 0:
            raise InvalidSeekError(f"Negative seek position: {offset}")
        with self._lock:
            self._check_open()
            if size < 0:
                size = max(self._virtual_size - offset, 0)
            buffer = bytearray(size)
            self._position = offset
            count = self._readinto(memoryview(buffer))
        return bytes(buffer[:count])

    def _covering_modification(self, position: int) -> int | None:
        """
        Index of the most recently appended modification that contains position
        """
        for index in range(len(self._modifications) - 1, -1, -1):
            if self._modifications[index].covers(position):
                return index
        return None

    def _covered_until(self, index: int, position: int) -> int:
        """
        Where the modification at index stops winning: its end, or the start of a newer one inside it
        """
        modification = self._modifications[index]
        return min(
            (newer.offset for newer in self._modifications[index + 1:]
             if position < newer.offset < modification.end),
            default=modification.end
        )

    def _next_boundary(self, position: int) -> int:
        """
        Where the unmodified run starting at position ends
        """
        return min(
            (modification.offset for modification in self._modifications if modification.offset > position),
            default=self._virtual_size
        )

    def _readinto(self, view: memoryview) -> int:
        if self._position >= self._virtual_size:
            return 0
        bytes_to_read = min(len(view), self._virtual_size - self._position)

        total_read = 0
        while total_read < bytes_to_read:
            position = self._position
            bytes_left = bytes_to_read - total_read

            index = self._covering_modification(position)
            if index is not None:
                modification = self._modifications[index]
                start = position - modification.offset
                chunk_size = min(bytes_left, self._covered_until(index, position) - position)
                view[total_read:total_read + chunk_size] = modification.data[start:start + chunk_size]
                total_read += chunk_size
                self._position += chunk_size
                continue

            chunk_size = min(bytes_left, self._next_boundary(position) - position)
            if position >= self._original_size:
                # hole between the base end and a modification past it
                view[total_read:total_read + chunk_size] = bytes(chunk_size)
                total_read += chunk_size
                self._position += chunk_size
                continue

            chunk_size = min(chunk_size, self._original_size - position)
            try:
                self._base.seek(position)
                data = self._base.read(chunk_size)
            except (OSError, ValueError) as e:
                if total_read:
                    # hand out what is already copied, the next call hits the error again
                    self.logger.warning(f"Base resource read failed at {position}, "
                                        f"returning {total_read} bytes already copied: {e}")
                    break
                raise UnderlyingIOError(f"Base resource read failed at {position}: {e}") from e
            if not data:
                # base is shorter than measured at construction
                break
            view[total_read:total_read + len(data)] = data
            total_read += len(data)
            self._position += len(data)

        return total_read
