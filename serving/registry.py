import dataclasses
import threading

from overlay import OverlayReader


@dataclasses.dataclass(frozen=True)
class Entry:
    io: OverlayReader
    name: str


class OverlayRegistry:
    """
    Overlays that can be streamed, keyed by id
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, Entry] = {}

    def add(self, uid: str, overlay: OverlayReader, name: str) -> Entry:
        entry = Entry(overlay, name)
        with self._lock:
            self._entries[uid] = entry
        return entry

    def get(self, uid: str) -> Entry | None:
        with self._lock:
            return self._entries.get(uid)

    def remove(self, uid: str) -> bool:
        with self._lock:
            return self._entries.pop(uid, None) is not None

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._entries)
