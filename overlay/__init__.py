from overlay.errors import OverlayError, ConstructionError, InvalidSeekError, UnderlyingIOError
from overlay.modification import Modification
from overlay.overlay_reader import OverlayReader
