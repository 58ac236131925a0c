class OverlayError(Exception):
    """
    Base class for errors raised by an overlay reader
    """


class ConstructionError(OverlayError, OSError):
    """
    The base resource could not be measured (seek to end / seek to start failed)
    """


class InvalidSeekError(OverlayError, ValueError):
    """
    Unknown whence value or a seek that would land on a negative position
    """


class UnderlyingIOError(OverlayError, OSError):
    """
    The base resource failed while being read; the original error is chained as __cause__
    """
