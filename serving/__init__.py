from serving.byte_range import ByteRange, RangeNotSatisfiable, parse_range
from serving.configuration import ServerConfig, load_config
from serving.registry import Entry, OverlayRegistry
from serving.stream_server import StreamServer, serve_overlay
