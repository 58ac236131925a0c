import logging
from http.server import ThreadingHTTPServer
from typing import BinaryIO

from logger import Logger
from overlay import OverlayReader
from serving.configuration import ServerConfig
from serving.registry import OverlayRegistry
from serving.stream_handler import StreamHandler


class StreamServer(ThreadingHTTPServer):
    """
    Threaded HTTP server streaming the overlays of its registry
    """
    daemon_threads = True

    def __init__(self, config: ServerConfig, registry: OverlayRegistry | None = None,
                 logger: logging.Logger | None = None):
        self.config = config
        self.registry = registry if registry is not None else OverlayRegistry()
        self.logger = logger if logger is not None else Logger().get(config.log_file, 'serving', config.log_level)
        super().__init__((config.host, config.port), StreamHandler)
        self.logger.info(f"Listening on {self.server_address[0]}:{self.server_address[1]}")

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f'http://{host}:{port}'


def serve_overlay(base: BinaryIO, name: str, patches: list[tuple[int, bytes]], config: ServerConfig):
    """
    Builds an overlay over base with patches applied in order and serves it as id 0 until interrupted
    """
    server = StreamServer(config)
    overlay = OverlayReader(base, logger=server.logger)
    for offset, data in patches:
        overlay.modify(offset, data)
    server.registry.add('0', overlay, name)
    server.logger.info(f"Serving {name} - {overlay.virtual_size} bytes - {server.url}/stream?id=0")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        server.logger.info("Interrupted")
    finally:
        server.server_close()
        overlay.close()
