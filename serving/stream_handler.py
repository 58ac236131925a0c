import json
import urllib.parse
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler

from overlay import OverlayReader, UnderlyingIOError
from serving.byte_range import RangeNotSatisfiable, parse_range


class StreamHandler(BaseHTTPRequestHandler):
    """
    Serves registered overlays on /stream?id=<id>, honouring single byte ranges
    """
    __STREAM_PATH__ = '/stream'

    def do_GET(self):
        self._stream(send_body=True)

    def do_HEAD(self):
        self._stream(send_body=False)

    def log_message(self, format, *args):
        self.server.logger.info(f"{self.address_string()} - {format % args}")

    def _respond(self, message: str, status: HTTPStatus):
        body = json.dumps({'message': message}).encode()
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        if self.command != 'HEAD':
            self.wfile.write(body)

    def _stream(self, send_body: bool):
        parsed_url = urllib.parse.urlparse(self.path)
        if parsed_url.path != self.__STREAM_PATH__:
            self._respond('Not found', HTTPStatus.NOT_FOUND)
            return
        uid = urllib.parse.parse_qs(parsed_url.query).get('id', [''])[0]
        entry = self.server.registry.get(uid)
        if entry is None:
            self._respond('File not found', HTTPStatus.NOT_FOUND)
            return

        size = entry.io.virtual_size
        try:
            byte_range = parse_range(self.headers.get('Range'), size)
        except RangeNotSatisfiable as e:
            self.server.logger.info(f"{uid} - {e}")
            self.send_response(HTTPStatus.REQUESTED_RANGE_NOT_SATISFIABLE)
            self.send_header('Content-Range', f'bytes */{size}')
            self.send_header('Content-Length', '0')
            self.end_headers()
            return

        if byte_range is None:
            self.send_response(HTTPStatus.OK)
            start, length = 0, size
        else:
            self.send_response(HTTPStatus.PARTIAL_CONTENT)
            self.send_header('Content-Range', byte_range.content_range(size))
            start, length = byte_range.start, byte_range.length
        self.send_header('Content-Type', 'application/octet-stream')
        self.send_header('Content-Length', str(length))
        self.send_header('Accept-Ranges', 'bytes')
        self.send_header('Expires', '0')
        self.send_header('Cache-Control', 'no-cache, no-store, must-revalidate, max-age=0')
        self.send_header('Content-Disposition', f'attachment; filename={entry.name}')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()

        if send_body:
            self._copy_body(uid, entry.io, start, length)

    def _copy_body(self, uid: str, overlay: OverlayReader, start: int, length: int):
        """
        Copies [start, start + length) of the overlay to the client in chunk_size pieces

        Headers are already out, so a failure can only abort the connection.
        """
        offset, bytes_left = start, length
        while bytes_left:
            try:
                chunk = overlay.read_at(offset, min(bytes_left, self.server.config.chunk_size))
            except UnderlyingIOError as e:
                self.server.logger.error(f"{uid} - aborted at {offset}: {e}")
                self.close_connection = True
                return
            if not chunk:
                self.server.logger.error(f"{uid} - short body, {bytes_left} bytes missing at {offset}")
                self.close_connection = True
                return
            try:
                self.wfile.write(chunk)
            except (BrokenPipeError, ConnectionResetError):
                self.server.logger.info(f"{uid} - client went away at {offset}")
                self.close_connection = True
                return
            offset += len(chunk)
            bytes_left -= len(chunk)
