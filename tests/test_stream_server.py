import http.client
import io
import json
import logging
import threading

import pytest

from overlay import OverlayReader
from serving import ServerConfig, StreamServer

BASE = b'0123456789'


class BrokenRead(io.BytesIO):
    def read(self, size=-1):
        raise OSError("disk gone")


@pytest.fixture
def server():
    server = StreamServer(ServerConfig(port=0, chunk_size=4), logger=logging.getLogger('test-stream-server'))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture
def overlay(server):
    overlay = OverlayReader(io.BytesIO(BASE))
    overlay.modify(2, b'XY')
    overlay.modify(3, b'Q')
    overlay.modify(20, b'tail')
    server.registry.add('movie', overlay, 'movie.mkv')
    return overlay


def request(server, path, method='GET', headers=None):
    host, port = server.server_address[:2]
    connection = http.client.HTTPConnection(host, port, timeout=5)
    connection.request(method, path, headers=headers or {})
    return connection, connection.getresponse()


def test_full_body(server, overlay):
    connection, response = request(server, '/stream?id=movie')
    body = response.read()
    connection.close()
    assert response.status == 200
    assert body == b'01XQ456789' + bytes(10) + b'tail'
    assert response.getheader('Content-Length') == '24'
    assert response.getheader('Accept-Ranges') == 'bytes'
    assert response.getheader('Content-Disposition') == 'attachment; filename=movie.mkv'
    assert response.getheader('Access-Control-Allow-Origin') == '*'
    assert response.getheader('Cache-Control') == 'no-cache, no-store, must-revalidate, max-age=0'


def test_partial_body(server, overlay):
    connection, response = request(server, '/stream?id=movie', headers={'Range': 'bytes=1-4'})
    body = response.read()
    connection.close()
    assert response.status == 206
    assert response.getheader('Content-Range') == 'bytes 1-4/24'
    assert body == b'1XQ4'


def test_range_inside_hole_and_tail(server, overlay):
    connection, response = request(server, '/stream?id=movie', headers={'Range': 'bytes=-6'})
    body = response.read()
    connection.close()
    assert response.status == 206
    assert response.getheader('Content-Range') == 'bytes 18-23/24'
    assert body == bytes(2) + b'tail'


def test_growth_is_visible_to_next_request(server, overlay):
    overlay.modify(30, b'!')
    connection, response = request(server, '/stream?id=movie', headers={'Range': 'bytes=24-'})
    body = response.read()
    connection.close()
    assert response.status == 206
    assert response.getheader('Content-Range') == 'bytes 24-30/31'
    assert body == bytes(6) + b'!'


def test_unsatisfiable_range(server, overlay):
    connection, response = request(server, '/stream?id=movie', headers={'Range': 'bytes=24-'})
    response.read()
    connection.close()
    assert response.status == 416
    assert response.getheader('Content-Range') == 'bytes */24'


def test_head_sends_no_body(server, overlay):
    connection, response = request(server, '/stream?id=movie', method='HEAD')
    assert response.read() == b''
    connection.close()
    assert response.status == 200
    assert response.getheader('Content-Length') == '24'


def test_unknown_id(server, overlay):
    connection, response = request(server, '/stream?id=nope')
    body = response.read()
    connection.close()
    assert response.status == 404
    assert json.loads(body) == {'message': 'File not found'}


def test_unknown_path(server, overlay):
    connection, response = request(server, '/list')
    response.read()
    connection.close()
    assert response.status == 404


def test_base_failure_aborts_body(server):
    server.registry.add('broken', OverlayReader(BrokenRead(BASE)), 'broken.bin')
    connection, response = request(server, '/stream?id=broken')
    assert response.status == 200
    with pytest.raises(http.client.IncompleteRead):
        response.read()
    connection.close()


def test_registry_remove(server, overlay):
    assert server.registry.ids() == ['movie']
    assert server.registry.remove('movie')
    assert not server.registry.remove('movie')
    connection, response = request(server, '/stream?id=movie')
    response.read()
    connection.close()
    assert response.status == 404


def test_closed_base_aborts_body(server):
    base = io.BytesIO(BASE)
    server.registry.add('closed', OverlayReader(base), 'closed.bin')
    base.close()
    connection, response = request(server, '/stream?id=closed')
    assert response.status == 200
    with pytest.raises(http.client.IncompleteRead):
        response.read()
    connection.close()
