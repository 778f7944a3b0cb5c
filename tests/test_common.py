import http.server
import os
import socket
import threading

import pytest

from trojanproxy import common
from trojanproxy.errors import TrojanError


def test_sha224_known_vector():
    assert common.sha224_string("abc") == (
        "23097d223405d8228642a477bda255b32aadbce4bda0b3f7e36c9da7"
    )


def test_sha224_shape():
    digest = common.sha224_string("password")
    assert len(digest) == 56
    assert digest == digest.lower()
    assert common.sha224_string("password") == digest


def test_human_friendly_bytes():
    assert common.human_friendly_traffic(512) == f"{512} B"
    assert common.human_friendly_traffic(common.KIB) == f"{common.KIB} B"


def test_human_friendly_units():
    assert common.human_friendly_traffic(common.KIB + 1).endswith(" KiB")
    assert common.human_friendly_traffic(2 * common.MIB) == "2.00 MiB"
    assert common.human_friendly_traffic(3 * common.GIB) == "3.00 GiB"


def test_asset_location_absolute_is_unchanged(tmp_path):
    path = str(tmp_path / "geoip.dat")
    assert common.get_asset_location(path) == path


def test_asset_location_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv(common.ASSET_LOCATION_ENV, str(tmp_path))
    assert common.get_asset_location("geosite.dat") == os.path.join(str(tmp_path), "geosite.dat")


def test_asset_location_defaults_to_program_dir(monkeypatch):
    monkeypatch.delenv(common.ASSET_LOCATION_ENV, raising=False)
    result = common.get_asset_location("geoip.dat")
    assert result == os.path.join(common.get_program_dir(), "geoip.dat")
    assert os.path.isabs(result)


@pytest.mark.parametrize("network,kind", [("tcp", socket.SOCK_STREAM), ("udp", socket.SOCK_DGRAM)])
def test_pick_port_is_bindable(network, kind):
    port = common.pick_port(network, "127.0.0.1")
    assert 0 < port < 65536
    with socket.socket(socket.AF_INET, kind) as sock:
        sock.bind(("127.0.0.1", port))
        assert sock.getsockname()[1] == port


def test_pick_port_unknown_network():
    assert common.pick_port("sctp", "127.0.0.1") == 0


class _ChunkWriter:
    def __init__(self):
        self.chunks = []

    def write(self, data):
        piece = bytes(data[:3])
        self.chunks.append(piece)
        return len(piece)


def test_write_all_bytes_handles_partial_writes():
    writer = _ChunkWriter()
    common.write_all_bytes(writer, b"abcdefgh")
    assert b"".join(writer.chunks) == b"abcdefgh"
    assert all(len(chunk) <= 3 for chunk in writer.chunks)


def test_write_file_round_trip(tmp_path):
    path = tmp_path / "out.bin"
    common.write_file(str(path), b"\x00\x01payload")
    assert path.read_bytes() == b"\x00\x01payload"


def test_fetch_rejects_scheme():
    with pytest.raises(TrojanError, match="invalid scheme"):
        common.fetch_http_content("ftp://localhost/file")


class _Handler(http.server.BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == "/ok":
            body = b"content"
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        else:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()

    def log_message(self, *args):
        pass


@pytest.fixture
def http_server():
    server = http.server.HTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def test_fetch_ok(http_server):
    assert common.fetch_http_content(http_server + "/ok") == b"content"


def test_fetch_bad_status(http_server):
    with pytest.raises(TrojanError, match="unexpected HTTP status code"):
        common.fetch_http_content(http_server + "/missing")


def test_fetch_unreachable():
    port = common.pick_port("tcp", "127.0.0.1")
    with pytest.raises(TrojanError, match="failed to dial"):
        common.fetch_http_content(f"http://127.0.0.1:{port}/")