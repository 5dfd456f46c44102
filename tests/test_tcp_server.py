import socket
import struct
import time

import pytest

from mdbridge.tcp_server import TcpServer


def _wait_until(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def _recv_exact(sock, size):
    chunks = b""
    while len(chunks) < size:
        chunk = sock.recv(size - len(chunks))
        if not chunk:
            raise ConnectionError("closed")
        chunks += chunk
    return chunks


def _read_frame(sock):
    (length,) = struct.unpack("!I", _recv_exact(sock, 4))
    return _recv_exact(sock, length)


@pytest.fixture
def server():
    srv = TcpServer("127.0.0.1", 0)
    srv.start()
    yield srv
    srv.close()


def _connect(server):
    client = socket.create_connection(server.address, timeout=5)
    return client


def test_client_receives_length_prefixed_frame(server, capsys):
    client = _connect(server)
    assert _wait_until(lambda: server.client_count == 1)

    server.broadcast(b"hello")

    assert _read_frame(client) == b"hello"
    assert "[+] TCP client connected from 127.0.0.1:" in capsys.readouterr().out
    client.close()


def test_every_client_receives_broadcast(server):
    clients = [_connect(server) for _ in range(3)]
    assert _wait_until(lambda: server.client_count == 3)

    server.broadcast(b"first")
    server.broadcast(b"second")

    for client in clients:
        assert _read_frame(client) == b"first"
        assert _read_frame(client) == b"second"
        client.close()


def test_disconnected_client_is_removed(server, capsys):
    client = _connect(server)
    assert _wait_until(lambda: server.client_count == 1)
    client.close()

    def broadcast_and_check():
        server.broadcast(b"x" * 1024)
        return server.client_count == 0

    assert _wait_until(broadcast_and_check)
    assert "TCP client disconnected" in capsys.readouterr().err


def test_broadcast_without_clients_keeps_none(server):
    server.broadcast(b"nobody")
    assert server.client_count == 0


def test_close_stops_listening():
    with TcpServer("127.0.0.1", 0) as srv:
        srv.start()
        address = srv.address
    srv.close()
    with pytest.raises(OSError):
        socket.create_connection(address, timeout=1)


def test_start_after_close_is_rejected():
    srv = TcpServer("127.0.0.1", 0)
    srv.close()
    with pytest.raises(RuntimeError, match="closed"):
        srv.start()


def test_invalid_address_fails_to_bind():
    with pytest.raises(OSError, match="TCP bind failed"):
        TcpServer("256.1.1.1", 0)