import socket

import pytest

from mdbridge.udp_receiver import UdpReceiver

REAL_INET_ATON = socket.inet_aton


class FakeSocket:
    instances = []

    def __init__(self, family, kind, *args):
        self.family = family
        self.kind = kind
        self.options = []
        self.bound = None
        self.closed = False
        self.datagrams = []
        FakeSocket.instances.append(self)

    def setsockopt(self, level, option, value):
        self.options.append((level, option, value))

    def bind(self, address):
        self.bound = address

    def recvfrom(self, size):
        item = self.datagrams.pop(0)
        if isinstance(item, Exception):
            raise item
        return item[:size], ("127.0.0.1", 4000)

    def close(self):
        self.closed = True


class FailingBindSocket(FakeSocket):
    def bind(self, address):
        raise OSError("address in use")


@pytest.fixture
def fake_socket(monkeypatch):
    FakeSocket.instances = []
    monkeypatch.setattr(socket, "socket", FakeSocket)
    return FakeSocket


def _membership(group):
    return REAL_INET_ATON(group) + REAL_INET_ATON("0.0.0.0")


def test_joins_group_on_any_interface(fake_socket, capsys):
    receiver = UdpReceiver("239.1.1.1", 5000)
    sock = fake_socket.instances[-1]

    assert sock.family == socket.AF_INET
    assert sock.kind == socket.SOCK_DGRAM
    assert sock.bound == ("0.0.0.0", 5000)
    assert (socket.SOL_SOCKET, socket.SO_REUSEADDR, 1) in sock.options
    assert (
        socket.IPPROTO_IP,
        socket.IP_ADD_MEMBERSHIP,
        _membership("239.1.1.1"),
    ) in sock.options
    assert "Ready to receive packets on group 239.1.1.1, port 5000" in capsys.readouterr().out
    receiver.close()


def test_receive_returns_datagram(fake_socket, capsys):
    receiver = UdpReceiver("239.1.1.1", 5000)
    fake_socket.instances[-1].datagrams.append(b"payload")

    assert receiver.receive(2048) == b"payload"
    assert "[UDP] Received 7 bytes" in capsys.readouterr().out


def test_receive_truncates_to_buffer_size(fake_socket):
    receiver = UdpReceiver("239.1.1.1", 5000)
    fake_socket.instances[-1].datagrams.append(b"abcdef")

    assert receiver.receive(3) == b"abc"


def test_receive_reports_empty_datagram(fake_socket, capsys):
    receiver = UdpReceiver("239.1.1.1", 5000)
    fake_socket.instances[-1].datagrams.append(b"")

    assert receiver.receive(2048) == b""
    assert "Received 0 bytes (no data)" in capsys.readouterr().out


def test_receive_error_is_raised(fake_socket, capsys):
    receiver = UdpReceiver("239.1.1.1", 5000)
    fake_socket.instances[-1].datagrams.append(OSError("boom"))

    with pytest.raises(OSError, match="boom"):
        receiver.receive(2048)
    assert "recvfrom error" in capsys.readouterr().err


def test_close_leaves_group_and_closes(fake_socket):
    with UdpReceiver("239.1.1.1", 5000) as receiver:
        pass
    sock = fake_socket.instances[-1]

    assert sock.closed
    assert (
        socket.IPPROTO_IP,
        socket.IP_DROP_MEMBERSHIP,
        _membership("239.1.1.1"),
    ) in sock.options
    with pytest.raises(OSError, match="closed"):
        receiver.receive(2048)


def test_receive_after_close_raises(fake_socket):
    receiver = UdpReceiver("239.1.1.1", 5000)
    receiver.close()
    receiver.close()
    with pytest.raises(OSError, match="closed"):
        receiver.receive(2048)


def test_invalid_group_fails_to_join(fake_socket):
    with pytest.raises(OSError, match="UDP group join failed"):
        UdpReceiver("not-an-ip", 5000)
    assert fake_socket.instances[-1].closed


def test_bind_failure(monkeypatch):
    FakeSocket.instances = []
    monkeypatch.setattr(socket, "socket", FailingBindSocket)
    with pytest.raises(OSError, match="UDP bind failed"):
        UdpReceiver("239.1.1.1", 5000)
    assert FakeSocket.instances[-1].closed