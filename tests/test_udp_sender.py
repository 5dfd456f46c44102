import socket

import pytest

from mdbridge.udp_sender import UdpSender


@pytest.fixture
def rx():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2)
    yield sock
    sock.close()


def test_send_delivers_datagram(rx):
    port = rx.getsockname()[1]
    with UdpSender("127.0.0.1", port) as sender:
        assert sender.address == ("127.0.0.1", port)
        sender.send(b"payload-bytes")
        data, _ = rx.recvfrom(2048)
    assert data == b"payload-bytes"


def test_send_reports_forwarded_size(rx, capsys):
    with UdpSender("127.0.0.1", rx.getsockname()[1]) as sender:
        sender.send(b"abcd")
    out = capsys.readouterr().out
    assert "[>] Forwarded 4 bytes to UDP multicast" in out


def test_address_keeps_group_and_port():
    with UdpSender("239.1.2.3", 5000) as sender:
        assert sender.address == ("239.1.2.3", 5000)


def test_invalid_group_rejected():
    with pytest.raises(ValueError, match="Invalid multicast group address: nope"):
        UdpSender("nope", 5000)


def test_all_ones_address_rejected():
    with pytest.raises(ValueError, match="255.255.255.255"):
        UdpSender("255.255.255.255", 5000)


def test_send_after_close_fails(rx):
    sender = UdpSender("127.0.0.1", rx.getsockname()[1])
    sender.close()
    sender.close()
    with pytest.raises(OSError, match="UDP sendto failed"):
        sender.send(b"x")


def test_context_manager_closes(rx):
    with UdpSender("127.0.0.1", rx.getsockname()[1]) as sender:
        pass
    with pytest.raises(OSError):
        sender.send(b"x")