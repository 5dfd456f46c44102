"""Sender that forwards datagrams to a UDP multicast group."""

from __future__ import annotations

import socket

_INADDR_NONE = b"\xff\xff\xff\xff"


class UdpSender:
    """UDP socket sending to a multicast group with a TTL of 1."""

    def __init__(self, group: str, port: int) -> None:
        self._sock: socket.socket | None = socket.socket(
            socket.AF_INET, socket.SOCK_DGRAM
        )
        try:
            self._sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 1)
        except OSError as exc:
            self.close()
            raise OSError(
                exc.errno, f"Failed to set multicast TTL: {exc.strerror or exc}"
            ) from exc

        try:
            packed = socket.inet_aton(group)
        except OSError:
            packed = _INADDR_NONE
        if packed == _INADDR_NONE:
            self.close()
            raise ValueError(f"Invalid multicast group address: {group}")

        self.address = (socket.inet_ntoa(packed), port)
        print(f"[*] UDP multicast setup for {group}:{port}")

    def send(self, data: bytes) -> None:
        """Send one datagram to the group."""
        if self._sock is None:
            raise OSError("UDP sendto failed: socket is closed")
        try:
            self._sock.sendto(data, self.address)
        except OSError as exc:
            raise OSError(
                exc.errno, f"UDP sendto failed: {exc.strerror or exc}"
            ) from exc
        print(f"[>] Forwarded {len(data)} bytes to UDP multicast")

    def close(self) -> None:
        """Close the socket; safe to call more than once."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> UdpSender:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()