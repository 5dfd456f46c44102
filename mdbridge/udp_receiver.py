"""Receiver joined to a UDP multicast group."""

from __future__ import annotations

import socket
import struct
import sys

_ANY_INTERFACE = struct.pack("!I", socket.INADDR_ANY)


class UdpReceiver:
    """UDP socket bound to a port and joined to a multicast group."""

    def __init__(self, group: str, port: int) -> None:
        self.group = group
        self.port = port
        self._membership: bytes | None = None
        self._sock: socket.socket | None = socket.socket(
            socket.AF_INET, socket.SOCK_DGRAM
        )
        try:
            self._join(group, port)
        except OSError:
            self._sock.close()
            self._sock = None
            raise
        print(f"[UDP] Ready to receive packets on group {group}, port {port}")

    def _join(self, group: str, port: int) -> None:
        assert self._sock is not None
        try:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            raise OSError("setsockopt(SO_REUSEADDR) failed") from exc
        try:
            self._sock.bind(("0.0.0.0", port))
        except OSError as exc:
            raise OSError("UDP bind failed") from exc
        try:
            membership = socket.inet_aton(group) + _ANY_INTERFACE
            self._sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
        except OSError as exc:
            raise OSError("UDP group join failed") from exc
        self._membership = membership

    def receive(self, buffer_size: int) -> bytes:
        """Wait for one datagram and return at most ``buffer_size`` bytes of it."""
        if self._sock is None:
            raise OSError("UDP receive on closed socket")
        try:
            data, _ = self._sock.recvfrom(buffer_size)
        except OSError as exc:
            print(f"[UDP] recvfrom error: {exc}", file=sys.stderr)
            raise
        if data:
            print(f"[UDP] Received {len(data)} bytes")
        else:
            print("[UDP] Received 0 bytes (no data)")
        return data

    def close(self) -> None:
        """Leave the group and close the socket; safe to call more than once."""
        if self._sock is None:
            return
        if self._membership is not None:
            try:
                self._sock.setsockopt(
                    socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, self._membership
                )
            except OSError:
                pass
            self._membership = None
        self._sock.close()
        self._sock = None

    def __enter__(self) -> UdpReceiver:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()