"""Client that reads length-prefixed frames from a TCP server."""

from __future__ import annotations

import socket
import struct

_LENGTH = struct.Struct("!I")


class TcpReceiver:
    """TCP client reading frames prefixed with a 4-byte big-endian length."""

    def __init__(self, ip: str, port: int) -> None:
        self.server_ip = ip
        self.server_port = port
        self._sock: socket.socket | None = socket.socket(
            socket.AF_INET, socket.SOCK_STREAM
        )
        try:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            print(f"Warning: Failed to set SO_REUSEADDR: {exc}")
        try:
            socket.inet_pton(socket.AF_INET, ip)
        except OSError:
            self.close()
            raise ValueError(f"Invalid TCP server IP: {ip}") from None

    def connect(self) -> None:
        """Connect to the configured server."""
        if self._sock is None:
            raise RuntimeError("Socket is closed, cannot connect")
        try:
            self._sock.connect((self.server_ip, self.server_port))
        except OSError as exc:
            raise ConnectionError(
                f"TCP connect failed: {exc.strerror or exc}"
            ) from exc
        print(f"[*] Connected to TCP server {self.server_ip}:{self.server_port}")

    def _recv_exact(self, size: int, what: str, closed_message: str) -> bytes:
        assert self._sock is not None
        buffer = bytearray(size)
        view = memoryview(buffer)
        filled = 0
        while filled < size:
            try:
                count = self._sock.recv_into(view[filled:])
            except OSError as exc:
                raise OSError(
                    exc.errno, f"TCP receive error ({what}): {exc.strerror or exc}"
                ) from exc
            if count == 0:
                raise ConnectionError(closed_message)
            filled += count
        return bytes(buffer)

    def receive(self, max_size: int) -> bytes:
        """Read one frame; its length may not exceed ``max_size``."""
        if self._sock is None:
            raise RuntimeError("Attempted to receive on closed socket")

        (length,) = _LENGTH.unpack(
            self._recv_exact(_LENGTH.size, "length", "TCP connection closed by peer")
        )
        if length > max_size:
            raise ValueError(
                f"Incoming data length ({length}) exceeds buffer size ({max_size})"
            )
        data = self._recv_exact(
            length, "data", "TCP connection closed by peer during data receive"
        )
        print(f"[>] Received {len(data)} bytes from TCP server")
        return data

    def close(self) -> None:
        """Shut down and close the socket; safe to call more than once."""
        if self._sock is None:
            return
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()
        self._sock = None
        print("[*] TCP socket closed")

    def __enter__(self) -> TcpReceiver:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()