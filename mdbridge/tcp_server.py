"""TCP server broadcasting length-prefixed frames to every connected client."""

from __future__ import annotations

import socket
import struct
import sys
import threading

_LENGTH = struct.Struct("!I")
_BACKLOG = 10
_ACCEPT_POLL_SECONDS = 0.2


class TcpServer:
    """Listening socket whose clients each receive every broadcast frame."""

    def __init__(self, ip: str, port: int) -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self._sock.bind((ip, port))
        except (OSError, UnicodeError) as exc:
            self._sock.close()
            raise OSError(f"TCP bind failed: {exc}") from exc
        try:
            self._sock.listen(_BACKLOG)
        except OSError as exc:
            self._sock.close()
            raise OSError(f"TCP listen failed: {exc}") from exc

        self._clients: list[socket.socket] = []
        self._lock = threading.Lock()
        self._running = False
        self._closed = False
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        """The address the server listens on."""
        return self._sock.getsockname()

    @property
    def client_count(self) -> int:
        """Number of currently connected clients."""
        with self._lock:
            return len(self._clients)

    def start(self) -> None:
        """Begin accepting clients on a background thread."""
        if self._closed:
            raise RuntimeError("TCP server is closed")
        if self._thread is not None:
            return
        self._running = True
        self._sock.settimeout(_ACCEPT_POLL_SECONDS)
        self._thread = threading.Thread(
            target=self._accept_loop, name="tcp-accept", daemon=True
        )
        self._thread.start()

    def _accept_loop(self) -> None:
        while self._running:
            try:
                client, (host, port) = self._sock.accept()
            except TimeoutError:
                continue
            except OSError:
                if not self._running:
                    break
                continue
            with self._lock:
                self._clients.append(client)
            print(f"[+] TCP client connected from {host}:{port}")

    def broadcast(self, data: bytes) -> None:
        """Send ``data`` with a 4-byte length prefix; drop clients that fail."""
        frame = _LENGTH.pack(len(data)) + bytes(data)
        with self._lock:
            alive = []
            for client in self._clients:
                try:
                    client.sendall(frame)
                except OSError:
                    print(
                        f"[-] TCP client disconnected, removing socket {client.fileno()}",
                        file=sys.stderr,
                    )
                    client.close()
                else:
                    alive.append(client)
            self._clients = alive

    def close(self) -> None:
        """Stop accepting, close every client and the listening socket."""
        if self._closed:
            return
        self._closed = True
        self._running = False
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        with self._lock:
            for client in self._clients:
                client.close()
            self._clients = []
        self._sock.close()

    def __enter__(self) -> TcpServer:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()