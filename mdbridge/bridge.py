"""Bridge from a UDP multicast feed to TCP clients."""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from mdbridge.structures import Header, IndexData, MarketWatchData, RequestType
from mdbridge.tcp_server import TcpServer
from mdbridge.udp_receiver import UdpReceiver

DEFAULT_CONFIG_PATH = "config.json"
BUFFER_SIZE = 2048

_PAYLOAD_SIZES = {
    RequestType.INDEXUPDATE: IndexData.SIZE,
    RequestType.UPDATE: MarketWatchData.SIZE,
}


@dataclass(frozen=True)
class BridgeConfig:
    """Multicast group to listen on and TCP address to serve from."""

    udp_multicast_group: str
    udp_port: int
    tcp_server_ip: str
    tcp_server_port: int


def _field(raw: Mapping[str, Any], name: str, kind: type) -> Any:
    if name not in raw:
        raise ValueError(f"Missing required configuration field: {name}")
    value = raw[name]
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ValueError(f"Configuration field {name} must be {kind.__name__}")
    return value


def load_bridge_config(path: str | os.PathLike[str]) -> BridgeConfig:
    """Read and validate the bridge's JSON configuration file."""
    try:
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)
    except OSError as exc:
        raise OSError("Cannot open config file") from exc
    if not isinstance(raw, dict):
        raise ValueError("Configuration must be a JSON object")
    return BridgeConfig(
        udp_multicast_group=_field(raw, "udp_multicast_group", str),
        udp_port=_field(raw, "udp_port", int),
        tcp_server_ip=_field(raw, "tcp_server_ip", str),
        tcp_server_port=_field(raw, "tcp_server_port", int),
    )


def should_forward(packet: bytes) -> bool:
    """Tell whether a datagram is a complete index or market watch update."""
    if len(packet) <= Header.SIZE:
        print(f"[UDP] Received packet too small: {len(packet)} bytes", file=sys.stderr)
        return False
    header = Header.unpack(packet)
    # The total is kept to 16 bits, as the wire header's size field is.
    expected_total = (Header.SIZE + header.size) & 0xFFFF
    if len(packet) != expected_total:
        print(
            f"[UDP] Header size mismatch: header._size = {header.size}, "
            f"expected total = {expected_total}, but received {len(packet)} bytes.",
            file=sys.stderr,
        )
        return False
    return _PAYLOAD_SIZES.get(header.type) == header.size


class Bridge:
    """Relays valid multicast updates to every connected TCP client."""

    def __init__(self, udp: UdpReceiver, tcp: TcpServer) -> None:
        self._udp = udp
        self._tcp = tcp
        self._closed = False

    @classmethod
    def from_config(cls, config: BridgeConfig) -> Bridge:
        """Open the sockets named by ``config`` and start accepting clients."""
        udp = UdpReceiver(config.udp_multicast_group, config.udp_port)
        try:
            tcp = TcpServer(config.tcp_server_ip, config.tcp_server_port)
        except OSError:
            udp.close()
            raise
        tcp.start()
        return cls(udp, tcp)

    def handle_packet(self, packet: bytes) -> bool:
        """Broadcast ``packet`` if it should be forwarded; report whether it was."""
        if not should_forward(packet):
            return False
        self._tcp.broadcast(packet)
        return True

    def run(self) -> None:
        """Receive and relay datagrams until the bridge is closed."""
        while not self._closed:
            try:
                packet = self._udp.receive(BUFFER_SIZE)
            except OSError:
                if self._closed:
                    break
                continue
            self.handle_packet(packet)

    def close(self) -> None:
        """Stop the bridge and release both sockets."""
        if self._closed:
            return
        self._closed = True
        self._udp.close()
        self._tcp.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the multicast-to-TCP bridge."""
    parser = argparse.ArgumentParser(
        prog="mdbridge-serve",
        description="Relay multicast market data updates to TCP clients.",
    )
    parser.add_argument(
        "config", nargs="?", default=DEFAULT_CONFIG_PATH, help="JSON configuration file"
    )
    args = parser.parse_args(argv)

    try:
        bridge = Bridge.from_config(load_bridge_config(args.config))
    except (OSError, ValueError) as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1
    try:
        bridge.run()
    except KeyboardInterrupt:
        pass
    finally:
        bridge.close()
    return 0