"""Forward frames from a TCP market data server to a UDP multicast group."""

from __future__ import annotations

import argparse
import json
import os
import signal
import sys
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from mdbridge.decoder import decode_and_print
from mdbridge.tcp_receiver import TcpReceiver
from mdbridge.udp_sender import UdpSender

DEFAULT_CONFIG_PATH = "../config/client_config.json"
BUFFER_SIZE = 2048

_REQUIRED_FIELDS = (
    "tcp_server_ip",
    "tcp_server_port",
    "udp_multicast_group",
    "udp_port",
)


@dataclass(frozen=True)
class ForwarderConfig:
    """Addresses of the TCP server to read from and the group to send to."""

    tcp_server_ip: str
    tcp_server_port: int
    udp_multicast_group: str
    udp_port: int


def _text_field(raw: Mapping[str, Any], name: str) -> str:
    value = raw[name]
    if not isinstance(value, str):
        raise ValueError(f"Configuration field {name} must be a string")
    return value


def _int_field(raw: Mapping[str, Any], name: str) -> int:
    value = raw[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Configuration field {name} must be an integer")
    return value


def load_config(path: str | os.PathLike[str]) -> ForwarderConfig:
    """Read and validate the forwarder's JSON configuration file."""
    try:
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)
    except OSError as exc:
        raise OSError(f"Failed to open {os.path.basename(path)}") from exc

    if not isinstance(raw, dict) or any(name not in raw for name in _REQUIRED_FIELDS):
        raise ValueError("Missing required configuration fields")

    return ForwarderConfig(
        tcp_server_ip=_text_field(raw, "tcp_server_ip"),
        tcp_server_port=_int_field(raw, "tcp_server_port"),
        udp_multicast_group=_text_field(raw, "udp_multicast_group"),
        udp_port=_int_field(raw, "udp_port"),
    )


def forward(
    receiver: TcpReceiver, sender: UdpSender, should_run: Callable[[], bool]
) -> int:
    """Relay frames while ``should_run()`` holds; return how many were sent."""
    forwarded = 0
    while should_run():
        data = receiver.receive(BUFFER_SIZE)
        if data:
            decode_and_print(data)
        sender.send(data)
        forwarded += 1
    return forwarded


def main(argv: Sequence[str] | None = None) -> int:
    """Run the TCP-to-multicast forwarder until interrupted."""
    parser = argparse.ArgumentParser(
        prog="mdbridge-forward",
        description="Forward TCP market data frames to a UDP multicast group.",
    )
    parser.add_argument(
        "config", nargs="?", default=DEFAULT_CONFIG_PATH, help="JSON configuration file"
    )
    args = parser.parse_args(argv)

    running = True

    def _stop(signum: int, frame: object) -> None:
        nonlocal running
        running = False

    previous = {
        sig: signal.signal(sig, _stop) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        config = load_config(args.config)
        with TcpReceiver(config.tcp_server_ip, config.tcp_server_port) as receiver, \
                UdpSender(config.udp_multicast_group, config.udp_port) as sender:
            receiver.connect()
            forward(receiver, sender, lambda: running)
            print("[*] Shutting down gracefully")
    except (OSError, ValueError, RuntimeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    return 0