"""Relay binary market data messages between TCP feeds and UDP multicast."""

__version__ = "0.1.0"