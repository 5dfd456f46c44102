"""Wire structures of the market data protocol.

All structures are packed with 2-byte alignment and use little-endian byte
order, matching the layout produced by the market data feed.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Union

MARKET_WATCH_LADDER_COUNT = 5
TIMESTAMP_LENGTH = 50
INDEX_NAME_LENGTH = 21

_HEADER_FORMAT = struct.Struct("<HH")
_PRICE_POINT_FORMAT = struct.Struct("<3I")
_MARKET_WATCH_FORMAT = struct.Struct(
    f"<{MARKET_WATCH_LADDER_COUNT * 2 * 3}I12If4I{TIMESTAMP_LENGTH}s"
)
# The trailing pad byte keeps the structure size even under 2-byte packing.
_INDEX_FORMAT = struct.Struct(f"<7If{INDEX_NAME_LENGTH}sx")


class RequestType(IntEnum):
    """Message types carried in the common header."""

    LOGIN = 0
    LOGOUT = 1
    SUBSCRIBE = 2
    UNSUBSCRIBE = 3
    UPDATE = 4
    INDEXUPDATE = 5


def _pack(layout: struct.Struct, *values: object) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(layout: struct.Struct, data: bytes, what: str) -> tuple:
    if len(data) < layout.size:
        raise ValueError(
            f"{what} needs {layout.size} bytes, got {len(data)}"
        )
    return layout.unpack_from(data)


def _encode_text(text: str, width: int, what: str) -> bytes:
    raw = text.encode("latin-1")
    if len(raw) > width:
        raise ValueError(f"{what} is longer than {width} bytes")
    return raw


def _decode_text(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


def _as_request_type(value: int) -> int:
    try:
        return RequestType(value)
    except ValueError:
        return value


@dataclass
class Header:
    """Common message header: message type and payload size."""

    SIZE: ClassVar[int] = _HEADER_FORMAT.size

    type: int
    size: int

    def pack(self) -> bytes:
        return _pack(_HEADER_FORMAT, int(self.type), self.size)

    @classmethod
    def unpack(cls, data: bytes) -> Header:
        request_type, size = _unpack(_HEADER_FORMAT, data, "Header")
        return cls(_as_request_type(request_type), size)


@dataclass
class PricePoint:
    """One level of a bid or ask ladder."""

    SIZE: ClassVar[int] = _PRICE_POINT_FORMAT.size

    price: int = 0
    quantity: int = 0
    order: int = 0

    def pack(self) -> bytes:
        return _pack(_PRICE_POINT_FORMAT, self.price, self.quantity, self.order)

    @classmethod
    def unpack(cls, data: bytes) -> PricePoint:
        return cls(*_unpack(_PRICE_POINT_FORMAT, data, "PricePoint"))


def _empty_ladder() -> tuple[PricePoint, ...]:
    return tuple(PricePoint() for _ in range(MARKET_WATCH_LADDER_COUNT))


@dataclass
class MarketWatchData:
    """Market watch snapshot for one instrument."""

    SIZE: ClassVar[int] = _MARKET_WATCH_FORMAT.size

    bid: tuple[PricePoint, ...] = field(default_factory=_empty_ladder)
    ask: tuple[PricePoint, ...] = field(default_factory=_empty_ladder)
    token: int = 0
    last_trade_quantity: int = 0
    average_trade_price: int = 0
    last_trade_price: int = 0
    low_dpr: int = 0
    high_dpr: int = 0
    low_lpp: int = 0
    high_lpp: int = 0
    open: int = 0
    high: int = 0
    low: int = 0
    close: int = 0
    percentage_change: float = 0.0
    total_buy_quantity: int = 0
    total_sell_quantity: int = 0
    volume_traded_today: int = 0
    open_interest: int = 0
    last_trade_time: str = ""

    def pack(self) -> bytes:
        ladder = []
        for side, points in (("bid", self.bid), ("ask", self.ask)):
            if len(points) != MARKET_WATCH_LADDER_COUNT:
                raise ValueError(
                    f"{side} ladder must have {MARKET_WATCH_LADDER_COUNT} levels"
                )
            for point in points:
                ladder.extend((point.price, point.quantity, point.order))
        return _pack(
            _MARKET_WATCH_FORMAT,
            *ladder,
            self.token,
            self.last_trade_quantity,
            self.average_trade_price,
            self.last_trade_price,
            self.low_dpr,
            self.high_dpr,
            self.low_lpp,
            self.high_lpp,
            self.open,
            self.high,
            self.low,
            self.close,
            self.percentage_change,
            self.total_buy_quantity,
            self.total_sell_quantity,
            self.volume_traded_today,
            self.open_interest,
            _encode_text(self.last_trade_time, TIMESTAMP_LENGTH, "last_trade_time"),
        )

    @classmethod
    def unpack(cls, data: bytes) -> MarketWatchData:
        values = _unpack(_MARKET_WATCH_FORMAT, data, "MarketWatchData")
        ladder_len = MARKET_WATCH_LADDER_COUNT * 3
        flat = iter(values[: 2 * ladder_len])
        points = [PricePoint(p, q, o) for p, q, o in zip(flat, flat, flat)]
        rest = values[2 * ladder_len:]
        return cls(
            tuple(points[:MARKET_WATCH_LADDER_COUNT]),
            tuple(points[MARKET_WATCH_LADDER_COUNT:]),
            *rest[:-1],
            last_trade_time=_decode_text(rest[-1]),
        )

    def format(self) -> str:
        """Render the human-readable summary printed by the decoder."""
        return (
            "Market Watch Data:\n"
            f" Token: {self.token}\n"
            f" Last Trade Quantity: {self.last_trade_quantity}\n"
            f" Last Trade Price: {self.last_trade_price}\n"
            f" Avg Trade Price: {self.average_trade_price}\n"
            f" Open: {self.open} High: {self.high} Low: {self.low} Close: {self.close}\n"
            f" % Change: {self.percentage_change:.2f}%\n"
            f" Volume: {self.volume_traded_today} OI: {self.open_interest}\n"
            f" Last Trade Time: {self.last_trade_time}\n"
        )


@dataclass
class IndexData:
    """Snapshot of a market index."""

    SIZE: ClassVar[int] = _INDEX_FORMAT.size

    value: int = 0
    open: int = 0
    high: int = 0
    low: int = 0
    close: int = 0
    yearly_high: int = 0
    yearly_low: int = 0
    percentage_change: float = 0.0
    name: str = ""

    def pack(self) -> bytes:
        return _pack(
            _INDEX_FORMAT,
            self.value,
            self.open,
            self.high,
            self.low,
            self.close,
            self.yearly_high,
            self.yearly_low,
            self.percentage_change,
            _encode_text(self.name, INDEX_NAME_LENGTH, "name"),
        )

    @classmethod
    def unpack(cls, data: bytes) -> IndexData:
        *numbers, name = _unpack(_INDEX_FORMAT, data, "IndexData")
        return cls(*numbers, name=_decode_text(name))

    def format(self) -> str:
        """Render the human-readable summary printed by the decoder."""
        return (
            "Index Data:\n"
            f" Name: {self.name}\n"
            f" Value: {self.value}\n"
            f" Open: {self.open}\n"
            f" High: {self.high}\n"
            f" Low: {self.low}\n"
            f" Close: {self.close}\n"
            f" Yearly High: {self.yearly_high}\n"
            f" Yearly Low: {self.yearly_low}\n"
            f" Percentage Change: {self.percentage_change:.2f}%\n"
        )


Payload = Union[bytes, bytearray, memoryview, IndexData, MarketWatchData]


def encode_message(request_type: int, payload: Payload) -> bytes:
    """Prefix a payload with a header carrying its type and size."""
    if isinstance(payload, (bytes, bytearray, memoryview)):
        body = bytes(payload)
    else:
        body = payload.pack()
    return Header(request_type, len(body)).pack() + body