"""Decoding of framed market data messages."""

from __future__ import annotations

import sys
from typing import Union

from mdbridge.structures import Header, IndexData, MarketWatchData, RequestType

Record = Union[IndexData, MarketWatchData]


class DecodeError(ValueError):
    """A message could not be decoded."""


def decode(buffer: bytes) -> Record:
    """Decode a header-prefixed message into its data record."""
    if len(buffer) < Header.SIZE:
        raise DecodeError("Buffer too small for Header")

    header = Header.unpack(buffer)
    if len(buffer) < Header.SIZE + header.size:
        raise DecodeError("Incomplete data for payload")

    payload = buffer[Header.SIZE:]
    if header.type == RequestType.INDEXUPDATE:
        if header.size != IndexData.SIZE:
            raise DecodeError("Size mismatch for IndexDataT")
        return IndexData.unpack(payload)
    if header.type == RequestType.UPDATE:
        if header.size != MarketWatchData.SIZE:
            raise DecodeError("Size mismatch for MarketWatchDataT")
        return MarketWatchData.unpack(payload)
    raise DecodeError(f"Unknown RequestType: {int(header.type)}")


def decode_and_print(buffer: bytes) -> Record | None:
    """Decode a message and print it; report problems on stderr."""
    try:
        record = decode(buffer)
    except DecodeError as exc:
        print(exc, file=sys.stderr)
        return None
    print(record.format(), end="")
    return record