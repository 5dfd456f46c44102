# mdbridge

mdbridge relays binary market data messages in either direction between a
TCP feed and a UDP multicast group.

## Message format

Each message begins with a 4-byte header. The header holds two
little-endian 16-bit fields: the `RequestType` and the payload size. The
payload follows the header and is packed with 2-byte alignment.

- `RequestType.INDEXUPDATE` (5) carries an `IndexData` payload of 56 bytes.
- `RequestType.UPDATE` (4) carries a `MarketWatchData` payload of 238 bytes.

On TCP, each message is preceded by its length as a 4-byte big-endian
integer.

## Install

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Commands

### `mdbridge-forward`: TCP to multicast

```
mdbridge-forward [CONFIG]
```

`mdbridge-forward` connects to a TCP server and reads length-prefixed
frames of up to 2048 bytes. It handles each frame as follows:

- It decodes the frame and prints it to stdout.
- If the frame cannot be decoded, it prints the problem to stderr.
- It then sends the raw frame to the multicast group with a TTL of 1.

When SIGINT or SIGTERM arrives, the command stops after the current
frame. It then prints `[*] Shutting down gracefully` and exits with
status 0.

It exits with status 1 after printing an error in any of these cases:

- the configuration cannot be read or is invalid
- the connection fails
- the server closes the connection
- a frame is longer than 2048 bytes

`CONFIG` defaults to `../config/client_config.json`. All four fields below
are required. The ports must be integers:

```json
{
  "tcp_server_ip": "127.0.0.1",
  "tcp_server_port": 9000,
  "udp_multicast_group": "239.0.0.1",
  "udp_port": 30001
}
```

### `mdbridge-serve`: multicast to TCP

```
mdbridge-serve [CONFIG]
```

`mdbridge-serve` joins the multicast group on `udp_port` and accepts TCP
clients on `tcp_server_ip:tcp_server_port`.

A datagram is relayed only if all of these hold:

- it is longer than the header
- its length equals the header size plus the header's payload size
- it is an index update or a market watch update with the correct payload size

A relayed datagram goes to every connected client with a length prefix.
Datagrams that fail these checks are dropped, and a note is printed to
stderr. A client that fails a send is closed and removed.

`CONFIG` defaults to `config.json` in the current directory and uses the
same four fields. If the configuration or the sockets cannot be set up,
the command prints `Fatal error: ...` and exits with status 1. Ctrl-C
stops it.

## Library use

```python
from mdbridge.structures import IndexData, RequestType, encode_message
from mdbridge.decoder import decode

message = encode_message(
    RequestType.INDEXUPDATE,
    IndexData(value=100, open=90, high=110, low=80, close=95,
              yearly_high=150, yearly_low=50, percentage_change=1.5,
              name="NIFTY"),
)
record = decode(message)
print(record.format(), end="")
```

### `mdbridge.structures`

This module defines the message types:

- `RequestType`
- `Header`
- `PricePoint`
- `MarketWatchData`
- `IndexData`

Each data class has `pack()`, `unpack(data)` and a `SIZE`. `unpack(data)`
raises `ValueError` on short input. `MarketWatchData` and `IndexData` also
have `format()`, which returns the printed summary.

`encode_message(request_type, payload)` adds a header to a payload. The
payload can be raw bytes or a data object.

### `mdbridge.decoder`

`decode(buffer)` returns an `IndexData` or a `MarketWatchData`. It raises
`DecodeError` (a `ValueError`) in these cases:

- the buffer is too short
- the request type is unknown
- the size does not match the type

`decode_and_print(buffer)` prints the record, or prints the error to
stderr and returns `None`.

### Sockets

All of these classes are context managers:

- `mdbridge.tcp_receiver.TcpReceiver(ip, port)` has `connect()` and
  `receive(max_size)`. `receive` returns one frame.
- `mdbridge.udp_sender.UdpSender(group, port)` has `send(data)`.
- `mdbridge.udp_receiver.UdpReceiver(group, port)` has
  `receive(buffer_size)`.
- `mdbridge.tcp_server.TcpServer(ip, port)` has `start()`,
  `broadcast(data)`, `address` and `client_count`.

### Loops

`mdbridge.forwarder` provides `load_config(path)` and
`forward(receiver, sender, should_run)`. `forward` returns the number of
frames it sent.

`mdbridge.bridge` provides:

- `load_bridge_config(path)`
- `should_forward(packet)`
- `Bridge`, with `from_config`, `handle_packet`, `run` and `close`

## Limitations

- mdbridge only relays and prints updates. It does not send login, logout,
  subscribe or unsubscribe requests.
- It does not produce market data of its own.
- It keeps no history or storage of the messages that pass through.