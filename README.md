# p2pstorage

Building blocks for a peer-to-peer file store:

- **Content-addressed storage** (`p2pstorage.store`): files are written under a
  directory tree derived from a SHA-1 of their key, optionally encrypted at rest
  with AES-256-GCM in 64 KiB chunks (`p2pstorage.encryption`).
- **File keys** (`p2pstorage.filekey`): a file's key is the hex SHA-256 of its
  contents.
- **Message protocol** (`p2pstorage.protocol`): a JSON envelope with a `type`
  and a typed payload, plus a ping handler.
- **Traffic control** (`p2pstorage.backpressure`, `p2pstorage.ratelimit`): a
  non-blocking concurrency limiter and a per-peer sliding-window rate limiter.
- **Peer scoring** (`p2pstorage.peerscore`): success/failure counts with
  exponential decay and a latency penalty, used to pick the best peers.
- **Observability** (`p2pstorage.logger`, `p2pstorage.metrics`): JSON-lines
  logging and simple request metrics.

## Installation

```
pip install p2pstorage
```

## Storing and reading files

```python
import io
from p2pstorage.store import Store, cas_path_transform
from p2pstorage.encryption import EncryptionConfig

store = Store(
    root="./storage",
    path_transform=cas_path_transform,
    encryption=EncryptionConfig(enabled=True),
)

store.write("greeting", io.BytesIO(b"hello"))
assert store.has("greeting")

reader, size = store.read("greeting")
print(reader.read())   # b"hello"

store.delete("greeting")
```

`write` and `write_raw` also accept plain `bytes`. With encryption enabled, a
32-byte key is created at `<root>/.encryption_key` on first use (or at
`EncryptionConfig.key_path` when given) and loaded afterwards. `read_raw` and
`write_raw` move the stored bytes as they are, without decrypting or
encrypting. Reading a missing key raises `FileNotFoundError`; `clear()`
removes the whole store directory.

## File keys

```python
from p2pstorage.filekey import get_file_key

key = get_file_key("report.pdf")   # 64 hex characters
```

A missing path raises `FileNotFoundError`; a directory raises
`IsADirectoryError`.

## Messages

```python
from p2pstorage.protocol import (
    Message, StoreFilePayload, new_message, decode,
)

msg = new_message("STORE_FILE", StoreFilePayload(key="abc", session="s"))
wire = msg.to_json()
payload = decode(Message.from_json(wire), StoreFilePayload)
```

`decode` raises `ValueError` when the data is not valid for the payload type.
`PingHandler(logger).handle(peer_id, msg)` answers any `Message` with a
`PONG` message.

## Rate limiting, backpressure and peer scoring

```python
from datetime import timedelta
from p2pstorage.ratelimit import RateLimiter, RateLimitExceeded
from p2pstorage.backpressure import Limiter
from p2pstorage.peerscore import PeerScorer

with RateLimiter(limit=10, window=1.0, ttl=60.0) as limiter:
    handler = limiter.wrap(lambda peer_id, msg: "ok")
    handler("peer-1", "hello")   # raises RateLimitExceeded once over the limit

slots = Limiter(2)
if slots.acquire():
    try:
        ...
    finally:
        slots.release()

scorer = PeerScorer()
scorer.record_success("peer-1", timedelta(milliseconds=50))
scorer.record_failure("peer-2")
print(scorer.best_peers(["peer-1", "peer-2"], 1))   # ["peer-1"]
```

Latencies are `timedelta` values; rate limiter durations are seconds.

## Logging and metrics

```python
from datetime import timedelta
from p2pstorage.logger import Logger, LogLevel
from p2pstorage.metrics import Metrics

log = Logger({"service": "demo"}, level=LogLevel.DEBUG)
log.info("started", {"port": 4001})

metrics = Metrics()
metrics.record_request(timedelta(milliseconds=20))
print(metrics.snapshot())
```

## What this package does not do

It has no networking: there is no node, peer connection, discovery, stream
transport or daemon, and no command-line program. It provides the storage,
message, scoring, limiting and logging pieces such a program would be built
from.

## Running the tests

```
pip install -e ".[test]"
pytest
```