"""Chunked AES-256-GCM streaming encryption and key management."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from p2pstorage.logger import Logger

CHUNK_SIZE = 64 * 1024
KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
_LENGTH = struct.Struct(">I")
_MAX_FRAME = CHUNK_SIZE + NONCE_SIZE + TAG_SIZE + 1024


@dataclass
class EncryptionConfig:
    """Whether a store encrypts its files, and where its key lives."""

    enabled: bool = False
    key_path: str = ""


def generate_encryption_key() -> bytes:
    """Return a fresh random 256-bit AES key."""
    return os.urandom(KEY_SIZE)


def load_or_create_encryption_key(logger: Logger, key_path: Union[str, os.PathLike]) -> bytes:
    """Load a 32-byte key from ``key_path``, creating and saving one if absent."""
    path = Path(key_path)
    try:
        data = path.read_bytes()
    except OSError:
        data = None

    if data is not None:
        if len(data) != KEY_SIZE:
            raise ValueError(f"invalid key file: expected {KEY_SIZE} bytes, got {len(data)}")
        logger.info(f"loaded existing encryption key from {path}", {})
        return data

    key = generate_encryption_key()
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(key)
    logger.info(f"generated and saved new encryption key to {path}", {})
    return key


class EncryptingWriter:
    """Buffers plaintext and writes it to ``dst`` as length-prefixed sealed chunks.

    Each frame is a 4-byte big-endian length followed by nonce, ciphertext and tag.
    """

    def __init__(self, key: bytes, dst: BinaryIO) -> None:
        self._aead = AESGCM(key)
        self._dst = dst
        self._buf = bytearray()
        self.closed = False

    def __enter__(self) -> "EncryptingWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def write(self, data: bytes) -> int:
        """Accept plaintext; full chunks are encrypted and written immediately."""
        if self.closed:
            raise ValueError("writer is closed")
        self._buf.extend(data)
        while len(self._buf) >= CHUNK_SIZE:
            self._write_chunk(bytes(self._buf[:CHUNK_SIZE]))
            del self._buf[:CHUNK_SIZE]
        return len(data)

    def _write_chunk(self, chunk: bytes) -> None:
        nonce = os.urandom(NONCE_SIZE)
        frame = nonce + self._aead.encrypt(nonce, chunk, None)
        self._dst.write(_LENGTH.pack(len(frame)))
        self._dst.write(frame)

    def close(self) -> None:
        """Flush buffered plaintext as a final chunk. The destination stays open."""
        if self.closed:
            return
        self.closed = True
        if self._buf:
            self._write_chunk(bytes(self._buf))
            self._buf.clear()


class DecryptingReader:
    """Reads frames written by :class:`EncryptingWriter` and yields plaintext."""

    def __init__(self, key: bytes, src: BinaryIO) -> None:
        self._aead = AESGCM(key)
        self._src = src
        self._buf = b""
        self._pos = 0
        self._exhausted = False

    def _read_exact(self, n: int) -> bytes:
        parts = []
        remaining = n
        while remaining:
            piece = self._src.read(remaining)
            if not piece:
                break
            parts.append(piece)
            remaining -= len(piece)
        return b"".join(parts)

    def _next_chunk(self) -> bool:
        header = self._read_exact(_LENGTH.size)
        if not header:
            return False
        if len(header) < _LENGTH.size:
            raise ValueError("unexpected end of encrypted data")

        (length,) = _LENGTH.unpack(header)
        if length > _MAX_FRAME:
            raise ValueError(f"chunk too large: {length}")

        frame = self._read_exact(length)
        if len(frame) < length:
            raise ValueError("unexpected end of encrypted data")
        if len(frame) < NONCE_SIZE:
            raise ValueError("ciphertext too short")

        nonce, sealed = frame[:NONCE_SIZE], frame[NONCE_SIZE:]
        try:
            self._buf = self._aead.decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise ValueError("failed to decrypt chunk") from exc
        self._pos = 0
        return True

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` plaintext bytes (all remaining if negative); b"" at end."""
        if size is None or size < 0:
            out = bytearray(self._buf[self._pos:])
            self._pos = len(self._buf)
            while not self._exhausted:
                if not self._next_chunk():
                    self._exhausted = True
                    break
                out.extend(self._buf)
                self._pos = len(self._buf)
            return bytes(out)

        if self._pos >= len(self._buf):
            if self._exhausted:
                return b""
            if not self._next_chunk():
                self._exhausted = True
                return b""

        data = self._buf[self._pos:self._pos + size]
        self._pos += len(data)
        return data