"""Content-addressed on-disk file store with optional encryption."""

from __future__ import annotations

import hashlib
import io
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Tuple, Union

from p2pstorage.encryption import (
    DecryptingReader,
    EncryptingWriter,
    EncryptionConfig,
    load_or_create_encryption_key,
)
from p2pstorage.logger import Logger

_COPY_SIZE = 64 * 1024
_BLOCK_SIZE = 5

Readable = Union[BinaryIO, bytes, bytearray]


@dataclass(frozen=True)
class PathKey:
    """Directory path and file name a key maps to, relative to the store root."""

    path: str
    filename: str

    @property
    def file_path(self) -> str:
        return f"{self.path}/{self.filename}"


PathTransform = Callable[[str], PathKey]


def _iter_chunks(reader: Readable):
    if isinstance(reader, (bytes, bytearray)):
        reader = io.BytesIO(reader)
    while True:
        chunk = reader.read(_COPY_SIZE)
        if not chunk:
            return
        yield chunk


def generate_key_from_reader(reader: Readable) -> str:
    """Hex SHA-256 of everything ``reader`` yields."""
    digest = hashlib.sha256()
    for chunk in _iter_chunks(reader):
        digest.update(chunk)
    return digest.hexdigest()


def generate_file_key(file_path: Union[str, os.PathLike]) -> str:
    """Hex SHA-256 of a file's content."""
    with open(file_path, "rb") as f:
        return generate_key_from_reader(f)


def cas_path_transform(key: str) -> PathKey:
    """Map a key to nested 5-character directories of its SHA-1 hex digest."""
    digest = hashlib.sha1(key.encode()).hexdigest()
    blocks = [
        digest[start:start + _BLOCK_SIZE]
        for start in range(0, len(digest) - _BLOCK_SIZE + 1, _BLOCK_SIZE)
    ]
    return PathKey(path="/".join(blocks), filename=digest)


def default_path_transform(key: str) -> PathKey:
    """Store a key as ``<key>/<key>``."""
    return PathKey(path=key, filename=key)


class Store:
    """Files addressed by key under ``root``; optionally encrypted at rest."""

    def __init__(
        self,
        root: Union[str, os.PathLike],
        path_transform: Optional[PathTransform] = None,
        encryption: Optional[EncryptionConfig] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self.root = Path(root)
        self.path_transform: PathTransform = path_transform or default_path_transform
        self.encryption = encryption or EncryptionConfig()
        self.logger = logger or Logger({"service": "store"})
        self._key: Optional[bytes] = None

        if self.encryption.enabled:
            key_path = self.encryption.key_path or self.root / ".encryption_key"
            self._key = load_or_create_encryption_key(self.logger, key_path)
            self.logger.info("encryption enabled for store", {"root": str(self.root)})

    @property
    def encryption_enabled(self) -> bool:
        return self._key is not None

    def _absolute(self, path: str) -> Path:
        return self.root / path

    def _file_for(self, key: str) -> Path:
        return self._absolute(self.path_transform(key).file_path)

    def clear(self) -> None:
        """Remove the whole store directory."""
        if self.root.exists():
            shutil.rmtree(self.root)

    def has(self, key: str) -> bool:
        try:
            os.stat(self._file_for(key))
        except FileNotFoundError:
            return False
        except OSError:
            return True
        return True

    def delete(self, key: str) -> None:
        """Delete a key's file and prune directories left empty, up to the root."""
        path_key = self.path_transform(key)
        target = self._absolute(path_key.file_path)
        os.remove(target)
        self.logger.debug("deleted file from disk", {"path": str(target)})

        current = self._absolute(path_key.path)
        while current.is_dir() and not any(current.iterdir()):
            current.rmdir()
            if current == self.root or current.parent == current:
                break
            current = current.parent

    def _require(self, key: str) -> Path:
        if not self.has(key):
            raise FileNotFoundError("file not found")
        return self._file_for(key)

    def read(self, key: str) -> Tuple[BinaryIO, int]:
        """Return a reader over the (decrypted) content and its size."""
        target = self._require(key)
        if self._key is not None:
            with open(target, "rb") as f:
                data = DecryptingReader(self._key, f).read()
            return io.BytesIO(data), len(data)
        return self.read_raw(key)

    def read_raw(self, key: str) -> Tuple[BinaryIO, int]:
        """Return a reader over the bytes as stored on disk, and their count."""
        target = self._require(key)
        size = os.stat(target).st_size
        return io.BytesIO(target.read_bytes()), size

    def write(self, key: str, reader: Readable) -> int:
        """Store content under ``key``, encrypting if enabled; return plaintext size."""
        if self._key is None:
            return self.write_raw(key, reader)

        target = self._prepare(key)
        written = 0
        with open(target, "wb") as f, EncryptingWriter(self._key, f) as enc:
            for chunk in _iter_chunks(reader):
                written += enc.write(chunk)
        self.logger.debug("written encrypted bytes to disk", {"bytes": written, "path": str(target)})
        return written

    def write_raw(self, key: str, reader: Readable) -> int:
        """Store content under ``key`` exactly as given; return its size."""
        target = self._prepare(key)
        written = 0
        with open(target, "wb") as f:
            for chunk in _iter_chunks(reader):
                f.write(chunk)
                written += len(chunk)
        self.logger.debug("written bytes to disk", {"bytes": written, "path": str(target)})
        return written

    def _prepare(self, key: str) -> Path:
        path_key = self.path_transform(key)
        self._absolute(path_key.path).mkdir(parents=True, exist_ok=True)
        return self._absolute(path_key.file_path)