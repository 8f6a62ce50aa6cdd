"""Content keys for local files and result types of file operations."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Union

from p2pstorage.store import generate_file_key

RequestID = str


@dataclass(frozen=True)
class StoreResult:
    key: str


@dataclass(frozen=True)
class SendResult:
    key: str
    peer_id: str


@dataclass
class SendOpts:
    session: str = ""


def get_file_key(file_path: Union[str, os.PathLike]) -> str:
    """Return the content-addressed key of a regular file."""
    try:
        info = os.stat(file_path)
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"file does not exist: {file_path}") from exc
    if os.path.isdir(file_path) or info.st_mode & 0o170000 == 0o040000:
        raise IsADirectoryError(f"cannot get key for a directory: {file_path}")
    return generate_file_key(file_path)