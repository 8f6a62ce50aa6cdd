import io

import pytest

from p2pstorage.encryption import EncryptionConfig
from p2pstorage.logger import Logger
from p2pstorage.store import (
    PathKey,
    Store,
    cas_path_transform,
    default_path_transform,
    generate_file_key,
    generate_key_from_reader,
)


@pytest.fixture
def logger():
    return Logger({"service": "store-test"}, out=io.StringIO())


@pytest.fixture
def store(tmp_path, logger):
    s = Store(tmp_path / "storage", cas_path_transform, logger=logger)
    yield s
    s.clear()


@pytest.fixture
def enc_store(tmp_path, logger):
    root = tmp_path / "storage_enc"
    s = Store(
        root,
        cas_path_transform,
        EncryptionConfig(enabled=True, key_path=str(root / ".encryption_key")),
        logger,
    )
    yield s
    s.clear()


def test_path_transform():
    path_key = cas_path_transform("yo its a dummy string")
    assert path_key.filename == "90555eb6014736bedad917345c0193cd1f638ad6"
    assert path_key.path == "90555/eb601/4736b/edad9/17345/c0193/cd1f6/38ad6"


def test_default_path_transform():
    assert default_path_transform("abc") == PathKey("abc", "abc")
    assert PathKey("a/b", "c").file_path == "a/b/c"


def test_store(store):
    for i in range(50):
        key = f"foo_{i}"
        data = b"some random bytes"
        assert store.write_raw(key, io.BytesIO(data)) == len(data)
        assert store.has(key)

        reader, size = store.read(key)
        assert reader.read() == data
        assert size == len(data)

        store.delete(key)
        assert not store.has(key)


def test_store_with_encryption(enc_store):
    assert enc_store.encryption_enabled
    for i in range(10):
        key = f"encrypted_foo_{i}"
        data = b"some secret data that should be encrypted"
        enc_store.write(key, io.BytesIO(data))
        assert enc_store.has(key)

        reader, _ = enc_store.read(key)
        assert reader.read() == data

        enc_store.delete(key)
        assert not enc_store.has(key)


def test_encrypted_data_is_different_from_plaintext(enc_store):
    key = "test_encryption_diff"
    plaintext = b"this is my secret plaintext data"
    enc_store.write(key, io.BytesIO(plaintext))

    raw_on_disk = (enc_store.root / cas_path_transform(key).file_path).read_bytes()
    assert raw_on_disk != plaintext
    assert plaintext not in raw_on_disk

    raw_reader, raw_size = enc_store.read_raw(key)
    assert raw_reader.read() == raw_on_disk
    assert raw_size == len(raw_on_disk)

    reader, _ = enc_store.read(key)
    assert reader.read() == plaintext


def test_encryption_key_persistence(tmp_path, logger):
    root = tmp_path / "enc_persist"
    cfg = EncryptionConfig(enabled=True, key_path=str(root / ".encryption_key"))
    store1 = Store(root, cas_path_transform, cfg, logger)
    data = b"data to persist across store instances"
    store1.write("persist_test", io.BytesIO(data))

    store2 = Store(root, cas_path_transform, cfg, logger)
    reader, _ = store2.read("persist_test")
    assert reader.read() == data
    store1.clear()
    assert not root.exists()


def test_default_key_path_inside_root(tmp_path, logger):
    root = tmp_path / "defkey"
    s = Store(root, encryption=EncryptionConfig(enabled=True), logger=logger)
    assert (root / ".encryption_key").stat().st_size == 32
    s.write("k", b"payload")
    assert s.read("k")[0].read() == b"payload"


def test_unencrypted_store(store):
    assert not store.encryption_enabled
    data = b"unencrypted data"
    store.write("unencrypted_test", io.BytesIO(data))
    reader, _ = store.read("unencrypted_test")
    assert reader.read() == data


def test_large_file_encryption(enc_store):
    data = bytes(range(256)) * 1024
    assert enc_store.write("large_encrypted_file", io.BytesIO(data)) == len(data)
    reader, size = enc_store.read("large_encrypted_file")
    assert size == len(data)
    assert reader.read() == data


def test_read_missing_raises(store):
    with pytest.raises(FileNotFoundError, match="file not found"):
        store.read("missing")
    with pytest.raises(FileNotFoundError):
        store.read_raw("missing")


def test_delete_missing_raises(store):
    with pytest.raises(FileNotFoundError):
        store.delete("missing")


def test_delete_prunes_empty_directories(store):
    store.write("a", b"1")
    store.write("b", b"2")
    first_a = store.root / cas_path_transform("a").path.split("/")[0]
    store.delete("a")
    assert not first_a.exists()
    assert store.has("b")


def test_raw_round_trip_with_encryption(enc_store):
    blob = b"already-encrypted-bytes"
    assert enc_store.write_raw("raw", blob) == len(blob)
    reader, size = enc_store.read_raw("raw")
    assert reader.read() == blob
    assert size == len(blob)


def test_key_from_reader():
    assert generate_key_from_reader(io.BytesIO(b"hello world")) == (
        "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
    )
    assert generate_key_from_reader(io.BytesIO(b"")) == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_file_key_matches_reader_key(tmp_path):
    path = tmp_path / "f.bin"
    path.write_bytes(b"consistent content")
    assert generate_file_key(path) == generate_key_from_reader(io.BytesIO(b"consistent content"))


def test_file_key_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        generate_file_key(tmp_path / "none")