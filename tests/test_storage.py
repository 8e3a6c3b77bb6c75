import pytest

from shisui import rlp
from shisui.state_types import (
    AccountTrieNodeKey,
    AccountTrieNodeWithProof,
    ContractBytecodeKey,
    ContractBytecodeWithProof,
    ContractStorageTrieNodeKey,
    ContractStorageTrieNodeWithProof,
    Nibbles,
    node_hash,
)
from shisui.storage import (
    MemoryContentStorage,
    StateStorage,
    StorageError,
    default_content_id,
)
from shisui.trie.encoding import hex_to_compact

BLOCK_HASH = bytes([0xB1]) * 32
ADDRESS_HASH = node_hash(b"address")
CODE = bytes.fromhex("6080604052")
CODE_HASH = node_hash(CODE)
LEAF = rlp.encode([hex_to_compact(b"\x01\x02\x10"), b"\x2a"])
OTHER_NODE = rlp.encode([hex_to_compact(b"\x03\x10"), b"\x07"])


def account_item(last=LEAF, expected_hash=None):
    key = AccountTrieNodeKey(Nibbles(b"\x01"), expected_hash or node_hash(last))
    content = AccountTrieNodeWithProof([OTHER_NODE, last], BLOCK_HASH).encode()
    return bytes([0x20]) + key.encode(), content


def storage_item(expected_hash=None):
    key = ContractStorageTrieNodeKey(
        ADDRESS_HASH, Nibbles(b""), expected_hash or node_hash(LEAF)
    )
    content = ContractStorageTrieNodeWithProof([LEAF], [OTHER_NODE], BLOCK_HASH).encode()
    return bytes([0x21]) + key.encode(), content


def bytecode_item(code=CODE):
    key = ContractBytecodeKey(ADDRESS_HASH, CODE_HASH)
    content = ContractBytecodeWithProof(code, [OTHER_NODE], BLOCK_HASH).encode()
    return bytes([0x22]) + key.encode(), content


def test_default_content_id_is_sha256():
    assert default_content_id(b"").hex() == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


@pytest.mark.parametrize(
    "item, expected",
    [
        (account_item(), b"\x04\x00\x00\x00" + LEAF),
        (storage_item(), b"\x04\x00\x00\x00" + LEAF),
        (bytecode_item(), b"\x04\x00\x00\x00" + CODE),
    ],
)
def test_put_then_get_returns_retrieval_value(item, expected):
    key, content = item
    storage = StateStorage(MemoryContentStorage())
    content_id = default_content_id(key)
    storage.put(key, content_id, content)
    assert storage.get(key, content_id) == expected


def test_account_node_hash_mismatch_is_rejected():
    key, content = account_item(expected_hash=bytes(32))
    with pytest.raises(StorageError, match="node_hash"):
        StateStorage(MemoryContentStorage()).put(key, default_content_id(key), content)


def test_storage_node_hash_mismatch_is_rejected():
    key, content = storage_item(expected_hash=bytes(32))
    with pytest.raises(StorageError, match="node hash"):
        StateStorage(MemoryContentStorage()).put(key, default_content_id(key), content)


def test_bytecode_hash_mismatch_is_rejected():
    key, content = bytecode_item(code=b"\x00")
    with pytest.raises(StorageError, match="code hash"):
        StateStorage(MemoryContentStorage()).put(key, default_content_id(key), content)


def test_unknown_content_type_is_rejected():
    with pytest.raises(StorageError, match="unknown content type"):
        StateStorage(MemoryContentStorage()).put(b"\x30", b"\x00" * 32, b"")


def test_empty_account_proof_is_rejected():
    key = bytes([0x20]) + AccountTrieNodeKey(Nibbles(b""), node_hash(LEAF)).encode()
    content = AccountTrieNodeWithProof([], BLOCK_HASH).encode()
    with pytest.raises(StorageError):
        StateStorage(MemoryContentStorage()).put(key, default_content_id(key), content)


def test_store_failure_is_swallowed():
    class FailingStore:
        def __init__(self):
            self.attempts = 0

        def put(self, content_key, content_id, content):
            self.attempts += 1
            raise StorageError("disk full")

    store = FailingStore()
    key, content = account_item()
    StateStorage(store).put(key, default_content_id(key), content)
    assert store.attempts == 1


def test_memory_storage_missing_content():
    with pytest.raises(StorageError, match="not found"):
        MemoryContentStorage().get(b"key", b"id")


def test_radius_is_maximal():
    assert StateStorage(MemoryContentStorage()).radius() == 2**256 - 1


def test_closed_storage_rejects_access():
    memory = MemoryContentStorage()
    memory.put(b"key", b"id", b"value")
    assert memory.get(b"key", b"id") == b"value"
    StateStorage(memory).close()
    with pytest.raises(StorageError, match="closed"):
        memory.get(b"key", b"id")