"""Content storage for the state sub-network.

Offered content values carry proofs; only the proven node or bytecode is kept,
in the retrieval form that peers ask for.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Protocol

from shisui.state_types import (
    ACCOUNT_TRIE_NODE_TYPE,
    CONTRACT_BYTECODE_TYPE,
    CONTRACT_STORAGE_TRIE_NODE_TYPE,
    AccountTrieNodeKey,
    AccountTrieNodeWithProof,
    ContractBytecodeContainer,
    ContractBytecodeKey,
    ContractBytecodeWithProof,
    ContractStorageTrieNodeKey,
    ContractStorageTrieNodeWithProof,
    TrieNode,
    node_hash,
)

logger = logging.getLogger(__name__)

MAX_RADIUS = 2**256 - 1


class StorageError(Exception):
    """Raised when content cannot be stored or found."""


def default_content_id(content_key: bytes) -> bytes:
    """Return the content id of a key: the SHA-256 digest of the key."""
    return hashlib.sha256(bytes(content_key)).digest()


class ContentStorage(Protocol):
    def get(self, content_key: bytes, content_id: bytes) -> bytes: ...

    def put(self, content_key: bytes, content_id: bytes, content: bytes) -> None: ...

    def radius(self) -> int: ...

    def close(self) -> None: ...


class MemoryContentStorage:
    """A content store held in memory and keyed by content id."""

    def __init__(self) -> None:
        self._items: dict[bytes, bytes] = {}
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise StorageError("storage is closed")

    def get(self, content_key: bytes, content_id: bytes) -> bytes:
        self._check_open()
        try:
            return self._items[bytes(content_id)]
        except KeyError:
            raise StorageError("content not found") from None

    def put(self, content_key: bytes, content_id: bytes, content: bytes) -> None:
        self._check_open()
        self._items[bytes(content_id)] = bytes(content)

    def radius(self) -> int:
        return MAX_RADIUS

    def close(self) -> None:
        self._items.clear()
        self._closed = True


class StateStorage:
    """Stores validated state content in an underlying content store."""

    def __init__(self, store: ContentStorage) -> None:
        self.store = store

    def get(self, content_key: bytes, content_id: bytes) -> bytes:
        return self.store.get(content_key, content_id)

    def put(self, content_key: bytes, content_id: bytes, content: bytes) -> None:
        content_key = bytes(content_key)
        if not content_key:
            raise StorageError("empty content key")
        key_type, key_body = content_key[0], content_key[1:]
        if key_type == ACCOUNT_TRIE_NODE_TYPE:
            value = self._account_trie_node(key_body, content)
        elif key_type == CONTRACT_STORAGE_TRIE_NODE_TYPE:
            value = self._contract_storage_trie_node(key_body, content)
        elif key_type == CONTRACT_BYTECODE_TYPE:
            value = self._contract_bytecode(key_body, content)
        else:
            raise StorageError("unknown content type")
        self._save(content_key, content_id, value)

    def radius(self) -> int:
        return self.store.radius()

    def close(self) -> None:
        self.store.close()

    def _save(self, content_key: bytes, content_id: bytes, value: bytes) -> None:
        try:
            self.store.put(content_id, content_id, value)
        except (StorageError, OSError) as exc:
            logger.error(
                "failed to save data after validate: type=%#x key=%s err=%s",
                content_key[0],
                content_key[1:].hex(),
                exc,
            )

    @staticmethod
    def _account_trie_node(key_body: bytes, content: bytes) -> bytes:
        key = AccountTrieNodeKey.decode(key_body)
        data = AccountTrieNodeWithProof.decode(content)
        if not data.proof:
            raise StorageError("account trie node proof is empty")
        last = data.proof[-1]
        if node_hash(last) != key.node_hash:
            raise StorageError("hash of the trie node doesn't match key's node_hash")
        return TrieNode(last).encode()

    @staticmethod
    def _contract_storage_trie_node(key_body: bytes, content: bytes) -> bytes:
        key = ContractStorageTrieNodeKey.decode(key_body)
        data = ContractStorageTrieNodeWithProof.decode(content)
        if not data.storage_proof:
            raise StorageError("contract storage proof is empty")
        last = data.storage_proof[-1]
        if node_hash(last) != key.node_hash:
            raise StorageError(
                "hash of the contract storage node doesn't match key's node hash"
            )
        return TrieNode(last).encode()

    @staticmethod
    def _contract_bytecode(key_body: bytes, content: bytes) -> bytes:
        key = ContractBytecodeKey.decode(key_body)
        data = ContractBytecodeWithProof.decode(content)
        if node_hash(data.code) != key.code_hash:
            raise StorageError("hash of the contract byte doesn't match key's code hash")
        return ContractBytecodeContainer(data.code).encode()