"""Content keys and content values of the state sub-network and their SSZ encodings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from Crypto.Hash import keccak

from shisui.wire import OFFSET_SIZE, SSZError, decode_byte_lists, encode_byte_lists

ACCOUNT_TRIE_NODE_TYPE = 0x20
CONTRACT_STORAGE_TRIE_NODE_TYPE = 0x21
CONTRACT_BYTECODE_TYPE = 0x22

MAX_NIBBLES = 64
MAX_TRIE_NODE_LENGTH = 1024
MAX_TRIE_PROOF_LENGTH = 65
MAX_CONTRACT_BYTECODE_LENGTH = 32768
HASH_SIZE = 32


class StateTypeError(SSZError):
    """Raised when a state network key or value is malformed."""


def unpack_nibble_pair(pair: int) -> tuple[int, int]:
    """Split a byte into its high and low nibble."""
    return pair >> 4, pair & 0x0F


def node_hash(node: bytes) -> bytes:
    """Return the keccak-256 hash of an encoded trie node."""
    return keccak.new(data=bytes(node), digest_bits=256).digest()


def _bytes32(value: bytes, name: str) -> bytes:
    value = bytes(value)
    if len(value) != HASH_SIZE:
        raise StateTypeError(f"{name}: {len(value)} bytes, want {HASH_SIZE}")
    return value


def _limited(value: bytes, limit: int, name: str) -> bytes:
    value = bytes(value)
    if len(value) > limit:
        raise StateTypeError(f"{name}: {len(value)} bytes exceeds {limit}")
    return value


def _encode_container(fields: Sequence[tuple[bytes, bool]]) -> bytes:
    """Encode (value, is_variable) pairs as an SSZ container."""
    fixed_size = sum(OFFSET_SIZE if variable else len(value) for value, variable in fields)
    head = bytearray()
    tail = bytearray()
    for value, variable in fields:
        if variable:
            head += (fixed_size + len(tail)).to_bytes(OFFSET_SIZE, "little")
            tail += value
        else:
            head += value
    return bytes(head + tail)


def _decode_container(data: bytes, sizes: Sequence[Optional[int]]) -> list[bytes]:
    """Split an SSZ container into its fields; None in sizes marks a variable field."""
    data = bytes(data)
    fixed_size = sum(OFFSET_SIZE if size is None else size for size in sizes)
    if len(data) < fixed_size:
        raise StateTypeError(f"buffer of {len(data)} bytes is smaller than {fixed_size}")
    values: list[bytes] = []
    offsets: list[tuple[int, int]] = []
    pos = 0
    for size in sizes:
        if size is None:
            offset = int.from_bytes(data[pos : pos + OFFSET_SIZE], "little")
            offsets.append((len(values), offset))
            values.append(b"")
            pos += OFFSET_SIZE
        else:
            values.append(data[pos : pos + size])
            pos += size
    if not offsets:
        if len(data) != fixed_size:
            raise StateTypeError(f"buffer of {len(data)} bytes, want {fixed_size}")
        return values
    if offsets[0][1] != fixed_size:
        raise StateTypeError("first offset does not match the fixed size")
    ends = [offset for _, offset in offsets[1:]] + [len(data)]
    for (index, start), end in zip(offsets, ends):
        if start > end or end > len(data):
            raise StateTypeError("invalid offset order")
        values[index] = data[start:end]
    return values


def _encode_proof(proof: Sequence[bytes], name: str) -> bytes:
    try:
        return encode_byte_lists(proof, MAX_TRIE_PROOF_LENGTH, MAX_TRIE_NODE_LENGTH, name)
    except SSZError as exc:
        raise StateTypeError(str(exc)) from exc


def _decode_proof(data: bytes) -> list[bytes]:
    try:
        return decode_byte_lists(data, MAX_TRIE_PROOF_LENGTH, MAX_TRIE_NODE_LENGTH)
    except SSZError as exc:
        raise StateTypeError(str(exc)) from exc


def from_unpacked_nibbles(nibbles: Sequence[int]) -> Nibbles:
    """Build a Nibbles value, checking the count and the range of each nibble."""
    return Nibbles(bytes(nibbles))


@dataclass(frozen=True)
class Nibbles:
    """A trie path of at most 64 nibbles, packed with a parity flag."""

    nibbles: bytes = b""

    def __post_init__(self) -> None:
        try:
            value = bytes(self.nibbles)
        except ValueError as exc:
            raise StateTypeError("nibble out of range") from exc
        if len(value) > MAX_NIBBLES:
            raise StateTypeError("too many nibbles")
        if any(nibble > 0x0F for nibble in value):
            raise StateTypeError("nibble out of range")
        object.__setattr__(self, "nibbles", value)

    def encode(self) -> bytes:
        nibbles = self.nibbles
        if len(nibbles) % 2 == 0:
            head = bytes([0x00])
        else:
            head = bytes([0x10 | nibbles[0]])
            nibbles = nibbles[1:]
        return head + bytes((hi << 4) | lo for hi, lo in zip(nibbles[0::2], nibbles[1::2]))

    @classmethod
    def decode(cls, data: bytes) -> Nibbles:
        data = bytes(data)
        if not data:
            raise StateTypeError("nibbles: unexpected end of input")
        flag, first = unpack_nibble_pair(data[0])
        if flag == 0:
            if first != 0:
                raise StateTypeError(
                    "nibbles: The lowest 4 bits of the first byte must be 0, "
                    f"but was: {first:x}"
                )
            nibbles = bytearray()
        elif flag == 1:
            nibbles = bytearray([first])
        else:
            raise StateTypeError(
                "nibbles: The highest 4 bits of the first byte must be 0 or 1, "
                f"but was: {flag:x}"
            )
        for byte in data[1:]:
            nibbles.extend(unpack_nibble_pair(byte))
        return from_unpacked_nibbles(nibbles)

    def byte_length(self) -> int:
        return len(self.nibbles) // 2 + 1


@dataclass(frozen=True)
class AccountTrieNodeKey:
    """Content key of a node in the account trie."""

    path: Nibbles = field(default_factory=Nibbles)
    node_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "node_hash", _bytes32(self.node_hash, "NodeHash"))

    def encode(self) -> bytes:
        return _encode_container([(self.path.encode(), True), (self.node_hash, False)])

    @classmethod
    def decode(cls, data: bytes) -> AccountTrieNodeKey:
        path, hash_ = _decode_container(data, [None, HASH_SIZE])
        return cls(Nibbles.decode(path), hash_)


@dataclass(frozen=True)
class ContractStorageTrieNodeKey:
    """Content key of a node in a contract's storage trie."""

    address_hash: bytes = bytes(HASH_SIZE)
    path: Nibbles = field(default_factory=Nibbles)
    node_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address_hash", _bytes32(self.address_hash, "AddressHash"))
        object.__setattr__(self, "node_hash", _bytes32(self.node_hash, "NodeHash"))

    def encode(self) -> bytes:
        return _encode_container(
            [(self.address_hash, False), (self.path.encode(), True), (self.node_hash, False)]
        )

    @classmethod
    def decode(cls, data: bytes) -> ContractStorageTrieNodeKey:
        address, path, hash_ = _decode_container(data, [HASH_SIZE, None, HASH_SIZE])
        return cls(address, Nibbles.decode(path), hash_)


@dataclass(frozen=True)
class ContractBytecodeKey:
    """Content key of a contract's bytecode."""

    address_hash: bytes = bytes(HASH_SIZE)
    code_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address_hash", _bytes32(self.address_hash, "AddressHash"))
        object.__setattr__(self, "code_hash", _bytes32(self.code_hash, "CodeHash"))

    def encode(self) -> bytes:
        return self.address_hash + self.code_hash

    @classmethod
    def decode(cls, data: bytes) -> ContractBytecodeKey:
        address, code = _decode_container(data, [HASH_SIZE, HASH_SIZE])
        return cls(address, code)


@dataclass(frozen=True)
class TrieNode:
    """Content value returned when retrieving a trie node."""

    node: bytes = b""

    def encode(self) -> bytes:
        node = _limited(self.node, MAX_TRIE_NODE_LENGTH, "TrieNode.Node")
        return _encode_container([(node, True)])

    @classmethod
    def decode(cls, data: bytes) -> TrieNode:
        (node,) = _decode_container(data, [None])
        return cls(_limited(node, MAX_TRIE_NODE_LENGTH, "TrieNode.Node"))


@dataclass(frozen=True)
class ContractBytecodeContainer:
    """Content value returned when retrieving a contract's bytecode."""

    code: bytes = b""

    def encode(self) -> bytes:
        code = _limited(self.code, MAX_CONTRACT_BYTECODE_LENGTH, "Code")
        return _encode_container([(code, True)])

    @classmethod
    def decode(cls, data: bytes) -> ContractBytecodeContainer:
        (code,) = _decode_container(data, [None])
        return cls(_limited(code, MAX_CONTRACT_BYTECODE_LENGTH, "Code"))


@dataclass(frozen=True)
class AccountTrieNodeWithProof:
    """Content value offered for an account trie node: its proof and anchor block."""

    proof: list = field(default_factory=list)
    block_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "proof", [bytes(node) for node in self.proof])
        object.__setattr__(self, "block_hash", _bytes32(self.block_hash, "BlockHash"))

    def encode(self) -> bytes:
        return _encode_container(
            [(_encode_proof(self.proof, "Proof"), True), (self.block_hash, False)]
        )

    @classmethod
    def decode(cls, data: bytes) -> AccountTrieNodeWithProof:
        proof, block = _decode_container(data, [None, HASH_SIZE])
        return cls(_decode_proof(proof), block)


@dataclass(frozen=True)
class ContractStorageTrieNodeWithProof:
    """Content value offered for a storage trie node: both proofs and anchor block."""

    storage_proof: list = field(default_factory=list)
    account_proof: list = field(default_factory=list)
    block_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "storage_proof", [bytes(n) for n in self.storage_proof])
        object.__setattr__(self, "account_proof", [bytes(n) for n in self.account_proof])
        object.__setattr__(self, "block_hash", _bytes32(self.block_hash, "BlockHash"))

    def encode(self) -> bytes:
        return _encode_container(
            [
                (_encode_proof(self.storage_proof, "StorageProof"), True),
                (_encode_proof(self.account_proof, "AccountProof"), True),
                (self.block_hash, False),
            ]
        )

    @classmethod
    def decode(cls, data: bytes) -> ContractStorageTrieNodeWithProof:
        storage, account, block = _decode_container(data, [None, None, HASH_SIZE])
        return cls(_decode_proof(storage), _decode_proof(account), block)


@dataclass(frozen=True)
class ContractBytecodeWithProof:
    """Content value offered for bytecode: the code, its account proof and anchor block."""

    code: bytes = b""
    account_proof: list = field(default_factory=list)
    block_hash: bytes = bytes(HASH_SIZE)

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", bytes(self.code))
        object.__setattr__(self, "account_proof", [bytes(n) for n in self.account_proof])
        object.__setattr__(self, "block_hash", _bytes32(self.block_hash, "BlockHash"))

    def encode(self) -> bytes:
        code = _limited(self.code, MAX_CONTRACT_BYTECODE_LENGTH, "Code")
        return _encode_container(
            [
                (code, True),
                (_encode_proof(self.account_proof, "AccountProof"), True),
                (self.block_hash, False),
            ]
        )

    @classmethod
    def decode(cls, data: bytes) -> ContractBytecodeWithProof:
        code, account, block = _decode_container(data, [None, None, HASH_SIZE])
        code = _limited(code, MAX_CONTRACT_BYTECODE_LENGTH, "Code")
        return cls(code, _decode_proof(account), block)