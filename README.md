# shisui

Building blocks for a Portal network state node:

- SSZ encoding and decoding of the Portal wire messages (`shisui.requests`,
  `shisui.responses`, `shisui.wire`)
- RLP encoding and splitting (`shisui.rlp`)
- Merkle-Patricia trie key encodings (`shisui.trie.encoding`)
- State network content keys and values (`shisui.state_types`)
- A storage layer that keeps offered state content in its retrieval form
  (`shisui.storage`)

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Wire messages

Requests live in `shisui.requests` (`Ping`, `FindNodes`, `FindContent`,
`Offer`), responses in `shisui.responses` (`Pong`, `Nodes`, `ConnectionId`,
`Accept`) and `shisui.wire` (`Content`, `Enrs`). Each is a dataclass with
`encode()`, a `decode(data)` class method and `size()`.

```python
from shisui.requests import FindContent, Ping
from shisui.responses import Accept

data = Ping(enr_seq=1, payload_type=0, payload=b"\x01\x02").encode()
assert Ping.decode(data).payload == b"\x01\x02"

find = FindContent(content_key=bytes.fromhex("706f7274616c"))
assert find.encode().hex() == "04000000706f7274616c"

accept = Accept(connection_id=b"\x01\x02", content_keys=b"\x01\x01")
assert accept.encode().hex() == "0102060000000101"
```

Protocol limits (payload length, number of content keys, ENR count and size,
connection id length, bitlist shape) are checked; a violation raises
`shisui.wire.SSZError`, a `ValueError`.

`shisui.wire` also holds the message codes (`MessageCode`), the CONTENT
selectors (`ContentSelector`), the sub-protocol identifiers (`STATE`,
`HISTORY`, `BEACON`, ...) with `protocol_name()`, and the helpers
`encode_byte_lists`, `decode_byte_lists` and `read_offset`.

## RLP

```python
from shisui import rlp

data = rlp.encode([b"cat", b"dog"])
payload, rest = rlp.split_list(data)
assert rlp.count_values(payload) == 2
kind, content, rest = rlp.split(payload)
assert kind is rlp.Kind.STRING and content == b"cat"
```

Malformed input raises `rlp.RLPError`.

## Trie key encodings

```python
from shisui.trie.encoding import compact_to_hex, hex_to_compact, keybytes_to_hex

assert hex_to_compact(bytes([1, 2, 3, 4, 5])) == bytes([0x11, 0x23, 0x45])
assert compact_to_hex(bytes([0x11, 0x23, 0x45])) == bytes([1, 2, 3, 4, 5])
assert keybytes_to_hex(b"\x12") == bytes([1, 2, 16])
```

`hex_to_compact_in_place`, `hex_to_keybytes`, `prefix_len` and `has_term`
complete the set.

## State content types

`shisui.state_types` defines the content keys (`AccountTrieNodeKey`,
`ContractStorageTrieNodeKey`, `ContractBytecodeKey`), the offered values
(`AccountTrieNodeWithProof`, `ContractStorageTrieNodeWithProof`,
`ContractBytecodeWithProof`), the retrieval values (`TrieNode`,
`ContractBytecodeContainer`) and the packed path type `Nibbles`, each with
`encode()` and `decode(data)`. `node_hash()` gives the keccak-256 of an
encoded node. Malformed values raise `StateTypeError`.

```python
from shisui.state_types import Nibbles

assert Nibbles(bytes([1, 2, 3])).encode() == b"\x11\x23"
assert Nibbles.decode(b"\x11\x23").nibbles == bytes([1, 2, 3])
```

## Storage

```python
from shisui.storage import MemoryContentStorage, StateStorage, default_content_id

store = StateStorage(MemoryContentStorage())
content_id = default_content_id(content_key)
store.put(content_key, content_id, offered_value)
retrieved = store.get(content_key, content_id)
```

`StateStorage.put` decodes the key and the offered value, checks that the
last proof node (or the bytecode) hashes to the hash in the key, and stores
the `TrieNode` or `ContractBytecodeContainer` encoding under the content id.
An unknown key type or a hash mismatch raises `StorageError`; a failure of
the underlying store is logged. `MemoryContentStorage.get` raises
`StorageError` for a missing id.

## What this package does not do

- It does not decode trie nodes or walk them, so it cannot check a proof
  against a state root; `StateStorage` only checks the last node's hash.
- It does not run a node: there is no networking, routing table, command or
  server, and the only store provided is the in-memory one.