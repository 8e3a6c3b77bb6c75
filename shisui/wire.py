"""Portal wire protocol identifiers and the SSZ helpers shared by its messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class MessageCode(enum.IntEnum):
    """Message codes of the portal wire protocol."""

    PING = 0x00
    PONG = 0x01
    FINDNODES = 0x02
    NODES = 0x03
    FINDCONTENT = 0x04
    CONTENT = 0x05
    OFFER = 0x06
    ACCEPT = 0x07


class ContentSelector(enum.IntEnum):
    """Selectors of the CONTENT response union."""

    CONNECTION_ID = 0x00
    RAW = 0x01
    ENRS = 0x02


CONTENT_KEYS_LIMIT = 64
# One byte for the union selector plus a four-byte offset.
OFFER_MESSAGE_OVERHEAD = 5
# Each key in an offered key list carries a four-byte offset.
PER_CONTENT_KEY_OVERHEAD = 4

STATE = bytes([0x50, 0x0A])
HISTORY = bytes([0x50, 0x0B])
BEACON = bytes([0x50, 0x0C])
CANONICAL_INDICES = bytes([0x50, 0x0D])
VERKLE_STATE = bytes([0x50, 0x0E])
TRANSACTION_GOSSIP = bytes([0x50, 0x0F])
UTP = bytes([0x75, 0x74, 0x70])

_PROTOCOL_NAMES = {
    STATE: "state",
    HISTORY: "history",
    BEACON: "beacon",
    CANONICAL_INDICES: "canonical indices",
    VERKLE_STATE: "verkle state",
    TRANSACTION_GOSSIP: "transaction gossip",
}

OFFSET_SIZE = 4
MAX_CONTENT_LENGTH = 2048
MAX_ENRS = 32


class SSZError(ValueError):
    """Raised when an SSZ value cannot be encoded or decoded."""


def protocol_name(protocol_id: bytes) -> str:
    """Return the human-readable name of a sub-protocol, or an empty string."""
    return _PROTOCOL_NAMES.get(bytes(protocol_id), "")


def _offset_bytes(value: int) -> bytes:
    return value.to_bytes(OFFSET_SIZE, "little")


def read_offset(data: bytes, start: int, fixed_size: int) -> int:
    """Read the variable-part offset at start and check it against the buffer."""
    if len(data) < start + OFFSET_SIZE:
        raise SSZError("buffer too small to hold offset")
    offset = int.from_bytes(data[start : start + OFFSET_SIZE], "little")
    if offset > len(data):
        raise SSZError("offset exceeds buffer size")
    if offset < fixed_size:
        raise SSZError("invalid variable offset")
    return offset


def encode_byte_lists(items, max_items: int, max_item_len: int, name: str) -> bytes:
    """Encode a list of byte strings as an SSZ list of variable-size items."""
    items = [bytes(item) for item in items]
    if len(items) > max_items:
        raise SSZError(f"{name}: list too big ({len(items)} > {max_items})")
    offsets = bytearray()
    offset = OFFSET_SIZE * len(items)
    for item in items:
        if len(item) > max_item_len:
            raise SSZError(f"{name}: item of {len(item)} bytes exceeds {max_item_len}")
        offsets += _offset_bytes(offset)
        offset += len(item)
    return bytes(offsets) + b"".join(items)


def decode_byte_lists(data: bytes, max_items: int, max_item_len: int) -> list[bytes]:
    """Decode an SSZ list of variable-size byte strings."""
    data = bytes(data)
    if not data:
        return []
    if len(data) < OFFSET_SIZE:
        raise SSZError("buffer too small to hold offset")
    first = int.from_bytes(data[:OFFSET_SIZE], "little")
    if first == 0 or first % OFFSET_SIZE:
        raise SSZError("invalid variable offset")
    if first > len(data):
        raise SSZError("offset exceeds buffer size")
    count = first // OFFSET_SIZE
    if count > max_items:
        raise SSZError(f"list too big ({count} > {max_items})")
    offsets = [
        int.from_bytes(data[pos : pos + OFFSET_SIZE], "little")
        for pos in range(0, first, OFFSET_SIZE)
    ]
    ends = offsets[1:] + [len(data)]
    items = []
    for start, end in zip(offsets, ends):
        if start > end or end > len(data):
            raise SSZError("invalid offset order")
        item = data[start:end]
        if len(item) > max_item_len:
            raise SSZError(f"item of {len(item)} bytes exceeds {max_item_len}")
        items.append(item)
    return items


@dataclass(frozen=True)
class ContentKV:
    """A content key together with its content."""

    content_key: bytes
    content: bytes


@dataclass
class Content:
    """Raw content carried in a CONTENT response."""

    content: bytes = b""

    def encode(self) -> bytes:
        if len(self.content) > MAX_CONTENT_LENGTH:
            raise SSZError(
                f"Content.Content: {len(self.content)} bytes exceeds {MAX_CONTENT_LENGTH}"
            )
        return bytes(self.content)

    @classmethod
    def decode(cls, data: bytes) -> Content:
        if len(data) > MAX_CONTENT_LENGTH:
            raise SSZError(f"content of {len(data)} bytes exceeds {MAX_CONTENT_LENGTH}")
        return cls(bytes(data))

    def size(self) -> int:
        return len(self.content)


@dataclass
class Enrs:
    """A list of encoded node records carried in a CONTENT response."""

    enrs: list[bytes] = field(default_factory=list)

    def encode(self) -> bytes:
        return encode_byte_lists(self.enrs, MAX_ENRS, MAX_CONTENT_LENGTH, "Enrs.Enrs")

    @classmethod
    def decode(cls, data: bytes) -> Enrs:
        return cls(decode_byte_lists(data, MAX_ENRS, MAX_CONTENT_LENGTH))

    def size(self) -> int:
        return sum(OFFSET_SIZE + len(enr) for enr in self.enrs)