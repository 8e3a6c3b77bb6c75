"""Response messages of the portal wire protocol and their SSZ encodings."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from shisui.wire import (
    CONTENT_KEYS_LIMIT,
    MAX_CONTENT_LENGTH,
    MAX_ENRS,
    OFFSET_SIZE,
    SSZError,
    decode_byte_lists,
    encode_byte_lists,
    read_offset,
)

MAX_PONG_PAYLOAD = 1100
CONNECTION_ID_SIZE = 2

_PONG_HEADER = struct.Struct("<QH")
_PONG_FIXED_SIZE = _PONG_HEADER.size + OFFSET_SIZE
_NODES_FIXED_SIZE = 1 + OFFSET_SIZE
_ACCEPT_FIXED_SIZE = CONNECTION_ID_SIZE + OFFSET_SIZE


def _offset(value: int) -> bytes:
    return value.to_bytes(OFFSET_SIZE, "little")


def _check_min_size(data: bytes, minimum: int) -> None:
    if len(data) < minimum:
        raise SSZError(f"buffer of {len(data)} bytes is smaller than {minimum}")


def _validate_bitlist(data: bytes, bit_limit: int) -> None:
    """Check that data is a well-formed SSZ bitlist of at most bit_limit bits."""
    if not data:
        raise SSZError("bitlist empty, it does not have length bit")
    max_bytes = (bit_limit >> 3) + 1
    if len(data) > max_bytes:
        raise SSZError(
            f"unexpected number of bytes, got {len(data)} but found {max_bytes}"
        )
    last = data[-1]
    if last == 0:
        raise SSZError("trailing byte is zero")
    num_bits = 8 * (len(data) - 1) + last.bit_length() - 1
    if num_bits > bit_limit:
        raise SSZError("too many bits")


@dataclass
class Pong:
    """A PONG response carrying the responder's record sequence and a typed payload."""

    enr_seq: int = 0
    payload_type: int = 0
    payload: bytes = b""

    def encode(self) -> bytes:
        if len(self.payload) > MAX_PONG_PAYLOAD:
            raise SSZError(
                f"Pong.Payload: {len(self.payload)} bytes exceeds {MAX_PONG_PAYLOAD}"
            )
        try:
            header = _PONG_HEADER.pack(self.enr_seq, self.payload_type)
        except struct.error as exc:
            raise SSZError(f"Pong: {exc}") from exc
        return header + _offset(_PONG_FIXED_SIZE) + bytes(self.payload)

    @classmethod
    def decode(cls, data: bytes) -> Pong:
        data = bytes(data)
        _check_min_size(data, _PONG_FIXED_SIZE)
        enr_seq, payload_type = _PONG_HEADER.unpack_from(data, 0)
        start = read_offset(data, _PONG_HEADER.size, _PONG_FIXED_SIZE)
        payload = data[start:]
        if len(payload) > MAX_PONG_PAYLOAD:
            raise SSZError(f"payload of {len(payload)} bytes exceeds {MAX_PONG_PAYLOAD}")
        return cls(enr_seq, payload_type, payload)

    def size(self) -> int:
        return _PONG_FIXED_SIZE + len(self.payload)


@dataclass
class Nodes:
    """A NODES response: the total number of messages and a list of encoded records."""

    total: int = 0
    enrs: list[bytes] = field(default_factory=list)

    def encode(self) -> bytes:
        if not 0 <= self.total <= 0xFF:
            raise SSZError(f"Nodes.Total: {self.total} does not fit in one byte")
        body = encode_byte_lists(self.enrs, MAX_ENRS, MAX_CONTENT_LENGTH, "Nodes.Enrs")
        return bytes([self.total]) + _offset(_NODES_FIXED_SIZE) + body

    @classmethod
    def decode(cls, data: bytes) -> Nodes:
        data = bytes(data)
        _check_min_size(data, _NODES_FIXED_SIZE)
        start = read_offset(data, 1, _NODES_FIXED_SIZE)
        enrs = decode_byte_lists(data[start:], MAX_ENRS, MAX_CONTENT_LENGTH)
        return cls(data[0], enrs)

    def size(self) -> int:
        return _NODES_FIXED_SIZE + sum(OFFSET_SIZE + len(enr) for enr in self.enrs)


@dataclass
class ConnectionId:
    """The two-byte identifier of a uTP connection."""

    id: bytes = b"\x00\x00"

    def encode(self) -> bytes:
        if len(self.id) != CONNECTION_ID_SIZE:
            raise SSZError(
                f"ConnectionId.Id: {len(self.id)} bytes, want {CONNECTION_ID_SIZE}"
            )
        return bytes(self.id)

    @classmethod
    def decode(cls, data: bytes) -> ConnectionId:
        data = bytes(data)
        if len(data) != CONNECTION_ID_SIZE:
            raise SSZError(f"buffer of {len(data)} bytes, want {CONNECTION_ID_SIZE}")
        return cls(data)

    def size(self) -> int:
        return CONNECTION_ID_SIZE


@dataclass
class Accept:
    """An ACCEPT response: a connection id and a bitlist of the accepted keys."""

    connection_id: bytes = b"\x00\x00"
    content_keys: bytes = b"\x01"

    def encode(self) -> bytes:
        if len(self.connection_id) != CONNECTION_ID_SIZE:
            raise SSZError(
                f"Accept.ConnectionId: {len(self.connection_id)} bytes, "
                f"want {CONNECTION_ID_SIZE}"
            )
        if len(self.content_keys) > CONTENT_KEYS_LIMIT:
            raise SSZError(
                f"Accept.ContentKeys: {len(self.content_keys)} bytes "
                f"exceeds {CONTENT_KEYS_LIMIT}"
            )
        return (
            bytes(self.connection_id)
            + _offset(_ACCEPT_FIXED_SIZE)
            + bytes(self.content_keys)
        )

    @classmethod
    def decode(cls, data: bytes) -> Accept:
        data = bytes(data)
        _check_min_size(data, _ACCEPT_FIXED_SIZE)
        connection_id = data[:CONNECTION_ID_SIZE]
        start = read_offset(data, CONNECTION_ID_SIZE, _ACCEPT_FIXED_SIZE)
        bitlist = data[start:]
        _validate_bitlist(bitlist, CONTENT_KEYS_LIMIT)
        return cls(connection_id, bitlist)

    def size(self) -> int:
        return _ACCEPT_FIXED_SIZE + len(self.content_keys)