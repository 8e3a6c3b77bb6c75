"""Request messages of the portal wire protocol and their SSZ encodings."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from shisui.wire import (
    CONTENT_KEYS_LIMIT,
    MAX_CONTENT_LENGTH,
    OFFSET_SIZE,
    SSZError,
    decode_byte_lists,
    encode_byte_lists,
    read_offset,
)

MAX_PING_PAYLOAD = 1100
MAX_DISTANCES = 256
DISTANCE_SIZE = 2

_PING_HEADER = struct.Struct("<QH")
_PING_FIXED_SIZE = _PING_HEADER.size + OFFSET_SIZE


def _offset(value: int) -> bytes:
    return value.to_bytes(OFFSET_SIZE, "little")


def _check_min_size(data: bytes, minimum: int) -> None:
    if len(data) < minimum:
        raise SSZError(f"buffer of {len(data)} bytes is smaller than {minimum}")


@dataclass
class Ping:
    """A PING request carrying the sender's record sequence and a typed payload."""

    enr_seq: int = 0
    payload_type: int = 0
    payload: bytes = b""

    def encode(self) -> bytes:
        if len(self.payload) > MAX_PING_PAYLOAD:
            raise SSZError(
                f"Ping.Payload: {len(self.payload)} bytes exceeds {MAX_PING_PAYLOAD}"
            )
        try:
            header = _PING_HEADER.pack(self.enr_seq, self.payload_type)
        except struct.error as exc:
            raise SSZError(f"Ping: {exc}") from exc
        return header + _offset(_PING_FIXED_SIZE) + bytes(self.payload)

    @classmethod
    def decode(cls, data: bytes) -> Ping:
        data = bytes(data)
        _check_min_size(data, _PING_FIXED_SIZE)
        enr_seq, payload_type = _PING_HEADER.unpack_from(data, 0)
        start = read_offset(data, _PING_HEADER.size, _PING_FIXED_SIZE)
        payload = data[start:]
        if len(payload) > MAX_PING_PAYLOAD:
            raise SSZError(f"payload of {len(payload)} bytes exceeds {MAX_PING_PAYLOAD}")
        return cls(enr_seq, payload_type, payload)

    def size(self) -> int:
        return _PING_FIXED_SIZE + len(self.payload)


@dataclass
class FindNodes:
    """A FINDNODES request listing log distances, each as two little-endian bytes."""

    distances: list[bytes] = field(default_factory=list)

    def encode(self) -> bytes:
        if len(self.distances) > MAX_DISTANCES:
            raise SSZError(
                f"FindNodes.Distances: list too big ({len(self.distances)} > {MAX_DISTANCES})"
            )
        items = [bytes(distance) for distance in self.distances]
        for item in items:
            if len(item) != DISTANCE_SIZE:
                raise SSZError(
                    f"FindNodes.Distances: item of {len(item)} bytes, want {DISTANCE_SIZE}"
                )
        return _offset(OFFSET_SIZE) + b"".join(items)

    @classmethod
    def decode(cls, data: bytes) -> FindNodes:
        data = bytes(data)
        _check_min_size(data, OFFSET_SIZE)
        start = read_offset(data, 0, OFFSET_SIZE)
        body = data[start:]
        if len(body) % DISTANCE_SIZE:
            raise SSZError(f"{len(body)} bytes is not a multiple of {DISTANCE_SIZE}")
        count = len(body) // DISTANCE_SIZE
        if count > MAX_DISTANCES:
            raise SSZError(f"list too big ({count} > {MAX_DISTANCES})")
        return cls(
            [body[pos : pos + DISTANCE_SIZE] for pos in range(0, len(body), DISTANCE_SIZE)]
        )

    def size(self) -> int:
        return OFFSET_SIZE + DISTANCE_SIZE * len(self.distances)


@dataclass
class FindContent:
    """A FINDCONTENT request for a single content key."""

    content_key: bytes = b""

    def encode(self) -> bytes:
        if len(self.content_key) > MAX_CONTENT_LENGTH:
            raise SSZError(
                f"FindContent.ContentKey: {len(self.content_key)} bytes "
                f"exceeds {MAX_CONTENT_LENGTH}"
            )
        return _offset(OFFSET_SIZE) + bytes(self.content_key)

    @classmethod
    def decode(cls, data: bytes) -> FindContent:
        data = bytes(data)
        _check_min_size(data, OFFSET_SIZE)
        start = read_offset(data, 0, OFFSET_SIZE)
        key = data[start:]
        if len(key) > MAX_CONTENT_LENGTH:
            raise SSZError(f"content key of {len(key)} bytes exceeds {MAX_CONTENT_LENGTH}")
        return cls(key)

    def size(self) -> int:
        return OFFSET_SIZE + len(self.content_key)


@dataclass
class Offer:
    """An OFFER request listing the content keys the sender can provide."""

    content_keys: list[bytes] = field(default_factory=list)

    def encode(self) -> bytes:
        body = encode_byte_lists(
            self.content_keys, CONTENT_KEYS_LIMIT, MAX_CONTENT_LENGTH, "Offer.ContentKeys"
        )
        return _offset(OFFSET_SIZE) + body

    @classmethod
    def decode(cls, data: bytes) -> Offer:
        data = bytes(data)
        _check_min_size(data, OFFSET_SIZE)
        start = read_offset(data, 0, OFFSET_SIZE)
        return cls(decode_byte_lists(data[start:], CONTENT_KEYS_LIMIT, MAX_CONTENT_LENGTH))

    def size(self) -> int:
        return OFFSET_SIZE + sum(OFFSET_SIZE + len(key) for key in self.content_keys)