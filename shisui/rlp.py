"""Recursive Length Prefix encoding and the low-level splitting helpers used by trie decoding."""

from __future__ import annotations

import enum
from typing import Union

Item = Union[bytes, bytearray, memoryview, int, list, tuple]


class RLPError(ValueError):
    """Raised when RLP input is malformed or a value cannot be encoded."""


class Kind(enum.Enum):
    """The kind of an RLP value found at the start of a buffer."""

    BYTE = "byte"
    STRING = "string"
    LIST = "list"


_SHORT_STRING = 0x80
_SHORT_LIST = 0xC0
_LONG_THRESHOLD = 56


def _header(length: int, offset: int) -> bytes:
    if length < _LONG_THRESHOLD:
        return bytes([offset + length])
    size_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + _LONG_THRESHOLD - 1 + len(size_bytes)]) + size_bytes


def encode(item: Item) -> bytes:
    """Encode a byte string, a non-negative integer or a nested list of them."""
    if isinstance(item, (bytes, bytearray, memoryview)):
        payload = bytes(item)
        if len(payload) == 1 and payload[0] < _SHORT_STRING:
            return payload
        return _header(len(payload), _SHORT_STRING) + payload
    if isinstance(item, bool):
        raise TypeError("cannot RLP-encode a bool")
    if isinstance(item, int):
        if item < 0:
            raise RLPError("cannot encode negative integer")
        return encode(item.to_bytes((item.bit_length() + 7) // 8, "big"))
    if isinstance(item, (list, tuple)):
        payload = b"".join(encode(element) for element in item)
        return _header(len(payload), _SHORT_LIST) + payload
    raise TypeError(f"cannot RLP-encode value of type {type(item).__name__}")


def _read_size(buf: bytes, size_len: int) -> int:
    if len(buf) < size_len:
        raise RLPError("unexpected end of input")
    size_bytes = buf[:size_len]
    if size_bytes[0] == 0:
        raise RLPError("non-canonical size information")
    return int.from_bytes(size_bytes, "big")


def _read_kind(buf: bytes) -> tuple[Kind, int, int]:
    """Return the kind, header size and content size of the value at the start of buf."""
    if not buf:
        raise RLPError("unexpected end of input")
    first = buf[0]
    if first < 0x80:
        return Kind.BYTE, 0, 1
    if first < 0xB8:
        size = first - 0x80
        if size == 1 and len(buf) > 1 and buf[1] < 0x80:
            raise RLPError("non-canonical size information")
        return Kind.STRING, 1, size
    if first < 0xC0:
        size_len = first - 0xB7
        size = _read_size(buf[1:], size_len)
        if size < _LONG_THRESHOLD:
            raise RLPError("non-canonical size information")
        return Kind.STRING, 1 + size_len, size
    if first < 0xF8:
        return Kind.LIST, 1, first - 0xC0
    size_len = first - 0xF7
    size = _read_size(buf[1:], size_len)
    if size < _LONG_THRESHOLD:
        raise RLPError("non-canonical size information")
    return Kind.LIST, 1 + size_len, size


def split(buf: bytes) -> tuple[Kind, bytes, bytes]:
    """Split the first RLP value off buf, returning its kind, content and the remainder."""
    buf = bytes(buf)
    kind, tag_size, content_size = _read_kind(buf)
    if content_size > len(buf) - tag_size:
        raise RLPError("value size exceeds available input length")
    end = tag_size + content_size
    return kind, buf[tag_size:end], buf[end:]


def split_string(buf: bytes) -> tuple[bytes, bytes]:
    """Split off a string value, returning its content and the remainder."""
    kind, content, rest = split(buf)
    if kind is Kind.LIST:
        raise RLPError("expected String or Byte")
    return content, rest


def split_list(buf: bytes) -> tuple[bytes, bytes]:
    """Split off a list value, returning its payload and the remainder."""
    kind, content, rest = split(buf)
    if kind is not Kind.LIST:
        raise RLPError("expected List")
    return content, rest


def count_values(buf: bytes) -> int:
    """Count the RLP values packed one after another in buf."""
    count = 0
    rest = bytes(buf)
    while rest:
        _, _, rest = split(rest)
        count += 1
    return count