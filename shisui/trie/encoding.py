"""Conversions between the key encodings used by the Merkle Patricia trie.

KEYBYTES holds the raw key. HEX holds one byte per nibble with an optional
trailing terminator (16) marking a value node. COMPACT is the hex-prefix
encoding: the high nibble of the first byte carries the odd-length and
terminator flags, the low nibble holds the first nibble for odd lengths.
"""

from __future__ import annotations

TERMINATOR = 16


def has_term(key: bytes) -> bool:
    """Return whether a hex key ends with the terminator."""
    return len(key) > 0 and key[-1] == TERMINATOR


def _pack_nibbles(nibbles: bytes) -> bytes:
    return bytes(((hi << 4) & 0xFF) | lo for hi, lo in zip(nibbles[0::2], nibbles[1::2]))


def hex_to_compact(hex_key: bytes) -> bytes:
    """Encode a hex key in compact (hex-prefix) form."""
    hex_key = bytes(hex_key)
    flag = 0
    if has_term(hex_key):
        flag = 1 << 5
        hex_key = hex_key[:-1]
    if len(hex_key) % 2 == 1:
        flag |= (1 << 4) | hex_key[0]
        hex_key = hex_key[1:]
    return bytes([flag]) + _pack_nibbles(hex_key)


def hex_to_compact_in_place(hex_key: bytearray) -> bytearray:
    """Rewrite hex_key into its compact form, truncating it, and return it."""
    hex_len = len(hex_key)
    first = 0
    if hex_len > 0 and hex_key[hex_len - 1] == TERMINATOR:
        first = 1 << 5
        hex_len -= 1
    bin_len = hex_len // 2 + 1
    start = 0
    if hex_len % 2 == 1:
        first |= (1 << 4) | hex_key[0]
        start = 1
    packed = _pack_nibbles(bytes(hex_key[start:hex_len]))
    hex_key[1 : 1 + len(packed)] = packed
    hex_key[0] = first
    del hex_key[bin_len:]
    return hex_key


def keybytes_to_hex(key: bytes) -> bytes:
    """Expand key bytes into nibbles followed by the terminator."""
    nibbles = bytes(n for b in key for n in divmod(b, 16))
    return nibbles + bytes([TERMINATOR])


def compact_to_hex(compact: bytes) -> bytes:
    """Decode a compact key back into hex form."""
    if not compact:
        return bytes(compact)
    base = keybytes_to_hex(compact)
    if base[0] < 2:
        base = base[:-1]
    chop = 2 - (base[0] & 1)
    return base[chop:]


def hex_to_keybytes(hex_key: bytes) -> bytes:
    """Pack an even-length hex key back into key bytes."""
    hex_key = bytes(hex_key)
    if has_term(hex_key):
        hex_key = hex_key[:-1]
    if len(hex_key) % 2 != 0:
        raise ValueError("can't convert hex key of odd length")
    return _pack_nibbles(hex_key)


def prefix_len(a: bytes, b: bytes) -> int:
    """Return the length of the common prefix of a and b."""
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length