import pytest
from hypothesis import given
from hypothesis import strategies as st

from shisui.requests import FindContent, FindNodes, Offer, Ping
from shisui.wire import SSZError

PING_CASES = [
    (
        "28000000feffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffff"
        "550000007472696e2f76302e312e312d62363166646335632f6c696e75782d7838365f36"
        "342f7275737463312e38312e3000000100ffff",
        "010000000000000000000e000000"
        "28000000feffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffff"
        "550000007472696e2f76302e312e312d62363166646335632f6c696e75782d7838365f36"
        "342f7275737463312e38312e3000000100ffff",
    ),
    (
        "28000000feffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffff"
        "2800000000000100ffff",
        "010000000000000000000e000000"
        "28000000feffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffff"
        "2800000000000100ffff",
    ),
]


@pytest.mark.parametrize("payload_hex,expected_hex", PING_CASES)
def test_ping_vectors(payload_hex, expected_hex):
    ping = Ping(enr_seq=1, payload_type=0, payload=bytes.fromhex(payload_hex))
    data = ping.encode()
    assert data.hex() == expected_hex
    assert ping.size() == len(data)
    assert Ping.decode(data) == ping


def test_ping_payload_too_long():
    with pytest.raises(SSZError):
        Ping(payload=b"\x00" * 1101).encode()


def test_ping_decode_too_short():
    with pytest.raises(SSZError):
        Ping.decode(b"\x00" * 13)


def test_ping_decode_bad_offset():
    data = bytearray(Ping(enr_seq=5, payload=b"abc").encode())
    data[10:14] = (13).to_bytes(4, "little")
    with pytest.raises(SSZError):
        Ping.decode(bytes(data))
    data[10:14] = (100).to_bytes(4, "little")
    with pytest.raises(SSZError):
        Ping.decode(bytes(data))


@given(
    st.integers(min_value=0, max_value=2**64 - 1),
    st.integers(min_value=0, max_value=2**16 - 1),
    st.binary(max_size=1100),
)
def test_ping_round_trip(enr_seq, payload_type, payload):
    ping = Ping(enr_seq, payload_type, payload)
    assert Ping.decode(ping.encode()) == ping


def test_find_nodes_vector():
    distances = [d.to_bytes(2, "little") for d in (256, 255)]
    msg = FindNodes(distances=distances)
    data = msg.encode()
    assert data.hex() == "040000000001ff00"
    assert msg.size() == len(data)
    assert FindNodes.decode(data).distances == distances


def test_find_nodes_too_many():
    with pytest.raises(SSZError):
        FindNodes([b"\x01\x00"] * 257).encode()


def test_find_nodes_decode_odd_length():
    with pytest.raises(SSZError):
        FindNodes.decode(bytes.fromhex("04000000000102"))


def test_find_nodes_bad_item_size():
    with pytest.raises(SSZError):
        FindNodes([b"\x01"]).encode()


def test_find_content_vector():
    msg = FindContent(content_key=bytes.fromhex("706f7274616c"))
    data = msg.encode()
    assert data.hex() == "04000000706f7274616c"
    assert msg.size() == len(data)
    assert FindContent.decode(data) == msg


def test_find_content_key_too_long():
    with pytest.raises(SSZError):
        FindContent(b"\x00" * 2049).encode()


def test_find_content_decode_too_short():
    with pytest.raises(SSZError):
        FindContent.decode(b"\x04\x00")


def test_offer_vector():
    msg = Offer(content_keys=[bytes.fromhex("010203")])
    data = msg.encode()
    assert data.hex() == "0400000004000000010203"
    assert msg.size() == len(data)
    assert Offer.decode(data) == msg


def test_offer_empty_round_trip():
    data = Offer().encode()
    assert data.hex() == "04000000"
    assert Offer.decode(data).content_keys == []


def test_offer_too_many_keys():
    with pytest.raises(SSZError):
        Offer([b"\x01"] * 65).encode()


@given(st.lists(st.binary(max_size=64), max_size=64))
def test_offer_round_trip(keys):
    msg = Offer(keys)
    data = msg.encode()
    assert len(data) == msg.size()
    assert Offer.decode(data).content_keys == keys