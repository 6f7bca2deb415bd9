import pytest

from nfsping.xdr import Packer, Unpacker, XdrError


def test_uint_wire_format():
    packer = Packer()
    packer.pack_uint(1)
    assert packer.get_buffer() == b"\x00\x00\x00\x01"


def test_negative_int_wire_format():
    packer = Packer()
    packer.pack_int(-1)
    assert packer.get_buffer() == b"\xff\xff\xff\xff"


def test_opaque_is_length_prefixed_and_padded():
    packer = Packer()
    packer.pack_opaque(b"abc")
    assert packer.get_buffer() == b"\x00\x00\x00\x03abc\x00"


@pytest.mark.parametrize("data", [b"", b"a", b"ab", b"abcd", b"abcde", bytes(range(64))])
def test_opaque_round_trip_is_aligned(data):
    packer = Packer()
    packer.pack_opaque(data)
    buffer = packer.get_buffer()
    assert len(buffer) % 4 == 0
    unpacker = Unpacker(buffer)
    assert unpacker.unpack_opaque() == data
    assert unpacker.remaining() == b""


def test_mixed_round_trip():
    packer = Packer()
    packer.pack_uint(0xFFFFFFFF)
    packer.pack_int(-0x80000000)
    packer.pack_bool(True)
    packer.pack_bool(False)
    packer.pack_string("/export/home")
    packer.pack_uint(0)
    unpacker = Unpacker(packer.get_buffer())
    assert unpacker.unpack_uint() == 0xFFFFFFFF
    assert unpacker.unpack_int() == -0x80000000
    assert unpacker.unpack_bool() is True
    assert unpacker.unpack_bool() is False
    assert unpacker.unpack_string() == "/export/home"
    assert unpacker.unpack_uint() == 0
    unpacker.done()
    assert unpacker.remaining() == b""


def test_string_accepts_bytes():
    packer = Packer()
    packer.pack_string(b"host")
    assert Unpacker(packer.get_buffer()).unpack_string() == "host"


@pytest.mark.parametrize("value", [-1, 0x100000000])
def test_uint_out_of_range(value):
    with pytest.raises(XdrError):
        Packer().pack_uint(value)


@pytest.mark.parametrize("value", [-0x80000001, 0x80000000])
def test_int_out_of_range(value):
    with pytest.raises(XdrError):
        Packer().pack_int(value)


def test_short_buffer_raises():
    with pytest.raises(XdrError):
        Unpacker(b"\x00\x00").unpack_uint()


def test_truncated_opaque_raises():
    packer = Packer()
    packer.pack_opaque(b"abcdef")
    with pytest.raises(XdrError):
        Unpacker(packer.get_buffer()[:-4]).unpack_opaque()


def test_invalid_bool_raises():
    packer = Packer()
    packer.pack_uint(2)
    with pytest.raises(XdrError):
        Unpacker(packer.get_buffer()).unpack_bool()


def test_done_with_leftover_data_raises():
    packer = Packer()
    packer.pack_uint(7)
    packer.pack_uint(8)
    unpacker = Unpacker(packer.get_buffer())
    assert unpacker.unpack_uint() == 7
    assert len(unpacker.remaining()) == 4
    with pytest.raises(XdrError):
        unpacker.done()