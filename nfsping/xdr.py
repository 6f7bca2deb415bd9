"""Minimal XDR (RFC 4506) encoding and decoding for ONC RPC messages."""

import struct

_UINT = struct.Struct(">I")
_INT = struct.Struct(">i")

_UINT_MAX = 0xFFFFFFFF
_INT_MIN = -0x80000000
_INT_MAX = 0x7FFFFFFF


class XdrError(ValueError):
    """Raised when a value cannot be encoded or a buffer cannot be decoded."""


def _padding(length):
    return (-length) % 4


class Packer:
    """Accumulates XDR-encoded values into a byte buffer."""

    def __init__(self):
        self._buffer = bytearray()

    def pack_uint(self, value):
        """Append an unsigned 32-bit integer."""
        if not _UINT_MAX >= value >= 0:
            raise XdrError(f"unsigned int out of range: {value}")
        self._buffer += _UINT.pack(value)

    def pack_int(self, value):
        """Append a signed 32-bit integer."""
        if not _INT_MAX >= value >= _INT_MIN:
            raise XdrError(f"int out of range: {value}")
        self._buffer += _INT.pack(value)

    def pack_bool(self, value):
        """Append a boolean as 0 or 1."""
        self.pack_uint(1 if value else 0)

    def pack_opaque(self, data):
        """Append variable-length opaque data with its length and padding."""
        data = bytes(data)
        if len(data) > _UINT_MAX:
            raise XdrError("opaque data too long")
        self.pack_uint(len(data))
        self._buffer += data
        self._buffer += b"\x00" * _padding(len(data))

    def pack_string(self, data):
        """Append a string; text is encoded as UTF-8."""
        if isinstance(data, str):
            data = data.encode("utf-8", "surrogateescape")
        self.pack_opaque(data)

    def get_buffer(self):
        """Return everything packed so far."""
        return bytes(self._buffer)


class Unpacker:
    """Reads XDR-encoded values from a byte buffer in order."""

    def __init__(self, data):
        self._data = bytes(data)
        self._pos = 0

    def _take(self, size):
        end = self._pos + size
        if end > len(self._data):
            raise XdrError(
                f"buffer too short: need {size} bytes at offset {self._pos}, "
                f"have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def unpack_uint(self):
        """Read an unsigned 32-bit integer."""
        return _UINT.unpack(self._take(4))[0]

    def unpack_int(self):
        """Read a signed 32-bit integer."""
        return _INT.unpack(self._take(4))[0]

    def unpack_bool(self):
        """Read a boolean, rejecting anything other than 0 or 1."""
        value = self.unpack_uint()
        if value not in (0, 1):
            raise XdrError(f"invalid boolean value: {value}")
        return value == 1

    def unpack_opaque(self):
        """Read variable-length opaque data."""
        length = self.unpack_uint()
        data = self._take(length)
        self._take(_padding(length))
        return data

    def unpack_string(self):
        """Read a string and decode it as UTF-8."""
        return self.unpack_opaque().decode("utf-8", "surrogateescape")

    def remaining(self):
        """Return the bytes not yet read."""
        return self._data[self._pos:]

    def done(self):
        """Raise XdrError if any data is left unread."""
        if self._pos < len(self._data):
            raise XdrError(f"{len(self._data) - self._pos} unread bytes left")