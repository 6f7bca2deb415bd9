"""ONC RPC (RFC 5531) clients over UDP and TCP, with portmapper lookups."""

import enum
import errno
import logging
import random
import socket
import struct
import time

from nfsping.xdr import Packer, Unpacker, XdrError

log = logging.getLogger(__name__)

PMAPPROG = 100000
PMAPVERS = 2
PMAPPORT = 111
PMAPPROC_NULL = 0
PMAPPROC_GETPORT = 3

RPC_VERSION = 2
CALL = 0
REPLY = 1
MSG_ACCEPTED = 0
MSG_DENIED = 1
AUTH_NONE = 0

_SUCCESS = 0
_PROG_MISMATCH = 2
_RPC_MISMATCH = 0
_AUTH_ERROR = 1

_ACCEPT_ERRORS = {
    1: "Program unavailable",
    2: "Program/version mismatch",
    3: "Procedure unavailable",
    4: "Server can't decode arguments",
    5: "Remote system error",
}

_LAST_FRAGMENT = 0x80000000
_RECORD_MARK = struct.Struct(">I")
_MAX_DATAGRAM = 65536
_RESERVED_PORTS = range(1023, 511, -1)


class RpcError(Exception):
    """An RPC call or connection failed; errno is set for socket errors."""

    def __init__(self, message, error_number=None):
        super().__init__(message)
        self.message = message
        self.errno = error_number


class _XidMismatch(RpcError):
    """A reply arrived for a different call."""


class Transport(enum.Enum):
    """The IP transport an RPC client uses."""

    UDP = "udp"
    TCP = "tcp"

    @property
    def socktype(self):
        """The socket type for this transport."""
        return socket.SOCK_DGRAM if self is Transport.UDP else socket.SOCK_STREAM

    @property
    def protocol(self):
        """The IP protocol number the portmapper expects."""
        return 17 if self is Transport.UDP else 6


def build_call(xid, program, version, procedure, args=b""):
    """Encode an RPC call message with AUTH_NONE credentials."""
    packer = Packer()
    for value in (xid, CALL, RPC_VERSION, program, version, procedure):
        packer.pack_uint(value)
    packer.pack_uint(AUTH_NONE)
    packer.pack_opaque(b"")
    packer.pack_uint(AUTH_NONE)
    packer.pack_opaque(b"")
    return packer.get_buffer() + bytes(args)


def parse_reply(xid, data):
    """Decode an RPC reply to call xid and return the result bytes.

    Raises RpcError when the reply belongs to another call, is malformed, or
    reports that the call was not accepted.
    """
    unpacker = Unpacker(data)
    try:
        reply_xid = unpacker.unpack_uint()
        if reply_xid != xid:
            raise _XidMismatch(f"RPC: reply xid {reply_xid} does not match call xid {xid}")
        if unpacker.unpack_uint() != REPLY:
            raise RpcError("RPC: message is not a reply")
        reply_stat = unpacker.unpack_uint()
        if reply_stat == MSG_ACCEPTED:
            unpacker.unpack_uint()
            unpacker.unpack_opaque()
            accept_stat = unpacker.unpack_uint()
            if accept_stat == _SUCCESS:
                return unpacker.remaining()
            if accept_stat == _PROG_MISMATCH:
                low = unpacker.unpack_uint()
                high = unpacker.unpack_uint()
                raise RpcError(
                    f"RPC: Program/version mismatch; low version = {low}, high version = {high}"
                )
            reason = _ACCEPT_ERRORS.get(accept_stat, f"Unknown accept status {accept_stat}")
            raise RpcError(f"RPC: {reason}")
        if reply_stat == MSG_DENIED:
            reject_stat = unpacker.unpack_uint()
            if reject_stat == _RPC_MISMATCH:
                low = unpacker.unpack_uint()
                high = unpacker.unpack_uint()
                raise RpcError(
                    f"RPC: Incompatible versions of RPC; low version = {low}, high version = {high}"
                )
            if reject_stat == _AUTH_ERROR:
                raise RpcError(f"RPC: Authentication error; why = {unpacker.unpack_uint()}")
            raise RpcError(f"RPC: Call rejected with status {reject_stat}")
        raise RpcError(f"RPC: Unknown reply status {reply_stat}")
    except XdrError as exc:
        raise RpcError(f"RPC: Can't decode result ({exc})") from exc


class RpcClient:
    """A connected RPC client for one program and version on one server."""

    _reserved_port = True

    def __init__(self, address, port, program, version, timeout=1.0,
                 transport=Transport.UDP, source=None):
        self.address = address
        self.port = port
        self.program = program
        self.version = version
        self.timeout = timeout
        self.transport = transport
        self.source = source
        self._xid = random.getrandbits(32)
        self._sock = socket.socket(socket.AF_INET, transport.socktype)
        try:
            self._sock.settimeout(timeout)
            self._bind(source)
            self._sock.connect((address, port))
        except OSError as exc:
            self._sock.close()
            self._sock = None
            raise RpcError(
                f"create_rpc_client({address}:{port}): {exc.strerror or exc}", exc.errno
            ) from exc
        local, local_port = self._sock.getsockname()
        log.debug("Connected = %s:%u -> %s:%u", local, local_port, address, port)

    def _bind(self, source):
        host = source or ""
        if self._reserved_port:
            for port in _RESERVED_PORTS:
                try:
                    self._sock.bind((host, port))
                    return
                except PermissionError:
                    break
                except OSError as exc:
                    if exc.errno != errno.EADDRINUSE:
                        raise
        if source:
            self._sock.bind((source, 0))

    def _next_xid(self):
        self._xid = (self._xid + 1) & 0xFFFFFFFF
        return self._xid

    def call(self, procedure, args=b""):
        """Call a remote procedure and return the encoded result."""
        if self._sock is None:
            raise RpcError("RPC: client is closed")
        xid = self._next_xid()
        message = build_call(xid, self.program, self.version, procedure, args)
        try:
            if self.transport is Transport.UDP:
                return self._call_udp(xid, message)
            return self._call_tcp(xid, message)
        except TimeoutError as exc:
            raise RpcError("RPC: Timed out", errno.ETIMEDOUT) from exc
        except OSError as exc:
            raise RpcError(f"RPC: {exc.strerror or exc}", exc.errno) from exc

    def _call_udp(self, xid, message):
        deadline = time.monotonic() + self.timeout
        self._sock.send(message)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError
            self._sock.settimeout(remaining)
            data = self._sock.recv(_MAX_DATAGRAM)
            try:
                return parse_reply(xid, data)
            except _XidMismatch as exc:
                log.debug("%s", exc)

    def _call_tcp(self, xid, message):
        self._sock.settimeout(self.timeout)
        self._sock.sendall(_RECORD_MARK.pack(_LAST_FRAGMENT | len(message)) + message)
        while True:
            data = self._read_record()
            try:
                return parse_reply(xid, data)
            except _XidMismatch as exc:
                log.debug("%s", exc)

    def _read_record(self):
        fragments = []
        while True:
            (header,) = _RECORD_MARK.unpack(self._recv_exact(_RECORD_MARK.size))
            fragments.append(self._recv_exact(header & ~_LAST_FRAGMENT & 0xFFFFFFFF))
            if header & _LAST_FRAGMENT:
                return b"".join(fragments)

    def _recv_exact(self, size):
        buffer = bytearray()
        while len(buffer) < size:
            chunk = self._sock.recv(size - len(buffer))
            if not chunk:
                raise ConnectionResetError(errno.ECONNRESET, "connection closed by server")
            buffer += chunk
        return bytes(buffer)

    def null(self):
        """Call procedure 0; return True on success, raise RpcError otherwise."""
        self.call(0)
        return True

    def close(self):
        """Close the connection; further calls raise RpcError."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        return (
            f"RpcClient({self.address!r}, {self.port}, {self.program}, {self.version}, "
            f"transport={self.transport.value})"
        )


class _PortmapClient(RpcClient):
    """Portmapper queries don't need a reserved source port."""

    _reserved_port = False


def get_rpc_port(client, program, version, transport):
    """Ask the portmapper behind client which port a program listens on."""
    packer = Packer()
    packer.pack_uint(program)
    packer.pack_uint(version)
    packer.pack_uint(transport.protocol)
    packer.pack_uint(0)
    result = Unpacker(client.call(PMAPPROC_GETPORT, packer.get_buffer()))
    try:
        port = result.unpack_uint()
    except XdrError as exc:
        raise RpcError(f"pmapproc_getport_2: Can't decode result ({exc})") from exc
    if port == 0:
        raise RpcError(f"get_rpc_port({client.address}:{program}): program not registered!")
    if port > 0xFFFF:
        raise RpcError(f"get_rpc_port({client.address}:{program}): invalid port {port}")
    return port


def create_rpc_client(address, port, program, version, timeout=1.0,
                      transport=Transport.UDP, source=None):
    """Connect a client, asking the portmapper for the port when port is 0."""
    if not port:
        with _PortmapClient(address, PMAPPORT, PMAPPROG, PMAPVERS, timeout,
                            transport, source) as portmapper:
            port = get_rpc_port(portmapper, program, version, transport)
        log.debug("portmapper = %s:%u", address, port)
    return RpcClient(address, port, program, version, timeout, transport, source)