"""NFSv3 file handles and their JSON description."""

import json
import math
import socket
from dataclasses import dataclass, field

from nfsping.targets import reverse_fqdn

FHSIZE3 = 64


class FileHandleError(ValueError):
    """A file handle or its JSON description is invalid."""


def _is_ipv4(text):
    try:
        socket.inet_pton(socket.AF_INET, text)
    except (OSError, TypeError):
        return False
    return True


@dataclass
class FileHandle:
    """An NFSv3 file handle with the path it names and its ping statistics."""

    data: bytes
    path: str = ""
    results: list = field(default_factory=list, compare=False)
    sent: int = field(default=0, compare=False)
    received: int = field(default=0, compare=False)
    min: float = field(default=math.inf, compare=False)
    max: int = field(default=0, compare=False)
    avg: float = field(default=0.0, compare=False)

    @classmethod
    def from_hex(cls, text):
        """Build a file handle from an even-length hex string of 1 to 64 bytes."""
        if not text or len(text) % 2 or len(text) // 2 > FHSIZE3:
            raise FileHandleError(f"Invalid filehandle: {text}")
        try:
            data = bytes.fromhex(text)
        except ValueError as exc:
            raise FileHandleError(f"Invalid filehandle: {text}") from exc
        if len(data) * 2 != len(text):
            raise FileHandleError(f"Invalid filehandle: {text}")
        return cls(data)

    def to_hex(self):
        """Return the handle as lower-case hex."""
        return self.data.hex()


def _string(document, key):
    value = document.get(key)
    return value if isinstance(value, str) else None


def parse_fh(targets, text, port, timeout, count=0):
    """Add the file handle described by a JSON object to its target.

    The object needs "ip", "host", "path" and "filehandle" strings. Returns
    the target, which is created in targets if its IP is new.
    """
    if not text:
        raise FileHandleError("No input!")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FileHandleError(f"Invalid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise FileHandleError("Filehandle input must be a JSON object")

    ip_address = _string(document, "ip")
    if ip_address is None:
        raise FileHandleError("No ip found!")
    if not _is_ipv4(ip_address):
        raise FileHandleError(f"Invalid IP address: {ip_address}")
    host = _string(document, "host")
    if host is None:
        raise FileHandleError("No host found!")
    path = _string(document, "path")
    if path is None:
        raise FileHandleError("No path found!")
    hex_handle = _string(document, "filehandle")
    if hex_handle is None:
        raise FileHandleError("No filehandle found!")

    handle = FileHandle.from_hex(hex_handle)
    handle.path = path
    handle.results = [0] * count

    target = targets.find_or_make(ip_address, port, timeout, count)
    target.name = host
    target.display_name = host
    target.ndqf = reverse_fqdn(host)
    target.filehandles.append(handle)
    return target