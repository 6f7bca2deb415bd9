"""A monitoring check that the portmapper, mount and NFS services of a server answer."""

import enum
import logging
import socket
import sys

from nfsping.protocols import Program
from nfsping.rpc import PMAPPORT, PMAPVERS, RpcError, Transport, create_rpc_client

log = logging.getLogger(__name__)

MOUNTPROC_EXPORT = 5
USAGE = "Usage: nfsup ip-address\n"


class NagiosState(enum.IntEnum):
    """Plugin exit states understood by Nagios."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


def _call(address, program, version, procedure, timeout, transport):
    try:
        with create_rpc_client(address, 0, program, version, timeout, transport) as client:
            client.call(procedure)
    except RpcError as exc:
        log.debug("%s: %s", address, exc)
        return False
    return True


def check_server(address, timeout=1.0, transport=Transport.UDP):
    """Check portmap, then mount exports, then NFSv3; return (state, status line).

    Raises ValueError if address is not an IPv4 address.
    """
    try:
        socket.inet_pton(socket.AF_INET, address)
    except (OSError, TypeError) as exc:
        raise ValueError("Invalid IP address. Consider using $HOSTADDRESS$") from exc

    try:
        portmapper = create_rpc_client(
            address, PMAPPORT, Program.PORTMAP, PMAPVERS, timeout, transport)
    except RpcError as exc:
        log.debug("%s: %s", address, exc)
        return NagiosState.CRITICAL, ""
    with portmapper:
        try:
            portmapper.null()
        except RpcError:
            return NagiosState.CRITICAL, "PMAP FAIL"

    parts = ["PMAP OK"]
    if not _call(address, Program.MOUNT, 3, MOUNTPROC_EXPORT, timeout, transport):
        parts.append("MOUNT FAIL")
        return NagiosState.CRITICAL, " ".join(parts)
    parts.append("MOUNT OK")
    if not _call(address, Program.NFS, 3, 0, timeout, transport):
        parts.append("NFS FAIL")
        return NagiosState.CRITICAL, " ".join(parts)
    parts.append("NFS OK")
    return NagiosState.OK, " ".join(parts)


def main(argv=None):
    """Run the check against the address given; return the Nagios state."""
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        sys.stdout.write(USAGE)
        return int(NagiosState.UNKNOWN)
    try:
        state, message = check_server(argv[0])
    except ValueError as exc:
        sys.stdout.flush()
        sys.stderr.write(f"{exc}\n")
        return int(NagiosState.UNKNOWN)
    sys.stdout.write(f"{message}\n")
    return int(state)


if __name__ == "__main__":
    sys.exit(main())