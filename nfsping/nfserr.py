"""NFSv3 status codes and their error messages."""

import enum
import sys


class NfsStat3(enum.IntEnum):
    """NFS version 3 status codes."""

    NFS3_OK = 0
    NFS3ERR_PERM = 1
    NFS3ERR_NOENT = 2
    NFS3ERR_IO = 5
    NFS3ERR_NXIO = 6
    NFS3ERR_ACCES = 13
    NFS3ERR_EXIST = 17
    NFS3ERR_XDEV = 18
    NFS3ERR_NODEV = 19
    NFS3ERR_NOTDIR = 20
    NFS3ERR_ISDIR = 21
    NFS3ERR_INVAL = 22
    NFS3ERR_FBIG = 27
    NFS3ERR_NOSPC = 28
    NFS3ERR_ROFS = 30
    NFS3ERR_MLINK = 31
    NFS3ERR_NAMETOOLONG = 63
    NFS3ERR_NOTEMPTY = 66
    NFS3ERR_DQUOT = 69
    NFS3ERR_STALE = 70
    NFS3ERR_REMOTE = 71
    NFS3ERR_BADHANDLE = 10001
    NFS3ERR_NOT_SYNC = 10002
    NFS3ERR_BAD_COOKIE = 10003
    NFS3ERR_NOTSUPP = 10004
    NFS3ERR_TOOSMALL = 10005
    NFS3ERR_SERVERFAULT = 10006
    NFS3ERR_BADTYPE = 10007
    NFS3ERR_JUKEBOX = 10008


UNKNOWN = "UNKNOWN"


def describe_nfs_status(status):
    """Return the symbolic name of an NFSv3 status, or "UNKNOWN"."""
    try:
        return NfsStat3(status).name
    except ValueError:
        return UNKNOWN


def report_nfs_status(status, prefix, stream=None):
    """Write "prefix: NAME" for a failed status.

    Returns the status itself, 0 for success (nothing written) or -1 when the
    status is not a known NFSv3 code.
    """
    if status == NfsStat3.NFS3_OK:
        return 0
    if stream is None:
        stream = sys.stderr
    label = describe_nfs_status(status)
    stream.write(f"{prefix}: {label}\n")
    if label == UNKNOWN:
        return -1
    return int(status)