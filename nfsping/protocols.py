"""RPC programs that can be pinged and the NULL procedure used for each."""

import enum
from dataclasses import dataclass
from types import MappingProxyType


class Program(enum.IntEnum):
    """ONC RPC program numbers of the protocols nfsping can check."""

    PORTMAP = 100000
    NFS = 100003
    MOUNT = 100005
    RQUOTA = 100011
    KLM = 100020
    NLM = 100021
    STATUS = 100024
    NFS_ACL = 100227


@dataclass(frozen=True)
class NullProc:
    """The NULL procedure of one RPC program version.

    ``name`` is used in error messages, ``protocol`` in output and
    ``version`` is the RPC program version to call.
    """

    program: Program
    name: str
    protocol: str
    version: int


def _entries():
    table = {}

    def add(program, nfs_versions, name, protocol, version):
        proc = NullProc(program, name, protocol, version)
        for nfs_version in nfs_versions:
            table[(program, nfs_version)] = proc

    # mount version 1 goes with NFSv2; NFSv4 has mounting built in
    add(Program.MOUNT, (2,), "mountproc_null_1", "mountv1", 1)
    add(Program.MOUNT, (3,), "mountproc_null_3", "mountv3", 3)
    # only one version of the portmap protocol
    add(Program.PORTMAP, (2, 3, 4), "pmapproc_null_2", "portmap", 2)
    # KLM has just one version
    add(Program.KLM, (2, 3), "klm_null_1", "klm", 1)
    # NLMv3 goes with NFSv2, NLMv4 with NFSv3; NFSv4 has locking built in
    add(Program.NLM, (2,), "nlm_null_3", "nlmv3", 3)
    add(Program.NLM, (3,), "nlm4_null_4", "nlmv4", 4)
    add(Program.NFS, (2,), "nfsproc_null_2", "nfsv2", 2)
    add(Program.NFS, (3,), "nfsproc3_null_3", "nfsv3", 3)
    add(Program.NFS, (4,), "nfsproc4_null_4", "nfsv4", 4)
    # NFSv4 has ACLs built in
    add(Program.NFS_ACL, (2,), "aclproc2_null_2", "nfs_aclv2", 2)
    add(Program.NFS_ACL, (3,), "aclproc3_null_3", "nfs_aclv3", 3)
    # network status monitor, named "status" as rpcinfo does
    add(Program.STATUS, (2, 3), "sm_null_1", "status", 1)
    # a single rquota version, even for NFSv4
    add(Program.RQUOTA, (2, 3, 4), "rquotaproc_null_1", "rquotaproc_null_1", 1)
    return MappingProxyType(table)


NULL_PROCS = _entries()


def lookup_null_proc(program, nfs_version):
    """Return the NULL procedure of program that goes with an NFS version.

    Raises ValueError for an unknown program or an unsupported version.
    """
    try:
        program = Program(program)
    except ValueError as exc:
        raise ValueError(f"Unknown RPC program {program}") from exc
    try:
        return NULL_PROCS[(program, int(nfs_version))]
    except KeyError:
        raise ValueError(f"Illegal version {nfs_version}") from None