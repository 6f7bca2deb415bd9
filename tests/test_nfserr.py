import io

import pytest

from nfsping.nfserr import NfsStat3, describe_nfs_status, report_nfs_status


def test_describe_known_status():
    assert describe_nfs_status(NfsStat3.NFS3ERR_STALE) == "NFS3ERR_STALE"


def test_describe_ok():
    assert describe_nfs_status(0) == "NFS3_OK"


@pytest.mark.parametrize("member", list(NfsStat3))
def test_every_member_described_by_name(member):
    assert describe_nfs_status(int(member)) == member.name


@pytest.mark.parametrize("status", [3, 10000, 10009, -1, 72])
def test_describe_unknown(status):
    assert describe_nfs_status(status) == "UNKNOWN"


def test_report_known_writes_label():
    stream = io.StringIO()
    result = report_nfs_status(NfsStat3.NFS3ERR_NOENT, "lookup", stream)
    assert result == NfsStat3.NFS3ERR_NOENT
    assert stream.getvalue() == "lookup: NFS3ERR_NOENT\n"


def test_report_high_status():
    stream = io.StringIO()
    result = report_nfs_status(NfsStat3.NFS3ERR_JUKEBOX, "read", stream)
    assert result == NfsStat3.NFS3ERR_JUKEBOX
    assert stream.getvalue() == "read: NFS3ERR_JUKEBOX\n"


def test_report_ok_writes_nothing():
    stream = io.StringIO()
    assert report_nfs_status(NfsStat3.NFS3_OK, "getattr", stream) == 0
    assert stream.getvalue() == ""


@pytest.mark.parametrize("status", [4, 10000, 10009, 20000])
def test_report_unknown(status):
    stream = io.StringIO()
    assert report_nfs_status(status, "x", stream) == -1
    assert stream.getvalue() == "x: UNKNOWN\n"