import socket

import pytest

from nfsping.targets import ResolutionError, TargetList, reverse_fqdn


def _fake_getaddrinfo(addresses):
    def getaddrinfo(host, port, family=0, type=0, proto=0, flags=0):
        return [(socket.AF_INET, type, 0, "", (address, 0)) for address in addresses]

    return getaddrinfo


def _failing_getaddrinfo(host, port, family=0, type=0, proto=0, flags=0):
    raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")


def _fake_gethostbyaddr(names):
    def gethostbyaddr(address):
        if address not in names:
            raise socket.herror(1, "Unknown host")
        return names[address], [], [address]

    return gethostbyaddr


def test_reverse_fqdn_example():
    assert reverse_fqdn("www.example.com") == "com.example.www"


def test_reverse_fqdn_is_an_involution():
    name = "filer01.storage.example.net"
    assert reverse_fqdn(reverse_fqdn(name)) == name


def test_reverse_fqdn_leaves_ip_addresses():
    assert reverse_fqdn("192.0.2.1") == "192.0.2.1"


def test_reverse_fqdn_single_label():
    assert reverse_fqdn("localhost") == "localhost"


def test_find_or_make_deduplicates():
    targets = TargetList()
    first = targets.find_or_make("192.0.2.1", 2049, 1.0, 0)
    second = targets.find_or_make("192.0.2.1", 2049, 1.0, 0)
    assert first is second
    assert len(targets) == 1


def test_find_by_ip_missing():
    targets = TargetList()
    targets.find_or_make("192.0.2.1", 2049, 1.0, 0)
    assert targets.find_by_ip("192.0.2.2") is None
    assert targets.find_by_ip("192.0.2.1").ip_address == "192.0.2.1"


def test_count_allocates_results_instead_of_histograms():
    targets = TargetList()
    target = targets.find_or_make("192.0.2.1", 2049, 1.0, 5)
    assert target.results == [0, 0, 0, 0, 0]
    assert target.histogram is None


def test_histograms_bounded_by_timeout():
    targets = TargetList()
    target = targets.find_or_make("192.0.2.1", 2049, 0.5, 0)
    assert target.results is None
    assert target.histogram.record(100) is True
    assert target.histogram.record(10 ** 9) is False
    assert len(target.interval_histogram) == 0


def test_make_target_ip_without_dns():
    targets = TargetList()
    created = targets.make_target("192.0.2.7", 2049, False, False, False, 1.0, 0)
    assert [t.ip_address for t in created] == ["192.0.2.7"]
    target = created[0]
    assert target.name == target.display_name == target.ndqf == "192.0.2.7"
    assert target.port == 2049


def test_make_target_ip_with_reverse_dns(monkeypatch):
    monkeypatch.setattr(socket, "gethostbyaddr",
                        _fake_gethostbyaddr({"192.0.2.7": "nfs.example.com"}))
    targets = TargetList()
    (target,) = targets.make_target("192.0.2.7", 2049, True, False, False, 1.0, 0)
    assert target.name == "nfs.example.com"
    assert target.display_name == "nfs.example.com"
    assert target.ndqf == reverse_fqdn("nfs.example.com")


def test_make_target_ip_reverse_dns_failure(monkeypatch):
    monkeypatch.setattr(socket, "gethostbyaddr", _fake_gethostbyaddr({}))
    with pytest.raises(ResolutionError, match="192.0.2.7"):
        TargetList().make_target("192.0.2.7", 2049, True, False, False, 1.0, 0)


def test_make_target_same_ip_twice():
    targets = TargetList()
    targets.make_target("192.0.2.7", 2049)
    targets.make_target("192.0.2.7", 2049)
    assert len(targets) == 1


def test_make_target_by_name(monkeypatch):
    monkeypatch.setattr(socket, "getaddrinfo", _fake_getaddrinfo(["192.0.2.10"]))
    targets = TargetList()
    (target,) = targets.make_target("nfs.example.com", 2049)
    assert target.ip_address == "192.0.2.10"
    assert target.name == "nfs.example.com"
    assert target.display_name == "nfs.example.com"
    assert target.ndqf == reverse_fqdn("nfs.example.com")


def test_make_target_display_ips(monkeypatch):
    monkeypatch.setattr(socket, "getaddrinfo", _fake_getaddrinfo(["192.0.2.10"]))
    (target,) = TargetList().make_target("nfs.example.com", 2049, display_ips=True)
    assert target.display_name == "192.0.2.10"
    assert target.name == "nfs.example.com"


def test_make_target_multiple_addresses_warns(monkeypatch, capsys):
    monkeypatch.setattr(socket, "getaddrinfo", _fake_getaddrinfo(["192.0.2.10", "192.0.2.11"]))
    targets = TargetList()
    created = targets.make_target("nfs.example.com", 2049)
    assert [t.ip_address for t in created] == ["192.0.2.10"]
    assert "Multiple addresses found for nfs.example.com" in capsys.readouterr().err


def test_make_target_multiple_addresses_all(monkeypatch):
    monkeypatch.setattr(socket, "getaddrinfo", _fake_getaddrinfo(["192.0.2.10", "192.0.2.11"]))
    targets = TargetList()
    created = targets.make_target("nfs.example.com", 2049, multiple=True)
    assert [t.ip_address for t in created] == ["192.0.2.10", "192.0.2.11"]
    assert [t.ip_address for t in targets] == ["192.0.2.10", "192.0.2.11"]


def test_make_target_reverse_dns_falls_back_to_ip(monkeypatch):
    monkeypatch.setattr(socket, "getaddrinfo", _fake_getaddrinfo(["192.0.2.10"]))
    monkeypatch.setattr(socket, "gethostbyaddr", _fake_gethostbyaddr({}))
    (target,) = TargetList().make_target("nfs.example.com", 2049, reverse_dns=True)
    assert target.name == "192.0.2.10"
    assert target.ndqf == "192.0.2.10"


def test_make_target_unresolvable(monkeypatch):
    monkeypatch.setattr(socket, "getaddrinfo", _failing_getaddrinfo)
    targets = TargetList()
    with pytest.raises(ResolutionError, match="getaddrinfo error"):
        targets.make_target("nonexistent.example.com", 2049)
    assert len(targets) == 0