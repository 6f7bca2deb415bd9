"""Ping targets: address resolution, naming and per-target statistics."""

import math
import socket
import sys
from dataclasses import dataclass, field

from nfsping.histogram import LatencyHistogram
from nfsping.rpc import Transport
from nfsping.timeconv import seconds_to_us


class ResolutionError(Exception):
    """A host name or address could not be resolved."""


def _is_ipv4(text):
    try:
        socket.inet_pton(socket.AF_INET, text)
    except (OSError, TypeError):
        return False
    return True


def reverse_fqdn(fqdn):
    """Reverse the labels of a domain name; IPv4 addresses are returned unchanged."""
    if _is_ipv4(fqdn):
        return fqdn
    return ".".join(reversed([label for label in fqdn.split(".") if label]))


@dataclass(eq=False)
class Target:
    """One server address being checked, with its names and statistics."""

    ip_address: str
    port: int
    name: str = ""
    display_name: str = ""
    ndqf: str = ""
    client: object = None
    results: list | None = None
    sent: int = 0
    received: int = 0
    min: float = math.inf
    max: int = 0
    avg: float = 0.0
    histogram: LatencyHistogram | None = None
    interval_histogram: LatencyHistogram | None = None
    filehandles: list = field(default_factory=list)


def _new_target(ip_address, port, timeout, count):
    target = Target(ip_address=ip_address, port=port)
    if count:
        target.results = [0] * count
    else:
        highest = seconds_to_us(timeout)
        target.histogram = LatencyHistogram(1, highest)
        target.interval_histogram = LatencyHistogram(1, highest)
    return target


class TargetList:
    """An ordered collection of targets, unique by IP address."""

    def __init__(self):
        self._targets = []

    def find_by_ip(self, ip_address):
        """Return the target with this IP address, or None."""
        return next((t for t in self._targets if t.ip_address == ip_address), None)

    def find_or_make(self, ip_address, port, timeout, count=0):
        """Return the target for ip_address, appending a new one if needed.

        With a count, space for that many individual results is kept;
        otherwise latencies go into histograms bounded by the timeout.
        """
        target = self.find_by_ip(ip_address)
        if target is None:
            target = _new_target(ip_address, port, timeout, count)
            self._targets.append(target)
        return target

    def make_target(self, name, port, reverse_dns=False, display_ips=False, multiple=False,
                    timeout=1.0, count=0, transport=Transport.UDP):
        """Resolve name and add its targets; return those targets in order."""
        if _is_ipv4(name):
            return [self._make_from_ip(name, port, reverse_dns, timeout, count)]

        try:
            infos = socket.getaddrinfo(name, None, socket.AF_INET, transport.socktype)
        except socket.gaierror as exc:
            raise ResolutionError(f"getaddrinfo error ({name}): {exc.strerror or exc}") from exc

        created = []
        for position, info in enumerate(infos):
            ip_address = info[4][0]
            target = self.find_or_make(ip_address, port, timeout, count)
            created.append(target)

            if reverse_dns:
                try:
                    target.name = socket.gethostbyaddr(ip_address)[0]
                    target.ndqf = reverse_fqdn(target.name)
                except OSError:
                    target.name = ip_address
                    target.ndqf = ip_address
            else:
                target.name = name
                target.ndqf = reverse_fqdn(name)

            target.display_name = target.ip_address if display_ips else target.name

            if position + 1 < len(infos) and not multiple:
                print(
                    f"Multiple addresses found for {name}, using {ip_address} "
                    "(rerun with -m for all)",
                    file=sys.stderr,
                )
                break
        return created

    def _make_from_ip(self, ip_address, port, reverse_dns, timeout, count):
        target = self.find_or_make(ip_address, port, timeout, count)
        if reverse_dns:
            try:
                target.name = socket.gethostbyaddr(ip_address)[0]
            except OSError as exc:
                raise ResolutionError(f"{ip_address}: {exc.strerror or exc}") from exc
            target.ndqf = reverse_fqdn(target.name)
        else:
            target.name = ip_address
            target.ndqf = ip_address
        target.display_name = target.name
        return target

    def __iter__(self):
        return iter(self._targets)

    def __len__(self):
        return len(self._targets)