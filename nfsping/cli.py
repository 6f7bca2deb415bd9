"""The nfsping command: repeatedly call NULL procedures of NFS related RPC services."""

import getopt
import logging
import math
import os
import re
import socket
import sys
import time
from dataclasses import dataclass, field

from nfsping.output import (
    OutputFormat,
    format_header,
    format_interval,
    format_lost,
    format_result,
    format_summary,
)
from nfsping.protocols import NullProc, Program, lookup_null_proc
from nfsping.rpc import PMAPPORT, RpcError, Transport, create_rpc_client
from nfsping.targets import ResolutionError, TargetList
from nfsping.timeconv import ns_to_us

log = logging.getLogger(__name__)

NFS_PORT = 2049
NFS_HERTZ = 10
NFS_TIMEOUT = 1.0
NFS_WAIT = 0.001

_OPTIONS = "aAc:C:dDEg:GhH:i:KlLmMnNP:qQ:RsS:t:TuvV:"

_PROTOCOL_OPTIONS = {
    "-a": Program.NFS_ACL,
    "-K": Program.KLM,
    "-L": Program.NLM,
    "-n": Program.MOUNT,
    "-s": Program.STATUS,
    "-u": Program.RQUOTA,
}

_FLAGS = {
    OutputFormat.PING: "-c",
    OutputFormat.FPING: "-C",
    OutputFormat.UNIXTIME: "-D",
    OutputFormat.STATSD: "-E",
    OutputFormat.GRAPHITE: "-G",
}

USAGE = f"""Usage: nfsping [options] [targets...]
    -a         check the NFS ACL protocol (default NFS)
    -A         show IP addresses (default hostnames)
    -c n       count of pings to send to target
    -C n       same as -c, output parseable format
    -d         reverse DNS lookups for targets
    -D         print timestamp (unix time) before each line
    -E         StatsD format output (default human readable)
    -g string  prefix for Graphite/StatsD metric names (default "nfsping")
    -G         Graphite format output (default human readable)
    -h         display this help and exit
    -H n       frequency in Hertz (pings per second, default {NFS_HERTZ})
    -i n       interval between sending packets (in ms, default {round(NFS_WAIT * 1000)})
    -K         check the kernel lock manager (KLM) protocol (default NFS)
    -l         loop forever (default)
    -L         check the network lock manager (NLM) protocol (default NFS)
    -m         use multiple target IP addresses if found (implies -A)
    -M         use the portmapper (default: NFS/ACL no, mount/NLM/NSM/rquota yes)
    -n         check the mount protocol (default NFS)
    -N         check the portmap protocol (default NFS)
    -P n       specify port (default: NFS {NFS_PORT}, portmap {PMAPPORT})
    -q         quiet, only print summary
    -Q n       same as -q, but show summary every n seconds
    -R         don't reconnect to server every ping
    -s         check the network status monitor (NSM) protocol (default NFS)
    -S addr    set source address
    -t n       timeout (in ms, default {round(NFS_TIMEOUT * 1000)})
    -T         use TCP (default UDP)
    -u         check the rquota protocol (default NFS)
    -v         verbose output
    -V n       specify NFS version (2/3/4, default 3)
"""


class UsageError(Exception):
    """The command line is invalid; the usage text should be shown."""


@dataclass
class Config:
    """Settings for one nfsping run."""

    targets: list = field(default_factory=list)
    program: Program = Program.NFS
    version: int = 3
    null_proc: NullProc | None = None
    port: int = NFS_PORT
    format: OutputFormat = OutputFormat.PING
    count: int = 0
    loop: bool = False
    quiet: bool = False
    summary_interval: int = 0
    reconnect: bool = True
    reverse_dns: bool = False
    display_ips: bool = False
    multiple: bool = False
    hertz: int = NFS_HERTZ
    wait_time: float = NFS_WAIT
    timeout: float = NFS_TIMEOUT
    transport: Transport = Transport.UDP
    source: str | None = None
    prefix: str = "nfsping"
    verbose: bool = False

    @property
    def sleep_ns(self):
        """Nanoseconds each polling round should take."""
        return 1_000_000_000 // self.hertz


def _number(text):
    """Read a leading unsigned decimal number; anything else reads as 0."""
    match = re.match(r"\s*\+?(\d+)", text)
    return int(match.group(1)) if match else 0


def _is_ipv4(text):
    try:
        socket.inet_pton(socket.AF_INET, text)
    except OSError:
        return False
    return True


def _conflict(first, second):
    return UsageError(f"Can't specify both {first} and {second}!")


def parse_args(argv):
    """Parse nfsping's command line into a Config; raise UsageError if invalid."""
    argv = list(argv)
    if not argv:
        raise UsageError("")
    try:
        options, arguments = getopt.gnu_getopt(argv, _OPTIONS)
    except getopt.GetoptError as exc:
        raise UsageError(str(exc)) from exc

    cfg = Config()
    fmt = None

    for option, value in options:
        if option in _PROTOCOL_OPTIONS:
            if cfg.program is not Program.NFS:
                raise UsageError("Only one protocol!")
            cfg.program = _PROTOCOL_OPTIONS[option]
        elif option == "-A":
            if cfg.reverse_dns:
                if not cfg.multiple:
                    raise _conflict("-d", "-A")
                cfg.display_ips = False
            else:
                cfg.display_ips = True
        elif option == "-C":
            if cfg.loop:
                raise _conflict("-l", "-C")
            if fmt not in (None, OutputFormat.FPING):
                raise _conflict(_FLAGS[fmt], "-C")
            fmt = OutputFormat.FPING
            cfg.count = _number(value)
            if not cfg.count:
                raise UsageError("Zero count, nothing to do!")
        elif option == "-c":
            if cfg.loop:
                raise _conflict("-l", "-c")
            if fmt is OutputFormat.FPING:
                raise _conflict("-C", "-c")
            if fmt is None:
                fmt = OutputFormat.PING
            cfg.count = _number(value)
            if not cfg.count:
                raise UsageError("Zero count, nothing to do!")
        elif option == "-d":
            if cfg.display_ips:
                if not cfg.multiple:
                    raise _conflict("-A", "-d")
                cfg.display_ips = False
            cfg.reverse_dns = True
        elif option in ("-D", "-E", "-G"):
            wanted = {
                "-D": OutputFormat.UNIXTIME,
                "-E": OutputFormat.STATSD,
                "-G": OutputFormat.GRAPHITE,
            }[option]
            if fmt not in (None, OutputFormat.PING, wanted):
                raise _conflict(_FLAGS[fmt], option)
            fmt = wanted
        elif option == "-g":
            cfg.prefix = value
        elif option == "-H":
            cfg.hertz = _number(value)
            if not cfg.hertz:
                raise UsageError("Invalid frequency for -H!")
        elif option == "-i":
            cfg.wait_time = _number(value) / 1000
        elif option == "-l":
            if cfg.count:
                if fmt in (OutputFormat.PING, OutputFormat.UNIXTIME):
                    raise _conflict("-c", "-l")
                if fmt is OutputFormat.FPING:
                    raise _conflict("-C", "-l")
                raise UsageError("Can't loop and count!")
            cfg.loop = True
        elif option == "-m":
            cfg.multiple = True
            if not cfg.reverse_dns:
                cfg.display_ips = True
        elif option == "-M":
            if cfg.program is Program.PORTMAP:
                raise UsageError("Portmap can't use portmapper!")
            if cfg.port != NFS_PORT:
                raise UsageError("Can't specify both port and portmapper!")
            cfg.port = 0
        elif option == "-N":
            if cfg.port == 0:
                raise UsageError("Portmap can't use portmapper!")
            if cfg.program is not Program.NFS:
                raise UsageError("Only one protocol!")
            cfg.program = Program.PORTMAP
            cfg.port = PMAPPORT
        elif option == "-P":
            if cfg.port == 0:
                raise UsageError("Can't specify both port and portmapper!")
            cfg.port = _number(value)
            if cfg.port > 0xFFFF:
                raise UsageError(f"Invalid port {cfg.port}")
        elif option == "-q":
            cfg.quiet = True
        elif option == "-Q":
            cfg.quiet = True
            cfg.summary_interval = _number(value)
            if not cfg.summary_interval:
                raise UsageError("Invalid interval for -Q!")
        elif option == "-R":
            cfg.reconnect = False
        elif option == "-S":
            if not _is_ipv4(value):
                raise UsageError("Invalid source IP address!")
            cfg.source = value
        elif option == "-t":
            milliseconds = _number(value)
            if not milliseconds:
                raise UsageError("Zero timeout!")
            cfg.timeout = milliseconds / 1000
        elif option == "-T":
            cfg.transport = Transport.TCP
        elif option == "-v":
            cfg.verbose = True
        elif option == "-V":
            cfg.version = _number(value)
            if not cfg.version:
                raise UsageError(f"Illegal version {cfg.version}")
        else:
            raise UsageError("")

    cfg.format = fmt or OutputFormat.PING
    if not cfg.loop and not cfg.count:
        cfg.loop = True

    if cfg.count and cfg.hertz * cfg.summary_interval >= cfg.count:
        raise UsageError("Interval (-Q) too small for count!")

    try:
        cfg.null_proc = lookup_null_proc(cfg.program, cfg.version)
    except ValueError as exc:
        raise UsageError(f"Illegal version {cfg.version}") from exc

    if cfg.port == NFS_PORT:
        if cfg.program is Program.PORTMAP:
            cfg.port = PMAPPORT
        elif cfg.program not in (Program.NFS, Program.NFS_ACL):
            cfg.port = 0

    if not arguments:
        raise UsageError("")
    cfg.targets = arguments
    return cfg


def _terminal_rows(stream):
    try:
        return os.get_terminal_size(stream.fileno()).lines
    except (AttributeError, OSError, ValueError):
        return 0


def _build_targets(config):
    targets = TargetList()
    count = config.count if config.format is OutputFormat.FPING else 0
    for name in config.targets:
        targets.make_target(
            name, config.port, config.reverse_dns, config.display_ips,
            config.multiple, config.timeout, count, config.transport,
        )
    wait_ns = round(config.wait_time * 1_000_000_000)
    if wait_ns and wait_ns * len(targets) >= config.sleep_ns:
        raise UsageError("wait interval (-i) doesn't allow polling frequency (-H)!")
    return targets


def run(config, out=None, err=None):
    """Ping every target as configured; return 0 if all replied, else 1."""
    out = out or sys.stdout
    err = err or sys.stderr
    proc = config.null_proc or lookup_null_proc(config.program, config.version)
    fmt = config.format
    protocol = proc.protocol
    targets = _build_targets(config)
    maxhost = max((len(t.display_name) for t in targets), default=0)

    if not config.quiet or config.summary_interval:
        out.write(format_header(fmt, maxhost, protocol, config.summary_interval))

    loop_count = total_sent = total_recv = 0
    try:
        while True:
            loop_count += 1
            rows = _terminal_rows(out)
            loop_start = time.monotonic_ns()

            for position, target in enumerate(targets):
                us = None
                error = None
                if target.client is None:
                    try:
                        target.client = create_rpc_client(
                            target.ip_address, target.port, proc.program, proc.version,
                            config.timeout, config.transport, config.source,
                        )
                    except RpcError as exc:
                        err.write(f"{exc}\n")
                now = time.time()
                if target.client is not None:
                    start = time.monotonic_ns()
                    try:
                        target.client.null()
                        us = ns_to_us(time.monotonic_ns() - start)
                    except RpcError as exc:
                        error = exc

                target.sent += 1
                total_sent += 1

                if not config.quiet and rows and total_sent % rows == 0:
                    out.write(format_header(fmt, maxhost, protocol, config.summary_interval))

                if us is not None:
                    target.received += 1
                    total_recv += 1
                    if fmt is OutputFormat.FPING:
                        target.min = min(target.min, us)
                        target.max = max(target.max, us)
                        target.avg = (target.avg * (target.received - 1) + us) / target.received
                        if loop_count <= len(target.results):
                            target.results[loop_count - 1] = us
                    else:
                        target.histogram.record(us)
                        target.interval_histogram.record(us)
                    if not config.quiet:
                        out.write(format_result(
                            fmt, maxhost, config.prefix, target, protocol, now, us))
                else:
                    out.write(format_lost(fmt, config.prefix, target, protocol, now))
                    if target.client is not None:
                        err.write(f"{target.display_name} : {proc.name}: {error}\n")
                        err.flush()
                        target.client.close()
                        target.client = None
                out.flush()

                interval = config.hertz * config.summary_interval
                if config.summary_interval and loop_count % interval == 0:
                    text, errors = format_interval(
                        fmt, config.prefix, target, protocol, now)
                    out.write(text)
                    err.write(errors)
                    target.sent = 0
                    target.received = 0
                    if fmt is OutputFormat.FPING:
                        target.min = math.inf
                        target.max = 0
                        target.avg = 0.0
                    else:
                        target.interval_histogram.reset()

                if config.reconnect and target.client is not None:
                    target.client.close()
                    target.client = None

                if position + 1 < len(targets) and config.wait_time:
                    time.sleep(config.wait_time)

            if not (config.loop or (config.count and loop_count < config.count)):
                break

            elapsed = time.monotonic_ns() - loop_start
            log.debug("Polling took %.9fs", elapsed / 1e9)
            if elapsed > config.sleep_ns:
                log.debug("Slow poll, not sleeping")
            else:
                pause = (config.sleep_ns - elapsed) / 1e9
                log.debug("Sleeping for %.9fs", pause)
                time.sleep(pause)
    except KeyboardInterrupt:
        pass
    finally:
        for target in targets:
            if target.client is not None:
                target.client.close()
                target.client = None

    out.flush()
    text, errors = format_summary(fmt, loop_count, targets)
    out.write(text)
    err.write(errors)
    out.flush()
    return 0 if total_recv >= total_sent else 1


def main(argv=None):
    """Run nfsping with command line arguments; return the exit status."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        config = parse_args(argv)
        if config.verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(message)s", stream=sys.stderr)
        return run(config, sys.stdout, sys.stderr)
    except UsageError as exc:
        sys.stdout.flush()
        if str(exc):
            sys.stderr.write(f"{exc}\n")
        sys.stdout.write(USAGE)
        return 3
    except ResolutionError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())