"""Text output for ping results, losses, headers and summaries in each format."""

import enum
import math
import time

_COLUMN_WIDTH = 7
_COLUMNS = ("min", "p50", "p90", "p99", "max")


class OutputFormat(enum.Enum):
    """The output styles nfsping can produce."""

    PING = "ping"
    FPING = "fping"
    UNIXTIME = "unixtime"
    GRAPHITE = "graphite"
    STATSD = "statsd"


def _ms(value):
    return value / 1000.0


def _loss(sent, received):
    if not sent:
        return 0.0
    return (sent - received) / sent * 100


def _seconds(now):
    return int(math.floor(now))


def _unix_prefix(now):
    seconds = _seconds(now)
    micros = min(int(round((now - seconds) * 1_000_000)), 999_999)
    return f"[{seconds}.{micros:06d}] "


def _metric(prefix, target, protocol):
    return f"{prefix}.{target.ndqf}.{protocol}"


def _histogram_columns(histogram):
    return (
        _ms(histogram.min()),
        _ms(histogram.value_at_percentile(50.0)),
        _ms(histogram.value_at_percentile(90.0)),
        _ms(histogram.value_at_percentile(99.0)),
        _ms(histogram.max()),
    )


def format_header(fmt, maxhost, protocol, summary_interval=0):
    """Return the column header line; only the ping format has one."""
    if OutputFormat(fmt) is not OutputFormat.PING:
        return ""
    width = max(len(protocol), maxhost)
    label = "rcv " if summary_interval else "    RTT "
    columns = " ".join(f"{name:>{_COLUMN_WIDTH}}" for name in _COLUMNS)
    return f"{{{protocol:<{width}}  {label}{columns}\n"


def format_result(fmt, maxhost, prefix, target, protocol, now, us):
    """Return the line printed after a successful ping of us microseconds."""
    fmt = OutputFormat(fmt)
    if fmt in (OutputFormat.FPING, OutputFormat.UNIXTIME):
        line = (
            f"{target.display_name} : [{target.sent - 1}], {_ms(us):03.2f} ms "
            f"({_ms(target.avg):03.2f} avg, {_loss(target.sent, target.received):.0f}% loss)\n"
        )
        if fmt is OutputFormat.UNIXTIME:
            return _unix_prefix(now) + line
        return line
    if fmt is OutputFormat.PING:
        values = (_ms(us),) + _histogram_columns(target.interval_histogram)
        numbers = " ".join(f"{value:7.3f}" for value in values)
        return f"{target.display_name:<{maxhost}} : {numbers} ms\n"
    if fmt is OutputFormat.GRAPHITE:
        return f"{_metric(prefix, target, protocol)}.usec {int(us)} {_seconds(now)}\n"
    return f"{_metric(prefix, target, protocol)}:{_ms(us):03.2f}|ms\n"


def format_lost(fmt, prefix, target, protocol, now):
    """Return the line reporting a lost ping; only metric formats have one."""
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.GRAPHITE:
        return f"{_metric(prefix, target, protocol)}.lost 1 {_seconds(now)}\n"
    if fmt is OutputFormat.STATSD:
        return f"{_metric(prefix, target, protocol)}.lost:1|c\n"
    return ""


def format_interval(fmt, prefix, target, protocol, now):
    """Return (stdout text, stderr text) for a periodic summary of one target.

    The fping style summary goes to stderr, as fping itself does.
    """
    fmt = OutputFormat(fmt)
    lost = target.sent - target.received
    out = ""
    err = ""

    if fmt in (OutputFormat.FPING, OutputFormat.UNIXTIME):
        if fmt is OutputFormat.UNIXTIME:
            out = _unix_prefix(now)
        clock = time.strftime("%H:%M:%S", time.localtime(_seconds(now)))
        err = (
            f"[{clock}]\n"
            f"{target.display_name} : xmt/rcv/%loss = "
            f"{target.sent}/{target.received}/{_loss(target.sent, target.received):.0f}%"
        )
        if target.received:
            err += (
                f", min/avg/max = {_ms(target.min):.2f}/{_ms(target.avg):.2f}"
                f"/{_ms(target.max):.2f}"
            )
        err += "\n"
    elif fmt is OutputFormat.PING:
        if target.received:
            numbers = " ".join(
                f"{value:7.3f}" for value in _histogram_columns(target.interval_histogram)
            )
            out = f"{target.display_name} : {target.received:3d} {numbers} ms\n"
    elif fmt is OutputFormat.GRAPHITE:
        metric = _metric(prefix, target, protocol)
        seconds = _seconds(now)
        lines = [f"{metric}.count {target.sent} {seconds}"]
        if lost:
            lines.append(f"{metric}.lost {lost} {seconds}")
        if target.received:
            histogram = target.interval_histogram
            lines.append(f"{metric}.usec.upper {_ms(histogram.max()):.2f} {seconds}")
            lines.append(f"{metric}.usec.lower {_ms(histogram.min()):.2f} {seconds}")
            lines.append(f"{metric}.usec.mean {_ms(histogram.mean()):.2f} {seconds}")
            lines.append(
                f"{metric}.usec.upper_95th "
                f"{_ms(histogram.value_at_percentile(95.0)):.2f} {seconds}"
            )
        out = "".join(line + "\n" for line in lines)
    else:
        metric = _metric(prefix, target, protocol)
        out = f"{metric}.count:{target.sent}|c\n"
        if lost:
            out += f"{metric}.lost:{lost}|c\n"
    return out, err


def format_summary(fmt, total_sent, targets):
    """Return (stdout text, stderr text) for the final summary of all targets.

    The fping style lists every result on stderr, "-" for a lost ping; the
    ping style prints a percentile table per target on stdout.
    """
    fmt = OutputFormat(fmt)
    out = []
    err = []
    for target in targets:
        if fmt is OutputFormat.FPING:
            results = list(target.results or [])[:total_sent]
            results += [0] * (total_sent - len(results))
            fields = "".join(
                f" {_ms(result):.2f}" if result else " -" for result in results
            )
            err.append(f"{target.display_name} :{fields}\n")
        elif fmt is OutputFormat.PING:
            out.append("\n")
            out.append(f"{target.display_name} :\n")
            out.append(target.histogram.percentile_table(1000.0))
    return "".join(out), "".join(err)