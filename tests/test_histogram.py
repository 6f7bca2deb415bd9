import pytest

from nfsping.histogram import LatencyHistogram

HIGHEST = 3600 * 1000 * 1000


@pytest.fixture
def raw():
    histogram = LatencyHistogram(1, HIGHEST)
    for _ in range(10000):
        histogram.record(1000)
    histogram.record(100000000)
    return histogram


def test_total_count(raw):
    assert len(raw) == 10001


def test_min_value(raw):
    assert raw.min() == 1000


def test_max_value(raw):
    assert raw.max() == pytest.approx(100000000, rel=0.001)


@pytest.mark.parametrize(
    "percentile,expected",
    [
        (30.0, 1000.0),
        (99.0, 1000.0),
        (99.99, 1000.0),
        (99.999, 100000000.0),
        (100.0, 100000000.0),
    ],
)
def test_percentiles(raw, percentile, expected):
    assert raw.value_at_percentile(percentile) == pytest.approx(expected, rel=0.001)


def test_percentiles_monotonic(raw):
    values = [raw.value_at_percentile(p) for p in (0, 10, 50, 90, 99, 99.99, 99.999, 100)]
    assert values == sorted(values)


def test_mean_between_min_and_max(raw):
    assert raw.min() <= raw.mean() <= raw.max()


def test_reset(raw):
    assert raw.value_at_percentile(99.0) > 0
    raw.reset()
    assert len(raw) == 0
    assert raw.value_at_percentile(99.0) == 0
    assert raw.min() == 0
    assert raw.max() == 0
    assert raw.mean() == 0.0


def test_invalid_lowest():
    with pytest.raises(ValueError):
        LatencyHistogram(0, 64 * 1024)


def test_highest_must_be_twice_lowest():
    with pytest.raises(ValueError):
        LatencyHistogram(80, 110)


def test_out_of_range_not_recorded():
    histogram = LatencyHistogram(1, 1000)
    assert histogram.record(1000) is True
    assert histogram.record(10**12) is False
    assert len(histogram) == 1


def test_negative_value_rejected():
    histogram = LatencyHistogram(1, 1000)
    with pytest.raises(ValueError):
        histogram.record(-5)


def test_small_values_are_exact():
    histogram = LatencyHistogram(1, 1_000_000)
    for value in (3, 17, 250, 1999):
        histogram.record(value)
    assert histogram.min() == 3
    assert histogram.max() == 1999
    assert histogram.value_at_percentile(50.0) == 17


def _data_lines(table):
    lines = table.splitlines()
    return [line for line in lines[2:] if line and not line.startswith("#")]


def test_percentile_table_layout(raw):
    table = raw.percentile_table(1000.0)
    lines = table.splitlines()
    assert lines[0].split() == ["Value", "Percentile", "TotalCount", "1/(1-Percentile)"]
    assert lines[1] == ""
    rows = [line.split() for line in _data_lines(table)]
    percentiles = [float(row[1]) for row in rows]
    assert percentiles == sorted(percentiles)
    last = rows[-1]
    assert float(last[1]) == 1.0
    assert int(last[2]) == len(raw)
    assert last[3] == "inf"
    assert float(last[0]) == pytest.approx(raw.max() / 1000.0, abs=0.001)
    assert f"Total count    = {len(raw):12d}]" in table


def test_percentile_table_counts_non_decreasing(raw):
    counts = [int(line.split()[2]) for line in _data_lines(raw.percentile_table(1.0))]
    assert counts == sorted(counts)
    assert counts[-1] == len(raw)


def test_percentile_table_empty():
    histogram = LatencyHistogram(1, 1_000_000)
    rows = [line.split() for line in _data_lines(histogram.percentile_table(1000.0))]
    assert len(rows) == 1
    assert int(rows[0][2]) == 0
    assert float(rows[0][0]) == 0.0