import pytest

from nfsping.timeconv import ms_to_seconds, ns_to_us, seconds_to_ms, seconds_to_us


def test_one_second_in_microseconds():
    assert seconds_to_us(1.0) == 1_000_000


def test_milliseconds_truncate():
    assert seconds_to_ms(0.0015) == 1


def test_nanoseconds_truncate():
    assert ns_to_us(1999) == 1


@pytest.mark.parametrize("ms", [0, 1, 999, 1000, 2500, 123456])
def test_ms_round_trip(ms):
    assert seconds_to_ms(ms_to_seconds(ms)) == ms


@pytest.mark.parametrize("ms", [0, 1, 7, 1000, 2500])
def test_ms_to_us_consistency(ms):
    assert seconds_to_us(ms_to_seconds(ms)) == ms * 1000


@pytest.mark.parametrize("seconds", [0, 0.25, 1, 1.5, 30])
def test_ms_is_us_truncated(seconds):
    assert seconds_to_ms(seconds) == seconds_to_us(seconds) // 1000


@pytest.mark.parametrize("us", [0, 1, 999, 1000, 54321])
def test_ns_exact_multiples(us):
    assert ns_to_us(us * 1000) == us


@pytest.mark.parametrize(
    "func,value",
    [(seconds_to_us, -1), (seconds_to_ms, -0.5), (ms_to_seconds, -1), (ns_to_us, -1)],
)
def test_negative_rejected(func, value):
    with pytest.raises(ValueError):
        func(value)