"""A high dynamic range latency histogram with three significant figures."""

import math

_SIGNIFICANT_FIGURES = 3


class LatencyHistogram:
    """Records integer latencies in log-linear buckets of bounded relative error."""

    def __init__(self, lowest, highest):
        lowest = int(lowest)
        highest = int(highest)
        if lowest < 1:
            raise ValueError("lowest trackable value must be at least 1")
        if highest < 2 * lowest:
            raise ValueError("highest trackable value must be at least twice the lowest")
        self.lowest = lowest
        self.highest = highest

        largest_single_unit = 2 * 10 ** _SIGNIFICANT_FIGURES
        sub_bucket_count_magnitude = (largest_single_unit - 1).bit_length()
        self._half_magnitude = max(sub_bucket_count_magnitude, 1) - 1
        self._unit_magnitude = lowest.bit_length() - 1
        self._sub_bucket_count = 1 << (self._half_magnitude + 1)
        self._sub_bucket_half_count = self._sub_bucket_count // 2
        self._sub_bucket_mask = (self._sub_bucket_count - 1) << self._unit_magnitude

        smallest_untrackable = self._sub_bucket_count << self._unit_magnitude
        buckets = 1
        while smallest_untrackable <= highest:
            smallest_untrackable <<= 1
            buckets += 1
        self._bucket_count = buckets
        self._counts = [0] * ((buckets + 1) * self._sub_bucket_half_count)
        self._total = 0
        self._min_value = None
        self._max_value = None

    def _bucket_index(self, value):
        return (
            (value | self._sub_bucket_mask).bit_length()
            - self._unit_magnitude
            - (self._half_magnitude + 1)
        )

    def _indices(self, value):
        bucket = self._bucket_index(value)
        return bucket, value >> (bucket + self._unit_magnitude)

    def _counts_index(self, value):
        bucket, sub_bucket = self._indices(value)
        return ((bucket + 1) << self._half_magnitude) + (
            sub_bucket - self._sub_bucket_half_count
        )

    def _value_at_index(self, index):
        bucket = (index >> self._half_magnitude) - 1
        sub_bucket = (index & (self._sub_bucket_half_count - 1)) + self._sub_bucket_half_count
        if bucket < 0:
            sub_bucket -= self._sub_bucket_half_count
            bucket = 0
        return sub_bucket << (bucket + self._unit_magnitude)

    def _lowest_equivalent(self, value):
        bucket, sub_bucket = self._indices(value)
        return sub_bucket << (bucket + self._unit_magnitude)

    def _range_size(self, value):
        bucket, sub_bucket = self._indices(value)
        if sub_bucket >= self._sub_bucket_count:
            bucket += 1
        return 1 << (self._unit_magnitude + bucket)

    def _highest_equivalent(self, value):
        return self._lowest_equivalent(value) + self._range_size(value) - 1

    def _median_equivalent(self, value):
        return self._lowest_equivalent(value) + (self._range_size(value) >> 1)

    def _recorded(self):
        for index, count in enumerate(self._counts):
            if count:
                yield self._value_at_index(index), count

    def record(self, value):
        """Record one value; return False if it is beyond the trackable range."""
        value = int(value)
        if value < 0:
            raise ValueError(f"cannot record a negative value: {value}")
        index = self._counts_index(value)
        if index >= len(self._counts):
            return False
        self._counts[index] += 1
        self._total += 1
        if self._min_value is None or value < self._min_value:
            self._min_value = value
        if self._max_value is None or value > self._max_value:
            self._max_value = value
        return True

    def reset(self):
        """Forget every recorded value."""
        self._counts = [0] * len(self._counts)
        self._total = 0
        self._min_value = None
        self._max_value = None

    def min(self):
        """Lowest value equivalent to the smallest recorded value, 0 if empty."""
        if self._min_value is None:
            return 0
        return self._lowest_equivalent(self._min_value)

    def max(self):
        """Highest value equivalent to the largest recorded value, 0 if empty."""
        if self._max_value is None:
            return 0
        return self._highest_equivalent(self._max_value)

    def mean(self):
        """Mean of recorded values, using each bucket's median; 0.0 if empty."""
        if not self._total:
            return 0.0
        total = sum(count * self._median_equivalent(value) for value, count in self._recorded())
        return total / self._total

    def _stddev(self):
        if not self._total:
            return 0.0
        mean = self.mean()
        deviation = sum(
            count * (self._median_equivalent(value) - mean) ** 2
            for value, count in self._recorded()
        )
        return math.sqrt(deviation / self._total)

    def value_at_percentile(self, percentile):
        """Return the value at or below which the given percentage of records fall."""
        if not self._total:
            return 0
        requested = min(max(float(percentile), 0.0), 100.0)
        target = max(int(requested / 100.0 * self._total + 0.5), 1)
        cumulative = 0
        for index, count in enumerate(self._counts):
            cumulative += count
            if count and cumulative >= target:
                return self._highest_equivalent(self._value_at_index(index))
        return 0

    def _percentile_steps(self, ticks_per_half_distance):
        if not self._total:
            yield 0, 100.0, 0
            return
        cumulative = 0
        target = 0.0
        last_value = 0
        for value, count in self._recorded():
            cumulative += count
            current = 100.0 * cumulative / self._total
            last = cumulative >= self._total
            last_value = self._highest_equivalent(value)
            while target <= current:
                yield last_value, target, cumulative
                if last:
                    break
                half_distance = 2 ** int(math.log2(100.0 / (100.0 - target)) + 1)
                target += 100.0 / (ticks_per_half_distance * half_distance)
        yield last_value, 100.0, self._total

    def percentile_table(self, value_scale):
        """Render a percentile distribution table, values divided by value_scale."""
        lines = [
            f"{'Value':>12} {'Percentile':>12} {'TotalCount':>12} {'1/(1-Percentile)':>12}",
            "",
        ]
        decimals = _SIGNIFICANT_FIGURES
        for value, percentile, cumulative in self._percentile_steps(5):
            fraction = percentile / 100.0
            inverted = math.inf if fraction >= 1.0 else 1.0 / (1.0 - fraction)
            lines.append(
                f"{value / value_scale:12.{decimals}f} {fraction:12.6f} "
                f"{cumulative:12d} {inverted:12.2f}"
            )
        lines.append(
            f"#[Mean    = {self.mean() / value_scale:12.{decimals}f}, "
            f"StdDeviation   = {self._stddev() / value_scale:12.{decimals}f}]"
        )
        lines.append(
            f"#[Max     = {self.max() / value_scale:12.{decimals}f}, "
            f"Total count    = {self._total:12d}]"
        )
        lines.append(
            f"#[Buckets = {self._bucket_count:12d}, "
            f"SubBuckets     = {self._sub_bucket_count:12d}]"
        )
        return "\n".join(lines) + "\n"

    def __len__(self):
        return self._total