"""Property tests for window resolution and forecast index extension."""

import numpy as np
import pandas as pd
from hypothesis import given, settings, strategies as st

from forecastgrid.data.structs import WindowBounds
from forecastgrid.data.windows import WindowResolver
from forecastgrid.models.forecast_index import ForecastIndexExtender


@st.composite
def row_window(draw):
    n_rows = draw(st.integers(min_value=1, max_value=200))
    first = draw(st.integers(min_value=-50, max_value=50))
    start = draw(st.integers(min_value=first - 10, max_value=first + n_rows + 10))
    stop = draw(st.integers(min_value=start, max_value=start + n_rows))
    length = draw(st.integers(min_value=0, max_value=n_rows))
    return np.arange(first, first + n_rows), WindowBounds(1, length, start, stop)


class TestWindowProperties:

    @given(row_window())
    @settings(max_examples=100)
    def test_partition_invariants(self, data):
        """
        Property: validation rows are exactly the rows inside [start, stop];
        a non-zero window length trains on every other row and a zero length
        trains on all rows.
        """
        row_indices, bounds = data
        resolver = WindowResolver(row_indices)
        resolved = resolver.resolve(bounds)

        inside = (row_indices >= bounds.start) & (row_indices <= bounds.stop)
        np.testing.assert_array_equal(resolved.valid_indices, row_indices[inside])

        if bounds.window_length == 0:
            assert resolved.n_train == len(row_indices)
        else:
            assert resolved.n_train + resolved.n_valid == len(row_indices)
            assert not (resolved.train_mask & resolved.valid_mask).any()

        is_valid, issues = resolver.validate_partition(resolved)
        assert is_valid, issues

    @given(
        st.integers(min_value=1, max_value=60),
        st.integers(min_value=1, max_value=30),
        st.sampled_from(["D", "7D", "W", "MS"]),
    )
    @settings(max_examples=50)
    def test_forecast_periods_follow_last_date(self, n_rows, n_steps, frequency):
        """Property: forecast periods are strictly increasing and start after the last date."""
        dates = pd.date_range("2020-01-01", periods=n_rows, freq=frequency)
        periods = ForecastIndexExtender(np.arange(n_rows), dates, frequency).period_sequence(n_steps)

        assert len(periods) == n_steps
        assert periods.is_monotonic_increasing
        assert periods.is_unique
        assert periods.iloc[0] > dates.max()

    @given(st.lists(st.integers(min_value=1, max_value=24), min_size=1, max_size=50))
    @settings(max_examples=50)
    def test_row_periods_offset_by_step(self, steps):
        """Property: row-mode forecast period = last row index + step."""
        periods = ForecastIndexExtender(np.arange(1, 101)).extend(steps)
        assert periods.tolist() == [100 + s for s in steps]
