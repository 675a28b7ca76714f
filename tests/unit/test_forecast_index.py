"""Unit tests for ForecastIndexExtender."""

import numpy as np
import pandas as pd
import pytest

from forecastgrid.data.structs import IndexMode
from forecastgrid.models.forecast_index import ForecastIndexExtender
from forecastgrid.utils.error_handling import InputContractError


class TestRowMode:

    def test_period_sequence(self):
        extender = ForecastIndexExtender(np.arange(1, 101))
        sequence = extender.period_sequence(3)
        assert extender.index_mode is IndexMode.ROW
        assert sequence.tolist() == [101, 102, 103]
        assert list(sequence.index) == [1, 2, 3]

    def test_extend_aligns_with_steps(self):
        extender = ForecastIndexExtender([5, 9, 7])
        assert extender.extend([3, 1, 1, 2]).tolist() == [12, 10, 10, 11]

    def test_empty_steps(self):
        periods = ForecastIndexExtender(np.arange(1, 11)).extend([])
        assert len(periods) == 0

    def test_non_positive_step(self):
        with pytest.raises(InputContractError, match=">= 1"):
            ForecastIndexExtender(np.arange(1, 11)).extend([0, 1])


class TestDateMode:

    @pytest.fixture
    def dates(self):
        return pd.date_range("2024-01-01", "2024-01-10", freq="D")

    def test_daily_periods(self, dates):
        extender = ForecastIndexExtender(np.arange(1, 11), dates, "1D")
        periods = extender.extend([1, 2, 3])
        assert list(periods) == list(pd.date_range("2024-01-11", periods=3, freq="D"))

    def test_monthly_periods(self):
        dates = pd.date_range("2023-01-01", periods=12, freq="MS")
        extender = ForecastIndexExtender(np.arange(1, 13), dates, "MS")
        assert list(extender.extend([1, 2])) == [pd.Timestamp("2024-01-01"), pd.Timestamp("2024-02-01")]

    def test_strictly_increasing(self, dates):
        periods = ForecastIndexExtender(np.arange(1, 11), dates, "7D").period_sequence(12)
        assert periods.is_monotonic_increasing
        assert periods.iloc[0] > dates.max()

    def test_missing_frequency(self, dates):
        with pytest.raises(InputContractError, match="frequency"):
            ForecastIndexExtender(np.arange(1, 11), dates)

    def test_invalid_frequency(self, dates):
        with pytest.raises(InputContractError, match="Invalid frequency"):
            ForecastIndexExtender(np.arange(1, 11), dates, "fortnightly")

    def test_empty_steps_are_datetimes(self, dates):
        periods = ForecastIndexExtender(np.arange(1, 11), dates, "1D").extend([])
        assert pd.api.types.is_datetime64_any_dtype(periods)
