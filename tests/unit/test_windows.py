"""Unit tests for window specs and window resolution."""

import logging

import numpy as np
import pandas as pd
import pytest

from forecastgrid.data.structs import WindowBounds, WindowSpec
from forecastgrid.data.windows import WindowResolver
from forecastgrid.utils.error_handling import InputContractError


class TestWindowSpec:

    def test_from_frame_numbers_windows_from_one(self):
        spec = WindowSpec.from_frame(pd.DataFrame({
            "window_length": [0, 20, 10],
            "start": [1, 81, 50],
            "stop": [100, 100, 59],
        }))
        assert [w.window_number for w in spec] == [1, 2, 3]
        assert [w.window_length for w in spec] == [0, 20, 10]
        assert len(spec) == 3

    def test_from_frame_missing_column(self):
        with pytest.raises(InputContractError, match="missing columns"):
            WindowSpec.from_frame(pd.DataFrame({"start": [1], "stop": [2]}))

    def test_empty_spec_rejected(self):
        with pytest.raises(InputContractError):
            WindowSpec(windows=[])

    def test_start_after_stop_rejected(self):
        with pytest.raises(InputContractError, match="after stop"):
            WindowSpec.from_records([{"window_length": 5, "start": 10, "stop": 5}])

    def test_negative_length_rejected(self):
        with pytest.raises(InputContractError):
            WindowSpec(windows=[WindowBounds(1, -1, 1, 5)])

    def test_to_frame_indexed_by_window_number(self):
        spec = WindowSpec.from_records([
            {"window_length": 20, "start": 81, "stop": 100},
            {"window_length": 10, "start": 1, "stop": 10},
        ])
        frame = spec.to_frame()
        assert list(frame.index) == [1, 2]
        assert frame.index.name == "window_number"
        assert frame.loc[2, "start"] == 1


class TestWindowResolverRowMode:

    @pytest.fixture
    def resolver(self):
        return WindowResolver(np.arange(1, 101))

    def test_holdout_window(self, resolver):
        """Rows 81..100 are validation, rows 1..80 are training."""
        resolved = resolver.resolve(WindowBounds(1, 20, 81, 100))
        assert resolved.n_valid == 20
        assert resolved.n_train == 80
        np.testing.assert_array_equal(resolved.valid_indices, np.arange(81, 101))
        assert resolved.valid_dates is None

    def test_length_zero_trains_on_all_rows(self, resolver):
        resolved = resolver.resolve(WindowBounds(1, 0, 1, 100))
        assert resolved.n_train == 100
        assert resolved.n_valid == 100

    def test_bounds_past_data_are_clipped_to_present_rows(self, resolver):
        resolved = resolver.resolve(WindowBounds(1, 30, 91, 120))
        np.testing.assert_array_equal(resolved.valid_indices, np.arange(91, 101))

    def test_empty_window_warns(self, resolver, caplog):
        with caplog.at_level(logging.WARNING, logger="forecastgrid.data.windows"):
            resolved = resolver.resolve(WindowBounds(3, 5, 200, 210))
        assert resolved.is_empty
        assert resolved.n_train == 100
        assert "matches no rows" in caplog.text

    def test_date_bound_rejected(self, resolver):
        with pytest.raises(InputContractError, match="row indices"):
            resolver.resolve(WindowBounds(1, 5, pd.Timestamp("2024-01-01"), pd.Timestamp("2024-01-05")))

    def test_apply_splits_frame(self, resolver):
        df = pd.DataFrame({"y": np.arange(100.0)})
        resolved = resolver.resolve(WindowBounds(1, 20, 81, 100))
        train, valid = resolver.apply(df, resolved)
        assert len(train) == 80
        assert len(valid) == 20
        assert valid["y"].iloc[0] == 80.0

    def test_apply_length_mismatch(self, resolver):
        resolved = resolver.resolve(WindowBounds(1, 20, 81, 100))
        with pytest.raises(InputContractError, match="Length mismatch"):
            resolver.apply(pd.DataFrame({"y": [1.0, 2.0]}), resolved)

    def test_validate_partition(self, resolver):
        for bounds in (WindowBounds(1, 0, 1, 100), WindowBounds(2, 20, 81, 100)):
            is_valid, issues = resolver.validate_partition(resolver.resolve(bounds))
            assert is_valid, issues

    def test_resolve_all_preserves_order(self, resolver, row_windows):
        resolved = resolver.resolve_all(row_windows)
        assert [r.window_number for r in resolved] == [1, 2]

    def test_to_dict(self, resolver):
        payload = resolver.resolve(WindowBounds(1, 2, 99, 100)).to_dict()
        assert payload["valid_indices"] == [99, 100]
        assert payload["n_train"] == 98


class TestWindowResolverDateMode:

    @pytest.fixture
    def resolver(self):
        dates = pd.date_range("2024-01-01", periods=10, freq="D")
        return WindowResolver(np.arange(1, 11), dates)

    def test_closed_date_interval(self, resolver):
        resolved = resolver.resolve(WindowBounds(1, 3, "2024-01-08", "2024-01-10"))
        np.testing.assert_array_equal(resolved.valid_indices, [8, 9, 10])
        assert list(resolved.valid_dates) == list(pd.date_range("2024-01-08", periods=3, freq="D"))
        assert resolved.n_train == 7
        assert resolved.start == pd.Timestamp("2024-01-08")

    def test_numeric_bound_rejected(self, resolver):
        with pytest.raises(InputContractError, match="uses dates"):
            resolver.resolve(WindowBounds(1, 3, 8, 10))

    def test_unparseable_bound_rejected(self, resolver):
        with pytest.raises(InputContractError, match="cannot interpret"):
            resolver.resolve(WindowBounds(1, 3, "not a date", "2024-01-10"))

    def test_date_length_mismatch(self):
        with pytest.raises(InputContractError):
            WindowResolver(np.arange(1, 11), pd.date_range("2024-01-01", periods=5, freq="D"))
