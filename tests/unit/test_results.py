"""Unit tests for PredictionResult and ResultAssembler."""

import numpy as np
import pandas as pd
import pytest

from forecastgrid.evaluation.results import (
    PredictionResult,
    ResultAssembler,
    ResultMetadata,
    ResultMode,
)
from forecastgrid.models.predictor import predict
from forecastgrid.models.trainer import train_model


def _metadata(**kwargs):
    defaults = dict(
        outcome_cols=(0,),
        outcome_names=("y",),
        row_indices=np.arange(1, 4),
        date_indices=None,
        frequency=None,
        data_stop=3,
    )
    defaults.update(kwargs)
    return ResultMetadata(**defaults)


def _backtest_frame():
    return pd.DataFrame({
        "model": ["m", "m"],
        "horizon": [1, 1],
        "window_length": [1, 1],
        "window_number": [1, 1],
        "window_start": [2, 2],
        "window_stop": [3, 3],
        "valid_indices": [2, 3],
        "y": [2.0, 3.0],
        "y_pred": [2.5, 2.5],
    })


class TestPredictionResult:

    def test_backtest_shape_validated(self):
        result = PredictionResult(_backtest_frame(), ResultMode.BACKTEST, _metadata())
        assert len(result) == 2
        assert not result.is_forecast
        assert result.models == ["m"]

    def test_mode_from_string(self):
        result = PredictionResult(_backtest_frame(), "backtest", _metadata())
        assert result.mode is ResultMode.BACKTEST

    def test_backtest_missing_actuals(self):
        with pytest.raises(ValueError, match="missing columns"):
            PredictionResult(_backtest_frame().drop(columns=["y"]), ResultMode.BACKTEST, _metadata())

    def test_backtest_requires_dates_in_date_mode(self):
        metadata = _metadata(
            date_indices=pd.date_range("2024-01-01", periods=3, freq="D"), frequency="1D"
        )
        with pytest.raises(ValueError, match="date_indices"):
            PredictionResult(_backtest_frame(), ResultMode.BACKTEST, metadata)

    def test_forecast_rejects_actuals(self):
        frame = _backtest_frame().drop(columns=["valid_indices"]).assign(
            model_forecast_horizon=1, forecast_period=[4, 4]
        )
        with pytest.raises(ValueError, match="must not contain"):
            PredictionResult(frame, ResultMode.FORECAST, _metadata())

    def test_data_is_a_copy(self):
        result = PredictionResult(_backtest_frame(), ResultMode.BACKTEST, _metadata())
        result.data["y_pred"] = 0.0
        assert result.data["y_pred"].tolist() == [2.5, 2.5]

    def test_input_frame_not_shared(self):
        frame = _backtest_frame()
        result = PredictionResult(frame, ResultMode.BACKTEST, _metadata())
        frame["y_pred"] = 0.0
        assert result.data["y_pred"].tolist() == [2.5, 2.5]
        assert not hasattr(result, "frame")

    def test_metadata_dict_round_trip(self):
        metadata = _metadata(
            date_indices=pd.date_range("2024-01-01", periods=3, freq="D"),
            frequency="1D",
            data_stop=pd.Timestamp("2024-01-03"),
            groups=("store",),
        )
        restored = ResultMetadata.from_dict(metadata.to_dict())
        assert restored.outcome_names == ("y",)
        assert restored.groups == ("store",)
        assert restored.data_stop == pd.Timestamp("2024-01-03")
        assert list(restored.date_indices) == list(metadata.date_indices)


class TestResultAssembler:

    def test_empty_frames_keep_columns(self, row_lagged, row_windows, model_fn):
        collection = train_model(row_lagged, row_windows, model_fn, "mean")
        empty = _backtest_frame().iloc[0:0]
        result = ResultAssembler().assemble([empty], ResultMode.BACKTEST, collection.metadata)
        assert len(result) == 0
        assert "y_pred" in result.data.columns

    def test_frequency_and_data_stop_override(self, row_lagged, row_windows, model_fn):
        collection = train_model(row_lagged, row_windows, model_fn, "mean")
        result = ResultAssembler().assemble(
            [_backtest_frame()], ResultMode.BACKTEST, collection.metadata, data_stop=150
        )
        assert result.metadata.data_stop == 150
        assert result.metadata.frequency is None


class TestFilter:

    def test_filter_forecast_uses_model_horizon(self, row_lagged, row_windows, model_fn,
                                                prediction_fn, row_forecast):
        collection = train_model(row_lagged, row_windows, model_fn, "mean")
        result = predict(collection, prediction_fn, forecast_dataset=row_forecast)
        filtered = result.filter(horizons=[3], windows=[2])
        assert len(filtered) == 3
        assert filtered.is_forecast
        assert filtered.data.index.tolist() == [0, 1, 2]
