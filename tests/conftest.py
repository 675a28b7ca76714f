"""Pytest configuration and shared fixtures."""

import pytest
import pandas as pd
import numpy as np

from forecastgrid.data.structs import ForecastDataset, LaggedDataset, WindowSpec


def make_row_frame(n_rows=100, seed=42):
    """Outcome 'y' followed by two lagged features, rows 1..n_rows."""
    rng = np.random.default_rng(seed)
    y = np.arange(1, n_rows + 1, dtype=float) + rng.normal(0, 0.1, n_rows)
    return pd.DataFrame({
        "y": y,
        "y_lag_1": np.roll(y, 1),
        "x_lag_1": rng.uniform(0, 1, n_rows),
    })


def mean_model(training_data, outcome_cols):
    """Model function that remembers the training rows it saw and their outcome means."""
    outcomes = training_data.iloc[:, outcome_cols]
    return {"n_train": len(training_data), "means": outcomes.mean().to_numpy()}


def mean_prediction(model, feature_rows):
    """Predicts the stored outcome means for every row."""
    return np.tile(model["means"], (len(feature_rows), 1))


@pytest.fixture
def row_lagged():
    """Row-indexed dataset, rows 1..100, outcome 'y', horizons 1 and 3."""
    frames = {1: make_row_frame(seed=1), 3: make_row_frame(seed=3)}
    return LaggedDataset(
        frames=frames,
        outcome_names=["y"],
        row_indices=np.arange(1, 101),
    )


@pytest.fixture
def date_lagged():
    """Daily dataset 2024-01-01..2024-01-10, outcome 'y', horizons 1 and 3."""
    dates = pd.date_range("2024-01-01", "2024-01-10", freq="D")
    frames = {1: make_row_frame(10, seed=1), 3: make_row_frame(10, seed=3)}
    return LaggedDataset(
        frames=frames,
        outcome_names=["y"],
        row_indices=np.arange(1, 11),
        date_indices=dates,
        frequency="1D",
    )


@pytest.fixture
def row_windows():
    """Two windows: all data (length 0) and rows 81..100."""
    return WindowSpec.from_records([
        {"window_length": 0, "start": 1, "stop": 100},
        {"window_length": 20, "start": 81, "stop": 100},
    ])


@pytest.fixture
def date_windows():
    return WindowSpec.from_records([
        {"window_length": 3, "start": pd.Timestamp("2024-01-08"), "stop": pd.Timestamp("2024-01-10")},
    ])


@pytest.fixture
def row_forecast():
    """Future feature rows for horizons 1 and 3, tagged with their forecast step."""
    def future(steps):
        return pd.DataFrame({
            "horizon": steps,
            "y_lag_1": np.full(len(steps), 100.0),
            "x_lag_1": np.full(len(steps), 0.5),
        })
    return ForecastDataset(frames={1: future([1]), 3: future([1, 2, 3])})


@pytest.fixture
def model_fn():
    return mean_model


@pytest.fixture
def prediction_fn():
    return mean_prediction
