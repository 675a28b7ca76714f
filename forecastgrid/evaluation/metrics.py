"""Validation error metrics over backtest prediction results."""

from typing import Dict, List, Sequence
import logging

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error

from forecastgrid.evaluation.results import PredictionResult, ResultMode
from forecastgrid.utils.error_handling import InputContractError

logger = logging.getLogger(__name__)

AGGREGATION_LEVELS: Dict[str, List[str]] = {
    "window": ["model", "horizon", "window_number"],
    "horizon": ["model", "horizon"],
    "global": ["model"],
}


class MetricsCalculator:
    """Calculate regression error metrics."""

    SUPPORTED_METRICS = ("mae", "mse", "rmse", "mape")

    def calculate_regression_metrics(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        metrics: Sequence[str] = SUPPORTED_METRICS,
    ) -> Dict[str, float]:
        """
        Calculate regression metrics.

        Args:
            y_true: True values
            y_pred: Predicted values
            metrics: Names of the metrics to compute

        Returns:
            Dictionary of metric names to values
        """
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)

        # Rows with a missing actual or prediction do not count.
        mask = ~(np.isnan(y_true) | np.isnan(y_pred))
        y_true, y_pred = y_true[mask], y_pred[mask]

        results: Dict[str, float] = {}
        if len(y_true) == 0:
            return {name: np.nan for name in metrics}

        mse = float(mean_squared_error(y_true, y_pred))
        for name in metrics:
            if name == "mae":
                results["mae"] = float(mean_absolute_error(y_true, y_pred))
            elif name == "mse":
                results["mse"] = mse
            elif name == "rmse":
                results["rmse"] = float(np.sqrt(mse))
            elif name == "mape":
                # Avoid division by zero
                nonzero = y_true != 0
                if nonzero.any():
                    results["mape"] = float(
                        np.mean(np.abs((y_true[nonzero] - y_pred[nonzero]) / y_true[nonzero])) * 100
                    )
                else:
                    results["mape"] = np.nan
            else:
                raise InputContractError(
                    f"Unknown metric '{name}'; supported: {list(self.SUPPORTED_METRICS)}"
                )

        return results


def calculate_validation_error(
    result: PredictionResult,
    metrics: Sequence[str] = MetricsCalculator.SUPPORTED_METRICS,
    level: str = "window",
) -> pd.DataFrame:
    """
    Summarize backtest prediction error.

    Args:
        result: Backtest PredictionResult from predict()
        metrics: Any of 'mae', 'mse', 'rmse', 'mape'
        level: 'window' (model, horizon, window), 'horizon' (model, horizon)
            or 'global' (model)

    Returns:
        One row per group and outcome with one column per metric
    """
    if result.mode is not ResultMode.BACKTEST:
        raise InputContractError(
            "Validation error requires a backtest result; forecasts have no actuals"
        )
    if level not in AGGREGATION_LEVELS:
        raise InputContractError(
            f"Unknown level '{level}'; choose from {list(AGGREGATION_LEVELS)}"
        )
    unknown = [m for m in metrics if m not in MetricsCalculator.SUPPORTED_METRICS]
    if unknown:
        raise InputContractError(
            f"Unknown metrics {unknown}; supported: {list(MetricsCalculator.SUPPORTED_METRICS)}"
        )

    calculator = MetricsCalculator()
    keys = AGGREGATION_LEVELS[level]
    frame = result.data
    suffix = result.metadata.prediction_suffix

    rows = []
    for group_key, group in frame.groupby(keys, sort=False):
        if not isinstance(group_key, tuple):
            group_key = (group_key,)
        for outcome in result.metadata.outcome_names:
            row = dict(zip(keys, group_key))
            row["outcome"] = outcome
            row.update(
                calculator.calculate_regression_metrics(
                    group[outcome].to_numpy(), group[f"{outcome}{suffix}"].to_numpy(), metrics
                )
            )
            rows.append(row)

    logger.info(f"Computed {level}-level validation error for {len(rows)} groups")
    return pd.DataFrame(rows, columns=keys + ["outcome"] + list(metrics))
