"""User-supplied model and prediction callables."""

import inspect
import logging
from typing import Any, Callable, List, Optional, Protocol, Tuple

import numpy as np
import pandas as pd

from forecastgrid.utils.error_handling import InputContractError, PredictionShapeError

logger = logging.getLogger(__name__)


class ModelFunction(Protocol):
    """Trains one model: ``(training_data, outcome_cols) -> opaque model``.

    ``training_data`` holds outcome columns first, then features.
    ``outcome_cols`` are the 0-based positions of the outcome columns.
    """

    def __call__(self, training_data: pd.DataFrame, outcome_cols: List[int]) -> Any:
        ...


class PredictionFunction(Protocol):
    """Predicts: ``(opaque model, feature_rows) -> one predicted-outcome row per input row``."""

    def __call__(self, model: Any, feature_rows: pd.DataFrame) -> Any:
        ...


def check_callable(func: Any, n_args: int, argument: str) -> None:
    """
    Check that ``func`` can be called with ``n_args`` positional arguments.

    Raises:
        InputContractError: If ``func`` is not callable or its signature
            cannot accept the arguments
    """
    if not callable(func):
        raise InputContractError(
            f"The '{argument}' argument must be callable, got {type(func).__name__}"
        )
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins and some C extensions expose no signature; defer to call time.
        return
    try:
        signature.bind(*([None] * n_args))
    except TypeError as e:
        raise InputContractError(
            f"The '{argument}' callable must accept {n_args} positional arguments: {e}"
        ) from e


def normalize_predictions(
    predictions: Any,
    n_rows: int,
    outcome_names: List[str],
    suffix: str = "_pred",
    model_name: Optional[str] = None,
    horizon: Optional[int] = None,
    window_number: Optional[int] = None,
) -> pd.DataFrame:
    """
    Coerce a prediction function's output into a DataFrame of predicted outcomes.

    Accepts a DataFrame, Series, list or numpy array with one row per input
    row and one column per outcome. Columns are renamed ``<outcome><suffix>``.

    Raises:
        PredictionShapeError: If rows or outcome columns cannot be aligned
    """
    if isinstance(predictions, pd.DataFrame):
        values = predictions.to_numpy()
    elif isinstance(predictions, pd.Series):
        values = predictions.to_numpy().reshape(-1, 1)
    else:
        values = np.asarray(predictions)
        if values.ndim == 1:
            values = values.reshape(-1, 1)

    if values.ndim != 2:
        raise PredictionShapeError(
            f"Predictions must be 1- or 2-dimensional, got shape {values.shape}",
            model_name=model_name, horizon=horizon, window_number=window_number,
        )
    if values.shape[0] != n_rows:
        raise PredictionShapeError(
            f"Prediction function returned {values.shape[0]} rows for {n_rows} input rows",
            model_name=model_name, horizon=horizon, window_number=window_number,
        )
    if values.shape[1] != len(outcome_names):
        raise PredictionShapeError(
            f"Prediction function returned {values.shape[1]} outcome columns, "
            f"expected {len(outcome_names)} ({outcome_names})",
            model_name=model_name, horizon=horizon, window_number=window_number,
        )

    return pd.DataFrame(values, columns=[f"{name}{suffix}" for name in outcome_names])


def estimator_functions(
    estimator_factory: Callable[[], Any],
) -> Tuple[ModelFunction, PredictionFunction]:
    """
    Build a (model_fn, prediction_fn) pair from a fit/predict estimator factory.

    The factory is called once per (horizon, window) so every unit trains its
    own estimator. Works with scikit-learn style estimators.

    Args:
        estimator_factory: Zero-argument callable returning an unfitted estimator

    Returns:
        Tuple of (model_fn, prediction_fn)
    """
    check_callable(estimator_factory, 0, "estimator_factory")

    def model_fn(training_data: pd.DataFrame, outcome_cols: List[int]) -> Any:
        y = training_data.iloc[:, outcome_cols]
        X = training_data.drop(columns=training_data.columns[outcome_cols])
        if y.shape[1] == 1:
            y = y.iloc[:, 0]
        estimator = estimator_factory()
        estimator.fit(X, y)
        return estimator

    def prediction_fn(model: Any, feature_rows: pd.DataFrame) -> np.ndarray:
        return model.predict(feature_rows)

    return model_fn, prediction_fn
