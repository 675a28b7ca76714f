"""Input-contract validation run before any training or prediction work starts."""

from typing import Any, List, Optional, Sequence
import logging

import numpy as np
import pandas as pd

from forecastgrid.data.structs import ForecastDataset, IndexMode, LaggedDataset, WindowSpec
from forecastgrid.utils.error_handling import InputContractError, ReconciliationError

logger = logging.getLogger(__name__)


def validate_training_inputs(
    lagged_df: Any,
    windows: Any,
    model_name: Optional[str],
) -> None:
    """
    Check the arguments of a training run.

    Raises:
        InputContractError: On a wrong collaborator type or a missing model name
    """
    if not isinstance(lagged_df, LaggedDataset):
        raise InputContractError(
            f"The 'lagged_df' argument takes a LaggedDataset as input, got {type(lagged_df).__name__}"
        )
    if not isinstance(windows, WindowSpec):
        raise InputContractError(
            f"The 'windows' argument takes a WindowSpec as input, got {type(windows).__name__}"
        )
    if model_name is None or not str(model_name).strip():
        raise InputContractError("Enter a model name for the 'model_name' argument")


def validate_prediction_inputs(
    collections: Sequence[Any],
    prediction_fns: Sequence[Any],
    forecast_dataset: Any = None,
) -> None:
    """
    Check the arguments of a prediction run.

    Raises:
        InputContractError: On wrong types, mismatched lengths between model
            collections and prediction functions, or incompatible outcomes
    """
    # Local import avoids a models <-> data import cycle.
    from forecastgrid.models.collection import ForecastModelCollection

    if not collections:
        raise InputContractError("At least one ForecastModelCollection is required")

    bad = [type(c).__name__ for c in collections if not isinstance(c, ForecastModelCollection)]
    if bad:
        raise InputContractError(
            f"Prediction takes ForecastModelCollection objects from train_model(), got {bad}"
        )

    if len(collections) != len(prediction_fns):
        raise InputContractError(
            f"The number of prediction functions ({len(prediction_fns)}) does not equal "
            f"the number of forecast models ({len(collections)})"
        )

    reference = collections[0].metadata
    for collection in collections[1:]:
        if collection.metadata.outcome_names != reference.outcome_names:
            raise InputContractError(
                f"Model '{collection.model_name}' predicts outcomes "
                f"{collection.metadata.outcome_names}, expected {reference.outcome_names}"
            )
        if collection.metadata.index_mode != reference.index_mode:
            raise InputContractError(
                f"Model '{collection.model_name}' was trained in "
                f"{collection.metadata.index_mode.value} mode, expected {reference.index_mode.value}"
            )

    if forecast_dataset is not None and not isinstance(forecast_dataset, ForecastDataset):
        raise InputContractError(
            f"The 'forecast_dataset' argument takes a ForecastDataset, got "
            f"{type(forecast_dataset).__name__}"
        )

    if forecast_dataset is not None and reference.index_mode is IndexMode.DATE:
        if not (forecast_dataset.frequency or reference.frequency):
            raise InputContractError("Date-indexed forecasts require a frequency")


def validate_forecast_frame(
    frame: Optional[pd.DataFrame],
    model_name: str,
    model_horizon: int,
    horizon_column: str,
    groups: Optional[Sequence[str]] = None,
) -> np.ndarray:
    """
    Check the forecast table supplied for one model forecast horizon.

    Args:
        frame: Future feature rows for the horizon, or None if absent
        model_name: Name of the model being forecast
        model_horizon: The model's configured forecast horizon
        horizon_column: Name of the step tag column
        groups: Grouping columns of the training data; every table must carry
            them, and steps then repeat once per group

    Returns:
        Forecast step numbers of every row

    Raises:
        ReconciliationError: Identifying the failing (model, horizon) unit
    """
    if frame is None:
        raise ReconciliationError(
            "The forecast dataset has no table for this model forecast horizon",
            model_name=model_name,
            horizon=model_horizon,
        )
    if horizon_column not in frame.columns:
        raise ReconciliationError(
            f"The forecast table has no '{horizon_column}' step column",
            model_name=model_name,
            horizon=model_horizon,
        )
    missing = [g for g in (groups or []) if g not in frame.columns]
    if missing:
        raise ReconciliationError(
            f"The forecast table is missing group columns {missing}",
            model_name=model_name,
            horizon=model_horizon,
        )

    steps = pd.to_numeric(frame[horizon_column], errors="coerce").to_numpy()
    if len(steps) and (np.isnan(steps.astype(float)).any() or (steps != np.round(steps)).any()):
        raise ReconciliationError(
            f"Forecast steps in '{horizon_column}' must be whole numbers",
            model_name=model_name,
            horizon=model_horizon,
        )
    steps = steps.astype(int)

    out_of_range: List[int] = sorted({int(s) for s in steps if s < 1 or s > model_horizon})
    if out_of_range:
        raise ReconciliationError(
            f"Forecast steps {out_of_range} fall outside 1..{model_horizon}",
            model_name=model_name,
            horizon=model_horizon,
        )

    if not groups and len(steps) > 1 and not (np.diff(steps) > 0).all():
        raise ReconciliationError(
            "Forecast steps must be in ascending order",
            model_name=model_name,
            horizon=model_horizon,
        )

    return steps
