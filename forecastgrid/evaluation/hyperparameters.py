"""Hyperparameter extraction across the horizon x window grid."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

import numpy as np
import pandas as pd

from forecastgrid.models.callables import check_callable
from forecastgrid.models.collection import ForecastModelCollection
from forecastgrid.utils.error_handling import InputContractError

logger = logging.getLogger(__name__)

HyperFunction = Callable[[Any], Dict[str, Any]]


@dataclass(frozen=True)
class HyperparameterTable:
    """Per (horizon, window) hyperparameters of one trained model collection."""
    frame: pd.DataFrame = field(repr=False)
    outcome_names: Tuple[str, ...]
    hyper_names: Tuple[str, ...]

    @property
    def data(self) -> pd.DataFrame:
        return self.frame.copy()


def return_hyper(collection: ForecastModelCollection, hyper_fn: HyperFunction) -> HyperparameterTable:
    """
    Return model hyperparameters across validation windows and horizons.

    Used to check whether tuned hyperparameters are stable across the
    nested cross-validation windows and forecast horizons.

    Args:
        collection: ForecastModelCollection from train_model()
        hyper_fn: ``model -> {hyperparameter name: value}`` for one trained model

    Returns:
        HyperparameterTable with window provenance columns followed by one
        column per hyperparameter
    """
    if not isinstance(collection, ForecastModelCollection):
        raise InputContractError(
            f"return_hyper takes a ForecastModelCollection from train_model(), "
            f"got {type(collection).__name__}"
        )
    if hyper_fn is None:
        raise InputContractError("A 'hyper_fn' is required to extract hyperparameters")
    check_callable(hyper_fn, 1, "hyper_fn")

    rows: List[Dict[str, Any]] = []
    hyper_names: List[str] = []
    for trained in collection:
        data_hyper = hyper_fn(trained.model)
        if not isinstance(data_hyper, dict):
            raise InputContractError(
                f"hyper_fn must return a dict, got {type(data_hyper).__name__} "
                f"for horizon {trained.horizon}, window {trained.window_number}"
            )
        for name in data_hyper:
            if name not in hyper_names:
                hyper_names.append(name)

        valid = np.asarray(trained.valid_indices)
        row = {
            "model": collection.model_name,
            "horizon": trained.horizon,
            "window_length": trained.window_length,
            "window_number": trained.window_number,
            "valid_window_start": valid.min() if len(valid) else np.nan,
            "valid_window_stop": valid.max() if len(valid) else np.nan,
            "valid_window_midpoint": float(valid.mean()) if len(valid) else np.nan,
        }
        row.update(data_hyper)
        rows.append(row)

    provenance = [
        "model", "horizon", "window_length", "window_number",
        "valid_window_start", "valid_window_stop", "valid_window_midpoint",
    ]
    frame = pd.DataFrame(rows, columns=provenance + hyper_names)
    logger.info(
        f"Extracted {len(hyper_names)} hyperparameters from {len(rows)} models of "
        f"'{collection.model_name}'"
    )
    return HyperparameterTable(
        frame=frame,
        outcome_names=tuple(collection.metadata.outcome_names),
        hyper_names=tuple(hyper_names),
    )
