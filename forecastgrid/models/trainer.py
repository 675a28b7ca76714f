"""Training of user-defined models across forecast horizons and validation windows."""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from forecastgrid.data.structs import LaggedDataset, WindowSpec
from forecastgrid.data.validators import validate_training_inputs
from forecastgrid.data.windows import ResolvedWindow, WindowResolver
from forecastgrid.models.callables import ModelFunction, check_callable
from forecastgrid.models.collection import (
    CollectionMetadata,
    ForecastModelCollection,
    TrainedModel,
)
from forecastgrid.utils.config_manager import EngineConfig
from forecastgrid.utils.error_handling import UnitContext
from forecastgrid.utils.parallel import run_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TrainingUnit:
    horizon: int
    window: ResolvedWindow


class ModelTrainer:
    """
    Trains one model per (horizon, window) of a LaggedDataset.

    For every horizon dataset and every WindowSpec row the validation rows
    are resolved, the user's model function is called on the training rows
    and the returned model is stored with the validation features and
    outcomes. A total of ``len(horizons) * len(windows)`` models are trained.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def train(
        self,
        lagged_df: LaggedDataset,
        windows: WindowSpec,
        model_fn: ModelFunction,
        model_name: str,
        n_jobs: Optional[int] = None,
    ) -> ForecastModelCollection:
        """
        Train a model across horizons and validation windows.

        Args:
            lagged_df: Per-horizon training datasets
            windows: Validation windows
            model_fn: ``(training_data, outcome_cols) -> model``
            model_name: Name recorded on every result row
            n_jobs: Worker count; defaults to the configured value

        Returns:
            ForecastModelCollection keyed by (horizon, window_number)

        Raises:
            InputContractError: Before any training if the inputs are invalid
            Exception: Any exception raised by ``model_fn``, unchanged
        """
        validate_training_inputs(lagged_df, windows, model_name)
        check_callable(model_fn, 2, "model_fn")

        n_jobs = n_jobs or self.config.n_jobs
        # Windows resolve identically for every horizon.
        resolver = WindowResolver(lagged_df.row_indices, lagged_df.date_indices)
        resolved = resolver.resolve_all(windows)
        units = [
            _TrainingUnit(horizon=horizon, window=window)
            for horizon in lagged_df.horizons
            for window in resolved
        ]

        logger.info(
            f"Training '{model_name}' on {len(lagged_df.horizons)} horizons x "
            f"{len(windows)} windows ({len(units)} models, n_jobs={n_jobs})"
        )
        start_time = time.time()

        def train_unit(unit: _TrainingUnit) -> TrainedModel:
            return self._train_unit(lagged_df, resolver, unit, model_fn, model_name)

        trained: List[TrainedModel] = run_units(train_unit, units, n_jobs=n_jobs)

        collection = ForecastModelCollection(
            metadata=CollectionMetadata.from_lagged(lagged_df, model_name),
            models={model.key: model for model in trained},
        )
        logger.info(
            f"Trained {len(collection)} models for '{model_name}' "
            f"in {time.time() - start_time:.2f}s"
        )
        return collection

    def _train_unit(
        self,
        lagged_df: LaggedDataset,
        resolver: WindowResolver,
        unit: _TrainingUnit,
        model_fn: ModelFunction,
        model_name: str,
    ) -> TrainedModel:
        data = lagged_df.frame(unit.horizon)
        resolved = unit.window
        data_train, data_valid = resolver.apply(data, resolved)

        logger.debug(
            f"'{model_name}' horizon {unit.horizon} window {unit.window.window_number}: "
            f"{resolved.n_train} training rows, {resolved.n_valid} validation rows"
        )

        outcome_cols = lagged_df.outcome_cols
        start_time = time.time()
        try:
            model = model_fn(data_train, list(outcome_cols))
        except Exception as e:
            context = UnitContext.from_exception(
                "Training", model_name, unit.horizon, unit.window.window_number, e
            )
            logger.error(context.describe(), extra={"props": context.to_dict()})
            raise

        return TrainedModel(
            model=model,
            horizon=unit.horizon,
            window_number=resolved.window_number,
            window_length=resolved.window_length,
            window_start=resolved.start,
            window_stop=resolved.stop,
            x_valid=data_valid.iloc[:, lagged_df.n_outcomes:],
            y_valid=data_valid.iloc[:, :lagged_df.n_outcomes],
            valid_indices=resolved.valid_indices,
            valid_dates=resolved.valid_dates,
            train_indices=lagged_df.row_indices[resolved.train_mask],
            training_time=time.time() - start_time,
        )


def train_model(
    lagged_df: LaggedDataset,
    windows: WindowSpec,
    model_fn: ModelFunction,
    model_name: str,
    n_jobs: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> ForecastModelCollection:
    """Train ``model_fn`` across every horizon and window. See ModelTrainer.train."""
    return ModelTrainer(config).train(lagged_df, windows, model_fn, model_name, n_jobs=n_jobs)
