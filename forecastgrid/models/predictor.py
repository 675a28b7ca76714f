"""Prediction on validation windows (backtest) or past the end of the data (forecast)."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from forecastgrid.data.structs import ForecastDataset, IndexMode
from forecastgrid.data.validators import validate_forecast_frame, validate_prediction_inputs
from forecastgrid.evaluation.results import PredictionResult, ResultAssembler, ResultMode
from forecastgrid.models.callables import PredictionFunction, check_callable, normalize_predictions
from forecastgrid.models.collection import ForecastModelCollection, TrainedModel
from forecastgrid.models.forecast_index import ForecastIndexExtender
from forecastgrid.utils.config_manager import EngineConfig
from forecastgrid.utils.error_handling import UnitContext
from forecastgrid.utils.parallel import run_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PredictionUnit:
    model_position: int
    collection: ForecastModelCollection
    prediction_fn: PredictionFunction
    trained: TrainedModel


class PredictionEngine:
    """
    Runs user prediction functions over trained-model collections.

    Without a forecast dataset every trained model predicts its own
    validation rows (backtest). With a forecast dataset every trained model
    predicts the future feature rows of its horizon (forecast), and the
    forecast steps are mapped to row indices or dates past the observed data.
    Both paths produce per-unit frames that one ResultAssembler combines.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.assembler = ResultAssembler()

    def predict(
        self,
        collections: Union[ForecastModelCollection, Sequence[ForecastModelCollection]],
        prediction_fns: Union[PredictionFunction, Sequence[PredictionFunction]],
        forecast_dataset: Optional[ForecastDataset] = None,
        n_jobs: Optional[int] = None,
    ) -> PredictionResult:
        """
        Predict with one or more trained-model collections.

        Args:
            collections: ForecastModelCollections from train_model()
            prediction_fns: One ``(model, feature_rows) -> predictions``
                callable per collection, matched by position
            forecast_dataset: None for backtest predictions on the validation
                windows; a ForecastDataset for forecasts of steps 1..H
            n_jobs: Worker count; defaults to the configured value

        Returns:
            PredictionResult in BACKTEST or FORECAST mode

        Raises:
            InputContractError: Before any prediction if the inputs are invalid
            ReconciliationError: If forecast steps or prediction shapes cannot
                be aligned for a (model, horizon) unit
            Exception: Any exception raised by a prediction function, unchanged
        """
        if isinstance(collections, ForecastModelCollection):
            collections = [collections]
        if callable(prediction_fns) and not isinstance(prediction_fns, (list, tuple)):
            prediction_fns = [prediction_fns]
        collections = list(collections)
        prediction_fns = list(prediction_fns)

        validate_prediction_inputs(collections, prediction_fns, forecast_dataset)
        for fn in prediction_fns:
            check_callable(fn, 2, "prediction_fn")

        mode = ResultMode.BACKTEST if forecast_dataset is None else ResultMode.FORECAST
        metadata = collections[0].metadata
        n_jobs = n_jobs or self.config.n_jobs

        extender = None
        if mode is ResultMode.FORECAST:
            self._check_forecast_horizons(collections, forecast_dataset)
            extender = ForecastIndexExtender(
                metadata.row_indices,
                metadata.date_indices,
                forecast_dataset.frequency or metadata.frequency,
            )

        units = [
            _PredictionUnit(position, collection, prediction_fns[position], trained)
            for position, collection in enumerate(collections)
            for trained in collection
        ]
        logger.info(
            f"Predicting {len(units)} units across {len(collections)} models "
            f"in {mode.value} mode (n_jobs={n_jobs})"
        )

        def predict_unit(unit: _PredictionUnit) -> pd.DataFrame:
            if mode is ResultMode.BACKTEST:
                return self._backtest_unit(unit)
            return self._forecast_unit(unit, forecast_dataset, extender)

        # run_units returns frames in unit order: model, horizon, window.
        frames: List[pd.DataFrame] = run_units(predict_unit, units, n_jobs=n_jobs)

        data_stop = metadata.data_stop
        frequency = metadata.frequency
        if forecast_dataset is not None:
            if forecast_dataset.data_stop is not None:
                data_stop = forecast_dataset.data_stop
            frequency = forecast_dataset.frequency or frequency

        return self.assembler.assemble(
            frames,
            mode=mode,
            metadata=metadata,
            data_stop=data_stop,
            frequency=frequency,
            prediction_suffix=self.config.prediction_suffix,
        )

    def _check_forecast_horizons(
        self,
        collections: List[ForecastModelCollection],
        forecast_dataset: ForecastDataset,
    ) -> None:
        """Check every model horizon has a well-formed forecast table before predicting."""
        for collection in collections:
            for horizon in collection.horizons:
                validate_forecast_frame(
                    forecast_dataset.frames.get(horizon),
                    model_name=collection.model_name,
                    model_horizon=horizon,
                    horizon_column=self.config.horizon_column,
                    groups=collection.metadata.groups,
                )

    def _call(self, unit: _PredictionUnit, features: pd.DataFrame) -> pd.DataFrame:
        metadata = unit.collection.metadata
        trained = unit.trained
        outcome_names = list(metadata.outcome_names)

        # Empty windows yield zero rows without invoking the user callable.
        if len(features) == 0:
            return normalize_predictions(
                np.empty((0, len(outcome_names))), 0, outcome_names, self.config.prediction_suffix
            )

        try:
            predictions = unit.prediction_fn(trained.model, features)
        except Exception as e:
            context = UnitContext.from_exception(
                "Prediction", metadata.model_name, trained.horizon, trained.window_number, e
            )
            logger.error(context.describe(), extra={"props": context.to_dict()})
            raise

        return normalize_predictions(
            predictions,
            n_rows=len(features),
            outcome_names=outcome_names,
            suffix=self.config.prediction_suffix,
            model_name=metadata.model_name,
            horizon=trained.horizon,
            window_number=trained.window_number,
        )

    def _backtest_unit(self, unit: _PredictionUnit) -> pd.DataFrame:
        metadata = unit.collection.metadata
        trained = unit.trained
        n_rows = len(trained.x_valid)

        data_pred = self._call(unit, trained.x_valid)

        data_temp = pd.DataFrame({
            "model": [metadata.model_name] * n_rows,
            "horizon": np.full(n_rows, trained.horizon, dtype=int),
            "window_length": np.full(n_rows, trained.window_length, dtype=int),
            "window_number": np.full(n_rows, trained.window_number, dtype=int),
            "window_start": [trained.window_start] * n_rows,
            "window_stop": [trained.window_stop] * n_rows,
            "valid_indices": np.asarray(trained.valid_indices),
        })
        if metadata.index_mode is IndexMode.DATE:
            data_temp["date_indices"] = pd.DatetimeIndex(trained.valid_dates)

        parts = [data_temp]
        if metadata.groups:
            parts.append(trained.x_valid.loc[:, list(metadata.groups)].reset_index(drop=True))
        parts.append(trained.y_valid.reset_index(drop=True))
        parts.append(data_pred)

        logger.debug(
            f"Backtest '{metadata.model_name}' horizon {trained.horizon} "
            f"window {trained.window_number}: {n_rows} rows"
        )
        return pd.concat(parts, axis=1)

    def _forecast_unit(
        self,
        unit: _PredictionUnit,
        forecast_dataset: ForecastDataset,
        extender: ForecastIndexExtender,
    ) -> pd.DataFrame:
        metadata = unit.collection.metadata
        trained = unit.trained
        horizon_column = self.config.horizon_column

        frame = forecast_dataset.frames[trained.horizon]
        steps = pd.to_numeric(frame[horizon_column]).to_numpy().astype(int)
        dropped = [horizon_column] + [c for c in self.config.drop_forecast_columns if c != horizon_column]
        features = frame.drop(columns=[c for c in dropped if c in frame.columns])
        n_rows = len(features)

        data_pred = self._call(unit, features)

        data_temp = pd.DataFrame({
            "model": [metadata.model_name] * n_rows,
            "model_forecast_horizon": np.full(n_rows, trained.horizon, dtype=int),
            "horizon": steps,
            "window_length": np.full(n_rows, trained.window_length, dtype=int),
            "window_number": np.full(n_rows, trained.window_number, dtype=int),
            "window_start": [trained.window_start] * n_rows,
            "window_stop": [trained.window_stop] * n_rows,
        })

        parts = [data_temp]
        if metadata.groups:
            parts.append(features.loc[:, list(metadata.groups)].reset_index(drop=True))
        parts.append(data_pred)

        data_temp = pd.concat(parts, axis=1)
        data_temp["forecast_period"] = extender.extend(steps).to_numpy()

        logger.debug(
            f"Forecast '{metadata.model_name}' horizon {trained.horizon} "
            f"window {trained.window_number}: {n_rows} rows"
        )
        return data_temp


def predict(
    collections: Union[ForecastModelCollection, Sequence[ForecastModelCollection]],
    prediction_fns: Union[PredictionFunction, Sequence[PredictionFunction]],
    forecast_dataset: Optional[ForecastDataset] = None,
    n_jobs: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> PredictionResult:
    """Predict with trained-model collections. See PredictionEngine.predict."""
    return PredictionEngine(config).predict(
        collections, prediction_fns, forecast_dataset=forecast_dataset, n_jobs=n_jobs
    )
