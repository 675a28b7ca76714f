"""Flat prediction results with table-level metadata and a backtest/forecast mode tag."""

import logging
from dataclasses import InitVar, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
import pandas as pd

from forecastgrid.data.structs import IndexMode

if TYPE_CHECKING:
    from forecastgrid.models.collection import CollectionMetadata

logger = logging.getLogger(__name__)


class ResultMode(str, Enum):
    """Whether a result holds validation-window predictions or future forecasts."""
    BACKTEST = "backtest"
    FORECAST = "forecast"


@dataclass(frozen=True)
class ResultMetadata:
    """Table-level annotations carried alongside a PredictionResult."""
    outcome_cols: Tuple[int, ...]
    outcome_names: Tuple[str, ...]
    row_indices: np.ndarray
    date_indices: Optional[pd.DatetimeIndex]
    frequency: Optional[str]
    data_stop: Any
    groups: Optional[Tuple[str, ...]] = None
    prediction_suffix: str = "_pred"

    @property
    def index_mode(self) -> IndexMode:
        return IndexMode.ROW if self.date_indices is None else IndexMode.DATE

    @property
    def prediction_names(self) -> List[str]:
        return [f"{name}{self.prediction_suffix}" for name in self.outcome_names]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "outcome_cols": list(self.outcome_cols),
            "outcome_names": list(self.outcome_names),
            "row_indices": np.asarray(self.row_indices).tolist(),
            "date_indices": (
                [d.isoformat() for d in self.date_indices]
                if self.date_indices is not None else None
            ),
            "frequency": self.frequency,
            "data_stop": self.data_stop,
            "groups": list(self.groups) if self.groups else None,
            "prediction_suffix": self.prediction_suffix,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultMetadata":
        """Create from dictionary."""
        date_indices = data.get("date_indices")
        data_stop = data.get("data_stop")
        if date_indices is not None:
            date_indices = pd.DatetimeIndex(pd.to_datetime(date_indices))
            if data_stop is not None:
                data_stop = pd.Timestamp(data_stop)
        return cls(
            outcome_cols=tuple(data["outcome_cols"]),
            outcome_names=tuple(data["outcome_names"]),
            row_indices=np.asarray(data["row_indices"]),
            date_indices=date_indices,
            frequency=data.get("frequency"),
            data_stop=data_stop,
            groups=tuple(data["groups"]) if data.get("groups") else None,
            prediction_suffix=data.get("prediction_suffix", "_pred"),
        )


PROVENANCE_COLUMNS = ["model", "horizon", "window_length", "window_number", "window_start", "window_stop"]
BACKTEST_COLUMNS = PROVENANCE_COLUMNS + ["valid_indices"]
FORECAST_COLUMNS = [
    "model", "model_forecast_horizon", "horizon", "window_length",
    "window_number", "window_start", "window_stop",
]


@dataclass(frozen=True, eq=False)
class PredictionResult:
    """
    One row per (model, horizon, window, validation row) in backtest mode, or
    per (model, model forecast horizon, window, forecast step) in forecast mode.

    The table is copied and validated against its mode on construction and is
    read through ``data``, which returns a fresh copy on every access.
    """
    frame: InitVar[pd.DataFrame]
    mode: ResultMode
    metadata: ResultMetadata
    _frame: pd.DataFrame = field(init=False, repr=False)

    def __post_init__(self, frame: pd.DataFrame):
        object.__setattr__(self, "_frame", frame.copy())
        object.__setattr__(self, "mode", ResultMode(self.mode))
        self._validate()

    def _validate(self) -> None:
        outcomes = list(self.metadata.outcome_names)
        predictions = self.metadata.prediction_names
        groups = list(self.metadata.groups or [])

        if self.mode is ResultMode.BACKTEST:
            required = list(BACKTEST_COLUMNS) + groups + outcomes + predictions
            if self.metadata.index_mode is IndexMode.DATE:
                required.append("date_indices")
            forbidden = ["forecast_period", "model_forecast_horizon"]
        else:
            required = list(FORECAST_COLUMNS) + groups + predictions + ["forecast_period"]
            forbidden = ["valid_indices"] + outcomes

        missing = [c for c in required if c not in self._frame.columns]
        if missing:
            raise ValueError(f"{self.mode.value} result is missing columns {missing}")
        present = [c for c in forbidden if c in self._frame.columns]
        if present:
            raise ValueError(f"{self.mode.value} result must not contain columns {present}")

    @property
    def data(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def columns(self) -> List[str]:
        return list(self._frame.columns)

    @property
    def is_forecast(self) -> bool:
        return self.mode is ResultMode.FORECAST

    @property
    def models(self) -> List[str]:
        return list(pd.unique(self._frame["model"]))

    def filter(
        self,
        models: Optional[Sequence[str]] = None,
        horizons: Optional[Sequence[int]] = None,
        windows: Optional[Sequence[int]] = None,
    ) -> "PredictionResult":
        """
        Select rows by model name, horizon and window number.

        Horizons filter ``horizon`` in backtest mode and
        ``model_forecast_horizon`` in forecast mode.
        """
        frame = self._frame
        mask = pd.Series(True, index=frame.index)
        if models is not None:
            mask &= frame["model"].isin(list(models))
        if horizons is not None:
            column = "model_forecast_horizon" if self.is_forecast else "horizon"
            mask &= frame[column].isin(list(horizons))
        if windows is not None:
            mask &= frame["window_number"].isin(list(windows))
        return PredictionResult(
            frame=frame.loc[mask].reset_index(drop=True),
            mode=self.mode,
            metadata=self.metadata,
        )

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(mode='{self.mode.value}', "
            f"rows={len(self._frame)}, models={self.models})"
        )


class ResultAssembler:
    """Combines per-unit prediction frames into one PredictionResult."""

    def assemble(
        self,
        frames: Sequence[pd.DataFrame],
        mode: ResultMode,
        metadata: "CollectionMetadata",
        data_stop: Any = None,
        frequency: Optional[str] = None,
        prediction_suffix: str = "_pred",
    ) -> PredictionResult:
        """
        Stack per-unit frames in the given order and attach table metadata.

        Args:
            frames: Per (model, horizon, window) frames, already ordered
            mode: BACKTEST or FORECAST
            metadata: Metadata of the first model collection
            data_stop: Last observed index (defaults to the collection's)
            frequency: Time step (defaults to the collection's)
            prediction_suffix: Suffix of the predicted-outcome columns

        Returns:
            PredictionResult
        """
        non_empty = [f for f in frames if len(f) > 0]
        if non_empty:
            data_out = pd.concat(non_empty, axis=0, ignore_index=True)
        elif frames:
            data_out = frames[0].iloc[0:0].reset_index(drop=True)
        else:
            data_out = pd.DataFrame()

        result_metadata = ResultMetadata(
            outcome_cols=tuple(metadata.outcome_cols),
            outcome_names=tuple(metadata.outcome_names),
            row_indices=metadata.row_indices,
            date_indices=metadata.date_indices,
            frequency=frequency if frequency is not None else metadata.frequency,
            data_stop=data_stop if data_stop is not None else metadata.data_stop,
            groups=tuple(metadata.groups) if metadata.groups else None,
            prediction_suffix=prediction_suffix,
        )

        logger.info(f"Assembled {mode.value} result with {len(data_out)} rows")
        return PredictionResult(frame=data_out, mode=mode, metadata=result_metadata)
