"""Trained-model containers produced by the trainer and read by the prediction engine."""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from forecastgrid.data.structs import IndexMode, LaggedDataset

UnitKey = Tuple[int, int]


@dataclass(frozen=True)
class CollectionMetadata:
    """Process-wide metadata carried from the training data to every result."""
    model_name: str
    outcome_cols: Tuple[int, ...]
    outcome_names: Tuple[str, ...]
    row_indices: np.ndarray
    date_indices: Optional[pd.DatetimeIndex]
    frequency: Optional[str]
    data_stop: Any
    horizons: Tuple[int, ...]
    groups: Optional[Tuple[str, ...]] = None
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_lagged(cls, lagged_df: LaggedDataset, model_name: str) -> "CollectionMetadata":
        return cls(
            model_name=model_name,
            outcome_cols=tuple(lagged_df.outcome_cols),
            outcome_names=tuple(lagged_df.outcome_names),
            row_indices=lagged_df.row_indices.copy(),
            date_indices=lagged_df.date_indices,
            frequency=lagged_df.frequency,
            data_stop=lagged_df.data_stop,
            horizons=tuple(lagged_df.horizons),
            groups=tuple(lagged_df.groups) if lagged_df.groups else None,
        )

    @property
    def index_mode(self) -> IndexMode:
        return IndexMode.ROW if self.date_indices is None else IndexMode.DATE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (index sequences as lists)."""
        return {
            "model_name": self.model_name,
            "outcome_cols": list(self.outcome_cols),
            "outcome_names": list(self.outcome_names),
            "row_indices": self.row_indices.tolist(),
            "date_indices": (
                [d.isoformat() for d in self.date_indices]
                if self.date_indices is not None else None
            ),
            "frequency": self.frequency,
            "data_stop": self.data_stop,
            "horizons": list(self.horizons),
            "groups": list(self.groups) if self.groups else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class TrainedModel:
    """
    One trained model for a (horizon, window) unit plus its validation data.

    Attributes:
        model: Opaque object returned by the user's model function
        horizon: Forecast horizon of the training dataset
        window_number: 1-based position of the window in the WindowSpec
        window_length: Window length (0 means trained on all rows)
        window_start: Resolved start bound of the validation window
        window_stop: Resolved stop bound of the validation window
        x_valid: Validation feature rows
        y_valid: Validation outcome rows
        valid_indices: Row indices of the validation rows
        valid_dates: Dates of the validation rows (date mode only)
        train_indices: Row indices used for training
    """
    model: Any
    horizon: int
    window_number: int
    window_length: int
    window_start: Any
    window_stop: Any
    x_valid: pd.DataFrame
    y_valid: pd.DataFrame
    valid_indices: np.ndarray
    valid_dates: Optional[pd.DatetimeIndex] = None
    train_indices: np.ndarray = field(default_factory=lambda: np.array([], dtype=int))
    training_time: float = 0.0

    @property
    def key(self) -> UnitKey:
        return (self.horizon, self.window_number)

    @property
    def n_train(self) -> int:
        return len(self.train_indices)

    @property
    def n_valid(self) -> int:
        return len(self.valid_indices)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"horizon={self.horizon}, window_number={self.window_number}, "
            f"window_length={self.window_length}, n_train={self.n_train}, "
            f"n_valid={self.n_valid})"
        )


class ForecastModelCollection:
    """
    Every TrainedModel of one named model, keyed by (horizon, window_number).

    Read-only after construction; iteration follows ascending horizon, then
    ascending window number.
    """

    def __init__(self, metadata: CollectionMetadata, models: Mapping[UnitKey, TrainedModel]):
        ordered = {key: models[key] for key in sorted(models)}
        for key, trained in ordered.items():
            if trained.key != key:
                raise ValueError(f"TrainedModel {trained.key} stored under key {key}")
        self._metadata = metadata
        self._models = ordered

    @property
    def metadata(self) -> CollectionMetadata:
        return self._metadata

    @property
    def model_name(self) -> str:
        return self._metadata.model_name

    @property
    def models(self) -> Mapping[UnitKey, TrainedModel]:
        return MappingProxyType(self._models)

    @property
    def horizons(self) -> List[int]:
        return sorted({h for h, _ in self._models})

    def window_numbers(self, horizon: int) -> List[int]:
        return [w for h, w in self._models if h == horizon]

    def for_horizon(self, horizon: int) -> List[TrainedModel]:
        """All TrainedModels of one horizon, in window order."""
        return [m for (h, _), m in self._models.items() if h == horizon]

    def get(self, horizon: int, window_number: int) -> TrainedModel:
        try:
            return self._models[(horizon, window_number)]
        except KeyError:
            raise KeyError(
                f"No trained model for horizon {horizon}, window {window_number} "
                f"in '{self.model_name}'"
            ) from None

    def keys(self) -> List[UnitKey]:
        return list(self._models)

    def __iter__(self) -> Iterator[TrainedModel]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, key: object) -> bool:
        return key in self._models

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_name='{self.model_name}', "
            f"horizons={self.horizons}, n_models={len(self)})"
        )
