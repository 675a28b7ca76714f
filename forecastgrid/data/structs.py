"""Core data structures consumed by the training and prediction engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from forecastgrid.utils.error_handling import InputContractError


class IndexMode(str, Enum):
    """How rows of a dataset are addressed by window bounds and forecasts."""
    ROW = "row"
    DATE = "date"


def _as_date_index(values: Any) -> pd.DatetimeIndex:
    return pd.DatetimeIndex(pd.to_datetime(values))


@dataclass(frozen=True)
class LaggedDataset:
    """
    Per-horizon training datasets with shared index metadata.

    Attributes:
        frames: Horizon -> DataFrame; outcome columns occupy the leading positions
        outcome_names: Names of the outcome columns, in order
        row_indices: Row index of every row, shared by all horizons
        date_indices: Optional date of every row (same order as row_indices)
        frequency: Pandas offset alias for the time step (date mode only)
        groups: Optional grouping columns for panel data
        data_stop: Last observed row index or date (defaults to the maximum index)
    """
    frames: Dict[int, pd.DataFrame]
    outcome_names: List[str]
    row_indices: np.ndarray
    date_indices: Optional[pd.DatetimeIndex] = None
    frequency: Optional[str] = None
    groups: Optional[List[str]] = None
    data_stop: Any = None

    def __post_init__(self):
        """Validate consistency after initialization."""
        if not self.frames:
            raise InputContractError("LaggedDataset requires at least one horizon dataset")
        if not self.outcome_names:
            raise InputContractError("LaggedDataset requires at least one outcome column")

        # Normalize containers without mutating caller objects.
        frames = dict(sorted(((int(h), f) for h, f in self.frames.items()), key=lambda item: item[0]))
        object.__setattr__(self, "frames", frames)
        object.__setattr__(self, "outcome_names", list(self.outcome_names))
        object.__setattr__(self, "row_indices", np.asarray(self.row_indices))
        if self.groups is not None:
            object.__setattr__(self, "groups", list(self.groups) or None)

        n_rows = len(self.row_indices)
        if len(np.unique(self.row_indices)) != n_rows:
            raise InputContractError("row_indices must be unique")

        if self.date_indices is not None:
            dates = _as_date_index(self.date_indices)
            object.__setattr__(self, "date_indices", dates)
            if len(dates) != n_rows:
                raise InputContractError(
                    f"Length mismatch: date_indices ({len(dates)}) vs row_indices ({n_rows})"
                )
            if not dates.is_monotonic_increasing:
                raise InputContractError("date_indices must be monotonic increasing")
            if not self.frequency:
                raise InputContractError("A frequency is required when date_indices are given")

        n_outcomes = len(self.outcome_names)
        for horizon, frame in frames.items():
            if horizon < 1:
                raise InputContractError(f"Horizons must be positive integers, got {horizon}")
            if not isinstance(frame, pd.DataFrame):
                raise InputContractError(
                    f"Horizon {horizon} dataset must be a pandas DataFrame, got {type(frame).__name__}"
                )
            if len(frame) != n_rows:
                raise InputContractError(
                    f"Length mismatch: horizon {horizon} dataset ({len(frame)}) vs row_indices ({n_rows})"
                )
            leading = [str(c) for c in frame.columns[:n_outcomes]]
            if leading != [str(c) for c in self.outcome_names]:
                raise InputContractError(
                    f"Horizon {horizon} dataset must start with outcome columns "
                    f"{self.outcome_names}, found {leading}"
                )
            missing = [g for g in (self.groups or []) if g not in frame.columns]
            if missing:
                raise InputContractError(
                    f"Horizon {horizon} dataset is missing group columns {missing}"
                )

        if self.data_stop is None:
            object.__setattr__(self, "data_stop", self.last_observed)

    @property
    def horizons(self) -> List[int]:
        return list(self.frames)

    @property
    def n_outcomes(self) -> int:
        return len(self.outcome_names)

    @property
    def outcome_cols(self) -> List[int]:
        """0-based positions of the outcome columns."""
        return list(range(self.n_outcomes))

    @property
    def index_mode(self) -> IndexMode:
        return IndexMode.ROW if self.date_indices is None else IndexMode.DATE

    @property
    def last_observed(self) -> Any:
        if self.date_indices is not None:
            return self.date_indices.max()
        return self.row_indices.max()

    def frame(self, horizon: int) -> pd.DataFrame:
        if horizon not in self.frames:
            raise KeyError(f"No dataset for horizon {horizon}; available: {self.horizons}")
        return self.frames[horizon]


@dataclass(frozen=True)
class WindowBounds:
    """One row of a WindowSpec, numbered from 1 in table order."""
    window_number: int
    window_length: int
    start: Any
    stop: Any


@dataclass(frozen=True)
class WindowSpec:
    """Ordered table of candidate validation windows."""
    windows: List[WindowBounds] = field(default_factory=list)

    REQUIRED_COLUMNS = ("window_length", "start", "stop")

    def __post_init__(self):
        object.__setattr__(self, "windows", list(self.windows))
        if not self.windows:
            raise InputContractError("WindowSpec requires at least one window")
        for bounds in self.windows:
            if bounds.window_length < 0:
                raise InputContractError(
                    f"Window {bounds.window_number}: window_length must be >= 0, got {bounds.window_length}"
                )
            if bounds.start > bounds.stop:
                raise InputContractError(
                    f"Window {bounds.window_number}: start ({bounds.start}) is after stop ({bounds.stop})"
                )

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "WindowSpec":
        """Create from a DataFrame with window_length, start and stop columns."""
        missing = [c for c in cls.REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise InputContractError(f"Window table is missing columns {missing}")

        # Column-wise zip keeps per-column dtypes (iterrows would upcast).
        rows = zip(frame["window_length"].tolist(), frame["start"].tolist(), frame["stop"].tolist())
        windows = [
            WindowBounds(window_number=i + 1, window_length=int(length), start=start, stop=stop)
            for i, (length, start, stop) in enumerate(rows)
        ]
        return cls(windows=windows)

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]]) -> "WindowSpec":
        """Create from a list of {'window_length', 'start', 'stop'} dictionaries."""
        return cls.from_frame(pd.DataFrame(list(records), columns=list(cls.REQUIRED_COLUMNS)))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "window_length": [w.window_length for w in self.windows],
                "start": [w.start for w in self.windows],
                "stop": [w.stop for w in self.windows],
            },
            index=pd.RangeIndex(1, len(self.windows) + 1, name="window_number"),
        )

    def __iter__(self) -> Iterator[WindowBounds]:
        return iter(self.windows)

    def __len__(self) -> int:
        return len(self.windows)


@dataclass(frozen=True)
class ForecastDataset:
    """
    Future feature rows for forecasting, one table per model forecast horizon.

    Each table carries a step tag column (``horizon`` by default) holding the
    forecast step 1..H of every row.

    Attributes:
        frames: Model forecast horizon -> DataFrame of future features
        frequency: Optional frequency overriding the training metadata
        data_stop: Optional last observed index overriding the training metadata
    """
    frames: Dict[int, pd.DataFrame]
    frequency: Optional[str] = None
    data_stop: Any = None

    def __post_init__(self):
        if not self.frames:
            raise InputContractError("ForecastDataset requires at least one horizon dataset")
        frames = dict(sorted(((int(h), f) for h, f in self.frames.items()), key=lambda item: item[0]))
        object.__setattr__(self, "frames", frames)
        for horizon, frame in frames.items():
            if not isinstance(frame, pd.DataFrame):
                raise InputContractError(
                    f"Forecast dataset for horizon {horizon} must be a pandas DataFrame, "
                    f"got {type(frame).__name__}"
                )

    @property
    def horizons(self) -> List[int]:
        return list(self.frames)
