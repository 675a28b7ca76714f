"""Resolution of validation windows into concrete training/validation row sets."""

from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass
from datetime import date
import logging

import numpy as np
import pandas as pd

from forecastgrid.data.structs import IndexMode, WindowBounds, WindowSpec
from forecastgrid.utils.error_handling import InputContractError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedWindow:
    """Training/validation row sets for one window of one dataset."""
    window_number: int
    window_length: int
    start: Any
    stop: Any
    train_mask: np.ndarray
    valid_mask: np.ndarray
    valid_indices: np.ndarray
    valid_dates: Optional[pd.DatetimeIndex] = None

    @property
    def n_train(self) -> int:
        return int(self.train_mask.sum())

    @property
    def n_valid(self) -> int:
        return int(self.valid_mask.sum())

    @property
    def is_empty(self) -> bool:
        return self.n_valid == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "window_number": self.window_number,
            "window_length": self.window_length,
            "start": str(self.start),
            "stop": str(self.stop),
            "n_train": self.n_train,
            "n_valid": self.n_valid,
            "valid_indices": self.valid_indices.tolist(),
            "valid_dates": (
                [d.isoformat() for d in self.valid_dates]
                if self.valid_dates is not None else None
            ),
        }


class WindowResolver:
    """Turns WindowSpec rows into row-index (or date-index) sets for one dataset."""

    def __init__(self, row_indices: Any, date_indices: Optional[pd.DatetimeIndex] = None):
        """
        Args:
            row_indices: Row index of every dataset row
            date_indices: Optional date of every row, same order as row_indices
        """
        self.row_indices = np.asarray(row_indices)
        self.date_indices = (
            pd.DatetimeIndex(date_indices) if date_indices is not None else None
        )
        if self.date_indices is not None and len(self.date_indices) != len(self.row_indices):
            raise InputContractError(
                f"Length mismatch: date_indices ({len(self.date_indices)}) "
                f"vs row_indices ({len(self.row_indices)})"
            )

    @property
    def index_mode(self) -> IndexMode:
        return IndexMode.ROW if self.date_indices is None else IndexMode.DATE

    def resolve(self, window: WindowBounds) -> ResolvedWindow:
        """
        Resolve one window.

        Row mode selects rows whose row index lies in the closed range
        [start, stop]; date mode selects rows whose date lies in the closed
        interval [start, stop]. A window length of 0 trains on every row.

        Args:
            window: Window bounds from a WindowSpec

        Returns:
            ResolvedWindow with boolean masks over the dataset rows
        """
        if self.date_indices is None:
            start, stop = self._row_bound(window, window.start), self._row_bound(window, window.stop)
            valid_mask = (self.row_indices >= start) & (self.row_indices <= stop)
            valid_dates = None
        else:
            start, stop = self._date_bound(window, window.start), self._date_bound(window, window.stop)
            valid_mask = np.asarray((self.date_indices >= start) & (self.date_indices <= stop))
            valid_dates = self.date_indices[valid_mask]

        if window.window_length == 0:
            train_mask = np.ones(len(self.row_indices), dtype=bool)
        else:
            train_mask = ~valid_mask

        if not valid_mask.any():
            logger.warning(
                f"Window {window.window_number} [{start}, {stop}] matches no rows; "
                f"it will produce zero validation rows"
            )

        return ResolvedWindow(
            window_number=window.window_number,
            window_length=window.window_length,
            start=start,
            stop=stop,
            train_mask=train_mask,
            valid_mask=valid_mask,
            valid_indices=self.row_indices[valid_mask],
            valid_dates=valid_dates,
        )

    def resolve_all(self, windows: WindowSpec) -> List[ResolvedWindow]:
        """Resolve every window of a WindowSpec, in table order."""
        return [self.resolve(window) for window in windows]

    def apply(
        self,
        df: pd.DataFrame,
        window: ResolvedWindow,
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Apply a resolved window to get training and validation DataFrames.

        Args:
            df: Dataset aligned row-for-row with the resolver's indices
            window: ResolvedWindow from resolve()

        Returns:
            Tuple of (train_df, valid_df)
        """
        if len(df) != len(self.row_indices):
            raise InputContractError(
                f"Length mismatch: dataset ({len(df)}) vs row_indices ({len(self.row_indices)})"
            )
        return df.loc[window.train_mask], df.loc[window.valid_mask]

    def validate_partition(self, window: ResolvedWindow) -> Tuple[bool, List[str]]:
        """
        Check the training/validation partition of a resolved window.

        Returns:
            Tuple of (is_valid, list of issues)
        """
        issues: List[str] = []
        n = len(self.row_indices)

        if window.window_length == 0:
            if window.n_train != n:
                issues.append(
                    f"Window length 0 must train on all {n} rows, got {window.n_train}"
                )
        else:
            overlap = window.train_mask & window.valid_mask
            if overlap.any():
                issues.append(
                    f"Training and validation rows overlap at row indices "
                    f"{self.row_indices[overlap].tolist()}"
                )
            uncovered = ~(window.train_mask | window.valid_mask)
            if uncovered.any():
                issues.append(
                    f"Rows {self.row_indices[uncovered].tolist()} are in neither set"
                )

        return len(issues) == 0, issues

    def _row_bound(self, window: WindowBounds, value: Any) -> Any:
        if isinstance(value, (date, np.datetime64, str)):
            raise InputContractError(
                f"Window {window.window_number}: bound {value!r} is a date but the "
                f"dataset uses row indices"
            )
        return value

    def _date_bound(self, window: WindowBounds, value: Any) -> pd.Timestamp:
        if isinstance(value, (int, np.integer, float, np.floating)) and not isinstance(value, bool):
            raise InputContractError(
                f"Window {window.window_number}: bound {value!r} is a row index but "
                f"the dataset uses dates"
            )
        try:
            return pd.Timestamp(value)
        except (TypeError, ValueError) as e:
            raise InputContractError(
                f"Window {window.window_number}: cannot interpret bound {value!r} as a date"
            ) from e
