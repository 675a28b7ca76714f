"""Continuation of the row or date index past the end of the observed data."""

import logging
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

from forecastgrid.data.structs import IndexMode
from forecastgrid.utils.error_handling import InputContractError

logger = logging.getLogger(__name__)


class ForecastIndexExtender:
    """
    Computes ``forecast_period`` for forecast steps 1..H.

    Row mode: ``max(row_indices) + step``.
    Date mode: ``max(date_indices) + step * frequency``, i.e. a regular date
    sequence starting one frequency step past the last observed date, joined
    to rows by step number. Calendar gaps are not modelled.
    """

    def __init__(
        self,
        row_indices: Any,
        date_indices: Optional[pd.DatetimeIndex] = None,
        frequency: Optional[str] = None,
    ):
        self.row_indices = np.asarray(row_indices)
        self.date_indices = pd.DatetimeIndex(date_indices) if date_indices is not None else None
        self.frequency = frequency

        if self.date_indices is not None:
            if not frequency:
                raise InputContractError("Date-indexed forecasts require a frequency")
            try:
                self._offset = to_offset(frequency)
            except ValueError as e:
                raise InputContractError(f"Invalid frequency {frequency!r}: {e}") from e

    @property
    def index_mode(self) -> IndexMode:
        return IndexMode.ROW if self.date_indices is None else IndexMode.DATE

    def period_sequence(self, n_steps: int) -> pd.Series:
        """
        Forecast periods for steps 1..n_steps, indexed by step number.

        Args:
            n_steps: Largest forecast step requested

        Returns:
            Series mapping step -> forecast period
        """
        steps = pd.RangeIndex(1, n_steps + 1, name="horizon")
        if self.date_indices is None:
            last = self.row_indices.max()
            return pd.Series(last + np.asarray(steps), index=steps, name="forecast_period")

        last = self.date_indices.max()
        dates = [last + step * self._offset for step in steps]
        return pd.Series(pd.DatetimeIndex(dates), index=steps, name="forecast_period")

    def extend(self, steps: Sequence[int]) -> pd.Series:
        """
        Forecast period for each row's step number.

        Args:
            steps: Forecast step (1..H) of every output row

        Returns:
            Series aligned with ``steps``
        """
        steps = np.asarray(steps, dtype=int)
        if len(steps) == 0:
            dtype = "datetime64[ns]" if self.date_indices is not None else self.row_indices.dtype
            return pd.Series([], dtype=dtype, name="forecast_period")
        if steps.min() < 1:
            raise InputContractError(f"Forecast steps must be >= 1, got {steps.min()}")

        sequence = self.period_sequence(int(steps.max()))
        periods = sequence.reindex(steps).reset_index(drop=True)
        logger.debug(
            f"Extended {self.index_mode.value} index to {len(sequence)} steps: "
            f"{sequence.iloc[0]} .. {sequence.iloc[-1]}"
        )
        return periods
