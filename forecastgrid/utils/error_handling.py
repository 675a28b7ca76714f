"""Error handling utilities."""

import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class ForecastGridError(Exception):
    """Base class for errors raised by the engine itself."""


class InputContractError(ForecastGridError, ValueError):
    """A caller-supplied argument violates the engine's input contract.

    Raised before any training or prediction work begins.
    """


class ReconciliationError(ForecastGridError, ValueError):
    """Index, horizon or shape reconciliation failed for one unit of work."""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        horizon: Optional[int] = None,
        window_number: Optional[int] = None,
    ):
        self.model_name = model_name
        self.horizon = horizon
        self.window_number = window_number

        location = []
        if model_name is not None:
            location.append(f"model='{model_name}'")
        if horizon is not None:
            location.append(f"horizon={horizon}")
        if window_number is not None:
            location.append(f"window={window_number}")

        if location:
            message = f"[{', '.join(location)}] {message}"
        super().__init__(message)


class PredictionShapeError(ReconciliationError):
    """A prediction function returned output that cannot be aligned to its input rows."""


@dataclass
class UnitContext:
    """Captures the (model, horizon, window) unit in which a user callable failed."""
    stage: str
    model_name: str
    horizon: int
    window_number: int
    timestamp: float = field(default_factory=time.time)
    exception_type: str = ""
    exception_message: str = ""
    stack_trace: str = ""

    @classmethod
    def from_exception(
        cls,
        stage: str,
        model_name: str,
        horizon: int,
        window_number: int,
        exc: BaseException,
    ) -> "UnitContext":
        """Create context from an exception raised inside a unit."""
        return cls(
            stage=stage,
            model_name=model_name,
            horizon=horizon,
            window_number=window_number,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            stack_trace="".join(traceback.format_tb(exc.__traceback__)),
        )

    def describe(self) -> str:
        return (
            f"{self.stage} failed for model '{self.model_name}', "
            f"horizon {self.horizon}, window {self.window_number}: "
            f"{self.exception_type}: {self.exception_message}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "stage": self.stage,
            "model_name": self.model_name,
            "horizon": self.horizon,
            "window_number": self.window_number,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
            "exception_message": self.exception_message,
            "stack_trace": self.stack_trace,
        }
