"""Input containers, window resolution, and input validation."""

from .structs import ForecastDataset, IndexMode, LaggedDataset, WindowBounds, WindowSpec
from .windows import ResolvedWindow, WindowResolver

__all__ = [
    "ForecastDataset",
    "IndexMode",
    "LaggedDataset",
    "WindowBounds",
    "WindowSpec",
    "ResolvedWindow",
    "WindowResolver",
]
