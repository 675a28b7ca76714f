"""Direct multi-horizon forecasting over nested cross-validation windows."""

from forecastgrid.data import ForecastDataset, IndexMode, LaggedDataset, WindowBounds, WindowSpec
from forecastgrid.models import (
    ForecastModelCollection,
    PredictionEngine,
    ModelTrainer,
    estimator_functions,
    predict,
    train_model,
)
from forecastgrid.evaluation import (
    PredictionResult,
    ResultMode,
    calculate_validation_error,
    return_hyper,
)
from forecastgrid.utils import EngineConfig

__version__ = "0.1.0"

__all__ = [
    "ForecastDataset",
    "IndexMode",
    "LaggedDataset",
    "WindowBounds",
    "WindowSpec",
    "ForecastModelCollection",
    "PredictionEngine",
    "ModelTrainer",
    "estimator_functions",
    "predict",
    "train_model",
    "PredictionResult",
    "ResultMode",
    "calculate_validation_error",
    "return_hyper",
    "EngineConfig",
]
