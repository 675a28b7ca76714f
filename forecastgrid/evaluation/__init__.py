"""Prediction results, validation error, and hyperparameter summaries."""

from forecastgrid.evaluation.results import PredictionResult, ResultAssembler, ResultMode
from forecastgrid.evaluation.metrics import MetricsCalculator, calculate_validation_error
from forecastgrid.evaluation.hyperparameters import HyperparameterTable, return_hyper

__all__ = [
    "PredictionResult",
    "ResultAssembler",
    "ResultMode",
    "MetricsCalculator",
    "calculate_validation_error",
    "HyperparameterTable",
    "return_hyper",
]
