"""Model training over the horizon x window grid, and prediction."""

from forecastgrid.models.callables import estimator_functions
from forecastgrid.models.collection import ForecastModelCollection, TrainedModel
from forecastgrid.models.trainer import ModelTrainer, train_model
from forecastgrid.models.predictor import PredictionEngine, predict

__all__ = [
    "estimator_functions",
    "ForecastModelCollection",
    "TrainedModel",
    "ModelTrainer",
    "train_model",
    "PredictionEngine",
    "predict",
]
