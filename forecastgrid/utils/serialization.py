"""
Serialization utilities for forecast results and trained model collections.
Handles JSON, Parquet, Pickle, and PredictionResult/collection persistence.
"""

import json
import pickle
import logging
from pathlib import Path
from typing import Any, Union
from datetime import datetime
import pandas as pd
import numpy as np

from forecastgrid.evaluation.results import PredictionResult, ResultMetadata, ResultMode
from forecastgrid.models.collection import ForecastModelCollection

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime and numpy types."""
    def default(self, obj):
        if isinstance(obj, (datetime, pd.Timestamp)):
            return obj.isoformat()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def save_json(data: Any, path: Union[str, Path], **kwargs) -> None:
    """Save data to JSON with datetime support."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, cls=DateTimeEncoder, indent=2, **kwargs)
    logger.debug(f"Saved JSON to {path}")


def load_json(path: Union[str, Path]) -> Any:
    """Load data from JSON."""
    with open(path, 'r') as f:
        return json.load(f)


def save_pickle(obj: Any, path: Union[str, Path]) -> None:
    """Save object to pickle."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        pickle.dump(obj, f)
    logger.debug(f"Saved pickle to {path}")


def load_pickle(path: Union[str, Path]) -> Any:
    """Load object from pickle."""
    with open(path, 'rb') as f:
        return pickle.load(f)


def save_parquet(df: pd.DataFrame, path: Union[str, Path], **kwargs) -> None:
    """Save DataFrame to Parquet."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, **kwargs)
    logger.debug(f"Saved Parquet to {path}")


def load_parquet(path: Union[str, Path], **kwargs) -> pd.DataFrame:
    """Load DataFrame from Parquet."""
    return pd.read_parquet(path, **kwargs)


def save_prediction_result(result: PredictionResult, path: Union[str, Path]) -> None:
    """
    Save a PredictionResult to a directory structure.

    Structure:
    - path/
        - predictions.parquet
        - metadata.json (result mode plus table metadata)
    """
    save_dir = Path(path)
    save_dir.mkdir(parents=True, exist_ok=True)

    save_parquet(result.data, save_dir / "predictions.parquet", index=False)
    save_json(
        {"mode": result.mode.value, "metadata": result.metadata.to_dict()},
        save_dir / "metadata.json",
    )

    logger.info(f"Saved {result.mode.value} result ({len(result)} rows) to {save_dir}")


def load_prediction_result(path: Union[str, Path]) -> PredictionResult:
    """Load a PredictionResult from a directory."""
    load_dir = Path(path)
    if not load_dir.exists():
        raise FileNotFoundError(f"PredictionResult directory not found: {path}")

    frame = load_parquet(load_dir / "predictions.parquet")
    stored = load_json(load_dir / "metadata.json")

    return PredictionResult(
        frame=frame,
        mode=ResultMode(stored["mode"]),
        metadata=ResultMetadata.from_dict(stored["metadata"]),
    )


def save_collection(collection: ForecastModelCollection, path: Union[str, Path]) -> None:
    """
    Save a trained model collection.

    The models are pickled as-is; a metadata.json next to the pickle
    describes the collection without unpickling it.
    """
    save_dir = Path(path)
    save_dir.mkdir(parents=True, exist_ok=True)

    save_pickle(collection, save_dir / "collection.pkl")
    summary = collection.metadata.to_dict()
    summary["units"] = [list(key) for key in collection.keys()]
    save_json(summary, save_dir / "metadata.json")

    logger.info(f"Saved collection '{collection.model_name}' ({len(collection)} models) to {save_dir}")


def load_collection(path: Union[str, Path]) -> ForecastModelCollection:
    """Load a trained model collection saved by save_collection()."""
    load_dir = Path(path)
    if not load_dir.exists():
        raise FileNotFoundError(f"Collection directory not found: {path}")

    collection = load_pickle(load_dir / "collection.pkl")
    if not isinstance(collection, ForecastModelCollection):
        raise TypeError(
            f"Expected a ForecastModelCollection in {load_dir}, got {type(collection).__name__}"
        )
    return collection
