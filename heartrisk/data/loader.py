"""
Loading and splitting of the heart-disease dataset.

The dataset is one CSV file with a fixed clinical schema. Loading drops the
label column, removes rows with missing values and splits the attributes
into continuous and categorical sets.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional, Sequence, Tuple

from heartrisk.components.config import CATEGORICAL_COLUMNS
from heartrisk.errors import ParseError, EmptyDatasetError

logger = logging.getLogger(__name__)


ATTRIBUTE_COLUMNS = [
    'age', 'sex', 'cp', 'trestbps', 'chol', 'fbs', 'restecg',
    'thalach', 'exang', 'oldpeak', 'slope', 'ca', 'thal'
]


class Dataset:
    """
    Patient records with the label removed and no missing values.

    The frame is copied on the way in and on the way out, so a Dataset
    never changes after it is built.
    """

    def __init__(self,
                 frame: pd.DataFrame,
                 continuous_columns: List[str],
                 categorical_columns: List[str]):
        self._frame = frame.copy()
        self.continuous_columns = list(continuous_columns)
        self.categorical_columns = list(categorical_columns)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def continuous(self) -> pd.DataFrame:
        """Continuous attributes only."""
        return self._frame[self.continuous_columns].copy()

    @property
    def categorical(self) -> pd.DataFrame:
        """Categorical attributes only."""
        return self._frame[self.categorical_columns].copy()

    @property
    def index(self) -> pd.Index:
        return self._frame.index

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return (f"Dataset(rows={len(self)}, continuous={len(self.continuous_columns)}, "
                f"categorical={len(self.categorical_columns)})")


def split_columns(columns: Sequence[str],
                  categorical_columns: Sequence[str] = CATEGORICAL_COLUMNS) -> Tuple[List[str], List[str]]:
    """
    Partition attribute names into continuous and categorical sets.

    Args:
        columns: Attribute names in table order
        categorical_columns: Names treated as categorical

    Returns:
        Tuple of (continuous, categorical) name lists, both in table order
    """
    categorical_set = set(categorical_columns)
    continuous = [c for c in columns if c not in categorical_set]
    categorical = [c for c in columns if c in categorical_set]
    return continuous, categorical


def dataset_from_frame(frame: pd.DataFrame,
                       target_column: Optional[str] = 'target',
                       categorical_columns: Sequence[str] = CATEGORICAL_COLUMNS,
                       required_columns: Sequence[str] = ATTRIBUTE_COLUMNS) -> Dataset:
    """
    Build a Dataset from a raw table.

    Args:
        frame: Raw records, one row per patient
        target_column: Label column to drop, if present
        categorical_columns: Names treated as categorical
        required_columns: Attributes that must be present

    Returns:
        Dataset with the label removed and incomplete rows dropped
    """
    frame = frame.copy()
    frame.columns = [str(c).strip() for c in frame.columns]

    missing = [c for c in required_columns if c not in frame.columns]
    if missing:
        raise ParseError(f"Missing required columns: {', '.join(missing)}")

    # Separate features from the label
    if target_column is not None and target_column in frame.columns:
        frame = frame.drop(columns=[target_column])

    # Unparseable cells (e.g. '?') become missing
    frame = frame.apply(pd.to_numeric, errors='coerce')

    n_before = len(frame)
    frame = frame.dropna(how='any')
    n_dropped = n_before - len(frame)
    if n_dropped:
        logger.info(f"Dropped {n_dropped} of {n_before} rows with missing values")

    if frame.empty:
        raise EmptyDatasetError(f"No complete rows remain out of {n_before}")

    frame = frame.astype(np.float64)
    continuous, categorical = split_columns(list(frame.columns), categorical_columns)
    logger.debug(f"Continuous columns: {continuous}; categorical columns: {categorical}")

    return Dataset(frame, continuous, categorical)


def load_dataset(path: str,
                 target_column: Optional[str] = 'target',
                 categorical_columns: Sequence[str] = CATEGORICAL_COLUMNS) -> Dataset:
    """
    Read the clinical CSV file into a Dataset.

    Args:
        path: Path to the CSV file
        target_column: Label column to drop, if present
        categorical_columns: Names treated as categorical

    Returns:
        Dataset
    """
    try:
        frame = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ParseError(f"Could not read {path}: {e}") from e

    logger.info(f"Loaded {path} with shape {frame.shape}")
    return dataset_from_frame(frame, target_column, categorical_columns)
