"""
Loading of tabular data into indexed data sets.

Reads ARFF files (or takes an already loaded ``pandas.DataFrame``), cleans
missing values, scales numeric attributes to [0, 1], one-hot encodes
categorical attributes and returns a sealed ``IndexedDataSet`` of float
arrays together with the label-encoded class column. The result feeds the
clustering algorithms and the external validation indices.

References
----------
[1] Witten, I.H., Frank, E., Hall, M.A., "Data Mining: Practical Machine
    Learning Tools and Techniques", 2011, Morgan Kaufmann, Section 2.4
    "Preparing the Input" (ARFF format).
"""

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.io import arff
from sklearn.preprocessing import LabelEncoder, MinMaxScaler

from .dataset import IndexedDataSet


def load_arff(filepath: str) -> pd.DataFrame:
    """
    Loads an .arff file into a pandas DataFrame with decoded string columns.

    Parameters
    ----------
    filepath : str
        Path to the .arff file.

    Returns
    -------
    pd.DataFrame
    """
    data, _meta = arff.loadarff(filepath)
    df = pd.DataFrame(data)

    # scipy returns nominal values as bytes
    for col in df.columns:
        if df[col].dtype == object:
            df[col] = df[col].apply(
                lambda v: v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else v
            )
    return df


def split_column_types(df: pd.DataFrame, class_column: Optional[str]) -> Tuple[List[str], List[str]]:
    """
    Separates the feature columns into numeric and categorical ones.

    Returns
    -------
    numeric_cols, categorical_cols : List[str], List[str]
    """
    numeric_cols: List[str] = []
    categorical_cols: List[str] = []
    for col in df.columns:
        if col == class_column:
            continue
        if pd.api.types.is_numeric_dtype(df[col]):
            numeric_cols.append(col)
        else:
            categorical_cols.append(col)
    return numeric_cols, categorical_cols


def fill_missing_values(df: pd.DataFrame, numeric_cols: List[str], categorical_cols: List[str]) -> pd.DataFrame:
    """
    Median imputation for numeric columns, mode imputation for categorical ones.
    """
    df = df.replace(["?", ""], np.nan)
    for col in numeric_cols:
        if df[col].isnull().any():
            df[col] = df[col].fillna(df[col].median())
    for col in categorical_cols:
        if df[col].isnull().any():
            mode = df[col].mode()
            df[col] = df[col].fillna(mode[0] if not mode.empty else "Missing")
    return df


def data_set_from_frame(
        df: pd.DataFrame,
        class_column: Optional[str] = None,
        scale: bool = True,
) -> Tuple[IndexedDataSet, Optional[np.ndarray], Dict[str, Any]]:
    """
    Converts a DataFrame into a sealed indexed data set.

    Parameters
    ----------
    df : pd.DataFrame
        The raw table.
    class_column : str, optional
        Name of the label column. It is excluded from the features and
        label-encoded into the second return value. ``None`` means the table
        has no labels.
    scale : bool, default=True
        Scale numeric features to [0, 1].

    Returns
    -------
    data_set : IndexedDataSet
        Sealed set whose elements are 1-D float arrays.
    y : np.ndarray or None
        Encoded class labels, aligned with the data object IDs.
    info : Dict[str, Any]
        Column lists, fitted encoder and scaler, feature names.
    """
    numeric_cols, categorical_cols = split_column_types(df, class_column)
    df = fill_missing_values(df, numeric_cols, categorical_cols)

    y = None
    class_encoder = None
    if class_column is not None:
        class_encoder = LabelEncoder()
        y = class_encoder.fit_transform(df[class_column].astype(str))
        features = df.drop(columns=[class_column])
    else:
        features = df.copy()

    scaler = None
    if scale and numeric_cols:
        scaler = MinMaxScaler(feature_range=(0, 1))
        features[numeric_cols] = scaler.fit_transform(features[numeric_cols])

    if categorical_cols:
        features = pd.get_dummies(features, columns=categorical_cols, prefix=categorical_cols, dtype=int)

    data_set = IndexedDataSet.from_array(features.to_numpy(dtype=float))
    info: Dict[str, Any] = {
        "class_column": class_column,
        "numeric_cols": numeric_cols,
        "categorical_cols": categorical_cols,
        "class_encoder": class_encoder,
        "scaler": scaler,
        "feature_names": list(features.columns),
    }
    return data_set, y, info


def load_arff_data_set(
        filepath: str,
        class_column: Optional[str] = None,
) -> Tuple[IndexedDataSet, Optional[np.ndarray], Dict[str, Any]]:
    """
    Reads an .arff file into a sealed data set. The class column defaults to
    the last attribute of the file.
    """
    df = load_arff(filepath)
    if class_column is None:
        class_column = df.columns[-1]
    return data_set_from_frame(df, class_column=class_column)
