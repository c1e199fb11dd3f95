"""
Utility functions for dataset I/O, batch discovery and result persistence.
"""

import os
import re
import glob
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.io import loadmat, savemat

DEFAULT_DATA_DIR = "data"
DEFAULT_PATTERN = "emgdata*.mat"
SIGNAL_VARIABLE = "emg"
TARGET_VARIABLE = "target"


def _trim_trailing_missing(column: pd.Series) -> np.ndarray:
    """Drop the NaN padding pandas adds after the end of a shorter column."""
    last = column.last_valid_index()
    if last is None:
        return column.values[:0]
    return column.loc[:last].values


def _to_1d(values: np.ndarray, name: str) -> np.ndarray:
    """Flatten an n×1, 1×n or 1D array to 1D float."""
    values = np.asarray(values)
    if values.ndim == 2:
        if values.shape[0] == 1 or values.shape[1] == 1:
            values = values.flatten()
        else:
            raise ValueError(f"Expected n×1 or 1×n array for '{name}', got shape {values.shape}")
    elif values.ndim != 1:
        raise ValueError(f"Expected 1D or 2D array for '{name}', got {values.ndim}D array")

    try:
        values = values.astype(float)
    except ValueError as e:
        raise ValueError(f"Error converting '{name}' to numeric values: {e}")

    missing = np.flatnonzero(np.isnan(values))
    if len(missing) > 0:
        raise ValueError(f"'{name}' has {len(missing)} missing samples (first at index {missing[0]})")

    return values


def load_emg_dataset(
    filepath: str,
    signal_variable: str = SIGNAL_VARIABLE,
    target_variable: str = TARGET_VARIABLE
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Load an EMG recording and its optional ground-truth target.

    Parameters:
    -----------
    filepath : str
        Path to a .mat or .csv file
    signal_variable : str, optional
        Variable (.mat) or column (.csv) holding the EMG signal (default: 'emg')
    target_variable : str, optional
        Variable (.mat) or column (.csv) holding the target mask (default: 'target')

    Returns:
    --------
    Tuple[np.ndarray, Optional[np.ndarray]]
        - EMG signal as a 1D float array
        - Target mask as a 1D array, or None when the file has no target

    Raises:
    -------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the signal variable is missing, the file type is unsupported, or
        a signal/target has missing (NaN) samples before its last value

    Examples:
    ---------
    >>> emg, target = load_emg_dataset('data/emgdata1.mat')
    >>> emg, target = load_emg_dataset('recording.csv', signal_variable='EMG')
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"File not found: {filepath}")

    _, ext = os.path.splitext(filepath)
    ext = ext.lower()

    if ext == '.mat':
        try:
            contents = loadmat(filepath)
        except Exception as e:
            raise ValueError(f"Error loading .mat file: {e}")
        variables = {k: v for k, v in contents.items() if not k.startswith('__')}
    elif ext == '.csv':
        df = pd.read_csv(filepath)
        variables = {col: _trim_trailing_missing(df[col]) for col in df.columns}
    else:
        raise ValueError(f"Unsupported file type: {ext}. Supported: .csv, .mat")

    if signal_variable not in variables:
        available = ', '.join(variables.keys())
        raise ValueError(f"Variable '{signal_variable}' not found. Available: {available}")

    emg = _to_1d(variables[signal_variable], signal_variable)

    target = None
    if target_variable in variables:
        target = _to_1d(variables[target_variable], target_variable)

    return emg, target


def resolve_dataset_path(name: str, data_dir: str = DEFAULT_DATA_DIR) -> str:
    """
    Find a dataset given either a direct path or a file name inside ``data_dir``.
    """
    if os.path.exists(name):
        return name

    candidate = os.path.join(data_dir, name)
    if os.path.exists(candidate):
        return candidate

    raise FileNotFoundError(f"Dataset file {name} not found in current directory or {data_dir}/ folder")


def parse_dataset_id(filename: str) -> Optional[int]:
    """
    Extract the dataset number from a file name.

    >>> parse_dataset_id('data/emgdata12.mat')
    12
    """
    stem = os.path.splitext(os.path.basename(filename))[0]
    match = re.search(r'\d+', stem)
    if match is None:
        return None
    return int(match.group())


def find_datasets(
    data_dir: str = DEFAULT_DATA_DIR,
    pattern: str = DEFAULT_PATTERN
) -> List[str]:
    """
    Find EMG dataset files in a directory.

    Files are ordered by their dataset number (so emgdata2 comes before
    emgdata10); files without a number come last, by name.
    """
    files = glob.glob(os.path.join(data_dir, pattern))

    def sort_key(path):
        dataset_id = parse_dataset_id(path)
        return (dataset_id is None, dataset_id or 0, os.path.basename(path))

    return sorted(files, key=sort_key)


def save_results(results: Dict, filepath: str) -> None:
    """
    Save batch results as a MATLAB result bundle.

    Parameters:
    -----------
    results : Dict[int, DatasetResult]
        Batch results keyed by dataset id
    filepath : str
        Output .mat path

    Notes:
    ------
    - Each dataset is stored as a struct 'dataset<id>' with fields
      filename, activity, accuracy, confusion_matrix and error
    - MATLAB has no null, so a missing accuracy is written as NaN and a
      missing confusion matrix / activity as an empty array
    """
    bundle = {}
    for dataset_id, result in sorted(results.items()):
        accuracy = result.accuracy
        cm = result.confusion_matrix
        bundle[f"dataset{dataset_id}"] = {
            'filename': result.filename,
            'activity': result.activity if result.activity is not None else np.zeros(0),
            'accuracy': np.nan if accuracy is None else accuracy,
            'confusion_matrix': cm if cm is not None else np.zeros((0, 0)),
            'error': result.error or '',
        }

    savemat(filepath, {'results': bundle})
    print(f"Results saved to: {filepath}")


def save_summary_csv(summary: pd.DataFrame, filepath: str) -> None:
    """Save a batch summary table (see ``summarize_results``) to CSV."""
    summary.to_csv(filepath, index=False)
    print(f"Summary saved to: {filepath}")


def write_report(results: Dict, filepath: str) -> None:
    """
    Write a plain-text accuracy report for a batch run.

    Datasets without an accuracy are listed as having no target data, failed
    datasets with their error message.
    """
    lines = [
        "EMG Analysis Report",
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "===================",
        "",
    ]

    for dataset_id, result in sorted(results.items()):
        if result.error is not None:
            lines.append(f"Dataset {dataset_id}: Processing failed ({result.error})")
        elif result.accuracy is not None:
            lines.append(f"Dataset {dataset_id}: Accuracy = {result.accuracy * 100:.2f}%")
        else:
            lines.append(f"Dataset {dataset_id}: No target data available")

    with open(filepath, 'w') as f:
        f.write("\n".join(lines) + "\n")

    print(f"Report saved to: {filepath}")
