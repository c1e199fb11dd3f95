"""
End-to-end processing of EMG datasets: smoothing, detection, evaluation.

A single dataset goes through

    raw signal -> low-pass filter -> activity detector -> evaluator

and yields a ``DatasetResult``. ``batch_process`` runs many datasets
independently; a dataset that fails is recorded with its error message and
the batch carries on with the rest.
"""

import os
from dataclasses import dataclass
from multiprocessing import Pool, cpu_count
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .detection import (
    detect_activity,
    DETECTION_WINDOW,
    BASELINE_WINDOW,
    MEAN_THRESHOLD,
    MAX_THRESHOLD,
    BOUNDARY_MARGIN,
)
from .evaluation import EvaluationResult, evaluate_activity, format_metric
from .filters import apply_lowpass_filter, SAMPLING_FREQUENCY, CUTOFF_FREQUENCY
from .utils import load_emg_dataset, parse_dataset_id

STATUS_NO_TARGET = "no target"
STATUS_FAILED = "failed"


@dataclass
class DatasetResult:
    """Result record for one dataset of a batch run."""

    dataset_id: int
    filename: str
    activity: Optional[np.ndarray] = None
    evaluation: Optional[EvaluationResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def has_target(self) -> bool:
        return self.evaluation is not None and self.evaluation.evaluated

    @property
    def accuracy(self) -> Optional[float]:
        if not self.has_target:
            return None
        return self.evaluation.accuracy

    @property
    def confusion_matrix(self) -> Optional[np.ndarray]:
        if not self.has_target:
            return None
        return self.evaluation.confusion_matrix

    @property
    def status(self) -> str:
        if self.error is not None:
            return STATUS_FAILED
        if self.has_target:
            return self.evaluation.status
        return STATUS_NO_TARGET


def process_signal(
    signal: np.ndarray,
    target: Optional[np.ndarray] = None,
    fs: float = SAMPLING_FREQUENCY,
    cutoff: float = CUTOFF_FREQUENCY,
    detection_window: int = DETECTION_WINDOW,
    baseline_window: int = BASELINE_WINDOW,
    mean_threshold: float = MEAN_THRESHOLD,
    max_threshold: float = MAX_THRESHOLD,
    margin: int = BOUNDARY_MARGIN
) -> Tuple[np.ndarray, np.ndarray, EvaluationResult]:
    """
    Run the full detection pipeline on an in-memory signal.

    Parameters:
    -----------
    signal : np.ndarray
        Raw EMG signal (1D array)
    target : np.ndarray, optional
        Ground-truth activity mask
    fs : float, optional
        Sampling frequency in Hz (default: 125.0)
    cutoff : float, optional
        Low-pass cutoff in Hz (default: 0.1)
    detection_window, baseline_window, mean_threshold, max_threshold, margin
        Detector parameters, see ``detect_activity``

    Returns:
    --------
    Tuple[np.ndarray, np.ndarray, EvaluationResult]
        - Filtered signal
        - Activity mask
        - Evaluation (status 'skipped' when no target is given)
    """
    filtered = apply_lowpass_filter(signal, fs=fs, cutoff=cutoff)
    activity = detect_activity(
        filtered,
        detection_window=detection_window,
        baseline_window=baseline_window,
        mean_threshold=mean_threshold,
        max_threshold=max_threshold,
        margin=margin,
    )
    evaluation = evaluate_activity(activity, target)

    return filtered, activity, evaluation


def process_dataset(
    filepath: str,
    dataset_id: Optional[int] = None,
    verbose: bool = True,
    **kwargs
) -> DatasetResult:
    """
    Load a dataset file and run the detection pipeline on it.

    Parameters:
    -----------
    filepath : str
        Path to a .mat or .csv dataset (see ``load_emg_dataset``)
    dataset_id : int, optional
        Identifier for the result; parsed from the file name when omitted
        (0 if the name has no number)
    verbose : bool, optional
        Print progress (default: True)
    **kwargs : dict
        Forwarded to ``process_signal``

    Returns:
    --------
    DatasetResult
        Result without error; loading and processing errors propagate
    """
    if dataset_id is None:
        dataset_id = parse_dataset_id(filepath) or 0

    signal, target = load_emg_dataset(filepath)
    if verbose:
        print(f"Successfully loaded {os.path.basename(filepath)} ({len(signal)} samples)")

    _, activity, evaluation = process_signal(signal, target, **kwargs)

    if verbose:
        if evaluation.evaluated:
            print(f"  Classification Accuracy: {format_metric(evaluation.accuracy, percent=True)}")
            print(f"  Precision: {format_metric(evaluation.precision)}, "
                  f"Recall: {format_metric(evaluation.recall)}, "
                  f"F1-Score: {format_metric(evaluation.f1_score)}")
        else:
            print("  No target signal found for accuracy evaluation")

    return DatasetResult(
        dataset_id=dataset_id,
        filename=os.path.basename(filepath),
        activity=activity,
        evaluation=evaluation,
    )


def _assign_dataset_ids(filepaths: List[str]) -> List[Tuple[int, str]]:
    """Pair each file with a unique id: its number if free, else the next free id."""
    assigned = []
    used = set()
    pending = []

    for path in filepaths:
        dataset_id = parse_dataset_id(path)
        if dataset_id is None or dataset_id in used:
            pending.append(path)
            continue
        used.add(dataset_id)
        assigned.append((dataset_id, path))

    next_id = max(used, default=0) + 1
    for path in pending:
        assigned.append((next_id, path))
        used.add(next_id)
        next_id += 1

    return assigned


def _process_dataset_safe(args) -> DatasetResult:
    """Worker wrapper: turns per-dataset failures into an error record."""
    dataset_id, filepath, verbose, kwargs = args
    try:
        return process_dataset(filepath, dataset_id=dataset_id, verbose=verbose, **kwargs)
    except (ValueError, OSError) as e:
        if verbose:
            print(f"✗ Failed to process {os.path.basename(filepath)}: {e}")
        return DatasetResult(
            dataset_id=dataset_id,
            filename=os.path.basename(filepath),
            error=str(e),
        )


def batch_process(
    filepaths: List[str],
    num_processes: int = 1,
    verbose: bool = True,
    **kwargs
) -> Dict[int, DatasetResult]:
    """
    Process several dataset files independently.

    Parameters:
    -----------
    filepaths : List[str]
        Dataset files, e.g. from ``find_datasets``
    num_processes : int, optional
        Worker processes (default: 1 = sequential). Values < 1 use
        cpu_count() - 1.
    verbose : bool, optional
        Print progress (default: True)
    **kwargs : dict
        Forwarded to ``process_signal``

    Returns:
    --------
    Dict[int, DatasetResult]
        Results keyed by dataset id. A dataset that raised ValueError or
        OSError has ``error`` set and no activity/evaluation.
    """
    jobs = [(dataset_id, path, verbose, kwargs) for dataset_id, path in _assign_dataset_ids(filepaths)]

    if num_processes < 1:
        num_processes = max(1, cpu_count() - 1)
    num_processes = min(num_processes, len(jobs)) if jobs else 1

    if verbose:
        print(f"Starting batch processing of {len(jobs)} EMG datasets...")

    if num_processes > 1:
        with Pool(processes=num_processes) as pool:
            outcomes = pool.map(_process_dataset_safe, jobs)
    else:
        outcomes = [_process_dataset_safe(job) for job in jobs]

    results = {result.dataset_id: result for result in outcomes}

    if verbose:
        n_failed = sum(1 for r in outcomes if not r.succeeded)
        print(f"Batch processing completed! ({len(outcomes) - n_failed} succeeded, {n_failed} failed)")

    return results


def summarize_results(results: Dict[int, DatasetResult]) -> pd.DataFrame:
    """
    Tabulate batch results, one row per dataset ordered by id.

    Columns: dataset_id, filename, status, accuracy, precision, recall,
    f1_score, error. Metric cells are None (not NaN) when unavailable.
    """
    columns = ['dataset_id', 'filename', 'status', 'accuracy',
               'precision', 'recall', 'f1_score', 'error']
    rows = []

    for dataset_id, result in sorted(results.items()):
        evaluation = result.evaluation if result.has_target else None
        rows.append({
            'dataset_id': dataset_id,
            'filename': result.filename,
            'status': result.status,
            'accuracy': result.accuracy,
            'precision': evaluation.precision if evaluation else None,
            'recall': evaluation.recall if evaluation else None,
            'f1_score': evaluation.f1_score if evaluation else None,
            'error': result.error,
        })

    return pd.DataFrame(rows, columns=columns, dtype=object)


def accuracy_statistics(results: Dict[int, DatasetResult]) -> Optional[Dict]:
    """
    Overall accuracy statistics over the evaluated datasets.

    Returns None when no dataset has an accuracy. 'std' is the sample
    standard deviation and is None for a single dataset.
    """
    evaluated = [(dataset_id, r.accuracy) for dataset_id, r in sorted(results.items())
                 if r.accuracy is not None]
    if not evaluated:
        return None

    ids = [dataset_id for dataset_id, _ in evaluated]
    accuracies = np.array([acc for _, acc in evaluated])
    best = int(np.argmax(accuracies))
    worst = int(np.argmin(accuracies))

    return {
        'count': len(accuracies),
        'mean': float(np.mean(accuracies)),
        'std': float(np.std(accuracies, ddof=1)) if len(accuracies) > 1 else None,
        'best': float(accuracies[best]),
        'best_dataset': ids[best],
        'worst': float(accuracies[worst]),
        'worst_dataset': ids[worst],
    }


def format_summary(results: Dict[int, DatasetResult]) -> str:
    """Human-readable batch summary with per-dataset lines and overall statistics."""
    lines = ["Summary of Results:", "----------------------"]

    for dataset_id, result in sorted(results.items()):
        if result.error is not None:
            lines.append(f"Dataset {dataset_id}: Processing failed ({result.error})")
        elif result.accuracy is not None:
            lines.append(f"Dataset {dataset_id}: Accuracy = {format_metric(result.accuracy, percent=True)}")
        else:
            lines.append(f"Dataset {dataset_id}: No target data available")

    stats = accuracy_statistics(results)
    if stats is not None:
        std = format_metric(stats['std'], percent=True)
        lines.extend([
            "",
            "Overall Statistics:",
            f"  - Mean Accuracy: {format_metric(stats['mean'], percent=True)}",
            f"  - Std Accuracy:  {std}",
            f"  - Best Result:   {format_metric(stats['best'], percent=True)} (Dataset {stats['best_dataset']})",
            f"  - Worst Result:  {format_metric(stats['worst'], percent=True)} (Dataset {stats['worst_dataset']})",
        ])

    return "\n".join(lines)
