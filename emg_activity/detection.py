"""
Muscle activity detection with an adaptive median baseline.

This module implements the blink/contraction detector:
- A wide baseline window gives a local median estimate of the resting level
- A narrow detection window gives the local mean and maximum
- A position is active when BOTH the mean and the max exceed the baseline
  by their respective multipliers; the whole detection window is then marked
"""

import numpy as np
from typing import List, Tuple

from .exceptions import InputShapeError

# Reference detection configuration (samples at 125 Hz)
DETECTION_WINDOW = 100  # Samples for the mean/max detection window
BASELINE_WINDOW = 500  # Samples for the median baseline window
MEAN_THRESHOLD = 1.05  # Window mean must exceed baseline * MEAN_THRESHOLD
MAX_THRESHOLD = 1.2  # Window max must exceed baseline * MAX_THRESHOLD
BOUNDARY_MARGIN = 10  # Extra samples kept clear of each signal edge


def mark_active(mask: np.ndarray, start: int, stop: int) -> None:
    """
    Mark the half-open range [start, stop) of ``mask`` as active.

    Marks accumulate: samples already set to 1 are never cleared.
    """
    mask[max(start, 0):max(stop, 0)] = 1


def detect_activity(
    data: np.ndarray,
    detection_window: int = DETECTION_WINDOW,
    baseline_window: int = BASELINE_WINDOW,
    mean_threshold: float = MEAN_THRESHOLD,
    max_threshold: float = MAX_THRESHOLD,
    margin: int = BOUNDARY_MARGIN
) -> np.ndarray:
    """
    Detect muscle activity sample-by-sample against an adaptive baseline.

    Parameters:
    -----------
    data : np.ndarray
        Smoothed EMG signal (1D array), see ``apply_lowpass_filter``
    detection_window : int, optional
        Detection window size in samples (default: 100)
    baseline_window : int, optional
        Baseline window size in samples (default: 500)
    mean_threshold : float, optional
        Multiplier applied to the baseline for the window mean (default: 1.05)
    max_threshold : float, optional
        Multiplier applied to the baseline for the window maximum (default: 1.2)
    margin : int, optional
        Samples skipped at each edge beyond half the baseline window (default: 10)

    Returns:
    --------
    np.ndarray
        Activity mask (int8, values 0/1) with the same length as ``data``

    Raises:
    -------
    InputShapeError
        If the signal is empty or not one-dimensional
    ValueError
        If a window size is smaller than 1 or the margin is negative

    Notes:
    ------
    - Positions are processed over [Wb//2 + margin, N - 1 - Wb//2 - margin];
      when that range is empty (N < Wb + 2*margin) the mask is all zero
    - Window sizes larger than the signal are allowed, windows are clipped
      to the signal bounds
    - Overlapping detection windows can widen a detected region past the
      underlying burst
    - Thresholds are multiplicative, so the signal is expected to be a
      non-negative amplitude
    """
    data = np.asarray(data, dtype=float)

    if data.ndim != 1:
        raise InputShapeError(f"Expected a 1D signal, got {data.ndim}D array")
    if len(data) == 0:
        raise InputShapeError("Cannot detect activity in an empty signal")
    if detection_window < 1:
        raise ValueError(f"Detection window must be at least 1 sample, got {detection_window}")
    if baseline_window < 1:
        raise ValueError(f"Baseline window must be at least 1 sample, got {baseline_window}")
    if margin < 0:
        raise ValueError(f"Boundary margin must be non-negative, got {margin}")

    n = len(data)
    activity = np.zeros(n, dtype=np.int8)

    detection_half = detection_window // 2
    baseline_half = baseline_window // 2

    start_idx = baseline_half + margin
    end_idx = n - 1 - baseline_half - margin

    for i in range(start_idx, end_idx + 1):
        # Adaptive baseline from the wider window
        baseline_start = max(0, i - baseline_half)
        baseline_end = min(n - 1, i + baseline_half)
        baseline_value = np.median(data[baseline_start:baseline_end + 1])

        detection_start = max(0, i - detection_half)
        detection_end = min(n - 1, i + detection_half)
        window = data[detection_start:detection_end + 1]

        if (window.mean() > baseline_value * mean_threshold and
                window.max() > baseline_value * max_threshold):
            mark_active(activity, detection_start, detection_end + 1)

    return activity


def mask_to_segments(mask: np.ndarray) -> List[Tuple[int, int]]:
    """
    Convert a binary activity mask into (start_index, end_index) segments.

    End indices are exclusive, so ``data[start:end]`` is the active run.
    """
    mask = np.asarray(mask).astype(bool)
    if len(mask) == 0:
        return []

    padded = np.concatenate(([False], mask, [False]))
    edges = np.flatnonzero(np.diff(padded.astype(np.int8)))
    starts = edges[0::2]
    ends = edges[1::2]

    return [(int(s), int(e)) for s, e in zip(starts, ends)]
