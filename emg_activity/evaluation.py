"""
Performance evaluation of detected activity against a ground-truth target.

Produces a 2x2 confusion matrix (rows = true class, columns = predicted
class, ordered Inactive=0, Active=1) and the derived accuracy, precision,
recall and F1 score. Metrics that cannot be computed are ``None``; they are
never reported as 0.0.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
from sklearn.metrics import confusion_matrix as sk_confusion_matrix

from .exceptions import InputShapeError

STATUS_EVALUATED = "evaluated"
STATUS_SKIPPED = "skipped"

CLASS_LABELS = (0, 1)
CLASS_NAMES = ("Inactive", "Active")


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of comparing an activity mask with a target mask."""

    status: str
    confusion_matrix: Optional[np.ndarray] = None
    accuracy: Optional[float] = None
    precision: Optional[float] = None
    recall: Optional[float] = None
    f1_score: Optional[float] = None
    evaluated_length: int = 0

    @property
    def evaluated(self) -> bool:
        return self.status == STATUS_EVALUATED

    @property
    def tn(self) -> Optional[int]:
        return self._cell(0, 0)

    @property
    def fp(self) -> Optional[int]:
        return self._cell(0, 1)

    @property
    def fn(self) -> Optional[int]:
        return self._cell(1, 0)

    @property
    def tp(self) -> Optional[int]:
        return self._cell(1, 1)

    def _cell(self, row: int, col: int) -> Optional[int]:
        if self.confusion_matrix is None:
            return None
        return int(self.confusion_matrix[row, col])


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    return float(numerator) / float(denominator)


def _as_binary(mask, name: str) -> np.ndarray:
    mask = np.asarray(mask).ravel()
    if mask.size and not np.isin(mask, CLASS_LABELS).all():
        raise ValueError(f"{name} must only contain 0/1 values")
    return mask.astype(np.int8)


def compute_metrics(confusion_matrix: np.ndarray) -> Dict[str, Optional[float]]:
    """
    Derive accuracy, precision, recall and F1 from a 2x2 confusion matrix.

    Parameters:
    -----------
    confusion_matrix : np.ndarray
        2x2 counts, rows = true class, columns = predicted class

    Returns:
    --------
    Dict[str, Optional[float]]
        Keys 'accuracy', 'precision', 'recall', 'f1_score'. A value is None
        when its denominator is zero. Precision, recall and F1 are also None
        when only one class appears in the matrix, as truth or prediction.
    """
    cm = np.asarray(confusion_matrix)
    if cm.shape != (2, 2):
        raise ValueError(f"Expected a 2x2 confusion matrix, got shape {cm.shape}")

    tn, fp, fn, tp = (int(v) for v in cm.ravel())
    total = tn + fp + fn + tp

    metrics = {
        'accuracy': _ratio(tn + tp, total),
        'precision': None,
        'recall': None,
        'f1_score': None,
    }

    # A class is observed if it appears as a true or a predicted label
    inactive_seen = (tn + fp) > 0 or (tn + fn) > 0
    active_seen = (fn + tp) > 0 or (fp + tp) > 0
    if not (inactive_seen and active_seen):
        return metrics

    precision = _ratio(tp, tp + fp)
    recall = _ratio(tp, tp + fn)
    metrics['precision'] = precision
    metrics['recall'] = recall

    if precision is not None and recall is not None:
        metrics['f1_score'] = _ratio(2 * precision * recall, precision + recall)

    return metrics


def evaluate_activity(
    activity: np.ndarray,
    target: Optional[np.ndarray] = None
) -> EvaluationResult:
    """
    Evaluate a detected activity mask against an optional target mask.

    Parameters:
    -----------
    activity : np.ndarray
        Detected activity mask (0/1)
    target : np.ndarray, optional
        Ground-truth mask (0/1). Without it the evaluation is skipped.

    Returns:
    --------
    EvaluationResult
        status 'skipped' (no target, every field None) or 'evaluated'

    Raises:
    -------
    InputShapeError
        If the two masks have no samples in common
    ValueError
        If either mask holds values other than 0 and 1

    Notes:
    ------
    - Only the common prefix min(len(target), len(activity)) is evaluated
    """
    if target is None:
        return EvaluationResult(status=STATUS_SKIPPED)

    activity = _as_binary(activity, "Activity mask")
    target = _as_binary(target, "Target mask")

    length = min(len(target), len(activity))
    if length == 0:
        raise InputShapeError("Target and activity masks share no samples to evaluate")

    target = target[:length]
    activity = activity[:length]

    cm = sk_confusion_matrix(target, activity, labels=list(CLASS_LABELS))
    metrics = compute_metrics(cm)

    return EvaluationResult(
        status=STATUS_EVALUATED,
        confusion_matrix=cm,
        accuracy=metrics['accuracy'],
        precision=metrics['precision'],
        recall=metrics['recall'],
        f1_score=metrics['f1_score'],
        evaluated_length=length,
    )


def format_metric(value: Optional[float], percent: bool = False) -> str:
    """Render a metric for display, keeping 'undefined' distinct from 0."""
    if value is None:
        return "undefined"
    if percent:
        return f"{value * 100:.2f}%"
    return f"{value:.3f}"
