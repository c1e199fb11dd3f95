"""
Figures for EMG activity detection results.

All figures are drawn with the non-interactive Agg backend so that batch runs
can save PNG files without a display.
"""

import os
from typing import Dict, List, Optional

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .evaluation import CLASS_NAMES, EvaluationResult, format_metric

DEFAULT_OUTPUT_DIR = "emg_plots"
DPI = 300


def _save_figure(fig, output_path: Optional[str]) -> None:
    if output_path is None:
        return
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    fig.savefig(output_path, dpi=DPI)
    print(f"  → Plot saved: {output_path}")


def _plot_confusion_matrix(ax, cm: np.ndarray) -> None:
    """Confusion matrix heatmap with counts and row-normalized percentages."""
    ax.imshow(cm, cmap='Blues')
    row_totals = cm.sum(axis=1)

    for row in range(cm.shape[0]):
        for col in range(cm.shape[1]):
            count = int(cm[row, col])
            share = count / row_totals[row] * 100 if row_totals[row] else 0.0
            color = 'white' if count > cm.max() / 2 else 'black'
            ax.text(col, row, f"{count}\n({share:.1f}%)",
                    ha='center', va='center', color=color, fontsize=9)

    ax.set_xticks(range(len(CLASS_NAMES)))
    ax.set_yticks(range(len(CLASS_NAMES)))
    ax.set_xticklabels(CLASS_NAMES)
    ax.set_yticklabels(CLASS_NAMES)
    ax.set_xlabel('Predicted Class')
    ax.set_ylabel('True Class')


def plot_dataset_analysis(
    time: np.ndarray,
    filtered: np.ndarray,
    activity: np.ndarray,
    target: Optional[np.ndarray] = None,
    evaluation: Optional[EvaluationResult] = None,
    title: str = "",
    output_path: Optional[str] = None
):
    """
    Plot the analysis of one dataset.

    Parameters:
    -----------
    time : np.ndarray
        Time axis in seconds
    filtered : np.ndarray
        Low-pass filtered EMG signal
    activity : np.ndarray
        Detected activity mask
    target : np.ndarray, optional
        Ground-truth mask; adds the comparison panel
    evaluation : EvaluationResult, optional
        Evaluation of ``activity``; adds the confusion matrix panel
    title : str, optional
        Dataset name for the figure title
    output_path : str, optional
        PNG path; the figure is saved and closed when given

    Returns:
    --------
    matplotlib.figure.Figure
    """
    fig = plt.figure(figsize=(12, 8))

    ax = fig.add_subplot(3, 2, 1)
    ax.plot(time, filtered, 'b-', linewidth=1)
    ax.set_title(f'Filtered EMG Signal - {title}' if title else 'Filtered EMG Signal')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Amplitude (AD Units)')
    ax.grid(True, alpha=0.3)

    ax = fig.add_subplot(3, 2, 2)
    ax.plot(time, activity, 'r-', linewidth=2)
    ax.set_title('Detected Muscle Activity')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Activity State')
    ax.set_ylim(-0.1, 1.1)
    ax.grid(True, alpha=0.3)

    if target is not None:
        n = min(len(time), len(target))
        ax = fig.add_subplot(3, 2, 3)
        ax.plot(time[:n], target[:n], 'g-', linewidth=2, label='Target')
        ax.plot(time, activity, 'r--', linewidth=1.5, label='Detected')
        ax.set_title('Activity Detection Comparison')
        ax.set_xlabel('Time (s)')
        ax.set_ylabel('Activity State')
        ax.set_ylim(-0.1, 1.1)
        ax.legend(loc='upper right')
        ax.grid(True, alpha=0.3)

    if evaluation is not None and evaluation.evaluated:
        ax = fig.add_subplot(3, 2, 4)
        _plot_confusion_matrix(ax, evaluation.confusion_matrix)
        ax.set_title(f'Confusion Matrix (Accuracy: {format_metric(evaluation.accuracy, percent=True)})')

    ax = fig.add_subplot(3, 1, 3)
    ax.plot(time, filtered, 'b-', linewidth=1)
    ax.set_ylabel('EMG Amplitude (AD Units)', color='b')
    ax.set_xlabel('Time (s)')
    ax.grid(True, alpha=0.3)

    overlay = ax.twinx()
    peak = np.max(filtered) if len(filtered) else 1.0
    overlay.fill_between(time, activity * peak * 0.3, color='r', alpha=0.3, linewidth=0)
    overlay.set_ylabel('Detected Activity', color='r')
    ax.set_title('EMG Signal with Activity Detection Overlay')

    fig.suptitle(f'EMG Signal Analysis - {title}' if title else 'EMG Signal Analysis',
                 fontsize=14, fontweight='bold')
    fig.tight_layout()

    if output_path is not None:
        _save_figure(fig, output_path)
        plt.close(fig)

    return fig


def plot_comparison(entries: List[Dict], output_path: Optional[str] = None):
    """
    Plot filtered signal and detected activity for several datasets side by side.

    Parameters:
    -----------
    entries : List[Dict]
        One dict per dataset with keys 'title', 'time', 'filtered', 'activity'
    output_path : str, optional
        PNG path; the figure is saved and closed when given

    Returns:
    --------
    matplotlib.figure.Figure
    """
    if not entries:
        raise ValueError("No datasets to compare")

    n_datasets = len(entries)
    n_cols = min(3, n_datasets)
    n_rows = int(np.ceil(n_datasets / n_cols))

    fig, axes = plt.subplots(n_rows, n_cols, figsize=(14, 4 * n_rows), squeeze=False)

    for ax, entry in zip(axes.flat, entries):
        ax.plot(entry['time'], entry['filtered'], 'b-', linewidth=0.8)
        ax.set_ylabel('EMG Amplitude', color='b')
        ax.set_xlabel('Time (s)')
        ax.set_title(entry['title'])
        ax.grid(True, alpha=0.3)

        activity_ax = ax.twinx()
        activity_ax.plot(entry['time'], entry['activity'], 'r-', linewidth=2)
        activity_ax.set_ylabel('Activity', color='r')
        activity_ax.set_ylim(0, 1.2)

    # Hide unused grid cells
    for ax in list(axes.flat)[n_datasets:]:
        ax.set_visible(False)

    fig.suptitle(f'EMG Activity Detection - All Datasets ({n_datasets} found)',
                 fontsize=14, fontweight='bold')
    fig.tight_layout()

    if output_path is not None:
        _save_figure(fig, output_path)
        plt.close(fig)

    return fig
