"""
EMG Activity Detection Toolkit

Sample-by-sample detection of muscle contraction (used as a proxy for eye
blinks) in EMG recordings, using a low-pass smoothed signal compared against
an adaptive median baseline, plus evaluation against ground truth, batch
processing, reporting and plotting.
"""

__version__ = "1.0.0"

from .exceptions import InputShapeError

from .filters import (
    apply_lowpass_filter,
    time_vector,
    SAMPLING_PERIOD,
    SAMPLING_FREQUENCY,
    CUTOFF_FREQUENCY,
)

from .detection import (
    detect_activity,
    mark_active,
    mask_to_segments,
    DETECTION_WINDOW,
    BASELINE_WINDOW,
    MEAN_THRESHOLD,
    MAX_THRESHOLD,
    BOUNDARY_MARGIN,
)

from .evaluation import (
    EvaluationResult,
    evaluate_activity,
    compute_metrics,
    format_metric,
)

from .utils import (
    load_emg_dataset,
    resolve_dataset_path,
    parse_dataset_id,
    find_datasets,
    save_results,
    save_summary_csv,
    write_report,
)

from .pipeline import (
    DatasetResult,
    process_signal,
    process_dataset,
    batch_process,
    summarize_results,
    accuracy_statistics,
    format_summary,
)

__all__ = [
    "InputShapeError",
    # Filters
    "apply_lowpass_filter",
    "time_vector",
    "SAMPLING_PERIOD",
    "SAMPLING_FREQUENCY",
    "CUTOFF_FREQUENCY",
    # Detection
    "detect_activity",
    "mark_active",
    "mask_to_segments",
    "DETECTION_WINDOW",
    "BASELINE_WINDOW",
    "MEAN_THRESHOLD",
    "MAX_THRESHOLD",
    "BOUNDARY_MARGIN",
    # Evaluation
    "EvaluationResult",
    "evaluate_activity",
    "compute_metrics",
    "format_metric",
    # I/O
    "load_emg_dataset",
    "resolve_dataset_path",
    "parse_dataset_id",
    "find_datasets",
    "save_results",
    "save_summary_csv",
    "write_report",
    # Pipeline
    "DatasetResult",
    "process_signal",
    "process_dataset",
    "batch_process",
    "summarize_results",
    "accuracy_statistics",
    "format_summary",
]
