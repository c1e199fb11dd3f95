"""
Signal smoothing for EMG blink activity detection.

The detector works on a heavily smoothed trace: the raw EMG is passed through
a very low cutoff, zero-phase low-pass filter so that only the slow amplitude
envelope of each contraction remains.

Reference configuration:
- 8 ms sampling period (125 Hz)
- 0.1 Hz cutoff
"""

import numpy as np
from scipy import signal

SAMPLING_PERIOD = 8e-3  # seconds between samples
SAMPLING_FREQUENCY = 1.0 / SAMPLING_PERIOD  # 125 Hz
CUTOFF_FREQUENCY = 0.1  # Hz
FILTER_ORDER = 4


def apply_lowpass_filter(
    data: np.ndarray,
    fs: float = SAMPLING_FREQUENCY,
    cutoff: float = CUTOFF_FREQUENCY,
    order: int = FILTER_ORDER,
    filter_type: str = "butterworth"
) -> np.ndarray:
    """
    Apply a zero-phase low-pass filter to smooth the EMG trace.

    Parameters:
    -----------
    data : np.ndarray
        Raw EMG signal (1D array)
    fs : float, optional
        Sampling frequency in Hz (default: 125.0)
    cutoff : float, optional
        Cutoff frequency in Hz (default: 0.1)
    order : int, optional
        Filter order (default: 4)
    filter_type : str, optional
        Type of filter: 'butterworth' or 'chebyshev' (default: 'butterworth')

    Returns:
    --------
    np.ndarray
        Smoothed signal with the same length as the input

    Notes:
    ------
    - The filter is designed as second-order sections; at a 0.1 Hz cutoff
      for 125 Hz sampling the normalized cutoff is ~0.0016, where the
      transfer-function (b, a) form is numerically unstable
    - Forward-backward filtering keeps activity onsets aligned with the raw signal
    """
    data = np.asarray(data, dtype=float)
    nyquist = fs / 2.0
    normalized_cutoff = cutoff / nyquist

    if cutoff <= 0:
        raise ValueError(f"Cutoff frequency must be positive, got {cutoff}Hz")
    if normalized_cutoff >= 1.0:
        raise ValueError(f"Cutoff frequency ({cutoff}Hz) must be less than Nyquist frequency ({nyquist}Hz)")

    if filter_type.lower() == "butterworth":
        sos = signal.butter(order, normalized_cutoff, btype='low', output='sos')
    elif filter_type.lower() == "chebyshev":
        # Chebyshev Type I filter with 0.5 dB ripple
        sos = signal.cheby1(order, 0.5, normalized_cutoff, btype='low', output='sos')
    else:
        raise ValueError(f"Unknown filter type: {filter_type}. Use 'butterworth' or 'chebyshev'")

    if len(data) == 0:
        return data.copy()

    # sosfiltfilt needs len(data) > padlen
    padlen = min(3 * (2 * len(sos) + 1), len(data) - 1)
    filtered_data = signal.sosfiltfilt(sos, data, padlen=padlen)

    return filtered_data


def time_vector(n_samples: int, sampling_period: float = SAMPLING_PERIOD) -> np.ndarray:
    """Time axis in seconds for a signal of ``n_samples`` samples."""
    return np.arange(n_samples) * sampling_period
