"""
Example: Blink (muscle activity) detection on a synthetic EMG recording.

This script demonstrates:
1. Smoothing a raw recording with the 0.1 Hz low-pass filter
2. Detection with the reference parameters and with a more sensitive setting
3. Evaluation against the known ground truth
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from emg_activity import (
    apply_lowpass_filter,
    detect_activity,
    evaluate_activity,
    format_metric,
    mask_to_segments,
    time_vector,
    SAMPLING_FREQUENCY,
)


def make_recording(duration=300.0, fs=SAMPLING_FREQUENCY, seed=0):
    """Resting EMG amplitude with a few sustained contractions."""
    rng = np.random.default_rng(seed)
    n = int(duration * fs)
    signal = 200.0 + 20.0 * rng.random(n)
    target = np.zeros(n, dtype=np.int8)

    for start_s in [40.0, 110.0, 190.0, 250.0]:
        start = int(start_s * fs)
        end = start + int(15.0 * fs)
        signal[start:end] += 150.0 + 40.0 * rng.random(end - start)
        target[start:end] = 1

    return signal, target


def main():
    fs = SAMPLING_FREQUENCY
    raw, target = make_recording()

    print("Smoothing EMG recording (0.1 Hz low-pass)...")
    filtered = apply_lowpass_filter(raw, fs)

    print("\nDetecting muscle activity...")
    print("  1. Reference parameters (Wd=100, Wb=500, Tm=1.05, Tx=1.2)...")
    activity_ref = detect_activity(filtered)

    print("  2. Wider baseline window (Wb=2500)...")
    activity_wide = detect_activity(filtered, baseline_window=2500)

    for name, activity in [('Reference', activity_ref), ('Wide baseline', activity_wide)]:
        evaluation = evaluate_activity(activity, target)
        segments = mask_to_segments(activity)
        print(f"\n{name}: {len(segments)} active segments")
        for start, end in segments:
            print(f"  {start / fs:7.2f}s - {end / fs:7.2f}s")
        print(f"  Accuracy: {format_metric(evaluation.accuracy, percent=True)}, "
              f"Precision: {format_metric(evaluation.precision)}, "
              f"Recall: {format_metric(evaluation.recall)}, "
              f"F1: {format_metric(evaluation.f1_score)}")

    visualize(filtered, target, activity_ref, activity_wide, fs)


def visualize(filtered, target, activity_ref, activity_wide, fs):
    """Plot the smoothed signal with target and detected activity."""
    time = time_vector(len(filtered), 1.0 / fs)

    fig, axes = plt.subplots(2, 1, figsize=(14, 8), sharex=True)
    configs = [
        (activity_ref, 'Reference parameters', 'red'),
        (activity_wide, 'Wide baseline window', 'blue'),
    ]

    for ax, (activity, title, color) in zip(axes, configs):
        ax.plot(time, filtered, 'k-', linewidth=0.8, label='Filtered Signal')
        peak = filtered.max()
        ax.fill_between(time, target * peak, alpha=0.15, color='green', label='Target')
        ax.fill_between(time, activity * peak, alpha=0.3, color=color, label='Detected Activity')
        ax.set_title(title, fontweight='bold', fontsize=11)
        ax.set_ylabel('Amplitude (AD Units)')
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right')

    axes[-1].set_xlabel('Time (s)')
    plt.tight_layout()

    script_dir = os.path.dirname(os.path.abspath(__file__))
    output_path = os.path.join(script_dir, 'blink_detection.png')
    plt.savefig(output_path, dpi=150)
    plt.close(fig)
    print(f"\nVisualization saved to: {output_path}")


if __name__ == '__main__':
    main()
