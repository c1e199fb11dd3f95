#!/usr/bin/env python
"""
EMG Signal Analysis - Batch Runner

Detects muscle activity in every EMG dataset (emgdata*.mat) of a data folder,
prints a summary, saves per-dataset and comparison plots, and writes the
result bundle, a CSV summary and a text report.

Just run: python run_emg_analysis.py
Options:  python run_emg_analysis.py --data-dir data --no-plots --processes 4
"""

import argparse
import os
import sys

from emg_activity import (
    apply_lowpass_filter,
    batch_process,
    find_datasets,
    format_summary,
    load_emg_dataset,
    save_results,
    save_summary_csv,
    summarize_results,
    time_vector,
    write_report,
)
from emg_activity.utils import DEFAULT_DATA_DIR, DEFAULT_PATTERN
from emg_activity.visualization import DEFAULT_OUTPUT_DIR, plot_comparison, plot_dataset_analysis
import matplotlib.pyplot as plt


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="EMG blink activity detection (batch)")
    parser.add_argument('--data-dir', default=DEFAULT_DATA_DIR,
                        help=f"Folder with EMG datasets (default: {DEFAULT_DATA_DIR})")
    parser.add_argument('--pattern', default=DEFAULT_PATTERN,
                        help=f"Dataset file pattern (default: {DEFAULT_PATTERN})")
    parser.add_argument('--output-dir', default=DEFAULT_OUTPUT_DIR,
                        help=f"Folder for PNG plots (default: {DEFAULT_OUTPUT_DIR})")
    parser.add_argument('--results-file', default='emg_analysis_results.mat',
                        help="Result bundle path (default: emg_analysis_results.mat)")
    parser.add_argument('--no-plots', action='store_true', help="Skip figure generation")
    parser.add_argument('--processes', type=int, default=1,
                        help="Worker processes, 0 = all but one CPU (default: 1)")
    return parser.parse_args(argv)


def create_plots(results, data_dir, output_dir):
    """Save one analysis figure per successful dataset plus a comparison figure."""
    comparison = []

    for dataset_id, result in sorted(results.items()):
        if not result.succeeded:
            continue

        filepath = os.path.join(data_dir, result.filename)
        try:
            emg, target = load_emg_dataset(filepath)
        except (ValueError, OSError) as e:
            print(f"  ✗ Error creating plot for {result.filename}: {e}")
            continue

        filtered = apply_lowpass_filter(emg)
        time = time_vector(len(filtered))
        name = os.path.splitext(result.filename)[0]

        try:
            plot_dataset_analysis(
                time, filtered, result.activity,
                target=target,
                evaluation=result.evaluation,
                title=name,
                output_path=os.path.join(output_dir, f"{name}_analysis.png"),
            )
        except (ValueError, OSError) as e:
            print(f"  ✗ Error creating plot for {result.filename}: {e}")
            plt.close('all')

        comparison.append({
            'title': f"Dataset {dataset_id}",
            'time': time,
            'filtered': filtered,
            'activity': result.activity,
        })

    if comparison:
        try:
            plot_comparison(comparison, os.path.join(output_dir, 'all_datasets_comparison.png'))
        except (ValueError, OSError) as e:
            print(f"✗ Error creating comparison plot: {e}")
            plt.close('all')
    else:
        print("✗ No successful datasets to compare")


def main(argv=None):
    args = parse_args(argv)

    print("EMG Signal Analysis Runner")
    print("==========================\n")

    # Step 1: find datasets
    print(f"1. Auto-detecting EMG datasets in {args.data_dir}/ folder...")
    if not os.path.isdir(args.data_dir):
        print(f"✗ Data folder \"{args.data_dir}\" not found.")
        print(f"  Please place your EMG data files in the \"{args.data_dir}\" folder and run again.")
        return 1

    files = find_datasets(args.data_dir, args.pattern)
    if not files:
        print(f"✗ No EMG data files found in \"{args.data_dir}\" folder.")
        print("  Expected files: emgdata1.mat, emgdata2.mat, etc.")
        return 1

    print(f"✓ Found {len(files)} EMG data files:")
    for f in files:
        print(f"  - {os.path.basename(f)}")

    # Step 2: process
    print("\n2. Processing all datasets...")
    results = batch_process(files, num_processes=args.processes)

    # Step 3: summary
    print("\n3. " + format_summary(results))

    # Step 4: plots
    if not args.no_plots:
        print("\n4. Creating visualisations...")
        create_plots(results, args.data_dir, args.output_dir)

    # Step 5: save
    print("\n5. Saving results...")
    save_results(results, args.results_file)
    save_summary_csv(summarize_results(results), 'emg_analysis_summary.csv')
    write_report(results, 'emg_analysis_report.txt')

    print("\n==========================")
    print("EMG Analysis Complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
