"""
Basic tests for the EMG activity detection toolkit: filtering, dataset I/O,
batch processing and reporting.

Run with: python -m pytest tests/test_basic.py
Or: python tests/test_basic.py
"""

import sys
import os
import tempfile
import shutil

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pandas as pd
import pytest
from scipy.io import savemat, loadmat
from emg_activity import (
    apply_lowpass_filter,
    time_vector,
    process_signal,
    batch_process,
    find_datasets,
    load_emg_dataset,
    parse_dataset_id,
    resolve_dataset_path,
    save_results,
    summarize_results,
    accuracy_statistics,
    format_summary,
    write_report,
    SAMPLING_FREQUENCY,
)


def _recording(n=3000, seed=0):
    """Positive EMG-like amplitude trace with two contractions."""
    rng = np.random.default_rng(seed)
    signal = 100.0 + rng.random(n)
    signal[1000:1300] += 80.0
    signal[2000:2200] += 60.0
    return signal


def _target(n=3000):
    target = np.zeros(n)
    target[1000:1300] = 1
    target[2000:2200] = 1
    return target


def _write_datasets(directory):
    """emgdata1 with target, emgdata2 without, emgdata3 without an 'emg' variable."""
    savemat(os.path.join(directory, 'emgdata1.mat'), {'emg': _recording(), 'target': _target()})
    savemat(os.path.join(directory, 'emgdata2.mat'), {'emg': _recording(seed=1)})
    savemat(os.path.join(directory, 'emgdata3.mat'), {'signal': _recording(seed=2)})


def test_filters():
    """Low-pass filter keeps length and passes DC."""
    fs = SAMPLING_FREQUENCY
    t = np.arange(0, 120, 1 / fs)
    signal = 10.0 + np.sin(2 * np.pi * 5 * t) + 0.1 * np.random.randn(len(t))

    filtered = apply_lowpass_filter(signal, fs, cutoff=0.1)
    assert len(filtered) == len(signal)
    assert not np.isnan(filtered).any()
    # 5 Hz component is removed
    assert np.std(filtered[4000:-4000]) < 0.1

    filtered = apply_lowpass_filter(signal, fs, cutoff=0.1, filter_type='chebyshev')
    assert len(filtered) == len(signal)
    assert not np.isnan(filtered).any()

    constant = apply_lowpass_filter(np.full(500, 5.0), fs)
    assert np.allclose(constant, 5.0, atol=1e-6)

    # Very short signals still come back with their own length
    for n in [1, 2, 5, 10]:
        assert len(apply_lowpass_filter(np.ones(n), fs)) == n

    print("✓ All filter tests passed")


def test_filter_parameters():
    """Test filter parameter validation."""
    signal = np.random.randn(1000)

    with pytest.raises(ValueError):
        apply_lowpass_filter(signal, 125.0, filter_type='invalid')
    with pytest.raises(ValueError):
        apply_lowpass_filter(signal, 125.0, cutoff=70.0)  # Above Nyquist (62.5Hz)
    with pytest.raises(ValueError):
        apply_lowpass_filter(signal, 125.0, cutoff=0.0)

    print("✓ Parameter validation tests passed")


def test_time_vector():
    t = time_vector(4)
    assert np.allclose(t, [0.0, 0.008, 0.016, 0.024])


def test_process_signal():
    signal = _recording()
    filtered, activity, evaluation = process_signal(signal, _target())

    assert len(filtered) == len(signal)
    assert len(activity) == len(signal)
    assert evaluation.evaluated
    assert evaluation.confusion_matrix.sum() == len(signal)
    assert 0.0 <= evaluation.accuracy <= 1.0

    _, _, evaluation = process_signal(signal)
    assert evaluation.status == "skipped"

    print("✓ Pipeline test passed")


def test_load_emg_dataset():
    temp_dir = tempfile.mkdtemp()
    try:
        _write_datasets(temp_dir)

        emg, target = load_emg_dataset(os.path.join(temp_dir, 'emgdata1.mat'))
        assert emg.ndim == 1 and len(emg) == 3000
        assert target is not None and target.sum() == 500

        emg, target = load_emg_dataset(os.path.join(temp_dir, 'emgdata2.mat'))
        assert target is None

        with pytest.raises(ValueError):
            load_emg_dataset(os.path.join(temp_dir, 'emgdata3.mat'))
        with pytest.raises(FileNotFoundError):
            load_emg_dataset(os.path.join(temp_dir, 'missing.mat'))

        csv_path = os.path.join(temp_dir, 'recording.csv')
        pd.DataFrame({'emg': _recording(100), 'target': _target(100)}).to_csv(csv_path, index=False)
        emg, target = load_emg_dataset(csv_path)
        assert len(emg) == 100 and len(target) == 100

        # A shorter target column is NaN-padded by pandas; only the padding is dropped
        short_path = os.path.join(temp_dir, 'short_target.csv')
        pd.DataFrame({'emg': np.arange(10.0), 'target': [0, 0, 1, 1, 0, 0] + [np.nan] * 4}).to_csv(short_path, index=False)
        emg, target = load_emg_dataset(short_path)
        assert np.array_equal(emg, np.arange(10.0))
        assert target.tolist() == [0, 0, 1, 1, 0, 0]

        # A gap inside the recording would shift every later sample against the target
        gap_path = os.path.join(temp_dir, 'gap.csv')
        emg_with_gap = np.arange(10.0)
        emg_with_gap[3] = np.nan
        pd.DataFrame({'emg': emg_with_gap, 'target': np.zeros(10)}).to_csv(gap_path, index=False)
        with pytest.raises(ValueError):
            load_emg_dataset(gap_path)

        txt_path = os.path.join(temp_dir, 'recording.txt')
        open(txt_path, 'w').close()
        with pytest.raises(ValueError):
            load_emg_dataset(txt_path)

        print("✓ Dataset loading tests passed")
    finally:
        shutil.rmtree(temp_dir)


def test_dataset_discovery():
    temp_dir = tempfile.mkdtemp()
    try:
        for name in ['emgdata10.mat', 'emgdata2.mat', 'emgdata1.mat', 'notes.txt']:
            open(os.path.join(temp_dir, name), 'w').close()

        files = find_datasets(temp_dir)
        assert [os.path.basename(f) for f in files] == ['emgdata1.mat', 'emgdata2.mat', 'emgdata10.mat']

        assert resolve_dataset_path('emgdata2.mat', data_dir=temp_dir) == os.path.join(temp_dir, 'emgdata2.mat')
        with pytest.raises(FileNotFoundError):
            resolve_dataset_path('emgdata99.mat', data_dir=temp_dir)
    finally:
        shutil.rmtree(temp_dir)

    assert parse_dataset_id('data/emgdata12.mat') == 12
    assert parse_dataset_id('recording.mat') is None


def test_batch_continues_after_failure():
    """One dataset with target, one without, one broken."""
    temp_dir = tempfile.mkdtemp()
    try:
        _write_datasets(temp_dir)
        results = batch_process(find_datasets(temp_dir))

        assert sorted(results) == [1, 2, 3]

        assert results[1].succeeded and results[1].has_target
        assert isinstance(results[1].accuracy, float)
        assert results[1].confusion_matrix.shape == (2, 2)
        assert len(results[1].activity) == 3000

        assert results[2].succeeded and not results[2].has_target
        assert results[2].accuracy is None
        assert results[2].confusion_matrix is None
        assert results[2].status == "no target"
        assert len(results[2].activity) == 3000

        assert not results[3].succeeded
        assert results[3].status == "failed"
        assert "emg" in results[3].error
        assert results[3].activity is None

        summary = summarize_results(results)
        assert list(summary['status']) == ['evaluated', 'no target', 'failed']
        assert summary.loc[0, 'accuracy'] == results[1].accuracy
        assert pd.isna(summary.loc[1, "accuracy"])

        text = format_summary(results)
        assert f"Dataset 1: Accuracy = {results[1].accuracy * 100:.2f}%" in text
        assert "Dataset 2: No target data available" in text
        assert "Dataset 3: Processing failed" in text
        assert "nan" not in text.lower()

        print("✓ Batch processing test passed")
    finally:
        shutil.rmtree(temp_dir)


def test_batch_with_worker_processes():
    temp_dir = tempfile.mkdtemp()
    try:
        _write_datasets(temp_dir)
        files = find_datasets(temp_dir)

        sequential = batch_process(files, verbose=False)
        parallel = batch_process(files, num_processes=2, verbose=False)

        assert sorted(parallel) == sorted(sequential)
        for dataset_id in sequential:
            assert parallel[dataset_id].status == sequential[dataset_id].status
            if sequential[dataset_id].activity is not None:
                assert np.array_equal(parallel[dataset_id].activity, sequential[dataset_id].activity)
    finally:
        shutil.rmtree(temp_dir)


def test_unnumbered_files_get_free_ids():
    temp_dir = tempfile.mkdtemp()
    try:
        savemat(os.path.join(temp_dir, 'emgdata4.mat'), {'emg': _recording()})
        savemat(os.path.join(temp_dir, 'baseline.mat'), {'emg': _recording()})

        results = batch_process(find_datasets(temp_dir, pattern='*.mat'), verbose=False)
        assert sorted(results) == [4, 5]
        assert results[5].filename == 'baseline.mat'
    finally:
        shutil.rmtree(temp_dir)


def test_accuracy_statistics():
    temp_dir = tempfile.mkdtemp()
    try:
        _write_datasets(temp_dir)
        results = batch_process(find_datasets(temp_dir), verbose=False)
    finally:
        shutil.rmtree(temp_dir)

    stats = accuracy_statistics(results)
    assert stats['count'] == 1
    assert stats['mean'] == results[1].accuracy
    assert stats['std'] is None
    assert stats['best_dataset'] == stats['worst_dataset'] == 1

    del results[1]
    assert accuracy_statistics(results) is None


def test_save_results_and_report():
    temp_dir = tempfile.mkdtemp()
    try:
        _write_datasets(temp_dir)
        results = batch_process(find_datasets(temp_dir), verbose=False)

        mat_path = os.path.join(temp_dir, 'results.mat')
        save_results(results, mat_path)
        saved = loadmat(mat_path, simplify_cells=True)['results']
        assert set(saved) == {'dataset1', 'dataset2', 'dataset3'}
        assert saved['dataset1']['filename'] == 'emgdata1.mat'
        assert np.isclose(saved['dataset1']['accuracy'], results[1].accuracy)
        assert np.isnan(saved['dataset2']['accuracy'])

        report_path = os.path.join(temp_dir, 'report.txt')
        write_report(results, report_path)
        with open(report_path) as f:
            report = f.read()
        assert report.startswith("EMG Analysis Report")
        assert "Dataset 2: No target data available" in report
        assert "Dataset 3: Processing failed" in report

        print("✓ Result persistence tests passed")
    finally:
        shutil.rmtree(temp_dir)


def run_all_tests():
    """Run all tests."""
    print("=" * 60)
    print("Running EMG Activity Toolkit Tests")
    print("=" * 60)
    print()

    test_filters()
    test_filter_parameters()
    test_time_vector()
    test_process_signal()
    test_load_emg_dataset()
    test_dataset_discovery()
    test_batch_continues_after_failure()
    test_batch_with_worker_processes()
    test_unnumbered_files_get_free_ids()
    test_accuracy_statistics()
    test_save_results_and_report()

    print()
    print("=" * 60)
    print("All tests passed! ✓")
    print("=" * 60)


if __name__ == '__main__':
    run_all_tests()
