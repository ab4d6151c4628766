"""Tests for per-bin statistics."""

from types import SimpleNamespace

import numpy as np
import pytest

from Replication.bins import (
    BinGeometry,
    compute_bin_stats,
    first_replication_times,
    initiation_counts,
    replicated_bin_bounds,
    replicated_bin_flags,
    right_fork_frequency,
    segment_to_bins,
    termination_counts,
)


def make_record(origins, segments, geometry, seq_length, time=0.0):
    segments = tuple(segments)
    return SimpleNamespace(
        time=time,
        nucleotides_replicated=sum(
            segments[i + 1] - segments[i] + 1 for i in range(0, len(segments), 2)
        ),
        origins=np.asarray(origins, dtype=np.int64).reshape(-1, 4),
        segments=segments,
        replicated_bins=replicated_bin_bounds(segments, geometry, seq_length),
    )


class TestGeometry:
    def test_bins_and_intervals(self):
        geometry = BinGeometry(100)
        assert geometry.n_bins(1050) == 10
        assert geometry.bin_of(250) == 2
        assert geometry.interval(2) == (200, 299)
        assert geometry.center(2) == 250

    def test_offset(self):
        geometry = BinGeometry(100, offset=30)
        assert geometry.n_bins(1000) == 9
        assert geometry.bin_of(129) == 0
        assert geometry.bin_of(130) == 1
        assert geometry.interval(0) == (30, 129)

    def test_invalid(self):
        with pytest.raises(ValueError):
            BinGeometry(0)
        with pytest.raises(ValueError):
            BinGeometry(10, offset=-1)


class TestSegmentToBins:
    def test_partial_boundary_bins(self):
        out = np.zeros(5)
        segment_to_bins(150, 349, BinGeometry(100), out)
        assert np.allclose(out, [0.0, 0.5, 1.0, 0.5, 0.0])

    def test_single_bin(self):
        out = np.zeros(3)
        segment_to_bins(10, 19, BinGeometry(100), out)
        assert np.isclose(out[0], 0.1)
        assert out[1:].sum() == 0

    def test_clipped_to_binned_region(self):
        out = np.zeros(2)
        segment_to_bins(150, 400, BinGeometry(100), out)
        assert np.allclose(out, [0.0, 0.5])


class TestRecordStatistics:
    def setup_method(self):
        self.geometry = BinGeometry(100)
        self.seq_length = 500
        # (position, left fork, right fork, terminated)
        origins = [[50, 0, 149, 1], [250, 150, 349, 1], [420, 350, 499, 1]]
        self.record = make_record(origins, (0, 499), self.geometry, self.seq_length)

    def test_right_fork_frequency(self):
        freq = right_fork_frequency(self.record, self.geometry, self.seq_length)
        assert np.allclose(freq, [0.5, 0.5, 0.5, 0.5, 0.8])
        assert np.all((freq >= 0) & (freq <= 1))

    def test_initiation_counts(self):
        counts = initiation_counts(self.record, self.geometry, self.seq_length)
        assert counts.tolist() == [1, 0, 1, 0, 1]

    def test_termination_counts_skip_last_bin(self):
        counts = termination_counts(self.record, self.geometry, self.seq_length)
        assert counts.tolist() == [0, 1, 0, 1, 0]

    def test_active_sites_are_not_terminations(self):
        origins = [[50, 10, 120, 0]]
        record = make_record(origins, (10, 120), self.geometry, self.seq_length)
        assert termination_counts(record, self.geometry, self.seq_length).sum() == 0
        assert initiation_counts(record, self.geometry, self.seq_length).tolist() == [1, 0, 0, 0, 0]

    def test_compute_bin_stats(self):
        stats = compute_bin_stats(self.record, self.geometry, self.seq_length)
        assert stats.replicated.all()
        assert stats.initiations.sum() == 3
        assert stats.right_fork_frequency.shape == (5,)


class TestReplicatedBins:
    def test_flags_from_segments(self):
        geometry = BinGeometry(100)
        record = make_record([], (120, 180, 390, 410), geometry, 500)
        assert record.replicated_bins == (1, 1, 3, 4)
        flags = replicated_bin_flags(record, geometry, 500)
        assert flags.tolist() == [False, True, False, True, True]

    def test_first_replication_times(self):
        geometry = BinGeometry(100)
        records = [
            make_record([], (), geometry, 500, time=0.0),
            make_record([], (120, 180), geometry, 500, time=1.0),
            make_record([], (50, 260), geometry, 500, time=2.0),
            make_record([], (0, 499), geometry, 500, time=3.0),
        ]
        times = first_replication_times(records, geometry, 500)
        assert times.tolist() == [2.0, 1.0, 2.0, 3.0, 3.0]

    def test_never_replicated_is_nan(self):
        geometry = BinGeometry(100)
        records = [make_record([], (0, 99), geometry, 300, time=1.0)]
        times = first_replication_times(records, geometry, 300)
        assert times[0] == 1.0
        assert np.isnan(times[1:]).all()
