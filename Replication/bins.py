"""Per-bin statistics computed from immutable state records.

A genome of length L is divided into ``(L - offset) // bin_size`` bins; bin
``i`` covers ``[offset + i * bin_size, offset + (i + 1) * bin_size - 1]``.
Positions before the offset or after the last full bin belong to no bin.

All functions here are pure: they read a ``StateRecord`` (or anything with
the same ``segments`` / ``origins`` attributes) and return new numpy arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BinGeometry:
    bin_size: int
    offset: int = 0

    def __post_init__(self) -> None:
        if self.bin_size <= 0:
            raise ValueError("bin_size must be positive")
        if self.offset < 0:
            raise ValueError("offset must be non-negative")

    def n_bins(self, seq_length: int) -> int:
        return max(0, (seq_length - self.offset) // self.bin_size)

    def bin_of(self, position):
        """Bin index of ``position`` (scalar or array); may fall outside the genome's bins."""
        return (np.asarray(position) - self.offset) // self.bin_size

    def interval(self, i: int) -> Tuple[int, int]:
        start = self.offset + i * self.bin_size
        return start, start + self.bin_size - 1

    def center(self, i: int) -> int:
        return self.offset + i * self.bin_size + self.bin_size // 2


@dataclass(frozen=True)
class BinStats:
    right_fork_frequency: np.ndarray
    initiations: np.ndarray
    terminations: np.ndarray
    replicated: np.ndarray


def segment_to_bins(start: int, end: int, geometry: BinGeometry, out: np.ndarray) -> None:
    """Add the fractional coverage of ``[start, end]`` to each bin of ``out`` in place."""
    size = geometry.bin_size
    lo = geometry.offset
    hi = geometry.offset + out.size * size - 1
    start = max(int(start), lo)
    end = min(int(end), hi)
    if start > end:
        return
    first = int(geometry.bin_of(start))
    last = int(geometry.bin_of(end))
    if first == last:
        out[first] += (end - start + 1) / size
        return
    out[first] += (geometry.interval(first)[1] - start + 1) / size
    out[first + 1:last] += 1.0
    out[last] += (end - geometry.interval(last)[0] + 1) / size


def _segment_pairs(segments: Sequence[int]) -> np.ndarray:
    return np.asarray(segments, dtype=np.int64).reshape(-1, 2)


def replicated_bin_bounds(segments: Sequence[int], geometry: BinGeometry, seq_length: int) -> Tuple[int, ...]:
    """Flat (first_bin, last_bin) pairs for each replicated segment that touches a bin."""
    n_bins = geometry.n_bins(seq_length)
    bounds = []
    for start, end in _segment_pairs(segments):
        first = max(int(geometry.bin_of(start)), 0)
        last = min(int(geometry.bin_of(end)), n_bins - 1)
        if first <= last:
            bounds.extend((first, last))
    return tuple(bounds)


def replicated_bin_flags(record, geometry: BinGeometry, seq_length: int) -> np.ndarray:
    """Boolean per bin: True if any nucleotide of the bin is replicated in ``record``."""
    flags = np.zeros(geometry.n_bins(seq_length), dtype=bool)
    bounds = record.replicated_bins
    for k in range(0, len(bounds), 2):
        flags[bounds[k]:bounds[k + 1] + 1] = True
    return flags


def right_fork_frequency(record, geometry: BinGeometry, seq_length: int) -> np.ndarray:
    """Fraction of each bin replicated by rightward-moving forks.

    Each fired origin contributes the stretch from its position to its right
    fork, so values are 0 or 1 except in bins where a fork stopped.
    """
    freq = np.zeros(geometry.n_bins(seq_length), dtype=np.float64)
    for position, _, right_fork, _ in record.origins:
        segment_to_bins(position, right_fork, geometry, freq)
    return freq


def _count_in_bins(positions: np.ndarray, geometry: BinGeometry, n_bins: int) -> np.ndarray:
    bins = geometry.bin_of(positions)
    bins = bins[(bins >= 0) & (bins < n_bins)]
    return np.bincount(bins, minlength=n_bins).astype(np.int64)


def initiation_counts(record, geometry: BinGeometry, seq_length: int) -> np.ndarray:
    """Number of fired origins in each bin."""
    n_bins = geometry.n_bins(seq_length)
    return _count_in_bins(record.origins[:, 0], geometry, n_bins)


def termination_counts(record, geometry: BinGeometry, seq_length: int) -> np.ndarray:
    """Number of terminated sites whose right fork stopped in each bin.

    The last bin is left at zero: every molecule's rightmost fork stops there
    at the molecule end, which is not a fork collision.
    """
    n_bins = geometry.n_bins(seq_length)
    terminated = record.origins[record.origins[:, 3] == 1]
    counts = _count_in_bins(terminated[:, 2], geometry, n_bins)
    if n_bins:
        counts[-1] = 0
    return counts


def first_replication_times(records: Sequence, geometry: BinGeometry, seq_length: int) -> np.ndarray:
    """Time of the first record at which each bin holds replicated DNA (NaN if never)."""
    times = np.full(geometry.n_bins(seq_length), np.nan)
    for record in records:
        if record.nucleotides_replicated == 0:
            continue
        flags = replicated_bin_flags(record, geometry, seq_length)
        times[flags & np.isnan(times)] = record.time
    return times


def compute_bin_stats(record, geometry: BinGeometry, seq_length: int) -> BinStats:
    return BinStats(
        right_fork_frequency=right_fork_frequency(record, geometry, seq_length),
        initiations=initiation_counts(record, geometry, seq_length),
        terminations=termination_counts(record, geometry, seq_length),
        replicated=replicated_bin_flags(record, geometry, seq_length),
    )
