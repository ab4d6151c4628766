"""Placement of initiators (pre-replicative complexes) on a molecule.

Initiators occupy windows of ``site_length`` nucleotides. A probability mass
function gives the relative chance that a window starts at each position, so
a pmf for a genome of length L has ``L - site_length + 1`` entries. Windows
are drawn by inverse-CDF sampling and may not overlap; the initiation site is
the midpoint of each accepted window.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class SeqInterval:
    """Closed genomic interval ``[start, end]``."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"interval start {self.start} is after end {self.end}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def center(self) -> int:
        return (self.end - self.start) // 2 + self.start

    def contains(self, position: int) -> bool:
        return self.start <= position <= self.end

    def intersects(self, other: "SeqInterval") -> bool:
        return self.start <= other.end and other.start <= self.end


def uniform_pmf(seq_length: int, site_length: int) -> np.ndarray:
    """Equal probability for every window start of a genome."""
    n = seq_length - site_length + 1
    if n <= 0:
        raise ValueError("site_length must not exceed seq_length")
    return np.full(n, 1.0 / n)


def _validate_pmf(pmf: np.ndarray) -> np.ndarray:
    pmf = np.asarray(pmf, dtype=np.float64)
    if pmf.ndim != 1 or pmf.size == 0:
        raise ValueError("pmf must be a non-empty 1D array")
    if not np.all(np.isfinite(pmf)):
        raise ValueError("pmf contains non-finite values")
    if np.any(pmf < 0):
        raise ValueError("pmf contains negative values")
    if pmf.sum() <= 0:
        raise ValueError("pmf must have positive total mass")
    return pmf


def sample_initiator_positions(
    pmf: np.ndarray,
    n_initiators: int,
    site_length: int,
    rng: np.random.Generator,
    max_attempts: Optional[int] = None,
) -> np.ndarray:
    """Draw ``n_initiators`` non-overlapping initiator windows; return sorted midpoints.

    Raises:
        ValueError: invalid pmf or more initiators than the genome can hold.
        RuntimeError: no placement found within ``max_attempts`` draws.
    """
    pmf = _validate_pmf(pmf)
    if n_initiators <= 0:
        raise ValueError("n_initiators must be positive")
    if site_length <= 0:
        raise ValueError("site_length must be positive")
    seq_length = pmf.size + site_length - 1
    if n_initiators * site_length > seq_length:
        raise ValueError(
            f"{n_initiators} initiators of length {site_length} do not fit in {seq_length} nt"
        )
    if np.count_nonzero(pmf) < n_initiators:
        raise ValueError("pmf has fewer admissible window starts than initiators")
    if max_attempts is None:
        max_attempts = 1000 * n_initiators

    cdf = np.cumsum(pmf)
    cdf /= cdf[-1]
    occupied = np.zeros(seq_length, dtype=bool)
    positions = []
    attempts = 0
    while len(positions) < n_initiators:
        if attempts >= max_attempts:
            raise RuntimeError(
                f"Initiator placement failed after {max_attempts} attempts "
                f"({len(positions)} of {n_initiators} placed)"
            )
        batch = min(max_attempts - attempts, 4 * (n_initiators - len(positions)))
        starts = np.searchsorted(cdf, rng.random(batch), side="right")
        np.minimum(starts, pmf.size - 1, out=starts)
        for start in starts:
            attempts += 1
            end = start + site_length - 1
            if occupied[start] or occupied[end]:
                continue
            occupied[start:end + 1] = True
            positions.append(int(start) + site_length // 2)
            if len(positions) == n_initiators:
                break
    return np.sort(np.asarray(positions, dtype=np.int64))


def filter_suppressed(positions: Sequence[int], intervals: Iterable[SeqInterval]) -> np.ndarray:
    """Drop positions lying inside any suppression interval."""
    positions = np.asarray(positions, dtype=np.int64)
    keep = np.ones(positions.shape, dtype=bool)
    for interval in intervals:
        keep &= ~((positions >= interval.start) & (positions <= interval.end))
    return positions[keep]
