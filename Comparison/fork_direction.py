"""Predicted vs observed rightward-fork frequency across genome bins.

Observed frequencies come from polymerase-usage sequencing and may be missing
(NaN) in bins without coverage; those bins are skipped in every statistic.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats


class ForkDirectionComparison:
    """Compare a predicted per-bin right-fork frequency profile with observation."""

    def __init__(
        self,
        predicted: Sequence[float],
        observed: Sequence[float],
        start_bin: int = 0,
    ) -> None:
        predicted = np.asarray(predicted, dtype=np.float64)
        observed = np.asarray(observed, dtype=np.float64)
        if predicted.ndim != 1 or predicted.size == 0:
            raise ValueError("predicted must be a non-empty 1D array")
        if observed.ndim != 1:
            raise ValueError("observed must be a 1D array")
        if start_bin < 0 or start_bin + predicted.size > observed.size:
            raise ValueError(
                f"observed profile of {observed.size} bins does not cover bins "
                f"{start_bin}..{start_bin + predicted.size - 1}"
            )
        if not np.all(np.isfinite(predicted)):
            raise ValueError("predicted contains NaN/inf values")
        self.predicted = predicted
        self.observed = observed[start_bin:start_bin + predicted.size]
        self._mask = np.isfinite(self.observed)

    @property
    def n_observed(self) -> int:
        return int(self._mask.sum())

    def mean_squared_difference(self) -> float:
        """Sum of squared differences over observed bins, divided by all bins."""
        diff = self.predicted[self._mask] - self.observed[self._mask]
        return float(np.sum(diff ** 2) / self.predicted.size)

    def correlation(self) -> float:
        """Pearson correlation over the observed bins."""
        if self.n_observed < 2:
            raise ValueError("correlation needs at least two observed bins")
        result = stats.pearsonr(self.predicted[self._mask], self.observed[self._mask])
        return float(result[0])

    def predicted_spread(self) -> float:
        """Mean square of the predicted frequencies minus 0.25."""
        return float(np.mean(self.predicted ** 2) - 0.25)

    def observed_spread(self) -> float:
        if self.n_observed == 0:
            raise ValueError("no observed bins")
        return float(np.mean(self.observed[self._mask] ** 2) - 0.25)

    def rows(self, bin_size: int, bin_offset: int = 0) -> list[dict]:
        """Per-bin rows (bin center, predicted, observed) for observed bins only."""
        out = []
        for i in np.flatnonzero(self._mask):
            out.append(
                {
                    "position": bin_offset + bin_size // 2 + bin_size * int(i),
                    "predicted": float(self.predicted[i]),
                    "observed": float(self.observed[i]),
                }
            )
        return out
