"""Simulated molecule population aligned to observed combed molecules.

Observed molecules are sorted by fraction replicated. Every simulated molecule
records its state at each of those fractions, so record ``i + 1`` of every
simulated molecule corresponds to observed molecule ``i``. Averaging across
the population gives one ``CombedAverages`` per observed molecule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from Comparison.combing import ObservedMolecule, inter_centroid_distances
from Replication.config import ParameterSet, SimulationConfig
from Replication.molecule import FractionRecording
from Replication.population import MoleculePopulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CombedAverages:
    """Population averages at the fraction replicated of one observed molecule."""
    initiations: float
    terminations: float
    passives: float
    forks: float
    closures: float
    time: float
    fraction_replicated: float
    weight: float
    iods: Tuple[int, ...]
    reference: ObservedMolecule
    seq_length: int

    @property
    def forks_per_mb(self) -> float:
        return self.forks * 1_000_000 / self.seq_length

    @property
    def reference_forks_per_mb(self) -> float:
        return self.reference.forks_per_mb

    @property
    def reference_fraction_replicated(self) -> float:
        return self.reference.fraction_replicated


Predicate = Callable[[CombedAverages], bool]


def _keep_all(_: CombedAverages) -> bool:
    return True


class CombingPopulation:
    """Replicate a population and compare it with observed combed molecules."""

    def __init__(
        self,
        pmf: Optional[np.ndarray],
        params: ParameterSet,
        sim_config: SimulationConfig,
        observed: Sequence[ObservedMolecule],
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        reference = sorted(
            (m for m in observed if m.fraction_replicated < 1.0),
            key=lambda m: m.fraction_replicated,
        )
        if not reference:
            raise ValueError("no partially replicated observed molecules to compare with")
        self.observed = reference
        self.sim_config = sim_config
        self.seq_length = sim_config.sequence_length
        recording = FractionRecording(tuple(m.fraction_replicated for m in reference))
        self.population = MoleculePopulation(
            pmf, params, sim_config, rng=rng, recording=recording
        )
        self._averages: Optional[List[CombedAverages]] = None

    def averages(self) -> List[CombedAverages]:
        if self._averages is not None:
            return self._averages
        n_states = len(self.observed)
        molecules = self.population.molecules
        averages: List[CombedAverages] = []
        for i, reference in enumerate(self.observed):
            records = []
            for molecule in molecules:
                if len(molecule.records) != n_states + 2:
                    raise RuntimeError(
                        f"molecule holds {len(molecule.records)} records; expected {n_states + 2}"
                    )
                records.append(molecule.records[i + 1])
            iods: List[int] = []
            for record in records:
                iods.extend(inter_centroid_distances(record.segments, self.seq_length))
            averages.append(
                CombedAverages(
                    initiations=float(np.mean([r.initiations for r in records])),
                    terminations=float(np.mean([r.terminations for r in records])),
                    passives=float(np.mean([r.passives for r in records])),
                    forks=float(np.mean([r.forks for r in records])),
                    closures=float(np.mean([r.closures for r in records])),
                    time=float(np.mean([r.time for r in records])),
                    fraction_replicated=float(np.mean([r.fraction_replicated for r in records])),
                    weight=reference.length / self.seq_length,
                    iods=tuple(iods),
                    reference=reference,
                    seq_length=self.seq_length,
                )
            )
        self._averages = averages
        return averages

    def complementary_cdfs(self, predicate: Predicate = _keep_all) -> Tuple[np.ndarray, np.ndarray]:
        """Observed and predicted complementary CDFs of inter-origin distances.

        Point ``i`` is the fraction of distances at least ``i`` distance
        intervals long. Observed distances are in kb; simulated ones are in
        nucleotides and weighted by the length of their reference molecule.
        """
        selected = [a for a in self.averages() if predicate(a)]
        n_points = self.sim_config.ccdf_intervals
        step_kb = self.sim_config.ccdf_distance_interval_kb

        observed = np.array(
            [d for a in selected for d in a.reference.inter_origin_distances], dtype=np.float64
        )
        predicted = np.array([d for a in selected for d in a.iods], dtype=np.float64)
        weights = np.array([a.weight for a in selected for _ in a.iods], dtype=np.float64)
        total_weight = weights.sum()

        thresholds = np.arange(n_points) * step_kb
        if observed.size:
            observed_ccdf = (observed[None, :] >= thresholds[:, None]).mean(axis=1)
        else:
            logger.warning("No observed inter-origin distances in the selected molecules")
            observed_ccdf = np.full(n_points, np.nan)
        if total_weight > 0:
            hits = predicted[None, :] >= thresholds[:, None] * 1000
            predicted_ccdf = (hits * weights[None, :]).sum(axis=1) / total_weight
        else:
            logger.warning("No simulated inter-origin distances in the selected molecules")
            predicted_ccdf = np.full(n_points, np.nan)
        return observed_ccdf, predicted_ccdf

    def rms_fork_density_deviation(self, predicate: Predicate = _keep_all) -> float:
        """Root-mean-square difference of observed and simulated forks per Mb."""
        selected = [a for a in self.averages() if predicate(a)]
        if not selected:
            raise ValueError("predicate selects no observed molecules")
        deviations = np.array([a.reference_forks_per_mb - a.forks_per_mb for a in selected])
        return float(np.sqrt(np.mean(deviations ** 2)))
