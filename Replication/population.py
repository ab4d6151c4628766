"""Ensemble of independently replicating molecules.

Every molecule shares one initiator pmf and one parameter set but gets its
own generator, seeded from a single parent generator, which it uses for both
initiator placement and origin firing. Population statistics are plain
averages over molecules.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

import numpy as np
from scipy import sparse

from Replication.bins import replicated_bin_flags
from Replication.config import ParameterSet, SimulationConfig
from Replication.initiators import SeqInterval, sample_initiator_positions, uniform_pmf
from Replication.molecule import (
    STATE_VARIABLES,
    Recording,
    ReplicatingMolecule,
    StateRecord,
)

logger = logging.getLogger(__name__)


def molecule_seeds(rng: np.random.Generator, n: int) -> np.ndarray:
    return rng.integers(0, np.iinfo(np.int64).max, size=n, dtype=np.int64).astype(
        np.uint64, copy=False
    )


class MoleculePopulation:
    """Replicates ``params.n_molecules`` molecules on construction."""

    def __init__(
        self,
        pmf: Optional[np.ndarray],
        params: ParameterSet,
        sim_config: SimulationConfig,
        rng: Optional[np.random.Generator] = None,
        suppression_intervals: Sequence[SeqInterval] = (),
        recording: Optional[Recording] = None,
    ) -> None:
        if pmf is None:
            pmf = uniform_pmf(sim_config.sequence_length, params.initiator_site_length)
        pmf = np.asarray(pmf, dtype=np.float64)
        expected = sim_config.sequence_length - params.initiator_site_length + 1
        if pmf.size != expected:
            raise ValueError(
                f"pmf length mismatch: expected {expected} window starts, got {pmf.size}"
            )
        if rng is None:
            rng = np.random.default_rng(sim_config.random_seed)

        self.params = params
        self.sim_config = sim_config
        self.seq_length = sim_config.sequence_length
        self.n_bins = sim_config.n_bins

        logger.info(
            "Replicating %d molecules (L=%d, %d initiators each)",
            params.n_molecules,
            self.seq_length,
            params.n_initiators,
        )
        self.molecules: List[ReplicatingMolecule] = []
        for seed in molecule_seeds(rng, params.n_molecules):
            child = np.random.default_rng(seed)
            positions = sample_initiator_positions(
                pmf, params.n_initiators, params.initiator_site_length, child
            )
            molecule = ReplicatingMolecule(
                positions,
                params,
                sim_config,
                child,
                recording=recording,
                suppression_intervals=suppression_intervals,
            )
            molecule.run()
            self.molecules.append(molecule)
        logger.info(
            "Population replicated; mean S-phase duration %.3f min",
            float(np.mean(self.elapsed_times())),
        )

    def __len__(self) -> int:
        return len(self.molecules)

    # -------------------------------------------------------------------------
    # Per-bin averages
    # -------------------------------------------------------------------------

    def average_right_fork_frequency(self) -> np.ndarray:
        return np.mean([m.right_fork_frequency() for m in self.molecules], axis=0)

    def average_initiation_frequency(self) -> np.ndarray:
        return np.mean([m.initiations_in_bins() for m in self.molecules], axis=0)

    def average_termination_frequency(self) -> np.ndarray:
        return np.mean([m.terminations_in_bins() for m in self.molecules], axis=0)

    def replication_times(self) -> np.ndarray:
        """Molecules x bins matrix of first replication times."""
        return np.vstack([m.replication_times() for m in self.molecules])

    def replication_times_of_bin(self, bin_index: int) -> np.ndarray:
        return self.replication_times()[:, bin_index]

    def median_replication_times(self) -> np.ndarray:
        """Per-bin upper median: element ``n // 2`` of the sorted molecule times."""
        times = np.sort(self.replication_times(), axis=0)
        return times[len(self.molecules) // 2]

    def mean_replication_times(self) -> np.ndarray:
        return np.mean(self.replication_times(), axis=0)

    def average_fraction_replicated_in_bins(self, time: float) -> np.ndarray:
        """Fraction of molecules with replicated DNA in each bin at ``time``."""
        total = np.zeros(self.n_bins, dtype=np.float64)
        for molecule in self.molecules:
            record = molecule.record_at(time)
            total += replicated_bin_flags(record, molecule.geometry, self.seq_length)
        return total / len(self.molecules)

    def elapsed_times(self) -> List[float]:
        return [m.elapsed_time for m in self.molecules]

    # -------------------------------------------------------------------------
    # Trajectories
    # -------------------------------------------------------------------------

    def average_trajectory(self, variable: Callable[[StateRecord], float] | str) -> np.ndarray:
        """Average of a state variable at each checkpoint index.

        Molecules that finished earlier contribute their final record to the
        later checkpoints.
        """
        if isinstance(variable, str):
            if variable not in STATE_VARIABLES:
                raise ValueError(f"Unknown state variable: {variable}")
            name = variable
            variable = lambda record: getattr(record, name)
        n_checkpoints = max(len(m.records) for m in self.molecules)
        values = np.empty((len(self.molecules), n_checkpoints), dtype=np.float64)
        for row, molecule in enumerate(self.molecules):
            series = [variable(r) for r in molecule.records]
            values[row, : len(series)] = series
            values[row, len(series):] = series[-1]
        return values.mean(axis=0)

    def average_trajectories(self) -> dict:
        return {name: self.average_trajectory(name) for name in STATE_VARIABLES}

    # -------------------------------------------------------------------------
    # Sparse per-molecule counts
    # -------------------------------------------------------------------------

    def sparse_bin_counts(self) -> tuple[sparse.csr_matrix, sparse.csr_matrix]:
        """Molecules x bins CSR matrices of initiation and termination counts."""
        initiations = sparse.csr_matrix(
            np.vstack([m.initiations_in_bins() for m in self.molecules])
        )
        terminations = sparse.csr_matrix(
            np.vstack([m.terminations_in_bins() for m in self.molecules])
        )
        return initiations, terminations
