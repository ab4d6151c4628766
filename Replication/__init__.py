"""Stochastic DNA replication dynamics package.

Simulates firing of replication origins and movement of the resulting forks
along a linear genome, one discrete synthesis cycle at a time.

Main entry points:
- Replication.molecule: ReplicatingMolecule for a single molecule
- Replication.population: MoleculePopulation for ensemble averages
- Replication.cycle: SynthesisCycle fork-dynamics engine
- Replication.io: YAML config loading and CSV/NPZ output
"""

from Replication.bins import BinGeometry, BinStats, compute_bin_stats
from Replication.config import ParameterSet, SimulationConfig
from Replication.cycle import SynthesisCycle
from Replication.initiators import (
    SeqInterval,
    filter_suppressed,
    sample_initiator_positions,
    uniform_pmf,
)
from Replication.io import (
    load_pmf,
    load_simulation_config,
    load_suppression_intervals,
    save_bin_stats_csv,
    save_sparse_bin_counts,
    save_trajectory_csv,
)
from Replication.molecule import (
    FractionRecording,
    ReplicatingMolecule,
    StateRecord,
    TimeRecording,
)
from Replication.population import MoleculePopulation
from Replication.site import SiteArena, SiteStateError, SiteStatus

__all__ = [
    # Core classes
    "SiteArena",
    "SiteStatus",
    "SiteStateError",
    "SynthesisCycle",
    "ReplicatingMolecule",
    "StateRecord",
    "TimeRecording",
    "FractionRecording",
    "MoleculePopulation",
    "ParameterSet",
    "SimulationConfig",
    "BinGeometry",
    "BinStats",
    "SeqInterval",
    # Functions
    "compute_bin_stats",
    "filter_suppressed",
    "sample_initiator_positions",
    "uniform_pmf",
    "load_pmf",
    "load_simulation_config",
    "load_suppression_intervals",
    "save_bin_stats_csv",
    "save_sparse_bin_counts",
    "save_trajectory_csv",
]
