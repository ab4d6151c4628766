"""Comparison of simulated replication with experimental data.

- Comparison.combing: observed combed molecules and inter-origin distances
- Comparison.combing_population: population averages aligned to combed molecules
- Comparison.fork_direction: right-fork frequency profiles vs polymerase-usage data
"""

from Comparison.combing import (
    CombedSegment,
    ObservedMolecule,
    forks_per_chromosome_by_fraction,
    inter_centroid_distances,
)
from Comparison.combing_population import CombedAverages, CombingPopulation
from Comparison.fork_direction import ForkDirectionComparison

__all__ = [
    "CombedAverages",
    "CombedSegment",
    "CombingPopulation",
    "ForkDirectionComparison",
    "ObservedMolecule",
    "forks_per_chromosome_by_fraction",
    "inter_centroid_distances",
]
