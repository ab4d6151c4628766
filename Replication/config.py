"""Configuration for stochastic replication dynamics.

Two frozen bundles are passed explicitly to every component:

- ParameterSet: kinetic parameters of origin firing and fork elongation.
- SimulationConfig: genome length, bin geometry, recording schedule, seed
  and the optional input/output paths used by the command-line runner.

Both validate themselves on construction and never clamp silently.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParameterSet:
    """Parameters for initiator loading, origin firing and fork movement.

    Time is in minutes and distances in nucleotides. The per-cycle firing
    probability ramps linearly with elapsed time at ``firing_ramp_rate`` and
    saturates at ``cycle_duration * max_firing_probability``.
    """
    elongation_rate: int
    max_firing_probability: float
    firing_ramp_rate: float
    cycle_duration: float
    initiator_site_length: int = 25
    n_initiators: int = 363
    n_molecules: int = 1000

    def __post_init__(self) -> None:
        if self.elongation_rate <= 0:
            raise ValueError("elongation_rate must be positive")
        if self.cycle_duration <= 0:
            raise ValueError("cycle_duration must be positive")
        if self.max_firing_probability <= 0:
            raise ValueError("max_firing_probability must be positive")
        if self.firing_ramp_rate <= 0:
            raise ValueError("firing_ramp_rate must be positive")
        if self.initiator_site_length <= 0:
            raise ValueError("initiator_site_length must be positive")
        if self.n_initiators <= 0:
            raise ValueError("n_initiators must be positive")
        if self.n_molecules <= 0:
            raise ValueError("n_molecules must be positive")
        if self.fork_movement_per_cycle < 1:
            raise ValueError(
                "cycle_duration * elongation_rate must be at least one nucleotide; "
                f"got {self.cycle_duration * self.elongation_rate}"
            )
        if self.max_probability_per_cycle > 1.0:
            raise ValueError(
                "cycle_duration * max_firing_probability must not exceed 1; "
                f"got {self.max_probability_per_cycle}"
            )

    @property
    def fork_movement_per_cycle(self) -> int:
        """Nucleotides a free fork advances during one cycle (truncated)."""
        return int(self.cycle_duration * self.elongation_rate)

    @property
    def max_probability_per_cycle(self) -> float:
        return self.cycle_duration * self.max_firing_probability

    def firing_probability(self, elapsed_time: float) -> float:
        """Per-site firing probability for the cycle starting at ``elapsed_time``."""
        if elapsed_time * self.firing_ramp_rate > self.max_firing_probability:
            return self.max_probability_per_cycle
        return self.cycle_duration * elapsed_time * self.firing_ramp_rate


@dataclass(frozen=True)
class SimulationConfig:
    """Genome geometry, recording schedule and run-level settings."""
    sequence_length: int
    bin_size: int = 300
    bin_offset: int = 0
    recording_start: float = 0.25
    recording_interval: float = 0.25
    random_seed: int = 0
    ccdf_intervals: int = 100
    ccdf_distance_interval_kb: float = 10.0
    check_consistency: bool = False
    pmf_path: str | None = None
    suppression_path: str | None = None
    out_path: str | None = None

    def __post_init__(self) -> None:
        if self.sequence_length <= 0:
            raise ValueError("sequence_length must be positive")
        if self.bin_size <= 0:
            raise ValueError("bin_size must be positive")
        if self.bin_offset < 0:
            raise ValueError("bin_offset must be non-negative")
        if self.recording_start < 0:
            raise ValueError("recording_start must be non-negative")
        if self.recording_interval <= 0:
            raise ValueError("recording_interval must be positive")
        if self.ccdf_intervals <= 0:
            raise ValueError("ccdf_intervals must be positive")
        if self.ccdf_distance_interval_kb <= 0:
            raise ValueError("ccdf_distance_interval_kb must be positive")
        if not isinstance(self.check_consistency, bool):
            raise ValueError("check_consistency must be boolean")

    @property
    def n_bins(self) -> int:
        """Number of whole bins; zero when the genome is shorter than one bin."""
        return max(0, (self.sequence_length - self.bin_offset) // self.bin_size)
