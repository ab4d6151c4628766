"""Replication of a single linear DNA molecule to completion.

A ``ReplicatingMolecule`` owns one ``SiteArena`` built from pre-sampled
initiator positions and one ``SynthesisCycle`` engine. ``run()`` steps the
engine with the firing probability of the current elapsed time until every
nucleotide is replicated, keeping ``StateRecord`` snapshots according to a
recording schedule:

- TimeRecording: at time 0 and then whenever the elapsed time reaches the next
  multiple of the recording interval; a final complete record is appended.
- FractionRecording: at time 0 and once per target fraction replicated; the
  list is padded with complete records to a fixed length so records of
  different molecules line up index by index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from Replication.bins import (
    BinGeometry,
    BinStats,
    compute_bin_stats,
    first_replication_times,
    replicated_bin_bounds,
)
from Replication.config import ParameterSet, SimulationConfig
from Replication.cycle import SynthesisCycle
from Replication.initiators import SeqInterval, filter_suppressed
from Replication.site import SiteArena

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateRecord:
    """Immutable snapshot of a molecule's replication state."""
    time: float
    fraction_replicated: float
    nucleotides_replicated: int
    initiations: int
    terminations: int
    actives: int
    potentials: int
    passives: int
    forks: int
    closures: int
    segments: Tuple[int, ...]
    replicated_bins: Tuple[int, ...]
    origins: np.ndarray = field(repr=False, compare=False)

    @classmethod
    def capture(cls, cycle: SynthesisCycle, time: float, geometry: BinGeometry) -> "StateRecord":
        segments = cycle.replicated_segments()
        origins = cycle.origin_spans()
        origins.setflags(write=False)
        return cls(
            time=float(time),
            fraction_replicated=cycle.fraction_replicated,
            nucleotides_replicated=cycle.nucleotides_replicated,
            initiations=cycle.initiations,
            terminations=cycle.terminations,
            actives=cycle.actives,
            potentials=cycle.potentials,
            passives=cycle.passives,
            forks=cycle.forks,
            closures=cycle.closures,
            segments=segments,
            replicated_bins=replicated_bin_bounds(segments, geometry, cycle.seq_length),
            origins=origins,
        )

    @property
    def is_complete(self) -> bool:
        return self.fraction_replicated >= 1.0

    def snapshot(self) -> dict:
        """Scalar fields as a dictionary for CSV rows."""
        return {
            "time": self.time,
            "fraction_replicated": self.fraction_replicated,
            "nucleotides_replicated": self.nucleotides_replicated,
            "initiations": self.initiations,
            "terminations": self.terminations,
            "actives": self.actives,
            "potentials": self.potentials,
            "passives": self.passives,
            "forks": self.forks,
            "closures": self.closures,
        }


STATE_VARIABLES = (
    "time",
    "fraction_replicated",
    "nucleotides_replicated",
    "initiations",
    "terminations",
    "actives",
    "potentials",
    "passives",
    "forks",
    "closures",
)


@dataclass(frozen=True)
class TimeRecording:
    start: float
    interval: float

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError("recording start must be non-negative")
        if self.interval <= 0:
            raise ValueError("recording interval must be positive")


@dataclass(frozen=True)
class FractionRecording:
    targets: Tuple[float, ...]
    total_records: Optional[int] = None

    def __post_init__(self) -> None:
        targets = tuple(float(t) for t in self.targets)
        if any(b < a for a, b in zip(targets, targets[1:])):
            raise ValueError("target fractions must be ascending")
        if any(t < 0.0 or t > 1.0 for t in targets):
            raise ValueError("target fractions must lie in [0, 1]")
        object.__setattr__(self, "targets", targets)
        if self.total_records is None:
            object.__setattr__(self, "total_records", len(targets) + 2)
        elif self.total_records < len(targets) + 1:
            raise ValueError("total_records must leave room for the initial record and every target")


Recording = Union[TimeRecording, FractionRecording]


class ReplicatingMolecule:
    """Stochastic replication of one molecule from a fixed set of initiators."""

    def __init__(
        self,
        initiator_positions: Sequence[int],
        params: ParameterSet,
        sim_config: SimulationConfig,
        rng: np.random.Generator,
        recording: Optional[Recording] = None,
        suppression_intervals: Sequence[SeqInterval] = (),
    ) -> None:
        positions = np.asarray(initiator_positions, dtype=np.int64)
        if positions.ndim != 1 or positions.size == 0:
            raise ValueError("initiator_positions must be a non-empty 1-D sequence")
        if np.any(np.diff(positions) <= 0):
            raise ValueError("initiator_positions must be sorted and unique")
        if positions[0] < 0 or positions[-1] >= sim_config.sequence_length:
            raise ValueError(
                f"initiator_positions must lie in [0, {sim_config.sequence_length})"
            )
        positions = filter_suppressed(positions, suppression_intervals)
        if positions.size == 0:
            raise ValueError("every initiator position lies in a suppression interval")

        self.params = params
        self.sim_config = sim_config
        self.seq_length = sim_config.sequence_length
        self.geometry = BinGeometry(sim_config.bin_size, sim_config.bin_offset)
        self.recording = recording or TimeRecording(
            sim_config.recording_start, sim_config.recording_interval
        )
        self.arena = SiteArena(positions, self.seq_length)
        self.cycle = SynthesisCycle(self.arena, rng)
        self.elapsed_time = 0.0
        self.records: List[StateRecord] = []
        self._replication_times: Optional[np.ndarray] = None
        self._final_stats: Optional[BinStats] = None

    @property
    def is_complete(self) -> bool:
        return self.cycle.is_complete

    def _record(self) -> None:
        self.records.append(StateRecord.capture(self.cycle, self.elapsed_time, self.geometry))

    def run(self) -> List[StateRecord]:
        """Replicate the molecule to completion and return its records."""
        if self.records:
            return self.records
        delta = self.params.fork_movement_per_cycle
        elongation = self.params.elongation_rate
        check = self.sim_config.check_consistency
        fraction_mode = isinstance(self.recording, FractionRecording)
        next_time = self.recording.start if not fraction_mode else 0.0
        next_target = 0

        self._record()
        steps = 0
        while not self.cycle.is_complete:
            p = self.params.firing_probability(self.elapsed_time)
            self.cycle.step(p, delta)
            self.elapsed_time += delta / elongation
            steps += 1
            if check:
                self.cycle.check_consistency()

            if fraction_mode:
                targets = self.recording.targets
                fraction = self.cycle.fraction_replicated
                while next_target < len(targets) and targets[next_target] <= fraction:
                    self._record()
                    next_target += 1
            elif self.elapsed_time >= next_time:
                self._record()
                while next_time <= self.elapsed_time:
                    next_time += self.recording.interval

        if fraction_mode:
            while len(self.records) < self.recording.total_records:
                self._record()
            if len(self.records) != self.recording.total_records:
                raise RuntimeError(
                    f"expected {self.recording.total_records} records, got {len(self.records)}"
                )
        elif not self.records[-1].is_complete:
            self._record()

        logger.debug(
            "Molecule replicated in %.3f min (%d steps, %d initiations, %d records)",
            self.elapsed_time,
            steps,
            self.cycle.initiations,
            len(self.records),
        )
        return self.records

    # -------------------------------------------------------------------------
    # Per-bin statistics of the completed molecule
    # -------------------------------------------------------------------------

    def _require_complete(self) -> None:
        if not self.records or not self.is_complete:
            raise RuntimeError("molecule has not been replicated; call run() first")

    @property
    def final_record(self) -> StateRecord:
        self._require_complete()
        return self.records[-1]

    def bin_stats(self) -> BinStats:
        if self._final_stats is None:
            self._final_stats = compute_bin_stats(self.final_record, self.geometry, self.seq_length)
        return self._final_stats

    def right_fork_frequency(self) -> np.ndarray:
        return self.bin_stats().right_fork_frequency

    def initiations_in_bins(self) -> np.ndarray:
        return self.bin_stats().initiations

    def terminations_in_bins(self) -> np.ndarray:
        return self.bin_stats().terminations

    def replication_times(self) -> np.ndarray:
        """Time each bin first held replicated DNA, computed once from the records."""
        self._require_complete()
        if self._replication_times is None:
            self._replication_times = first_replication_times(
                self.records, self.geometry, self.seq_length
            )
        return self._replication_times

    def record_at(self, time: float) -> StateRecord:
        """Latest record taken at or before ``time`` (the last record after completion)."""
        self._require_complete()
        times = np.array([r.time for r in self.records])
        index = int(np.searchsorted(times, time, side="right")) - 1
        return self.records[min(max(index, 0), len(self.records) - 1)]

    def state_at(self, name: str, time: float) -> float:
        if name not in STATE_VARIABLES:
            raise ValueError(f"Unknown state variable: {name}")
        return getattr(self.record_at(time), name)
