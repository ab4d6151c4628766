"""Observed (combed) DNA molecules and their replication properties.

A combed molecule is an ordered run of segments, each either replicated
("G") or unreplicated ("N"), with lengths in kb. Terminal segments are cut by
the ends of the fibre, so only interior segments count as whole replicated or
unreplicated tracts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

REPLICATED = "G"
UNREPLICATED = "N"


@dataclass(frozen=True)
class CombedSegment:
    kind: str
    left: float
    right: float

    def __post_init__(self) -> None:
        if self.kind not in (REPLICATED, UNREPLICATED):
            raise ValueError(f"segment kind must be 'G' or 'N'; got {self.kind!r}")
        if self.right < self.left:
            raise ValueError("segment length must be non-negative")

    @property
    def length(self) -> float:
        return self.right - self.left

    @property
    def midpoint(self) -> float:
        return (self.left + self.right) / 2


@dataclass(frozen=True)
class ObservedMolecule:
    """One combed molecule with derived replication properties."""
    name: str
    segments: Tuple[CombedSegment, ...]
    start_position: float = 0.0
    inter_origin_distances: Tuple[float, ...] = field(init=False)
    interior_replicated: Tuple[float, ...] = field(init=False)
    interior_unreplicated: Tuple[float, ...] = field(init=False)

    def __post_init__(self) -> None:
        segs = tuple(self.segments)
        if not segs:
            raise ValueError(f"molecule {self.name} has no segments")
        object.__setattr__(self, "segments", segs)
        n = len(segs)
        iods: List[float] = []
        gs: List[float] = []
        ns: List[float] = []
        for i, seg in enumerate(segs):
            interior = i != 0 and i + 1 < n
            if seg.kind == REPLICATED and i != 0 and i + 3 < n:
                iods.append(seg.length / 2 + segs[i + 1].length + segs[i + 2].length / 2)
            if interior and seg.kind == REPLICATED:
                gs.append(seg.length)
            if interior and seg.kind == UNREPLICATED:
                ns.append(seg.length)
        object.__setattr__(self, "inter_origin_distances", tuple(iods))
        object.__setattr__(self, "interior_replicated", tuple(gs))
        object.__setattr__(self, "interior_unreplicated", tuple(ns))

    @classmethod
    def from_lengths(
        cls,
        name: str,
        lengths: Sequence[float],
        kinds: Sequence[str],
        start_position: float = 0.0,
    ) -> "ObservedMolecule":
        if len(lengths) != len(kinds):
            raise ValueError("lengths and kinds must have the same size")
        segments = []
        left = float(start_position)
        for length, kind in zip(lengths, kinds):
            if length < 0:
                raise ValueError("segment lengths must be non-negative")
            segments.append(CombedSegment(str(kind).strip().upper(), left, left + float(length)))
            left += float(length)
        return cls(name=name, segments=tuple(segments), start_position=float(start_position))

    @classmethod
    def from_columns(cls, name: str, values: Sequence[str], kinds: Sequence[str]) -> "ObservedMolecule":
        """Build from a pair of data columns whose first entry is the anchor ("A") start.

        A start position of 1 marks an unanchored molecule and is read as 0.
        """
        if not kinds or str(kinds[0]).strip().upper() != "A":
            raise ValueError(f"molecule {name} has no start position (A) entry")
        start = float(values[0])
        if start == 1:
            start = 0.0
        return cls.from_lengths(name, [float(v) for v in values[1:]], kinds[1:], start)

    @property
    def length(self) -> float:
        return float(sum(seg.length for seg in self.segments))

    @property
    def replicated_length(self) -> float:
        return float(sum(seg.length for seg in self.segments if seg.kind == REPLICATED))

    @property
    def fraction_replicated(self) -> float:
        total = self.length
        return self.replicated_length / total if total > 0 else 0.0

    @property
    def n_forks(self) -> int:
        forks = 2 * len(self.interior_replicated)
        if self.segments[0].kind == REPLICATED:
            forks += 1
        if self.segments[-1].kind == REPLICATED:
            forks += 1
        return forks

    @property
    def forks_per_mb(self) -> float:
        """Fork density with the molecule length in kb."""
        return self.n_forks * 1000 / self.length

    @property
    def first_kind(self) -> str:
        return self.segments[0].kind

    @property
    def last_kind(self) -> str:
        return self.segments[-1].kind


def inter_centroid_distances(segments: Sequence[int], seq_length: int) -> List[int]:
    """Distances between midpoints of consecutive replicated segments of a simulated molecule.

    ``segments`` is the flat inclusive bound list of a state record. Segments
    touching either molecule end are dropped because their true extent is
    unknown; integer midpoints follow the nucleotide coordinates.
    """
    if len(segments) % 2 != 0:
        raise ValueError("segment list must have an even number of bounds")
    bounds = list(segments)
    if bounds and bounds[0] == 0:
        bounds = bounds[2:]
    if bounds and bounds[-1] == seq_length - 1:
        bounds = bounds[:-2]
    if len(bounds) < 4:
        return []
    return [
        (bounds[i + 3] + bounds[i + 2]) // 2 - (bounds[i + 1] + bounds[i]) // 2
        for i in range(0, len(bounds) - 3, 2)
    ]


def forks_per_chromosome_by_fraction(
    molecules: Sequence[ObservedMolecule],
    seq_length: int,
    fraction_bin_size: float = 0.1,
) -> Dict[float, float]:
    """Average observed forks scaled to a whole chromosome, grouped by fraction replicated.

    Keys are the midpoints of the fraction-replicated bins.
    """
    if fraction_bin_size <= 0:
        raise ValueError("fraction_bin_size must be positive")
    groups: Dict[int, List[float]] = {}
    for mol in molecules:
        key = int(mol.fraction_replicated / fraction_bin_size)
        groups.setdefault(key, []).append(mol.n_forks * seq_length / mol.length / 1000)
    return {
        (key + 0.5) * fraction_bin_size: float(np.mean(values))
        for key, values in sorted(groups.items())
    }
