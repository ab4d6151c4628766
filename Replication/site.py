"""Potential initiation sites and the active-site chain.

All sites of one molecule live in a single ``SiteArena`` and are addressed by
integer index. Indices ``0 .. n_sites - 1`` are the candidate origins in
ascending genomic order; two sentinels close the molecule:

- ``left_end``  (index ``n_sites``)     at position -1, inward fork = right fork
- ``right_end`` (index ``n_sites + 1``) at position seq_length, inward fork = left fork

Sentinels are always ACTIVE and their forks never move. Every ACTIVE site is a
member of a doubly linked chain (``left_link`` / ``right_link``) ordered by
position and bounded by the sentinels. A terminated site is unspliced from the
chain; its own link fields keep the values they had at termination.

Allowed transitions: POTENTIAL -> ACTIVE -> TERMINATED and
POTENTIAL -> PASSIVELY_REPLICATED. Anything else raises ``SiteStateError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator, Sequence

import numpy as np


class SiteStatus(IntEnum):
    POTENTIAL = 0
    ACTIVE = 1
    TERMINATED = 2
    PASSIVELY_REPLICATED = 3


class ForkActivity(Enum):
    BOTH = "both"
    LEFT = "left"
    RIGHT = "right"
    NEITHER = "neither"


class SiteStateError(RuntimeError):
    """Raised on a transition the site state machine does not allow."""


@dataclass(frozen=True)
class PotentialSite:
    """Read-only view of one row of the arena."""
    index: int
    position: int
    status: SiteStatus
    left_fork: int
    right_fork: int
    left_fork_active: bool
    right_fork_active: bool
    left_link: int
    right_link: int


class SiteArena:
    """Mutable state of all potential initiation sites of one molecule."""

    def __init__(self, positions: Sequence[int], seq_length: int) -> None:
        pos = np.asarray(positions, dtype=np.int64)
        if pos.ndim != 1:
            raise ValueError("positions must be a 1-D sequence")
        if seq_length <= 0:
            raise ValueError("seq_length must be positive")
        if pos.size and (pos[0] < 0 or pos[-1] >= seq_length):
            raise ValueError(f"site positions must lie in [0, {seq_length})")
        if np.any(np.diff(pos) <= 0):
            raise ValueError("site positions must be strictly increasing")

        n = int(pos.size)
        self.n_sites = n
        self.seq_length = int(seq_length)
        self.left_end = n
        self.right_end = n + 1

        self.position = np.empty(n + 2, dtype=np.int64)
        self.position[:n] = pos
        self.position[self.left_end] = -1
        self.position[self.right_end] = seq_length
        self.status = np.full(n + 2, SiteStatus.POTENTIAL, dtype=np.int8)
        self.left_fork = self.position.copy()
        self.right_fork = self.position.copy()
        self.left_fork_active = np.zeros(n + 2, dtype=bool)
        self.right_fork_active = np.zeros(n + 2, dtype=bool)
        self.left_link = np.full(n + 2, -1, dtype=np.int64)
        self.right_link = np.full(n + 2, -1, dtype=np.int64)

        self.activate_terminus(self.left_end)
        self.activate_terminus(self.right_end)
        self.right_link[self.left_end] = self.right_end
        self.left_link[self.right_end] = self.left_end

    def __len__(self) -> int:
        return self.n_sites

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _require_status(self, i: int, expected: SiteStatus, action: str) -> None:
        current = SiteStatus(int(self.status[i]))
        if current != expected:
            raise SiteStateError(
                f"cannot {action} site {i} at position {int(self.position[i])}: "
                f"status is {current.name}, expected {expected.name}"
            )

    def activate(self, i: int, predecessor: int) -> None:
        """Fire site ``i`` and splice it after ``predecessor`` in the active chain."""
        self._require_status(i, SiteStatus.POTENTIAL, "activate")
        if self.status[predecessor] != SiteStatus.ACTIVE:
            raise SiteStateError(f"predecessor {predecessor} of site {i} is not active")
        self.status[i] = SiteStatus.ACTIVE
        self.left_fork_active[i] = True
        self.right_fork_active[i] = True
        successor = self.right_link[predecessor]
        self.left_link[i] = predecessor
        self.right_link[i] = successor
        self.left_link[successor] = i
        self.right_link[predecessor] = i

    def activate_terminus(self, i: int) -> None:
        """Activate a sentinel; only its inward fork is live and it is not spliced."""
        if not self.is_end(i):
            raise SiteStateError(f"site {i} is not a molecule end")
        self._require_status(i, SiteStatus.POTENTIAL, "activate terminus")
        self.status[i] = SiteStatus.ACTIVE
        self.left_fork_active[i] = i == self.right_end
        self.right_fork_active[i] = i == self.left_end

    def inactivate_left_fork(self, i: int) -> None:
        self.left_fork_active[i] = False

    def inactivate_right_fork(self, i: int) -> None:
        self.right_fork_active[i] = False

    def terminate(self, i: int) -> None:
        """ACTIVE -> TERMINATED; links the former neighbours to each other.

        Both forks must already be inactive; that is the caller's contract.
        """
        if self.is_end(i):
            raise SiteStateError("molecule ends cannot terminate")
        self._require_status(i, SiteStatus.ACTIVE, "terminate")
        self.status[i] = SiteStatus.TERMINATED
        left = self.left_link[i]
        right = self.right_link[i]
        self.right_link[left] = right
        self.left_link[right] = left

    def passively_replicate(self, i: int) -> None:
        self._require_status(i, SiteStatus.POTENTIAL, "passively replicate")
        self.status[i] = SiteStatus.PASSIVELY_REPLICATED

    def extend_left_fork(self, i: int, nucleotides: int) -> None:
        if nucleotides < 0:
            raise ValueError("fork movement must be non-negative")
        self.left_fork[i] -= nucleotides

    def extend_right_fork(self, i: int, nucleotides: int) -> None:
        if nucleotides < 0:
            raise ValueError("fork movement must be non-negative")
        self.right_fork[i] += nucleotides

    def set_left_fork(self, i: int, position: int) -> None:
        self.left_fork[i] = position

    def set_right_fork(self, i: int, position: int) -> None:
        self.right_fork[i] = position

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def site(self, i: int) -> PotentialSite:
        return PotentialSite(
            index=int(i),
            position=int(self.position[i]),
            status=SiteStatus(int(self.status[i])),
            left_fork=int(self.left_fork[i]),
            right_fork=int(self.right_fork[i]),
            left_fork_active=bool(self.left_fork_active[i]),
            right_fork_active=bool(self.right_fork_active[i]),
            left_link=int(self.left_link[i]),
            right_link=int(self.right_link[i]),
        )

    def is_end(self, i: int) -> bool:
        return i == self.left_end or i == self.right_end

    def indices_with_status(self, status: SiteStatus) -> np.ndarray:
        """Indices of real (non-sentinel) sites in ``status``, ascending."""
        return np.flatnonzero(self.status[: self.n_sites] == status)

    def count(self, status: SiteStatus) -> int:
        return int(np.count_nonzero(self.status[: self.n_sites] == status))

    def active_chain(self) -> Iterator[int]:
        """Yield the real active sites from left to right by following links."""
        i = int(self.right_link[self.left_end])
        steps = 0
        while i != self.right_end:
            yield i
            i = int(self.right_link[i])
            steps += 1
            if steps > self.n_sites:
                raise SiteStateError("active chain contains a cycle")

    def site_type(self, i: int) -> ForkActivity:
        left = bool(self.left_fork_active[i])
        right = bool(self.right_fork_active[i])
        if left and right:
            return ForkActivity.BOTH
        if left:
            return ForkActivity.LEFT
        if right:
            return ForkActivity.RIGHT
        return ForkActivity.NEITHER

    def chain_errors(self) -> list[str]:
        """Structural problems of the active chain (empty when consistent)."""
        errors: list[str] = []
        seen: list[int] = []
        prev = self.left_end
        i = int(self.right_link[self.left_end])
        while i != self.right_end:
            if i < 0 or i >= self.n_sites:
                errors.append(f"chain points outside the arena at index {i}")
                return errors
            if len(seen) > self.n_sites:
                errors.append("active chain contains a cycle")
                return errors
            if self.left_link[i] != prev:
                errors.append(f"site {i}: left link {int(self.left_link[i])} != {prev}")
            if self.position[i] <= self.position[prev]:
                errors.append(f"site {i}: chain not ordered by position")
            seen.append(i)
            prev = i
            i = int(self.right_link[i])
        if self.left_link[self.right_end] != prev:
            errors.append("right end is not linked back to the last active site")
        active = set(self.indices_with_status(SiteStatus.ACTIVE).tolist())
        if active != set(seen):
            orphans = sorted(active.difference(seen))
            strays = sorted(set(seen).difference(active))
            if orphans:
                errors.append(f"active sites missing from chain: {orphans}")
            if strays:
                errors.append(f"non-active sites in chain: {strays}")
        return errors

    def linkage_errors(self) -> list[str]:
        """Fork-pattern inconsistencies between each active site and its neighbours."""
        errors: list[str] = []
        live_right = (ForkActivity.RIGHT, ForkActivity.BOTH)
        live_left = (ForkActivity.LEFT, ForkActivity.BOTH)
        for i in self.active_chain():
            kind = self.site_type(i)
            left = int(self.left_link[i])
            right = int(self.right_link[i])
            if kind is ForkActivity.BOTH:
                ok = self.site_type(right) in live_left and self.site_type(left) in live_right
            elif kind is ForkActivity.LEFT:
                ok = self.site_type(left) in live_right and (
                    self.site_type(right) is ForkActivity.RIGHT or right == self.right_end
                )
            elif kind is ForkActivity.RIGHT:
                ok = self.site_type(right) in live_left and (
                    self.site_type(left) is ForkActivity.LEFT or left == self.left_end
                )
            else:
                ok = False
            if not ok:
                errors.append(f"linkage error at position {int(self.position[i])}")
        return errors
