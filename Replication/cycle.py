"""One discrete synthesis interval over all sites of a molecule.

Each call to ``SynthesisCycle.step(p, delta)`` runs two passes:

1. Initiation: every POTENTIAL site fires with probability ``p`` and is
   spliced into the active chain after the nearest active site to its left.
   Sites are visited in ascending order, so a site fired earlier in the same
   pass is already the predecessor of sites further right.
2. Elongation: forks advance by ``delta`` nucleotides, stopping at the
   molecule ends or where they meet the converging fork of the next active
   site. A site whose two forks are both dead terminates. POTENTIAL sites that
   end up inside replicated DNA are marked passively replicated.

The nucleotide counter always equals the number of positions covered by the
replicated segments.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np

from Replication.site import SiteArena, SiteStatus

logger = logging.getLogger(__name__)


class SynthesisCycle:
    """Fork dynamics engine; exclusive owner of one ``SiteArena``."""

    def __init__(self, arena: SiteArena, rng: np.random.Generator) -> None:
        self.arena = arena
        self.rng = rng
        self.seq_length = arena.seq_length
        self._potentials = arena.n_sites
        self._actives = 0
        self._passives = 0
        self._terminations = 0
        self._initiations = 0
        self._closures = 0
        self._forks = 0
        self._nucleotides = 0

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    @property
    def potentials(self) -> int:
        return self._potentials

    @property
    def actives(self) -> int:
        return self._actives

    @property
    def passives(self) -> int:
        return self._passives

    @property
    def terminations(self) -> int:
        return self._terminations

    @property
    def initiations(self) -> int:
        return self._initiations

    @property
    def closures(self) -> int:
        return self._closures

    @property
    def forks(self) -> int:
        return self._forks

    @property
    def nucleotides_replicated(self) -> int:
        return self._nucleotides

    @property
    def fraction_replicated(self) -> float:
        return self._nucleotides / self.seq_length

    @property
    def is_complete(self) -> bool:
        return self._nucleotides >= self.seq_length

    # -------------------------------------------------------------------------
    # Step
    # -------------------------------------------------------------------------

    def step(self, p: float, delta: int) -> None:
        """Advance the molecule by one interval.

        Args:
            p: Per-site firing probability for this interval, in [0, 1].
            delta: Nucleotides a free fork moves during the interval.
        """
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"firing probability must lie in [0, 1]; got {p}")
        if delta < 0:
            raise ValueError("fork movement must be non-negative")
        self._initiate(p)
        if self._initiations == 0:
            return
        self._elongate(int(delta))
        self._mark_passive()

    def _initiate(self, p: float) -> None:
        arena = self.arena
        potential = arena.indices_with_status(SiteStatus.POTENTIAL)
        if potential.size == 0:
            return
        draws = self.rng.random(potential.size)
        fired = potential[draws < p]
        if fired.size == 0:
            return

        is_fired = np.zeros(arena.n_sites, dtype=bool)
        is_fired[fired] = True
        last_active = arena.left_end
        for i in np.union1d(arena.indices_with_status(SiteStatus.ACTIVE), fired):
            i = int(i)
            if is_fired[i]:
                arena.activate(i, last_active)
                self._nucleotides += 1
                self._initiations += 1
                self._actives += 1
                self._potentials -= 1
                self._forks += 2
            last_active = i

    def _terminate(self, i: int) -> None:
        self.arena.terminate(i)
        self._terminations += 1
        self._actives -= 1

    def _close_fork(self) -> None:
        self._forks -= 1
        self._closures += 1

    def _elongate(self, delta: int) -> None:
        arena = self.arena
        last = self.seq_length - 1

        leftmost = int(arena.right_link[arena.left_end])
        if leftmost != arena.right_end and arena.left_fork_active[leftmost]:
            fork = int(arena.left_fork[leftmost])
            if fork - delta <= 0:
                self._nucleotides += fork
                arena.set_left_fork(leftmost, 0)
                arena.inactivate_left_fork(leftmost)
                self._close_fork()
                if not arena.right_fork_active[leftmost]:
                    self._terminate(leftmost)
            else:
                arena.extend_left_fork(leftmost, delta)
                self._nucleotides += delta

        site = int(arena.right_link[arena.left_end])
        while site != arena.right_end:
            nbr = int(arena.right_link[site])
            if arena.right_fork_active[site]:
                if nbr == arena.right_end:
                    self._advance_to_right_end(site, delta, last)
                else:
                    self._advance_toward(site, nbr, delta)
            # a neighbour terminated by this collision has left the chain
            site = nbr if arena.status[nbr] == SiteStatus.ACTIVE else int(arena.right_link[nbr])

    def _advance_to_right_end(self, site: int, delta: int, last: int) -> None:
        arena = self.arena
        fork = int(arena.right_fork[site])
        if fork + delta >= last:
            self._nucleotides += last - fork
            arena.set_right_fork(site, last)
            arena.inactivate_right_fork(site)
            self._close_fork()
            if not arena.left_fork_active[site]:
                self._terminate(site)
        else:
            arena.extend_right_fork(site, delta)
            self._nucleotides += delta

    def _advance_toward(self, site: int, nbr: int, delta: int) -> None:
        arena = self.arena
        right = int(arena.right_fork[site])
        left = int(arena.left_fork[nbr])
        if (left - delta) - (right + delta) <= 1:
            gap = left - right - 1
            arena.inactivate_right_fork(site)
            arena.inactivate_left_fork(nbr)
            self._forks -= 2
            if gap == 1:
                arena.set_right_fork(site, right + 1)
            elif gap >= 2:
                arena.set_right_fork(site, right + gap // 2)
                arena.set_left_fork(nbr, right + gap // 2 + 1)
            self._nucleotides += gap
            self._closures += 1
            if not arena.left_fork_active[site]:
                self._terminate(site)
            if not arena.right_fork_active[nbr]:
                self._terminate(nbr)
        else:
            arena.extend_right_fork(site, delta)
            arena.extend_left_fork(nbr, delta)
            self._nucleotides += 2 * delta

    def _mark_passive(self) -> None:
        arena = self.arena
        potential = arena.indices_with_status(SiteStatus.POTENTIAL)
        if potential.size == 0:
            return
        unreplicated = self._inside_gaps(arena.position[potential])
        for i in potential[~unreplicated]:
            arena.passively_replicate(int(i))
            self._passives += 1
            self._potentials -= 1

    # -------------------------------------------------------------------------
    # Replicated / unreplicated stretches
    # -------------------------------------------------------------------------

    def unreplicated_gaps(self) -> List[Tuple[int, int]]:
        """Inclusive (start, end) bounds of every stretch not yet replicated."""
        arena = self.arena
        if self._initiations == 0:
            return [(0, self.seq_length - 1)]
        gaps: List[Tuple[int, int]] = []
        prev = arena.left_end
        for i in (*arena.active_chain(), arena.right_end):
            if prev == arena.left_end and i == arena.right_end:
                # every fired site has terminated
                break
            if arena.right_fork_active[prev] and arena.left_fork_active[i]:
                start = int(arena.right_fork[prev]) + 1
                end = int(arena.left_fork[i]) - 1
                if start <= end:
                    gaps.append((start, end))
            prev = i
        return gaps

    def _inside_gaps(self, positions: np.ndarray) -> np.ndarray:
        gaps = self.unreplicated_gaps()
        if not gaps:
            return np.zeros(positions.shape, dtype=bool)
        starts = np.array([g[0] for g in gaps], dtype=np.int64)
        ends = np.array([g[1] for g in gaps], dtype=np.int64)
        k = np.searchsorted(starts, positions, side="right") - 1
        inside = k >= 0
        inside[inside] = positions[inside] <= ends[k[inside]]
        return inside

    def replicated_segments(self) -> Tuple[int, ...]:
        """Flat inclusive bounds ``(s0, e0, s1, e1, ...)`` of replicated stretches."""
        bounds: List[int] = []
        cursor = 0
        for start, end in self.unreplicated_gaps():
            if start > cursor:
                bounds.extend((cursor, start - 1))
            cursor = end + 1
        if cursor <= self.seq_length - 1:
            bounds.extend((cursor, self.seq_length - 1))
        return tuple(bounds)

    def origin_spans(self) -> np.ndarray:
        """Rows of (position, left fork, right fork, terminated) for every fired site."""
        arena = self.arena
        n = arena.n_sites
        fired = np.flatnonzero(
            (arena.status[:n] == SiteStatus.ACTIVE) | (arena.status[:n] == SiteStatus.TERMINATED)
        )
        spans = np.empty((fired.size, 4), dtype=np.int64)
        spans[:, 0] = arena.position[fired]
        spans[:, 1] = arena.left_fork[fired]
        spans[:, 2] = arena.right_fork[fired]
        spans[:, 3] = arena.status[fired] == SiteStatus.TERMINATED
        return spans

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def consistency_errors(self) -> List[str]:
        arena = self.arena
        errors = arena.chain_errors()
        if errors:
            return errors
        errors.extend(arena.linkage_errors())

        for i in arena.active_chain():
            if not (arena.left_fork_active[i] or arena.right_fork_active[i]):
                errors.append(f"active site at {int(arena.position[i])} has no live fork")
            if not arena.left_fork[i] <= arena.position[i] <= arena.right_fork[i]:
                errors.append(f"forks of site at {int(arena.position[i])} straddle the wrong way")

        gaps = self.unreplicated_gaps()
        covered = self.seq_length - sum(end - start + 1 for start, end in gaps)
        if covered != self._nucleotides:
            errors.append(
                f"nucleotides_replicated={self._nucleotides} but segments cover {covered}"
            )

        if self._initiations > 0:
            potential = arena.indices_with_status(SiteStatus.POTENTIAL)
            inside = self._inside_gaps(arena.position[potential])
            for i in potential[~inside]:
                errors.append(f"potential site at {int(arena.position[i])} is already replicated")
        passive = arena.indices_with_status(SiteStatus.PASSIVELY_REPLICATED)
        inside = self._inside_gaps(arena.position[passive])
        for i in passive[inside]:
            errors.append(f"passive site at {int(arena.position[i])} is not replicated")

        expected = {
            "potentials": (self._potentials, arena.count(SiteStatus.POTENTIAL)),
            "actives": (self._actives, arena.count(SiteStatus.ACTIVE)),
            "terminations": (self._terminations, arena.count(SiteStatus.TERMINATED)),
            "passives": (self._passives, arena.count(SiteStatus.PASSIVELY_REPLICATED)),
            "initiations": (
                self._initiations,
                arena.count(SiteStatus.ACTIVE) + arena.count(SiteStatus.TERMINATED),
            ),
            "forks": (
                self._forks,
                int(arena.left_fork_active[: arena.n_sites].sum()
                    + arena.right_fork_active[: arena.n_sites].sum()),
            ),
        }
        for name, (counter, actual) in expected.items():
            if counter != actual:
                errors.append(f"{name} counter is {counter}, arena holds {actual}")
        return errors

    def check_consistency(self) -> bool:
        """Log every consistency problem at ERROR level; True when there are none."""
        errors = self.consistency_errors()
        for message in errors:
            logger.error("Replication state inconsistency: %s", message)
        return not errors
