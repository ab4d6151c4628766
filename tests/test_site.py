"""Tests for the site arena state machine."""

import pytest

from Replication.site import ForkActivity, SiteArena, SiteStateError, SiteStatus


@pytest.fixture
def arena():
    return SiteArena([100, 200, 300], seq_length=1000)


class TestConstruction:
    def test_sentinels(self, arena):
        """Sentinels sit at -1 and L, are active and linked to each other."""
        left = arena.site(arena.left_end)
        right = arena.site(arena.right_end)
        assert (arena.left_end, arena.right_end) == (3, 4)
        assert left.position == -1 and left.right_fork == -1
        assert right.position == 1000 and right.left_fork == 1000
        assert left.status is SiteStatus.ACTIVE and right.status is SiteStatus.ACTIVE
        assert left.right_link == arena.right_end
        assert right.left_link == arena.left_end
        assert arena.site_type(arena.left_end) is ForkActivity.RIGHT
        assert arena.site_type(arena.right_end) is ForkActivity.LEFT

    def test_sites_start_potential(self, arena):
        assert arena.count(SiteStatus.POTENTIAL) == 3
        assert list(arena.active_chain()) == []
        assert arena.chain_errors() == []

    def test_rejects_unsorted_positions(self):
        with pytest.raises(ValueError, match="strictly increasing"):
            SiteArena([5, 3], seq_length=10)

    def test_rejects_out_of_range_positions(self):
        with pytest.raises(ValueError):
            SiteArena([0, 10], seq_length=10)


class TestTransitions:
    def test_activate_splices_into_chain(self, arena):
        arena.activate(1, arena.left_end)
        arena.activate(0, arena.left_end)
        arena.activate(2, 1)
        assert list(arena.active_chain()) == [0, 1, 2]
        assert arena.chain_errors() == []
        assert arena.site_type(1) is ForkActivity.BOTH

    def test_terminate_unsplices(self, arena):
        for i, pred in ((0, arena.left_end), (1, 0), (2, 1)):
            arena.activate(i, pred)
        arena.inactivate_left_fork(1)
        arena.inactivate_right_fork(1)
        arena.terminate(1)
        assert arena.site(1).status is SiteStatus.TERMINATED
        assert list(arena.active_chain()) == [0, 2]
        assert arena.right_link[0] == 2 and arena.left_link[2] == 0
        # the terminated site keeps its old links
        assert arena.site(1).left_link == 0 and arena.site(1).right_link == 2

    def test_passive_does_not_touch_chain(self, arena):
        arena.activate(0, arena.left_end)
        arena.passively_replicate(1)
        assert arena.site(1).status is SiteStatus.PASSIVELY_REPLICATED
        assert list(arena.active_chain()) == [0]

    def test_activate_twice_raises(self, arena):
        arena.activate(0, arena.left_end)
        with pytest.raises(SiteStateError):
            arena.activate(0, arena.left_end)

    def test_terminate_potential_raises(self, arena):
        with pytest.raises(SiteStateError):
            arena.terminate(0)

    def test_passive_after_activation_raises(self, arena):
        arena.activate(0, arena.left_end)
        with pytest.raises(SiteStateError):
            arena.passively_replicate(0)

    def test_terminated_is_final(self, arena):
        arena.activate(0, arena.left_end)
        arena.terminate(0)
        with pytest.raises(SiteStateError):
            arena.activate(0, arena.left_end)
        with pytest.raises(SiteStateError):
            arena.passively_replicate(0)

    def test_sentinel_cannot_terminate(self, arena):
        with pytest.raises(SiteStateError):
            arena.terminate(arena.left_end)
        with pytest.raises(SiteStateError):
            arena.terminate(arena.right_end)

    def test_only_ends_activate_as_terminus(self, arena):
        assert arena.is_end(arena.left_end) and arena.is_end(arena.right_end)
        assert not arena.is_end(0)
        with pytest.raises(SiteStateError, match="not a molecule end"):
            arena.activate_terminus(0)

    def test_activate_after_inactive_predecessor_raises(self, arena):
        with pytest.raises(SiteStateError):
            arena.activate(1, 0)


class TestForks:
    def test_extend_and_set(self, arena):
        arena.activate(1, arena.left_end)
        arena.extend_left_fork(1, 7)
        arena.extend_right_fork(1, 3)
        assert arena.site(1).left_fork == 193
        assert arena.site(1).right_fork == 203
        arena.set_right_fork(1, 250)
        assert arena.site(1).right_fork == 250

    def test_negative_extension_raises(self, arena):
        arena.activate(1, arena.left_end)
        with pytest.raises(ValueError):
            arena.extend_left_fork(1, -1)
        with pytest.raises(ValueError):
            arena.extend_right_fork(1, -1)

    def test_site_type(self, arena):
        arena.activate(0, arena.left_end)
        arena.inactivate_left_fork(0)
        assert arena.site_type(0) is ForkActivity.RIGHT
        arena.inactivate_right_fork(0)
        assert arena.site_type(0) is ForkActivity.NEITHER


class TestLinkage:
    def test_consistent_neighbours(self, arena):
        arena.activate(0, arena.left_end)
        arena.activate(1, 0)
        assert arena.linkage_errors() == []

    def test_one_sided_collision_is_reported(self, arena):
        arena.activate(0, arena.left_end)
        arena.activate(1, 0)
        # right fork of 0 dead while the facing left fork of 1 is still live
        arena.inactivate_right_fork(0)
        errors = arena.linkage_errors()
        assert "linkage error at position 100" in errors
        assert "linkage error at position 200" in errors

    def test_closed_collision_is_consistent(self, arena):
        arena.activate(0, arena.left_end)
        arena.activate(1, 0)
        arena.inactivate_right_fork(0)
        arena.inactivate_left_fork(1)
        assert arena.linkage_errors() == []
