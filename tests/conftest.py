"""Shared fixtures for replication tests."""

import numpy as np
import pytest

from Replication.config import ParameterSet, SimulationConfig


class ScriptedDraws:
    """Stand-in generator returning preset uniform draws, one batch per call."""

    def __init__(self, *batches):
        self.batches = [np.asarray(b, dtype=float) for b in batches]
        self.calls = 0

    def random(self, size=None):
        if self.calls < len(self.batches):
            batch = self.batches[self.calls]
        else:
            batch = np.ones(size)
        self.calls += 1
        assert batch.size == size, f"expected {size} draws, script has {batch.size}"
        return batch


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def params():
    return ParameterSet(
        elongation_rate=20,
        max_firing_probability=0.4,
        firing_ramp_rate=0.1,
        cycle_duration=0.5,
        initiator_site_length=5,
        n_initiators=12,
        n_molecules=4,
    )


@pytest.fixture
def sim_config():
    return SimulationConfig(
        sequence_length=2000,
        bin_size=100,
        recording_start=0.5,
        recording_interval=0.5,
        random_seed=7,
        ccdf_intervals=20,
        ccdf_distance_interval_kb=0.1,
    )


@pytest.fixture
def scripted():
    return ScriptedDraws
