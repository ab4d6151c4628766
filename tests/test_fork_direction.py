"""Tests for the predicted vs observed fork direction comparison."""

import numpy as np
import pytest

from Comparison.fork_direction import ForkDirectionComparison


@pytest.fixture
def comparison():
    return ForkDirectionComparison([0.5, 0.6, 0.4, 0.5], [0.5, np.nan, 0.5, 0.7])


def test_missing_bins_are_skipped(comparison):
    assert comparison.n_observed == 3
    # squared differences over observed bins divided by all bins
    assert comparison.mean_squared_difference() == pytest.approx(0.0125)


def test_spreads(comparison):
    assert comparison.predicted_spread() == pytest.approx(0.005)
    assert comparison.observed_spread() == pytest.approx(0.08)


def test_rows(comparison):
    rows = comparison.rows(100)
    assert [r["position"] for r in rows] == [50, 250, 350]
    assert rows[2] == {"position": 350, "predicted": 0.5, "observed": 0.7}


def test_correlation_with_start_bin():
    comparison = ForkDirectionComparison([0.1, 0.2, 0.3], [np.nan, 0.3, 0.5, 0.7], start_bin=1)
    assert comparison.correlation() == pytest.approx(1.0)
    assert comparison.rows(10, bin_offset=5)[0]["position"] == 10


def test_correlation_needs_two_bins():
    comparison = ForkDirectionComparison([0.1, 0.2], [0.3, np.nan])
    with pytest.raises(ValueError):
        comparison.correlation()


@pytest.mark.parametrize(
    "predicted, observed, start_bin",
    [
        ([], [0.5], 0),
        ([0.5, 0.5], [0.5], 0),
        ([0.5], [0.5, 0.5], 2),
        ([np.nan], [0.5], 0),
    ],
)
def test_invalid_profiles(predicted, observed, start_bin):
    with pytest.raises(ValueError):
        ForkDirectionComparison(predicted, observed, start_bin=start_bin)
