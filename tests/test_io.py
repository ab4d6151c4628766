"""Tests for configuration loading, input vectors and output files."""

import csv

import numpy as np
import pytest
import yaml
from scipy import sparse

import run_simulation
from Replication.io import (
    load_bin_stats_csv,
    load_pmf,
    load_simulation_config,
    load_suppression_intervals,
    save_bin_stats_csv,
    save_sparse_bin_counts,
    save_trajectory_csv,
)

BASE_CONFIG = {
    "sequence_length": 1500,
    "bin_size": 100,
    "random_seed": 3,
    "out_path": "out/trajectory.csv",
    "elongation_rate": 20,
    "max_firing_probability": 0.4,
    "firing_ramp_rate": 0.1,
    "cycle_duration": 0.5,
    "initiator_site_length": 5,
    "n_initiators": 10,
    "n_molecules": 3,
}


def write_config(tmp_path, **overrides):
    raw = {**BASE_CONFIG, **overrides}
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_values_and_defaults(self, tmp_path):
        sim_config, params = load_simulation_config(write_config(tmp_path))
        assert sim_config.sequence_length == 1500
        assert sim_config.n_bins == 15
        assert sim_config.recording_interval == 0.25
        assert sim_config.check_consistency is False
        assert sim_config.out_path == str((tmp_path / "out" / "trajectory.csv").resolve())
        assert params.fork_movement_per_cycle == 10
        assert params.n_molecules == 3

    def test_missing_field(self, tmp_path):
        raw = dict(BASE_CONFIG)
        del raw["elongation_rate"]
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(raw), encoding="utf-8")
        with pytest.raises(ValueError, match="elongation_rate"):
            load_simulation_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_simulation_config(path)

    def test_relative_input_paths(self, tmp_path):
        np.save(tmp_path / "pmf.npy", np.ones(1496))
        sim_config, _ = load_simulation_config(write_config(tmp_path, pmf_path="pmf.npy"))
        assert sim_config.pmf_path == str((tmp_path / "pmf.npy").resolve())

    def test_missing_input_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_simulation_config(write_config(tmp_path, suppression_path="nope.csv"))

    def test_check_consistency_must_be_boolean(self, tmp_path):
        with pytest.raises(ValueError, match="boolean"):
            load_simulation_config(write_config(tmp_path, check_consistency="yes"))

    def test_invalid_parameters(self, tmp_path):
        with pytest.raises(ValueError):
            load_simulation_config(write_config(tmp_path, cycle_duration=0.01))


class TestInputs:
    def test_load_pmf_formats(self, tmp_path):
        np.save(tmp_path / "a.npy", np.array([0.0, 1.0, 3.0]))
        np.savetxt(tmp_path / "b.csv", np.array([[1.0, 2.0]]), delimiter=",")
        np.savetxt(tmp_path / "c.txt", np.array([4.0, 5.0]))
        assert load_pmf(tmp_path / "a.npy").tolist() == [0.0, 1.0, 3.0]
        assert load_pmf(tmp_path / "b.csv").tolist() == [1.0, 2.0]
        assert load_pmf(tmp_path / "c.txt").tolist() == [4.0, 5.0]

    def test_load_pmf_rejects_negative(self, tmp_path):
        np.save(tmp_path / "a.npy", np.array([1.0, -1.0]))
        with pytest.raises(ValueError, match="non-negative"):
            load_pmf(tmp_path / "a.npy")

    def test_load_suppression_intervals(self, tmp_path):
        path = tmp_path / "suppressed.csv"
        path.write_text("start,end\n10,20\n300,450\n", encoding="utf-8")
        intervals = load_suppression_intervals(path)
        assert [(i.start, i.end) for i in intervals] == [(10, 20), (300, 450)]

    def test_suppression_columns_required(self, tmp_path):
        path = tmp_path / "suppressed.csv"
        path.write_text("from,to\n10,20\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Missing columns"):
            load_suppression_intervals(path)


class TestOutputs:
    def test_trajectory_csv(self, tmp_path):
        path = tmp_path / "nested" / "traj.csv"
        save_trajectory_csv({"time": [0.0, 0.5], "forks": [0, 2]}, path)
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert rows[1] == {"checkpoint": "1", "time": "0.5", "forks": "2.0"}

    def test_trajectory_lengths_must_match(self, tmp_path):
        with pytest.raises(ValueError):
            save_trajectory_csv({"time": [0.0], "forks": [0, 2]}, tmp_path / "t.csv")

    def test_bin_stats_csv(self, tmp_path):
        path = tmp_path / "bins.csv"
        save_bin_stats_csv({"rfd": [0.25, 0.75]}, 100, 30, path)
        rows = load_bin_stats_csv(path)
        assert rows[1]["start"] == "130"
        assert rows[1]["end"] == "229"
        assert rows[1]["center"] == "180"
        assert rows[1]["rfd"] == "0.75"

    def test_sparse_counts(self, tmp_path):
        counts = np.array([[0, 1, 0], [2, 0, 0]])
        matrix_path, bins_path = save_sparse_bin_counts(counts, tmp_path / "counts")
        assert matrix_path.suffix == ".npz"
        assert np.array_equal(sparse.load_npz(matrix_path).toarray(), counts)
        assert bins_path.read_text(encoding="utf-8").split() == ["0", "1", "2"]


def test_cli_writes_outputs(tmp_path, capsys):
    (tmp_path / "suppressed.csv").write_text("start,end\n0,99\n", encoding="utf-8")
    config = write_config(tmp_path, suppression_path="suppressed.csv")
    run_simulation.main(["--config", str(config), "--log-level", "WARNING"])

    out_dir = tmp_path / "out"
    rows = load_bin_stats_csv(out_dir / "trajectory_bins.csv")
    assert len(rows) == 15
    assert float(rows[0]["initiation_frequency"]) == 0.0
    with open(out_dir / "trajectory.csv", newline="", encoding="utf-8") as f:
        trajectory = list(csv.DictReader(f))
    assert float(trajectory[-1]["fraction_replicated"]) == pytest.approx(1.0)
    initiations = sparse.load_npz(out_dir / "trajectory_initiations.npz")
    assert initiations.shape == (3, 15)
    assert (out_dir / "trajectory_terminations.bins.txt").exists()
    assert "Wrote" in capsys.readouterr().out
