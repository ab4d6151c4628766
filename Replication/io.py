"""I/O utilities for replication simulations.

Handles loading the YAML run configuration, initiator pmf vectors and
suppression intervals, and saving trajectory/bin CSVs and sparse count
matrices.
"""

from __future__ import annotations

import csv
import os
import pathlib
from typing import Any, List, Mapping, Sequence

import numpy as np
import yaml
from scipy import sparse

from Replication.config import ParameterSet, SimulationConfig
from Replication.initiators import SeqInterval


# -----------------------------------------------------------------------------
# Configuration loading
# -----------------------------------------------------------------------------

def _resolve_path(value: str, base_dir: pathlib.Path) -> pathlib.Path:
    path = pathlib.Path(value)
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def _check_readable(path: pathlib.Path, label: str) -> None:
    if not path.exists():
        raise ValueError(f"{label} not found: {path}")
    if not path.is_file():
        raise ValueError(f"{label} is not a file: {path}")
    if not os.access(path, os.R_OK):
        raise ValueError(f"{label} is not readable: {path}")


def _require(raw: Mapping[str, Any], key: str) -> Any:
    if key not in raw:
        raise ValueError(f"Missing required config field: {key}")
    return raw[key]


def _optional_input(raw: Mapping[str, Any], key: str, base_dir: pathlib.Path) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    path = _resolve_path(str(value), base_dir)
    _check_readable(path, key)
    return str(path)


def load_simulation_config(path: str | pathlib.Path) -> tuple[SimulationConfig, ParameterSet]:
    """Load and validate run configuration and replication parameters from YAML."""
    path = pathlib.Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")

    base_dir = path.resolve().parent
    out_path = _resolve_path(str(_require(raw, "out_path")), base_dir)
    check_consistency = raw.get("check_consistency", False)
    if not isinstance(check_consistency, bool):
        raise ValueError("check_consistency must be a boolean")

    sim_config = SimulationConfig(
        sequence_length=int(_require(raw, "sequence_length")),
        bin_size=int(raw.get("bin_size", 300)),
        bin_offset=int(raw.get("bin_offset", 0)),
        recording_start=float(raw.get("recording_start", 0.25)),
        recording_interval=float(raw.get("recording_interval", 0.25)),
        random_seed=int(_require(raw, "random_seed")),
        ccdf_intervals=int(raw.get("ccdf_intervals", 100)),
        ccdf_distance_interval_kb=float(raw.get("ccdf_distance_interval_kb", 10.0)),
        check_consistency=check_consistency,
        pmf_path=_optional_input(raw, "pmf_path", base_dir),
        suppression_path=_optional_input(raw, "suppression_path", base_dir),
        out_path=str(out_path),
    )
    params = ParameterSet(
        elongation_rate=int(_require(raw, "elongation_rate")),
        max_firing_probability=float(_require(raw, "max_firing_probability")),
        firing_ramp_rate=float(_require(raw, "firing_ramp_rate")),
        cycle_duration=float(_require(raw, "cycle_duration")),
        initiator_site_length=int(raw.get("initiator_site_length", 25)),
        n_initiators=int(_require(raw, "n_initiators")),
        n_molecules=int(_require(raw, "n_molecules")),
    )
    return sim_config, params


# -----------------------------------------------------------------------------
# Input vectors
# -----------------------------------------------------------------------------

def load_pmf(path: str | pathlib.Path) -> np.ndarray:
    """Load an initiator probability mass function over window starts."""
    path = pathlib.Path(path)
    if path.suffix == ".npy":
        data = np.load(path)
    elif path.suffix == ".csv":
        data = np.loadtxt(path, delimiter=",")
    else:
        data = np.loadtxt(path)

    vec = np.asarray(data, dtype=float).squeeze()
    if vec.ndim != 1:
        raise ValueError(f"pmf must be 1D; got shape {vec.shape} from {path}")
    if vec.size == 0:
        raise ValueError(f"pmf is empty: {path}")
    if not np.all(np.isfinite(vec)):
        raise ValueError(f"pmf contains NaN/inf values: {path}")
    if np.any(vec < 0):
        raise ValueError(f"pmf must be non-negative: {path}")
    if vec.sum() <= 0:
        raise ValueError(f"pmf has no positive mass: {path}")
    return vec


def load_suppression_intervals(path: str | pathlib.Path) -> List[SeqInterval]:
    """Read closed ``start``/``end`` intervals from CSV."""
    intervals: List[SeqInterval] = []
    with open(path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = {"start", "end"} - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"Missing columns in suppression CSV: {missing}")
        for row in reader:
            intervals.append(SeqInterval(int(row["start"]), int(row["end"])))
    return intervals


# -----------------------------------------------------------------------------
# Output
# -----------------------------------------------------------------------------

def _write_rows(rows: Sequence[Mapping[str, object]], fieldnames: Sequence[str], path: str | pathlib.Path) -> None:
    path_obj = pathlib.Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)
    with open(path_obj, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(fieldnames))
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def save_trajectory_csv(trajectories: Mapping[str, Sequence[float]], path: str | pathlib.Path) -> None:
    """Save averaged state-variable trajectories, one row per checkpoint."""
    if not trajectories:
        raise ValueError("No trajectories to write")
    fieldnames = ["checkpoint"] + list(trajectories.keys())
    lengths = {len(v) for v in trajectories.values()}
    if len(lengths) != 1:
        raise ValueError("All trajectories must have the same number of checkpoints")
    n = lengths.pop()
    rows = []
    for idx in range(n):
        row: dict[str, object] = {"checkpoint": idx}
        for name, values in trajectories.items():
            row[name] = float(values[idx])
        rows.append(row)
    _write_rows(rows, fieldnames, path)


_BIN_FIELDS = ["bin", "start", "end", "center"]


def save_bin_stats_csv(
    columns: Mapping[str, Sequence[float]],
    bin_size: int,
    bin_offset: int,
    path: str | pathlib.Path,
) -> None:
    """Save per-bin statistics; each column must hold one value per bin."""
    if not columns:
        raise ValueError("No bin statistics to write")
    lengths = {len(v) for v in columns.values()}
    if len(lengths) != 1:
        raise ValueError("All bin columns must have the same length")
    n_bins = lengths.pop()
    rows = []
    for idx in range(n_bins):
        start = bin_offset + idx * bin_size
        row: dict[str, object] = {
            "bin": idx,
            "start": start,
            "end": start + bin_size - 1,
            "center": start + bin_size // 2,
        }
        for name, values in columns.items():
            row[name] = float(values[idx])
        rows.append(row)
    _write_rows(rows, _BIN_FIELDS + list(columns.keys()), path)


def load_bin_stats_csv(path: str | pathlib.Path) -> list[dict[str, object]]:
    with open(path, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [dict(row) for row in reader]
    if not rows:
        raise ValueError(f"No bin rows found in {path}")
    return rows


def save_sparse_bin_counts(
    counts: sparse.spmatrix | np.ndarray,
    path: str | pathlib.Path,
) -> tuple[pathlib.Path, pathlib.Path]:
    """Save a molecules x bins CSR matrix plus a bin-index sidecar."""
    sp = sparse.csr_matrix(counts)
    path_obj = pathlib.Path(path)
    if path_obj.suffix != ".npz":
        path_obj = path_obj.with_suffix(".npz")
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    sparse.save_npz(path_obj, sp)

    bins_path = path_obj.with_suffix(".bins.txt")
    with open(bins_path, "w", encoding="utf-8") as f:
        for b in range(sp.shape[1]):
            f.write(f"{b}\n")
    return path_obj, bins_path
