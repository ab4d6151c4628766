from __future__ import annotations

import argparse
import logging
import pathlib
from typing import Sequence

from Replication.io import (
    load_pmf,
    load_simulation_config,
    load_suppression_intervals,
    save_bin_stats_csv,
    save_sparse_bin_counts,
    save_trajectory_csv,
)
from Replication.population import MoleculePopulation


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run stochastic DNA replication simulation.")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to simulation YAML config (default: config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser.parse_args(argv)


def _sibling_path(out_path: pathlib.Path, tag: str, suffix: str) -> pathlib.Path:
    return out_path.with_name(out_path.stem + "_" + tag + suffix)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sim_config, params = load_simulation_config(args.config)

    pmf = load_pmf(sim_config.pmf_path) if sim_config.pmf_path is not None else None
    suppression = (
        load_suppression_intervals(sim_config.suppression_path)
        if sim_config.suppression_path is not None
        else []
    )

    population = MoleculePopulation(pmf, params, sim_config, suppression_intervals=suppression)

    out_path = pathlib.Path(sim_config.out_path)
    trajectories = population.average_trajectories()
    save_trajectory_csv(trajectories, out_path)
    print(f"Wrote {len(trajectories['time'])} averaged checkpoints to {out_path}")

    bins_path = _sibling_path(out_path, "bins", out_path.suffix or ".csv")
    save_bin_stats_csv(
        {
            "right_fork_frequency": population.average_right_fork_frequency(),
            "initiation_frequency": population.average_initiation_frequency(),
            "termination_frequency": population.average_termination_frequency(),
            "median_replication_time": population.median_replication_times(),
            "mean_replication_time": population.mean_replication_times(),
        },
        sim_config.bin_size,
        sim_config.bin_offset,
        bins_path,
    )
    print(f"Wrote per-bin statistics to {bins_path}")

    initiations, terminations = population.sparse_bin_counts()
    for tag, matrix in (("initiations", initiations), ("terminations", terminations)):
        matrix_path, sidecar = save_sparse_bin_counts(matrix, _sibling_path(out_path, tag, ".npz"))
        print(f"Wrote sparse {tag} matrix to {matrix_path} (bins in {sidecar})")


if __name__ == "__main__":
    main()
