"""
Fractional-step solver - Hydra entry point.

Usage:
    uv run python main.py case=lid_driven_cavity
    uv run python main.py case=cylinder case.params.nt=2000
    uv run python main.py -m case=lid_driven_cavity case.params.nu=0.01,0.0025
    uv run python main.py case=cylinder mlflow.enabled=false
"""

import logging
import os
import sys
from pathlib import Path

import hydra
from hydra.core.hydra_config import HydraConfig
import mlflow
from dotenv import load_dotenv
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

from solvers import Parameters, create_solver  # noqa: E402
from utilities import SimulationWriter  # noqa: E402

log = logging.getLogger(__name__)


def setup_mlflow(cfg: DictConfig) -> str:
    """Point MLflow at the configured store and select the experiment.

    A non-empty ``project_prefix`` is prepended to relative experiment names.
    """
    uri = str(cfg.mlflow.get("tracking_uri", "./mlruns"))
    os.environ["MLFLOW_TRACKING_URI"] = uri
    mlflow.set_tracking_uri(uri)

    experiment = cfg.experiment_name
    prefix = cfg.mlflow.get("project_prefix", "")
    if prefix and not experiment.startswith("/"):
        experiment = f"{prefix}/{experiment}"
    mlflow.set_experiment(experiment)
    return experiment


def build_solver(cfg: DictConfig, output_dir: Path):
    """Domain, parameters and solver from the case config."""
    domain = instantiate(cfg.case.domain)
    params = Parameters.from_dict(OmegaConf.to_container(cfg.case.params, resolve=True))
    writer = SimulationWriter(output_dir)
    return create_solver(params, domain, writer=writer)


def run_case(cfg: DictConfig, output_dir: Path):
    """Run the configured case to completion, logging to MLflow if enabled."""
    solver = build_solver(cfg, output_dir)
    run_name = f"{cfg.case.name}_{solver.domain.nx}x{solver.domain.ny}"
    log.info(f"Solving: {run_name} with {solver.name()}")

    if not cfg.mlflow.get("enabled", True):
        try:
            solver.run()
        finally:
            solver.shut_down()
        return solver

    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    tags = {"solver": solver.name(), "case": cfg.case.name}
    if parent_run_id:
        tags.update({"mlflow.parentRunId": parent_run_id, "sweep": "child"})

    with mlflow.start_run(run_name=run_name, tags=tags, nested=bool(parent_run_id)) as run:
        mlflow.log_params(solver.params.to_mlflow())
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        try:
            solver.run()
        finally:
            solver.shut_down()

        mlflow.log_metrics(solver.metrics.to_mlflow())
        batch = solver.time_series.to_mlflow_batch()
        # log_batch accepts at most 1000 metrics per call
        for start in range(0, len(batch), 1000):
            mlflow.tracking.MlflowClient().log_batch(run.info.run_id, metrics=batch[start : start + 1000])
        mlflow.log_artifacts(str(output_dir), artifact_path="output")

    return solver


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    output_dir = Path(HydraConfig.get().runtime.output_dir)
    if cfg.mlflow.get("enabled", True):
        log.info(f"MLflow experiment: {setup_mlflow(cfg)}")

    solver = run_case(cfg, output_dir)
    m = solver.metrics
    log.info(
        f"Done: {m.time_steps} steps, time={m.wall_time_seconds:.2f}s, "
        f"iterations={m.mean_iterations_velocity:.1f}/{m.mean_iterations_poisson:.1f}, "
        f"force=({m.force_x:.4f}, {m.force_y:.4f})"
    )


if __name__ == "__main__":
    main()
