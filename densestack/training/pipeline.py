"""Pipeline assembly: dataset -> network -> training -> artifacts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ..core.types import TrainReport
from ..data import registry
from ..reporting.artifacts import write_report
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .network import Network

logger = logging.getLogger(__name__)

_TRAIN_DEFAULTS: Mapping[str, object] = {
    "train_ratio": 0.8,
    "epochs": 50,
    "batch_size": 50,
    "learning_rate": 0.09,
    "learning_rate_decay": 1.0,
    "seed": None,
    "run_dir": "runs/default",
    "enable_plots": False,
    "weights_out": None,
}


@dataclass(frozen=True)
class RunResult:
    """Outcome of :func:`run_pipeline`."""

    report: TrainReport
    metrics_path: str
    report_path: str
    weights_path: str = ""
    plot_path: str = ""


def _resolve_widths(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> list[int]:
    widths = model_cfg.get("widths")
    if widths is None:
        hidden = list(model_cfg.get("hidden", []))  # type: ignore[arg-type]
        return [d_in, *[int(h) for h in hidden], d_out]
    return [int(w) for w in widths]  # type: ignore[union-attr]


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train a network described by ``config`` and write its artifacts."""

    data_cfg = dict(config.get("data", {}))  # type: ignore[arg-type]
    model_cfg = dict(config.get("model", {}))  # type: ignore[arg-type]
    train_cfg = {**_TRAIN_DEFAULTS, **dict(config.get("train", {}))}  # type: ignore[arg-type]

    if "name" not in data_cfg:
        raise KeyError("config['data'] must name a dataset")
    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    widths = _resolve_widths(model_cfg, dataset.d_in, dataset.d_out)
    logger.info("Loaded %d samples from %s", len(dataset), dataset.name)

    seed = train_cfg["seed"]
    seed = None if seed is None else int(seed)  # type: ignore[arg-type]
    network = Network(widths, seed=seed)

    run_dir = Path(str(train_cfg["run_dir"]))
    run_dir.mkdir(parents=True, exist_ok=True)
    metrics_path = run_dir / "metrics.jsonl"
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg["enable_plots"]))
    callbacks = [JsonlSink(metrics_path, seed=seed), CsvSink(run_dir / "metrics.csv"), plots]

    inputs, targets = dataset.as_lists()
    report = network.train(
        inputs,
        targets,
        train_ratio=float(train_cfg["train_ratio"]),  # type: ignore[arg-type]
        epochs=int(train_cfg["epochs"]),  # type: ignore[arg-type]
        batch_size=int(train_cfg["batch_size"]),  # type: ignore[arg-type]
        learning_rate=float(train_cfg["learning_rate"]),  # type: ignore[arg-type]
        learning_rate_decay=float(train_cfg["learning_rate_decay"]),  # type: ignore[arg-type]
        callbacks=callbacks,
    )
    plot_path = plots.close()

    weights_path = ""
    if train_cfg.get("weights_out"):
        weights_path = str(network.save_weights(str(train_cfg["weights_out"])))

    resolved = json.loads(json.dumps(config, default=str))
    report_path = write_report(
        run_dir / "report.json",
        report=report,
        config=resolved,
        dataset_provenance=dataset.provenance,
    )
    return RunResult(
        report=report,
        metrics_path=str(metrics_path),
        report_path=report_path,
        weights_path=weights_path,
        plot_path=str(plot_path) if plot_path else "",
    )


__all__ = ["RunResult", "run_pipeline"]
