"""Command line entry point for densestack training and prediction."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

import numpy as np

from densestack import config as config_lib
from densestack.core.errors import DenseStackError
from densestack.training import Network, run_pipeline

logger = logging.getLogger("densestack.cli")

_DATASET_BY_SUFFIX = {".mat": "matfile", ".npz": "npz"}


def _format_result(result) -> str:
    payload = {
        "evaluation": result.report.as_dict(),
        "metrics": result.metrics_path,
        "report": result.report_path,
    }
    if result.weights_path:
        payload["weights"] = result.weights_path
    if result.plot_path:
        payload["plot"] = result.plot_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(config_lib.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mnist",
        help="Preset configuration to start from",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--in",
        dest="input_path",
        type=Path,
        help="Dataset to train on (.mat or .npz) or a weight file to predict with (.bin)",
    )
    parser.add_argument("--out", type=Path, help="Where to save the trained weights")
    parser.add_argument(
        "--sample",
        type=Path,
        help="Input vector (.npy or whitespace-separated text) for prediction mode",
    )
    parser.add_argument("--seed", type=int, help="Seed for initialisation and shuffling")
    parser.add_argument("--epochs", type=int, help="Override the number of epochs")
    parser.add_argument("--run-dir", type=Path, help="Directory for metrics and reports")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Save a loss curve to the run dir"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def _load_sample(path: Path) -> np.ndarray:
    if path.suffix == ".npy":
        return np.load(path).astype(np.float64).reshape(-1)
    return np.loadtxt(path, dtype=np.float64).reshape(-1)


def _predict(weights_path: Path, sample_path: Path | None) -> None:
    if sample_path is None:
        raise SystemExit("--sample is required when --in points at a weight file")
    network = Network.from_weights(weights_path)
    probabilities = network.predict(_load_sample(sample_path))
    for idx, value in enumerate(probabilities):
        print(f"{idx}: {value:.6f}")


def _resolve_config(args: argparse.Namespace) -> dict:
    config = config_lib.load_preset(args.preset)

    if args.config:
        override = config_lib.load_config(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = config_lib.merge(config, override)

    train_cfg = config.setdefault("train", {})
    if args.input_path is not None:
        name = _DATASET_BY_SUFFIX.get(args.input_path.suffix.lower())
        if name is None:
            raise SystemExit(f"Unsupported dataset file: {args.input_path}")
        options = {"path": str(args.input_path)}
        widths = config.get("model", {}).get("widths")
        if widths:
            options["num_classes"] = int(widths[-1])
        config["data"] = {"name": name, "options": options}
    if args.out is not None:
        train_cfg["weights_out"] = str(args.out)
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.epochs is not None:
        train_cfg["epochs"] = int(args.epochs)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(config_lib.presets().keys()):
            print(name)
        raise SystemExit(0)

    try:
        if args.input_path is not None and args.input_path.suffix.lower() == ".bin":
            _predict(args.input_path, args.sample)
            return

        config = _resolve_config(args)
        if args.dump_config:
            args.dump_config.parent.mkdir(parents=True, exist_ok=True)
            args.dump_config.write_text(json.dumps(config, indent=2))

        result = run_pipeline(config)
    except DenseStackError as exc:
        logger.error("%s", exc)
        raise SystemExit(str(exc)) from exc

    print(_format_result(result))


if __name__ == "__main__":
    main()
