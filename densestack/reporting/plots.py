"""Headless-safe plotting adapters."""

from __future__ import annotations

import math
from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect per-epoch loss and optionally save a matplotlib curve."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    @property
    def history(self) -> List[Tuple[int, float]]:
        return list(self._history)

    def on_epoch(self, epoch: int, metrics) -> None:
        if not self.enable_plots:
            return
        loss = float(metrics.get("loss", math.nan))
        if math.isfinite(loss):
            self._history.append((epoch, loss))

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs, losses = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, losses)
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Cross-entropy")
        ax.set_title("Training Curve")
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch
