"""Training loop, evaluation and pipeline assembly."""

from .network import Network
from .pipeline import RunResult, run_pipeline

__all__ = ["Network", "RunResult", "run_pipeline"]
