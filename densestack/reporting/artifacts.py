"""Run report helpers."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Mapping

from ..core.types import TrainReport


def write_report(
    path: str | Path,
    *,
    report: TrainReport,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
) -> str:
    """Write the held-out evaluation together with the config that produced it."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset_provenance),
        "evaluation": report.as_dict(),
    }
    # NaN is not valid JSON; an empty held-out split reports null instead.
    evaluation = payload["evaluation"]
    for key, value in evaluation.items():
        if isinstance(value, float) and value != value:
            evaluation[key] = None
    path.write_text(json.dumps(payload, indent=2))
    return str(path)
