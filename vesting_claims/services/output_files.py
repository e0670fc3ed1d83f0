"""JSON output files consumed by the batch-transaction tooling."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from vesting_claims.config import ADJUSTMENT_FILE_NAME, DETAILED_ADJUSTMENT_FILE_NAME
from vesting_claims.models.records import ReconciliationResult
from vesting_claims.utils import get_logger

logger = get_logger(__name__)


def write_json(path: str | Path, payload: Any) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)
        fh.write("\n")
    logger.info("File written", path=str(target))
    return target


def write_adjustment_files(result: ReconciliationResult, directory: str | Path) -> tuple[Path, Path]:
    """Write the simplified and detailed deduction lists. Empty results write `[]`."""
    out_dir = Path(directory)
    simple = write_json(out_dir / ADJUSTMENT_FILE_NAME, [a.to_simple_json() for a in result.adjustments])
    detailed = write_json(
        out_dir / DETAILED_ADJUSTMENT_FILE_NAME,
        [a.to_detailed_json() for a in result.adjustments],
    )
    return simple, detailed


__all__ = ["write_json", "write_adjustment_files"]
