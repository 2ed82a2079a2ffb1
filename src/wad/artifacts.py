from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.optimize import WadOptimizeResult


def serialize_wad_result(result: WadOptimizeResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_wad_report_json(*, result: WadOptimizeResult, out_report: Path) -> None:
    out_report.parent.mkdir(parents=True, exist_ok=True)
    out_report.write_text(serialize_wad_result(result), encoding="utf-8")
