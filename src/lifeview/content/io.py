from __future__ import annotations

import json
import math
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from lifeview.view.grid_view import ViewState

SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")


def _build_view_payload(view: ViewState, *, time_step: int) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "view": {
            "center": [view.center[0], view.center[1]],
            "scale": view.scale,
        },
        "time_step": time_step,
    }


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def _validate_view_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ValueError("view state payload must be an object")
    if payload.get("schema_version") != SCHEMA_VERSION:
        raise ValueError(f"unsupported view state schema_version: {payload.get('schema_version')!r}")
    view = payload.get("view")
    if not isinstance(view, dict):
        raise ValueError("view state payload.view must be an object")
    center = view.get("center")
    if not isinstance(center, list) or len(center) != 2 or not all(isinstance(value, (int, float)) for value in center):
        raise ValueError("view.center must be a list of two numbers")
    scale = view.get("scale")
    if not isinstance(scale, (int, float)) or not math.isfinite(scale) or scale <= 0:
        raise ValueError("view.scale must be a finite number > 0")
    time_step = payload.get("time_step")
    if isinstance(time_step, bool) or not isinstance(time_step, int) or time_step < 0:
        raise ValueError("time_step must be a non-negative integer")


def save_view_state_json(path: str | Path, view: ViewState, *, time_step: int) -> None:
    payload = _build_view_payload(view, time_step=time_step)
    _validate_view_payload(payload)
    _write_atomic_json(path, payload)


def load_view_state_json(path: str | Path) -> tuple[ViewState, int]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    _validate_view_payload(payload)
    view_payload = payload["view"]
    view = ViewState(
        center=(float(view_payload["center"][0]), float(view_payload["center"][1])),
        scale=float(view_payload["scale"]),
    )
    return view, int(payload["time_step"])
