from __future__ import annotations

import json
import subprocess
import sys
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from featbench.core.paths import get_app_state_dir


@dataclass(frozen=True, slots=True)
class RunManifest:
    run_id: str
    timestamp: str
    config: dict[str, Any]
    env: dict[str, Any]
    git_commit: str | None
    results: dict[str, Any]


def _safe_git_commit() -> str | None:
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], text=True, stderr=subprocess.DEVNULL
        ).strip()
        return out or None
    except (OSError, subprocess.CalledProcessError):
        return None


def _python_env() -> dict[str, Any]:
    import numpy as np

    env: dict[str, Any] = {"python": sys.version.split()[0], "numpy": np.__version__}
    try:
        import cv2  # type: ignore

        env["opencv"] = getattr(cv2, "__version__", None)
    except ImportError:
        env["opencv"] = None
    return env


def _runs_root() -> Path:
    root = get_app_state_dir() / "runs"
    root.mkdir(parents=True, exist_ok=True)
    return root


def register_run(
    config: dict[str, Any], results: dict[str, Any], run_id: str | None = None
) -> Path:
    """Write ``runs/<run_id>/run_manifest.json`` and index it. Returns the run folder."""
    run_id = run_id or uuid.uuid4().hex
    root = _runs_root()
    run_dir = root / run_id
    run_dir.mkdir(parents=True, exist_ok=True)

    manifest = RunManifest(
        run_id=run_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
        config=config,
        env=_python_env(),
        git_commit=_safe_git_commit(),
        results=results,
    )
    (run_dir / "run_manifest.json").write_text(
        json.dumps(asdict(manifest), ensure_ascii=False, indent=2), encoding="utf-8"
    )

    index_path = root / "index.json"
    index: dict[str, str] = {}
    if index_path.exists():
        try:
            raw = json.loads(index_path.read_text(encoding="utf-8"))
            if isinstance(raw, dict):
                index = {str(k): str(v) for k, v in raw.items()}
        except (json.JSONDecodeError, OSError):
            index = {}
    index[run_id] = str(run_dir)
    index_path.write_text(json.dumps(index, ensure_ascii=False, indent=2), encoding="utf-8")
    return run_dir


def get_run_folder(run_id: str | None) -> Path | None:
    if not run_id:
        return None
    index_path = _runs_root() / "index.json"
    if not index_path.exists():
        return None
    try:
        raw = json.loads(index_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return None
    if not isinstance(raw, dict):
        return None
    p = raw.get(run_id)
    if not isinstance(p, str):
        return None
    folder = Path(p)
    return folder if folder.exists() else None
