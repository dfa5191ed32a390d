from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from featbench.config import PROJECT_ROOT, STATE_DIR_NAME

log = logging.getLogger(__name__)


def get_app_state_dir(app_folder_name: str = STATE_DIR_NAME) -> Path:
    """Return a writable directory for benchmark state (logs, run manifests).

    Preference order:
    1) FEATBENCH_STATE_DIR if set
    2) <PROJECT_ROOT>/.featbench if writable (good for dev / tests)
    3) OS user data dir (~/.local/share/featbench, %APPDATA%\\featbench, etc)
    """
    env_dir = os.environ.get("FEATBENCH_STATE_DIR")
    if env_dir:
        path = Path(env_dir).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    proj_dir = PROJECT_ROOT / app_folder_name
    try:
        proj_dir.mkdir(parents=True, exist_ok=True)
        test_file = proj_dir / ".write_test"
        test_file.write_text("ok", encoding="utf-8")
        test_file.unlink(missing_ok=True)
        return proj_dir
    except OSError:
        log.debug("Project state dir not writable; falling back to user data dir", exc_info=True)

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
        return (base / "featbench").resolve()
    if sys.platform == "darwin":
        return (Path.home() / "Library" / "Application Support" / "featbench").resolve()
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else (Path.home() / ".local" / "share")
    return (base / "featbench").resolve()
