"""Root logging for the CLI: plain or JSON lines on stdout, optional rotating file.

Environment: FEATBENCH_LOG_LEVEL, FEATBENCH_LOG_JSON, FEATBENCH_LOG_FILE.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from featbench.core.paths import get_app_state_dir

LOG_FILE_NAME = "featbench.log"
_PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
# Extras passed by the frames storage that are worth keeping in JSON lines.
_JSON_EXTRAS = ("event", "detector", "dataset", "num_inputs", "duration_ms")


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: str | int | None) -> int:
    value = level if level is not None else os.getenv("FEATBENCH_LOG_LEVEL", "INFO")
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        payload.update({k: getattr(record, k) for k in _JSON_EXTRAS if hasattr(record, k)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _file_handler(state_dir: Path | None) -> logging.Handler | None:
    try:
        logs_dir = (state_dir or get_app_state_dir()) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            logs_dir / LOG_FILE_NAME, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    except OSError:
        # Read-only state dir: keep logging to stdout only.
        return None
    handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    *,
    level: str | int | None = None,
    json_logs: bool | None = None,
    log_to_file: bool | None = None,
    state_dir: Path | None = None,
) -> None:
    """Replace the root handlers. Arguments left as None fall back to the environment."""
    if json_logs is None:
        json_logs = _env_flag("FEATBENCH_LOG_JSON")
    if log_to_file is None:
        log_to_file = _env_flag("FEATBENCH_LOG_FILE")

    stream = logging.StreamHandler(stream=sys.stdout)
    stream.setFormatter(
        _JsonFormatter() if json_logs else logging.Formatter(_PLAIN_FORMAT, datefmt="%H:%M:%S")
    )
    handlers: list[logging.Handler] = [stream]
    if log_to_file:
        file_handler = _file_handler(state_dir)
        if file_handler is not None:
            handlers.append(file_handler)

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(_resolve_level(level))
