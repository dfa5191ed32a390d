from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from featbench.core.observability.logging_config import LOG_FILE_NAME, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_carry_detector_extras(capsys) -> None:
    setup_logging(level="DEBUG", json_logs=True, log_to_file=False)

    logging.getLogger("featbench.test").info("recomputed", extra={"detector": "SIFT"})

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["msg"] == "recomputed"
    assert payload["detector"] == "SIFT"
    assert payload["level"] == "INFO"


def test_level_and_file_come_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("FEATBENCH_LOG_LEVEL", "warning")
    monkeypatch.setenv("FEATBENCH_LOG_FILE", "1")

    setup_logging(json_logs=False, state_dir=tmp_path)
    logging.getLogger("featbench.test").warning("written")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.WARNING
    assert "written" in (tmp_path / "logs" / LOG_FILE_NAME).read_text(encoding="utf-8")


def test_unknown_level_falls_back_to_info() -> None:
    setup_logging(level="chatty", json_logs=False, log_to_file=False)
    assert logging.getLogger().level == logging.INFO
