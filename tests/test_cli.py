from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import cv2
import numpy as np
import pytest

from featbench import cli


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def benchmark_file(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("FEATBENCH_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("FEATBENCH_LOG_FILE", "0")
    seq = tmp_path / "seq"
    seq.mkdir()
    rng = np.random.default_rng(3)
    for i in range(1, 4):
        img = np.zeros((160, 160), dtype=np.uint8)
        for _ in range(12):
            x, y = (int(v) for v in rng.integers(20, 120, size=2))
            cv2.rectangle(img, (x, y), (x + 15, y + 15), 255, -1)
        cv2.imwrite(str(seq / f"img{i}.png"), img)
    path = tmp_path / "bench.yaml"
    path.write_text(
        "dataset: {path: seq, image_glob: 'img*.png'}\n"
        "options: {max_detector_workers: 2, max_input_workers: 2}\n"
        "detectors:\n"
        "  - type: orb\n"
        "    options: {nfeatures: 100}\n"
        "  - type: fast\n"
        "    options: {threshold: 20}\n",
        encoding="utf-8",
    )
    return path


def test_second_pass_hits_the_cache(benchmark_file: Path) -> None:
    out = io.StringIO()

    code = cli.run_benchmark(benchmark_file, repeat=2, out=out)

    text = out.getvalue()
    assert code == cli.EXIT_OK
    assert "pass 1: dataset loaded, 2 recomputed, 0 up to date, 0 failed" in text
    assert "pass 2: dataset unchanged, 0 recomputed, 2 up to date, 0 failed" in text
    assert "OpenCV ORB" in text
    assert "OpenCV FAST" in text


def test_manifest_is_written(benchmark_file: Path, tmp_path: Path) -> None:
    out = io.StringIO()

    cli.run_benchmark(benchmark_file, compute_descriptors=False, manifest=True, out=out)

    manifests = list((tmp_path / "state" / "runs").glob("*/run_manifest.json"))
    assert len(manifests) == 1
    data = json.loads(manifests[0].read_text(encoding="utf-8"))
    assert data["config"]["options"]["compute_descriptors"] is False
    assert data["results"]["OpenCV ORB"]["images"] == 3
    assert data["results"]["OpenCV ORB"]["descriptors"] is False


def test_unhealthy_detector_sets_exit_code(benchmark_file: Path) -> None:
    text = benchmark_file.read_text(encoding="utf-8")
    benchmark_file.write_text(
        text + "  - type: orb\n    name: broken\n    options: {bogus: 1}\n", encoding="utf-8"
    )
    out = io.StringIO()

    code = cli.run_benchmark(benchmark_file, out=out)

    assert code == cli.EXIT_DETECTOR_FAILED
    assert "broken" in out.getvalue()
    assert "failed" in out.getvalue()


def test_main_reports_config_errors(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("FEATBENCH_LOG_FILE", "0")
    assert cli.main(["run", str(tmp_path / "missing.yaml")]) == cli.EXIT_ERROR


def test_main_lists_detector_types(capsys, monkeypatch) -> None:
    monkeypatch.setenv("FEATBENCH_LOG_FILE", "0")
    assert cli.main(["detectors"]) == cli.EXIT_OK
    listed = capsys.readouterr().out.split()
    assert "orb" in listed
    assert "sift" in listed
