"""Файлы бенчмарка (YAML).

Пример::

    dataset:
      path: data/graf          # относительно файла бенчмарка
      name: graf
      image_glob: "img*.ppm"
    options:
      compute_descriptors: true
      max_detector_workers: 4
    detectors:
      - type: sift
      - type: orb
        name: ORB 1000
        options: {nfeatures: 1000}
      - type: fast
        options: {threshold: 30}

Неизвестные ключи игнорируются, отсутствующие берутся по умолчанию.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from featbench.config import DEFAULT_IMAGE_GLOB, DEFAULT_TRANSFORM_PATTERN
from featbench.core.errors import ValidationError
from featbench.datasets import FolderDataset
from featbench.detectors import GenericDetector, create_detector
from featbench.storage.options import StorageOptions


@dataclass
class DatasetConfig:
    path: Path
    name: str = ""
    image_glob: str = DEFAULT_IMAGE_GLOB
    transform_pattern: str = DEFAULT_TRANSFORM_PATTERN

    @classmethod
    def from_dict(cls, d: Any, base_dir: Path) -> DatasetConfig:
        if not isinstance(d, Mapping) or not d.get("path"):
            raise ValidationError("Benchmark file: 'dataset.path' is required")
        path = Path(str(d["path"])).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        return cls(
            path=path,
            name=str(d.get("name") or ""),
            image_glob=str(d.get("image_glob") or DEFAULT_IMAGE_GLOB),
            transform_pattern=str(d.get("transform_pattern") or DEFAULT_TRANSFORM_PATTERN),
        )


@dataclass
class DetectorConfig:
    type: str
    name: str | None = None
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Any, index: int) -> DetectorConfig:
        if isinstance(d, str):
            return cls(type=d)
        if not isinstance(d, Mapping) or not d.get("type"):
            raise ValidationError(f"Benchmark file: 'detectors[{index}].type' is required")
        options = d.get("options") or {}
        if not isinstance(options, Mapping):
            raise ValidationError(f"Benchmark file: 'detectors[{index}].options' must be a mapping")
        name = d.get("name")
        return cls(type=str(d["type"]), name=str(name) if name else None, options=dict(options))


@dataclass
class BenchmarkConfig:
    dataset: DatasetConfig
    options: StorageOptions = field(default_factory=StorageOptions)
    detectors: list[DetectorConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Any, base_dir: Path) -> BenchmarkConfig:
        if not isinstance(d, Mapping):
            raise ValidationError("Benchmark file must contain a mapping")
        raw_detectors = d.get("detectors") or []
        if not isinstance(raw_detectors, list):
            raise ValidationError("Benchmark file: 'detectors' must be a list")
        options = d.get("options")
        return cls(
            dataset=DatasetConfig.from_dict(d.get("dataset"), base_dir),
            options=StorageOptions.from_dict(options if isinstance(options, Mapping) else None),
            detectors=[DetectorConfig.from_dict(x, i) for i, x in enumerate(raw_detectors)],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataset": {
                "path": str(self.dataset.path),
                "name": self.dataset.name,
                "image_glob": self.dataset.image_glob,
                "transform_pattern": self.dataset.transform_pattern,
            },
            "options": self.options.to_dict(),
            "detectors": [
                {"type": x.type, "name": x.name, "options": dict(x.options)} for x in self.detectors
            ],
        }


def load_benchmark_config(path: Path) -> BenchmarkConfig:
    """Загружает файл бенчмарка. ValidationError, если файла нет или он некорректен."""
    p = Path(path)
    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ValidationError(f"Cannot read benchmark file {p}", cause=e) from e
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in benchmark file {p}", cause=e) from e
    return BenchmarkConfig.from_dict(data, p.resolve().parent)


def build_dataset(cfg: DatasetConfig) -> FolderDataset:
    return FolderDataset(
        cfg.path,
        name=cfg.name or None,
        image_glob=cfg.image_glob,
        transform_pattern=cfg.transform_pattern,
    )


def build_detectors(cfgs: list[DetectorConfig]) -> list[GenericDetector]:
    return [create_detector(c.type, name=c.name, options=c.options) for c in cfgs]
