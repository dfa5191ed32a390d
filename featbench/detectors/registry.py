"""Типы детекторов, доступные в файлах бенчмарка, по имени ``type``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from featbench.core.errors import ConfigurationError
from featbench.detectors.base import GenericDetector
from featbench.detectors.opencv import (
    AkazeDetector,
    BriskDetector,
    FastDetector,
    GfttDetector,
    KazeDetector,
    OrbDetector,
    SiftDetector,
)

DETECTOR_TYPES: dict[str, type[GenericDetector]] = {
    "sift": SiftDetector,
    "orb": OrbDetector,
    "akaze": AkazeDetector,
    "brisk": BriskDetector,
    "kaze": KazeDetector,
    "fast": FastDetector,
    "gftt": GfttDetector,
}


def available_types() -> list[str]:
    return sorted(DETECTOR_TYPES)


def create_detector(
    type_name: str, *, name: str | None = None, options: Mapping[str, Any] | None = None
) -> GenericDetector:
    cls = DETECTOR_TYPES.get(type_name.strip().lower())
    if cls is None:
        raise ConfigurationError(
            f"Unknown detector type {type_name!r}; expected one of: {', '.join(available_types())}"
        )
    return cls(name=name, **dict(options or {}))
