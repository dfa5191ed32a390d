from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DatasetLoaded:
    dataset: str
    num_inputs: int
    signature: str


@dataclass(frozen=True, slots=True)
class DetectorRecomputed:
    detector: str
    num_inputs: int
    duration_sec: float


@dataclass(frozen=True, slots=True)
class DetectorUpToDate:
    detector: str


@dataclass(frozen=True, slots=True)
class DetectorFailed:
    detector: str
    message: str
