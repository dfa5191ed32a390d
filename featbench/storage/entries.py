"""Immutable records held by the frames storage.

Entries and snapshots are never mutated: the storage swaps in a new value
built with ``dataclasses.replace`` so that a reader sees a detector's
signature together with the frames it was computed with, or neither.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np

from featbench.interfaces import IDetector
from featbench.signature import EMPTY_SIGNATURE, Signature


@dataclass(frozen=True, slots=True)
class DatasetSnapshot:
    """Images loaded from the dataset at the time of ``signature``."""

    signature: Signature = EMPTY_SIGNATURE
    inputs: tuple[np.ndarray, ...] = ()
    transforms: tuple[Any, ...] = ()

    @property
    def num_inputs(self) -> int:
        return len(self.inputs)

    @property
    def is_loaded(self) -> bool:
        return self.signature != EMPTY_SIGNATURE


@dataclass(frozen=True, slots=True)
class DetectorEntry:
    name: str
    detector: IDetector
    signature: Signature = EMPTY_SIGNATURE
    frames: tuple[np.ndarray | None, ...] = ()
    descriptors: tuple[np.ndarray | None, ...] = ()

    @classmethod
    def empty(cls, name: str, detector: IDetector, num_inputs: int) -> DetectorEntry:
        """Entry without results: sentinel signature and ``num_inputs`` empty slots."""
        slots: tuple[None, ...] = (None,) * num_inputs
        return cls(name=name, detector=detector, frames=slots, descriptors=slots)

    def cleared(self, num_inputs: int) -> DetectorEntry:
        return DetectorEntry.empty(self.name, self.detector, num_inputs)

    def with_detector(self, detector: IDetector) -> DetectorEntry:
        return replace(self, detector=detector)

    def with_results(
        self,
        signature: Signature,
        frames: tuple[np.ndarray | None, ...],
        descriptors: tuple[np.ndarray | None, ...],
    ) -> DetectorEntry:
        return replace(self, signature=signature, frames=frames, descriptors=descriptors)

    @property
    def is_computed(self) -> bool:
        return self.signature != EMPTY_SIGNATURE

    @property
    def is_empty(self) -> bool:
        return all(f is None for f in self.frames)


@dataclass(frozen=True, slots=True)
class DetectorIssue:
    name: str
    message: str


@dataclass(frozen=True, slots=True)
class HealthReport:
    """Detectors which produced no results in the last pass, with the reason."""

    issues: tuple[DetectorIssue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def failed_names(self) -> list[str]:
        return [issue.name for issue in self.issues]

    def __iter__(self) -> Iterator[DetectorIssue]:
        return iter(self.issues)

    def __len__(self) -> int:
        return len(self.issues)
