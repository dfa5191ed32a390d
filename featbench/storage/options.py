"""Options of the frames storage, with light coercion from loose dicts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from featbench.config import (
    DEFAULT_COMPUTE_DESCRIPTORS,
    DEFAULT_MAX_DETECTOR_WORKERS,
    DEFAULT_MAX_INPUT_WORKERS,
)


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"true", "1", "yes", "y", "on"}:
            return True
        if v in {"false", "0", "no", "n", "off"}:
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def _as_workers(value: Any, default: int) -> int:
    try:
        if isinstance(value, bool):
            return default
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 1 else default


@dataclass(frozen=True)
class StorageOptions:
    """Parameters of a FramesStorage.

    compute_descriptors: compute descriptors of the frames, natively when the
    detector supports it, otherwise with the descriptor fallback.
    """

    compute_descriptors: bool = DEFAULT_COMPUTE_DESCRIPTORS
    max_detector_workers: int = DEFAULT_MAX_DETECTOR_WORKERS
    max_input_workers: int = DEFAULT_MAX_INPUT_WORKERS

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> StorageOptions:
        if not d:
            return cls()
        return cls(
            compute_descriptors=_as_bool(d.get("compute_descriptors"), DEFAULT_COMPUTE_DESCRIPTORS),
            max_detector_workers=_as_workers(
                d.get("max_detector_workers"), DEFAULT_MAX_DETECTOR_WORKERS
            ),
            max_input_workers=_as_workers(d.get("max_input_workers"), DEFAULT_MAX_INPUT_WORKERS),
        )
