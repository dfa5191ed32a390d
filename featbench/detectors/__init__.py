from .base import GenericDetector
from .opencv import (
    AkazeDetector,
    BriskDetector,
    FastDetector,
    GfttDetector,
    KazeDetector,
    OpenCVFeatureDetector,
    OrbDetector,
    SiftDetector,
)
from .registry import DETECTOR_TYPES, available_types, create_detector

__all__ = [
    "GenericDetector",
    "OpenCVFeatureDetector",
    "SiftDetector",
    "OrbDetector",
    "AkazeDetector",
    "BriskDetector",
    "KazeDetector",
    "FastDetector",
    "GfttDetector",
    "DETECTOR_TYPES",
    "available_types",
    "create_detector",
]
