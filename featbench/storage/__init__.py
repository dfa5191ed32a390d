"""Signature-based cache of detector frames over a dataset."""

from .entries import DatasetSnapshot, DetectorEntry, DetectorIssue, HealthReport
from .frames_storage import FramesStorage
from .options import StorageOptions

__all__ = [
    "FramesStorage",
    "StorageOptions",
    "DatasetSnapshot",
    "DetectorEntry",
    "DetectorIssue",
    "HealthReport",
]
