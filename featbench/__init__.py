"""Feature detector benchmark with signature-based caching of detector frames."""

from featbench.core.errors import ConfigurationError, DetectorError, ExtractionError
from featbench.interfaces import DescriptorFallback, IDataset, IDetector
from featbench.signature import EMPTY_SIGNATURE, Signature
from featbench.storage import FramesStorage, HealthReport, StorageOptions

__all__ = [
    "FramesStorage",
    "StorageOptions",
    "HealthReport",
    "IDataset",
    "IDetector",
    "DescriptorFallback",
    "Signature",
    "EMPTY_SIGNATURE",
    "ConfigurationError",
    "DetectorError",
    "ExtractionError",
]
