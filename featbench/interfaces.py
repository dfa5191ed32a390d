"""Abstract interfaces (SOLID: Dependency Inversion).

Defines the contracts the frames storage consumes: a dataset of images
(IDataset), a feature detector (IDetector) and the routine that derives
descriptors for detectors which cannot produce them themselves
(DescriptorFallback).

Frames are ``numpy`` arrays of shape ``(N, 4)`` with rows ``[x, y, size, angle]``;
descriptors are arrays of shape ``(N, D)`` aligned with the frames.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol

import numpy as np

from featbench.signature import Signature


class IDataset(ABC):
    """Interface of an image dataset: inputs, per-input transforms and a signature."""

    @abstractmethod
    def name(self) -> str:
        """Human readable name (used in logs)."""
        ...

    @abstractmethod
    def num_inputs(self) -> int:
        """Number of images in the dataset."""
        ...

    @abstractmethod
    def input_data(self, index: int) -> np.ndarray:
        """Image data of input ``index`` (zero-based)."""
        ...

    @abstractmethod
    def input_transform(self, index: int) -> Any:
        """Auxiliary metadata of input ``index``, e.g. homography from the reference image."""
        ...

    @abstractmethod
    def signature(self) -> Signature:
        """Signature of all of the above."""
        ...


class IDetector(ABC):
    """Interface of a feature detector wrapped for benchmarking."""

    @abstractmethod
    def name(self) -> str:
        """Unique name of this detector within a frames storage."""
        ...

    @abstractmethod
    def signature(self) -> Signature:
        """Signature of the detector configuration and binaries."""
        ...

    @abstractmethod
    def is_healthy(self) -> bool:
        """Whether the detector is able to run."""
        ...

    @abstractmethod
    def last_error(self) -> str:
        """Why the detector is not healthy ("" when it is)."""
        ...

    @abstractmethod
    def supports_joint_descriptors(self) -> bool:
        """True if ``extract`` can compute descriptors together with frames."""
        ...

    @abstractmethod
    def extract(
        self, image: np.ndarray, with_descriptors: bool = False
    ) -> tuple[np.ndarray, np.ndarray | None]:
        """Detect frames in image. Returns (frames, descriptors or None)."""
        ...


class DescriptorFallback(Protocol):
    """Computes descriptors of already detected frames. Returns (frames, descriptors).

    The returned frames may differ from the input ones (frames the routine
    cannot describe are dropped).
    """

    def __call__(self, image: np.ndarray, frames: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        ...
