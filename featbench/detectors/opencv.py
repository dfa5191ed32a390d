"""
OpenCV feature detectors.

Each wrapper creates its OpenCV feature object from a factory
(``cv2.SIFT_create``, ``cv2.ORB_create``...) with the wrapper options as
keyword arguments. A new object is created per image so that images can be
processed from several threads.

The signature covers the OpenCV version, the cv2 module file and the options.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

try:
    import cv2  # type: ignore
except ImportError:
    cv2 = None  # type: ignore

from featbench.detectors.base import GenericDetector
from featbench.frames import empty_frames, keypoints_to_frames, to_gray_uint8
from featbench.signature import Signature, file_signature, join_signatures

log = logging.getLogger(__name__)


class OpenCVFeatureDetector(GenericDetector):
    """Detector backed by an OpenCV ``Feature2D`` factory."""

    factory: str = ""

    def __init__(self, *, name: str | None = None, **options: Any) -> None:
        super().__init__(name=name, **options)
        self._check_available()

    def _check_available(self) -> None:
        if cv2 is None:
            self.mark_unhealthy(
                "OpenCV (cv2) is not installed. Install with: pip install opencv-python"
            )
            return
        if not callable(getattr(cv2, self.factory, None)):
            self.mark_unhealthy(f"cv2.{self.factory} is not available in OpenCV {cv2.__version__}")
            return
        try:
            self._create()
        except (cv2.error, TypeError) as e:
            self.mark_unhealthy(f"cv2.{self.factory}({self._options}) failed: {e}")

    def _create(self) -> Any:
        return getattr(cv2, self.factory)(**self._options)

    def binary_signature(self) -> Signature:
        if cv2 is None:
            return "opencv:missing"
        return join_signatures(f"opencv:{cv2.__version__}", file_signature(cv2.__file__))

    def extract(
        self, image: np.ndarray, with_descriptors: bool = False
    ) -> tuple[np.ndarray, np.ndarray | None]:
        if not self.is_healthy():
            raise RuntimeError(self.last_error())
        gray = to_gray_uint8(image)
        feature = self._create()
        if with_descriptors and self.joint_descriptors:
            keypoints, descriptors = feature.detectAndCompute(gray, None)
            if descriptors is None:
                size = int(feature.descriptorSize())
                dtype = np.float32 if feature.descriptorType() == cv2.CV_32F else np.uint8
                descriptors = np.zeros((0, size), dtype=dtype)
            return keypoints_to_frames(keypoints), descriptors
        keypoints = feature.detect(gray, None)
        if not keypoints:
            return empty_frames(), None
        return keypoints_to_frames(keypoints), None


class SiftDetector(OpenCVFeatureDetector):
    detector_name = "OpenCV SIFT"
    factory = "SIFT_create"
    joint_descriptors = True


class OrbDetector(OpenCVFeatureDetector):
    detector_name = "OpenCV ORB"
    factory = "ORB_create"
    joint_descriptors = True


class AkazeDetector(OpenCVFeatureDetector):
    detector_name = "OpenCV AKAZE"
    factory = "AKAZE_create"
    joint_descriptors = True


class BriskDetector(OpenCVFeatureDetector):
    detector_name = "OpenCV BRISK"
    factory = "BRISK_create"
    joint_descriptors = True


class KazeDetector(OpenCVFeatureDetector):
    detector_name = "OpenCV KAZE"
    factory = "KAZE_create"
    joint_descriptors = True


class FastDetector(OpenCVFeatureDetector):
    """FAST corners; frames only, descriptors come from the fallback routine."""

    detector_name = "OpenCV FAST"
    factory = "FastFeatureDetector_create"


class GfttDetector(OpenCVFeatureDetector):
    """Good features to track; frames only."""

    detector_name = "OpenCV GFTT"
    factory = "GFTTDetector_create"
