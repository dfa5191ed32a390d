"""Descriptors of frames detected by detectors that cannot describe them.

The frames storage calls ``compute_sift_descriptors`` (or any routine with the
same signature passed as ``descriptor_fallback``) after a frames-only
extraction. Orientation is taken from the frames as detected; the routine
does not re-estimate it.
"""

from __future__ import annotations

import logging

import numpy as np

try:
    import cv2  # type: ignore
except ImportError:
    cv2 = None  # type: ignore

from featbench.frames import empty_frames, frames_to_keypoints, keypoints_to_frames, to_gray_uint8

log = logging.getLogger(__name__)

SIFT_DESCRIPTOR_SIZE = 128


def _require_cv2() -> None:
    if cv2 is None:
        raise ImportError(
            "OpenCV (cv2) is required for this feature. Install with: pip install opencv-python"
        )


def compute_sift_descriptors(image: np.ndarray, frames: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """SIFT descriptors of the given frames. Returns (described frames, descriptors)."""
    _require_cv2()
    if len(frames) == 0:
        return empty_frames(), np.zeros((0, SIFT_DESCRIPTOR_SIZE), dtype=np.float32)
    sift = cv2.SIFT_create()
    keypoints, descriptors = sift.compute(to_gray_uint8(image), frames_to_keypoints(frames))
    if descriptors is None:
        return empty_frames(), np.zeros((0, SIFT_DESCRIPTOR_SIZE), dtype=np.float32)
    if len(keypoints) != len(frames):
        log.debug("SIFT dropped %d of %d frames", len(frames) - len(keypoints), len(frames))
    return keypoints_to_frames(keypoints), descriptors
