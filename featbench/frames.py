"""Frames as numpy arrays: rows ``[x, y, size, angle]``, one per detected region."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

FRAME_COLUMNS = 4


def empty_frames() -> np.ndarray:
    return np.zeros((0, FRAME_COLUMNS), dtype=np.float32)


def keypoints_to_frames(keypoints: Sequence[Any]) -> np.ndarray:
    """Convert OpenCV keypoints to an (N, 4) float32 array."""
    if not keypoints:
        return empty_frames()
    return np.array(
        [(kp.pt[0], kp.pt[1], kp.size, kp.angle) for kp in keypoints], dtype=np.float32
    )


def frames_to_keypoints(frames: np.ndarray) -> list[Any]:
    """Convert (N, 4) frames back to OpenCV keypoints (requires cv2)."""
    import cv2

    arr = np.asarray(frames, dtype=np.float32).reshape(-1, FRAME_COLUMNS)
    return [
        cv2.KeyPoint(float(x), float(y), float(size), float(angle))
        for x, y, size, angle in arr
    ]


def to_gray_uint8(image: np.ndarray) -> np.ndarray:
    """Single channel uint8 image, as the OpenCV detectors expect.

    Colour input (BGR or BGRA, as read by ``cv2.imread``) is converted with
    ``cv2.cvtColor``. Deeper images (16-bit, float) are stretched to 0..255.
    """
    import cv2

    img = np.asarray(image)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    elif img.ndim == 3:
        # cvtColor takes 8U, 16U and 32F only
        if img.dtype not in (np.uint8, np.uint16, np.float32):
            img = img.astype(np.float32)
        code = cv2.COLOR_BGRA2GRAY if img.shape[2] == 4 else cv2.COLOR_BGR2GRAY
        img = cv2.cvtColor(img, code)
    if img.dtype != np.uint8:
        img = cv2.normalize(
            img.astype(np.float32), None, 0, 255, cv2.NORM_MINMAX, dtype=cv2.CV_8U
        )
    return np.ascontiguousarray(img)
