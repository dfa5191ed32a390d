"""Benchmark configuration constants.

Paths of the project root and state folder, defaults of the frames storage
and of the bundled dataset/detector wrappers.
"""

import os
from pathlib import Path

# Base paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
STATE_DIR_NAME = ".featbench"

# Frames storage
DEFAULT_COMPUTE_DESCRIPTORS = True
DEFAULT_MAX_DETECTOR_WORKERS = 4
DEFAULT_MAX_INPUT_WORKERS = min(8, os.cpu_count() or 1)

# Datasets: image sequences of the affine covariant benchmark (img1.ppm, H1to2p, ...)
DEFAULT_IMAGE_GLOB = "img*.*"
DEFAULT_TRANSFORM_PATTERN = "H1to{index}p"
