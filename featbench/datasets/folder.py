"""Последовательность изображений в папке.

Структура последовательностей бенчмарка аффинно-ковариантных областей::

    graf/
        img1.ppm  img2.ppm ... img6.ppm
        H1to2p    H1to3p   ... H1to6p     # гомографии 3x3, через пробел

Изображения ищутся по ``image_glob`` и сортируются естественно (``img2`` раньше
``img10``). Преобразование изображения ``i`` (в именах файлов с 1) читается из
``transform_pattern.format(index=i)``; для изображений без файла, в том числе
для опорного, берётся единичная матрица.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import numpy as np

try:
    import cv2  # type: ignore
except ImportError:
    cv2 = None  # type: ignore

from featbench.config import DEFAULT_IMAGE_GLOB, DEFAULT_TRANSFORM_PATTERN
from featbench.core.errors import ConfigurationError, InfrastructureError
from featbench.interfaces import IDataset
from featbench.signature import Signature, file_signature, join_signatures, options_signature

log = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def _natural_key(path: Path) -> list[object]:
    return [int(tok) if tok.isdigit() else tok.lower() for tok in _DIGITS.split(path.name)]


def _require_cv2() -> None:
    if cv2 is None:
        raise ImportError(
            "OpenCV (cv2) is required for this feature. Install with: pip install opencv-python"
        )


class FolderDataset(IDataset):
    """Датасет из изображений одной папки с необязательными файлами гомографий."""

    def __init__(
        self,
        root: str | Path,
        *,
        name: str | None = None,
        image_glob: str = DEFAULT_IMAGE_GLOB,
        transform_pattern: str = DEFAULT_TRANSFORM_PATTERN,
    ) -> None:
        self._root = Path(root).expanduser()
        if not self._root.is_dir():
            raise ConfigurationError(f"Dataset folder not found: {self._root}")
        self._name = name or self._root.name
        self._image_glob = image_glob
        self._transform_pattern = transform_pattern

    @property
    def root(self) -> Path:
        return self._root

    def name(self) -> str:
        return self._name

    def image_paths(self) -> list[Path]:
        paths = (p for p in self._root.glob(self._image_glob) if p.is_file())
        return sorted(paths, key=_natural_key)

    def transform_path(self, index: int) -> Path:
        return self._root / self._transform_pattern.format(index=index + 1)

    def num_inputs(self) -> int:
        return len(self.image_paths())

    def input_data(self, index: int) -> np.ndarray:
        _require_cv2()
        path = self.image_paths()[index]
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise InfrastructureError(f"Cannot read image {path}")
        return image

    def input_transform(self, index: int) -> np.ndarray:
        path = self.transform_path(index)
        if not path.is_file():
            return np.eye(3)
        try:
            return np.loadtxt(path, dtype=np.float64).reshape(3, 3)
        except ValueError as e:
            raise InfrastructureError(f"Invalid homography file {path}", cause=e) from e

    def signature(self) -> Signature:
        images = self.image_paths()
        transforms = [self.transform_path(i) for i in range(len(images))]
        return join_signatures(
            options_signature(
                {
                    "root": self._root.resolve(),
                    "image_glob": self._image_glob,
                    "transform_pattern": self._transform_pattern,
                }
            ),
            file_signature(*images, *transforms),
        )

    def __repr__(self) -> str:
        return f"<FolderDataset: {self._name} ({self._root})>"
