"""Fake datasets and detectors with call counters for the frames storage tests."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from threading import Lock

import numpy as np
import pytest

from featbench.interfaces import IDataset, IDetector
from featbench.storage import FramesStorage, StorageOptions


class FakeDataset(IDataset):
    """Images are 8x8 arrays filled with their index, so results can be traced back."""

    def __init__(self, num_inputs: int = 3, signature: str = "dataset-v1", name: str = "fake") -> None:
        self._lock = Lock()
        self._name = name
        self.sig = signature
        self.images = [np.full((8, 8), i, dtype=np.uint8) for i in range(num_inputs)]
        self.load_calls = 0
        self.fail_loading = False

    def resize(self, num_inputs: int, signature: str) -> None:
        self.images = [np.full((8, 8), i, dtype=np.uint8) for i in range(num_inputs)]
        self.sig = signature

    def name(self) -> str:
        return self._name

    def num_inputs(self) -> int:
        return len(self.images)

    def input_data(self, index: int) -> np.ndarray:
        with self._lock:
            self.load_calls += 1
        if self.fail_loading:
            raise OSError("disk on fire")
        return self.images[index]

    def input_transform(self, index: int) -> np.ndarray:
        return np.eye(3) * (index + 1)

    def signature(self) -> str:
        return self.sig


class FakeDetector(IDetector):
    """Returns one frame per image: ``[index, index, 1, 0]``."""

    def __init__(
        self,
        name: str = "Det1",
        signature: str = "config-1",
        *,
        healthy: bool = True,
        error: str = "",
        joint: bool = True,
        delays: dict[int, float] | None = None,
        fail_on: int | None = None,
    ) -> None:
        self._lock = Lock()
        self._name = name
        self.sig = signature
        self.healthy = healthy
        self.error = error
        self.joint = joint
        self.delays = delays or {}
        self.fail_on = fail_on
        self.extract_calls = 0
        self.with_descriptors_calls = 0

    def name(self) -> str:
        return self._name

    def signature(self) -> str:
        return self.sig

    def is_healthy(self) -> bool:
        return self.healthy

    def last_error(self) -> str:
        return self.error

    def supports_joint_descriptors(self) -> bool:
        return self.joint

    def extract(
        self, image: np.ndarray, with_descriptors: bool = False
    ) -> tuple[np.ndarray, np.ndarray | None]:
        index = int(image[0, 0])
        with self._lock:
            self.extract_calls += 1
            if with_descriptors:
                self.with_descriptors_calls += 1
        if index in self.delays:
            time.sleep(self.delays[index])
        if self.fail_on == index:
            raise RuntimeError("boom")
        frames = np.array([[index, index, 1.0, 0.0]], dtype=np.float32)
        descriptors = np.full((1, 2), index, dtype=np.float32) if with_descriptors else None
        return frames, descriptors


class FakeFallback:
    """Descriptor fallback recording its calls; descriptors are filled with -index."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.calls = 0

    def __call__(self, image: np.ndarray, frames: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        with self._lock:
            self.calls += 1
        return frames, np.full((len(frames), 3), -float(image[0, 0]), dtype=np.float32)


@pytest.fixture
def make_dataset() -> Callable[..., FakeDataset]:
    return FakeDataset


@pytest.fixture
def make_detector() -> Callable[..., FakeDetector]:
    return FakeDetector


@pytest.fixture
def fallback() -> FakeFallback:
    return FakeFallback()


@pytest.fixture
def make_storage(fallback: FakeFallback) -> Iterator[Callable[..., FramesStorage]]:
    created: list[FramesStorage] = []

    def _make(dataset: IDataset, **kwargs: object) -> FramesStorage:
        options = kwargs.pop("options", None) or StorageOptions(
            max_detector_workers=4, max_input_workers=4
        )
        kwargs.setdefault("descriptor_fallback", fallback)
        storage = FramesStorage(dataset, options, **kwargs)  # type: ignore[arg-type]
        created.append(storage)
        return storage

    yield _make
    for storage in created:
        storage.close()
