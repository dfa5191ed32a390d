"""Frames storage: cached detector results over one dataset.

Frames (and descriptors) of every registered detector are kept in memory and
recomputed only when needed. Whether they are needed is decided from
signatures: the dataset signature covers the images and their transforms, a
detector signature covers its binaries and option values. When the dataset
signature changes, the images are reloaded and every detector is recomputed;
otherwise only the detectors whose own signature changed are.

Detectors are processed in parallel on one thread pool and, within a
detector, images are processed in parallel on a second one. Detector
failures are collected into a HealthReport instead of being raised.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from threading import Lock, RLock
from typing import Any

import numpy as np

from featbench.core.errors import (
    ConfigurationError,
    DetectorError,
    ExtractionError,
    InfrastructureError,
)
from featbench.core.events import (
    DatasetLoaded,
    DetectorFailed,
    DetectorRecomputed,
    DetectorUpToDate,
    EventBus,
)
from featbench.core.observability.timing import time_block
from featbench.descriptors import compute_sift_descriptors
from featbench.interfaces import DescriptorFallback, IDataset, IDetector
from featbench.signature import Signature
from featbench.storage.entries import (
    DatasetSnapshot,
    DetectorEntry,
    DetectorIssue,
    HealthReport,
)
from featbench.storage.options import StorageOptions

log = logging.getLogger(__name__)

_DATASET_METHODS = ("name", "num_inputs", "input_data", "input_transform", "signature")
_DETECTOR_METHODS = (
    "name",
    "signature",
    "is_healthy",
    "last_error",
    "supports_joint_descriptors",
    "extract",
)


def _missing_methods(obj: Any, names: Sequence[str]) -> list[str]:
    return [n for n in names if not callable(getattr(obj, n, None))]


def _health_of(detector: IDetector) -> tuple[bool, str]:
    try:
        if detector.is_healthy():
            return True, ""
        return False, detector.last_error() or "unknown error"
    except Exception as e:  # noqa: BLE001
        return False, f"health check failed: {e}"


@dataclass(frozen=True, slots=True)
class _DetectorResults:
    frames: tuple[np.ndarray | None, ...]
    descriptors: tuple[np.ndarray | None, ...]
    complete: bool

    @classmethod
    def empty(cls, num_inputs: int) -> _DetectorResults:
        slots: tuple[None, ...] = (None,) * num_inputs
        return cls(frames=slots, descriptors=slots, complete=False)


@dataclass(frozen=True, slots=True)
class _Outcome:
    entry: DetectorEntry
    error: str | None = None


class FramesStorage:
    """Cache of detector frames over a dataset.

    Usage::

        storage = FramesStorage(dataset, StorageOptions(compute_descriptors=True))
        storage.add_detectors([SiftDetector(), OrbDetector(nfeatures=1000)])
        report = storage.compute_all()   # computes everything
        report = storage.compute_all()   # nothing changed: no work

    Detectors can be added at any time between passes; removing them is not
    supported. ``add_detectors`` must not run concurrently with ``compute_all``.
    """

    def __init__(
        self,
        dataset: IDataset,
        options: StorageOptions | None = None,
        *,
        descriptor_fallback: DescriptorFallback | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        missing = _missing_methods(dataset, _DATASET_METHODS)
        if missing:
            raise ConfigurationError(
                f"dataset {dataset!r} is not a dataset: missing {', '.join(missing)}"
            )
        self._dataset = dataset
        self._options = options or StorageOptions()
        self._fallback: DescriptorFallback = descriptor_fallback or compute_sift_descriptors
        self._bus = event_bus

        self._lock = RLock()
        self._pass_lock = Lock()
        self._entries: list[DetectorEntry] = []
        self._snapshot = DatasetSnapshot()
        self._last_report = HealthReport()

        self._detector_pool = ThreadPoolExecutor(
            max_workers=self._options.max_detector_workers, thread_name_prefix="detector"
        )
        self._input_pool = ThreadPoolExecutor(
            max_workers=self._options.max_input_workers, thread_name_prefix="input"
        )

    # ─── Public API ───────────────────────────────────────────────────────

    @property
    def dataset(self) -> IDataset:
        return self._dataset

    @property
    def options(self) -> StorageOptions:
        return self._options

    @property
    def snapshot(self) -> DatasetSnapshot:
        return self._snapshot

    @property
    def entries(self) -> tuple[DetectorEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    @property
    def detector_names(self) -> list[str]:
        return [e.name for e in self.entries]

    @property
    def num_detectors(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def num_inputs(self) -> int:
        return self._dataset.num_inputs()

    @property
    def last_report(self) -> HealthReport:
        return self._last_report

    def entry(self, name: str) -> DetectorEntry:
        with self._lock:
            for e in self._entries:
                if e.name == name:
                    return e
        raise KeyError(name)

    def frames(self, name: str) -> tuple[np.ndarray | None, ...]:
        return self.entry(name).frames

    def descriptors(self, name: str) -> tuple[np.ndarray | None, ...]:
        return self.entry(name).descriptors

    def add_detectors(self, detectors: Iterable[IDetector], deduplicate: bool = True) -> None:
        """Register detectors.

        With ``deduplicate`` a detector whose name is already registered
        replaces the old detector object; its signature and cached frames are
        kept, so the next ``compute_all`` recomputes it only if the new
        detector's signature differs.
        """
        incoming = list(detectors)
        names: list[str] = []
        for i, det in enumerate(incoming):
            missing = _missing_methods(det, _DETECTOR_METHODS)
            if missing:
                raise ConfigurationError(
                    f"detectors[{i}] ({det!r}) is not a detector: missing {', '.join(missing)}"
                )
            try:
                name = det.name()
            except Exception as e:
                raise ConfigurationError(f"detectors[{i}] ({det!r}) has no name", cause=e) from e
            if not isinstance(name, str):
                raise ConfigurationError(
                    f"detectors[{i}] ({det!r}) name must be a string, got {type(name).__name__}"
                )
            names.append(name)
        with self._lock:
            for det, name in zip(incoming, names):
                idx = self._index_of(name) if deduplicate else None
                if idx is None:
                    self._entries.append(
                        DetectorEntry.empty(name, det, self._snapshot.num_inputs)
                    )
                    log.debug("Detector %s added", name)
                else:
                    self._entries[idx] = self._entries[idx].with_detector(det)
                    log.debug("Detector %s replaced", name)

    def compute_all(self) -> HealthReport:
        """Recompute the frames when needed. Returns detectors that produced nothing."""
        with self._pass_lock:
            dataset_signature = self._dataset.signature()
            dataset_changed = (
                not self._snapshot.is_loaded or dataset_signature != self._snapshot.signature
            )
            with self._lock:
                entries = list(self._entries)

            log.info("Detecting frames using %d detectors", len(entries))
            if dataset_changed:
                self._snapshot = self._load_dataset(dataset_signature)
            snapshot = self._snapshot

            failures: dict[int, str] = {}
            futures: dict[Future[_Outcome], int] = {
                self._detector_pool.submit(self._update_entry, entry, snapshot, dataset_changed): i
                for i, entry in enumerate(entries)
            }
            for fut in as_completed(futures):
                i = futures[fut]
                outcome = fut.result()
                with self._lock:
                    self._entries[i] = outcome.entry
                if outcome.error is not None:
                    failures[i] = outcome.error

            report = self._health_report(failures)
            self._last_report = report
            for issue in report:
                log.warning(
                    "Detector %s failed because: %s",
                    issue.name,
                    issue.message,
                    extra={"event": "detector_failed", "detector": issue.name},
                )
            log.info("Frames computed for %d detectors", len(entries) - len(report))
            return report

    def close(self) -> None:
        self._detector_pool.shutdown(wait=True, cancel_futures=True)
        self._input_pool.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> FramesStorage:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ─── Internals ───────────────────────────────────────────────────────

    def _index_of(self, name: str) -> int | None:
        for i, e in enumerate(self._entries):
            if e.name == name:
                return i
        return None

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)

    def _load_dataset(self, signature: Signature) -> DatasetSnapshot:
        name = self._dataset.name()
        try:
            num_inputs = int(self._dataset.num_inputs())

            def _load(index: int) -> tuple[np.ndarray, Any]:
                return self._dataset.input_data(index), self._dataset.input_transform(index)

            log.info("Loading dataset %s", name, extra={"dataset": name})
            loaded = list(self._input_pool.map(_load, range(num_inputs)))
        except Exception as e:
            raise InfrastructureError(f"Failed to load dataset {name}", cause=e) from e

        snapshot = DatasetSnapshot(
            signature=signature,
            inputs=tuple(data for data, _ in loaded),
            transforms=tuple(tf for _, tf in loaded),
        )
        log.info("Loaded %d images.", num_inputs, extra={"num_inputs": num_inputs})
        self._publish(DatasetLoaded(dataset=name, num_inputs=num_inputs, signature=signature))
        return snapshot

    def _update_entry(
        self, entry: DetectorEntry, snapshot: DatasetSnapshot, dataset_changed: bool
    ) -> _Outcome:
        try:
            return self._refresh_entry(entry, snapshot, dataset_changed)
        except Exception as e:  # noqa: BLE001
            message = str(e) if isinstance(e, DetectorError) else f"{type(e).__name__}: {e}"
            log.debug("Detector %s failed", entry.name, exc_info=True)
            self._publish(DetectorFailed(detector=entry.name, message=message))
            if dataset_changed:
                return _Outcome(entry.cleared(snapshot.num_inputs), message)
            # Frames from the previous pass still match the dataset.
            return _Outcome(entry, message)

    def _refresh_entry(
        self, entry: DetectorEntry, snapshot: DatasetSnapshot, dataset_changed: bool
    ) -> _Outcome:
        name = entry.name
        try:
            signature = entry.detector.signature()
        except Exception as e:
            raise DetectorError(f"signature of {name} failed", cause=e) from e

        if not dataset_changed and signature == entry.signature:
            log.info("Frames of detector %s are up to date.", name)
            self._publish(DetectorUpToDate(detector=name))
            return _Outcome(entry)

        log.info("Computing frames for detector %s", name, extra={"detector": name})
        start = time.monotonic()
        with time_block(
            f"Detector {name}", logger=log, level=logging.DEBUG, extra={"detector": name}
        ):
            results = self._run_detector(entry, snapshot)
        if not results.complete:
            return _Outcome(entry.cleared(snapshot.num_inputs))
        # A detector may turn unhealthy while processing the inputs.
        healthy, message = _health_of(entry.detector)
        if not healthy:
            log.warning("Detector %s stopped working, message: %s", name, message)
            return _Outcome(entry.cleared(snapshot.num_inputs), message)

        self._publish(
            DetectorRecomputed(
                detector=name,
                num_inputs=snapshot.num_inputs,
                duration_sec=time.monotonic() - start,
            )
        )
        return _Outcome(entry.with_results(signature, results.frames, results.descriptors))

    def _run_detector(self, entry: DetectorEntry, snapshot: DatasetSnapshot) -> _DetectorResults:
        """Recompute frames of one detector over all loaded images."""
        detector = entry.detector
        num_inputs = snapshot.num_inputs

        healthy, message = _health_of(detector)
        if not healthy:
            log.warning("Detector %s is not working, message: %s", entry.name, message)
            return _DetectorResults.empty(num_inputs)

        with_descriptors = self._options.compute_descriptors
        joint = with_descriptors and detector.supports_joint_descriptors()

        futures = [
            self._input_pool.submit(
                self._extract_one,
                entry.name,
                detector,
                snapshot.inputs[i],
                i,
                num_inputs,
                with_descriptors,
                joint,
            )
            for i in range(num_inputs)
        ]
        frames: list[np.ndarray | None] = [None] * num_inputs
        descriptors: list[np.ndarray | None] = [None] * num_inputs
        try:
            for i, fut in enumerate(futures):
                frames[i], descriptors[i] = fut.result()
        except Exception:
            for fut in futures:
                fut.cancel()
            raise
        return _DetectorResults(frames=tuple(frames), descriptors=tuple(descriptors), complete=True)

    def _extract_one(
        self,
        name: str,
        detector: IDetector,
        image: np.ndarray,
        index: int,
        num_inputs: int,
        with_descriptors: bool,
        joint: bool,
    ) -> tuple[np.ndarray, np.ndarray | None]:
        try:
            if not with_descriptors:
                frames, _ = detector.extract(image, with_descriptors=False)
                descriptors = None
            elif joint:
                frames, descriptors = detector.extract(image, with_descriptors=True)
            else:
                detected, _ = detector.extract(image, with_descriptors=False)
                log.debug("Computing descriptors of %d frames of %s", len(detected), name)
                frames, descriptors = self._fallback(image, detected)
        except Exception as e:
            raise ExtractionError(
                f"{name} failed on image {index + 1}/{num_inputs}",
                cause=e,
                detector_name=name,
                input_index=index,
            ) from e
        log.debug(
            "Image %02d/%02d: %d regions detected by %s", index + 1, num_inputs, len(frames), name
        )
        return frames, descriptors

    def _health_report(self, failures: dict[int, str]) -> HealthReport:
        issues: list[DetectorIssue] = []
        with self._lock:
            entries = list(self._entries)
        for i, entry in enumerate(entries):
            healthy, message = _health_of(entry.detector)
            if not healthy:
                issues.append(DetectorIssue(entry.name, message))
            elif i in failures:
                issues.append(DetectorIssue(entry.name, failures[i]))
        return HealthReport(tuple(issues))
