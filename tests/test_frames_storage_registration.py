from __future__ import annotations

import pytest

from featbench.core.errors import ConfigurationError
from featbench.storage import FramesStorage


class _BadName:
    """Detector whose name() raises or is not a string."""

    def __init__(self, inner, name: object) -> None:
        self.inner = inner
        self._raw_name = name

    def __getattr__(self, attr: str):
        return getattr(self.inner, attr)

    def name(self):
        if isinstance(self._raw_name, Exception):
            raise self._raw_name
        return self._raw_name


class _NotADetector:
    def name(self) -> str:
        return "half"

    def signature(self) -> str:
        return "x"


def test_registering_same_name_replaces_detector_and_keeps_cache(
    make_dataset, make_detector, make_storage
) -> None:
    storage = make_storage(make_dataset(num_inputs=3))
    first = make_detector("X", signature="same")
    storage.add_detectors([first])
    storage.compute_all()
    before = storage.entry("X")

    second = make_detector("X", signature="same")
    storage.add_detectors([second])

    assert storage.num_detectors == 1
    after = storage.entry("X")
    assert after.detector is second
    assert after.signature == before.signature
    assert after.frames is before.frames
    assert after.descriptors is before.descriptors

    # Same signature: the cache engine sees nothing to do.
    storage.compute_all()
    assert second.extract_calls == 0


def test_replaced_detector_with_new_signature_is_recomputed(
    make_dataset, make_detector, make_storage
) -> None:
    storage = make_storage(make_dataset(num_inputs=3))
    storage.add_detectors([make_detector("X", signature="v1")])
    storage.compute_all()

    replacement = make_detector("X", signature="v2")
    storage.add_detectors([replacement])
    storage.compute_all()

    assert replacement.extract_calls == 3
    assert storage.entry("X").signature == "v2"


def test_duplicates_in_one_call_keep_the_last(make_dataset, make_detector, make_storage) -> None:
    storage = make_storage(make_dataset())
    last = make_detector("X")
    storage.add_detectors([make_detector("X"), last])

    assert storage.detector_names == ["X"]
    assert storage.entry("X").detector is last


def test_deduplication_can_be_disabled(make_dataset, make_detector, make_storage) -> None:
    storage = make_storage(make_dataset())
    storage.add_detectors([make_detector("X")])
    storage.add_detectors([make_detector("X")], deduplicate=False)

    assert storage.detector_names == ["X", "X"]
    report = storage.compute_all()
    assert report.ok
    assert all(e.is_computed for e in storage.entries)


def test_detector_added_after_a_pass_is_computed_alone(
    make_dataset, make_detector, make_storage
) -> None:
    storage = make_storage(make_dataset(num_inputs=3))
    old = make_detector("Old")
    storage.add_detectors([old])
    storage.compute_all()

    new = make_detector("New")
    storage.add_detectors([new])
    assert storage.entry("New").frames == (None, None, None)

    storage.compute_all()
    assert old.extract_calls == 3
    assert new.extract_calls == 3


def test_invalid_detector_raises_without_partial_registration(
    make_dataset, make_detector, make_storage
) -> None:
    storage = make_storage(make_dataset())

    with pytest.raises(ConfigurationError, match=r"detectors\[1\]"):
        storage.add_detectors([make_detector("ok"), _NotADetector()])

    assert storage.num_detectors == 0


def test_detector_whose_name_fails_registers_nothing(
    make_dataset, make_detector, make_storage
) -> None:
    storage = make_storage(make_dataset())
    bad = _BadName(make_detector(), RuntimeError("no name"))
    unnamed = _BadName(make_detector(), 42)

    with pytest.raises(ConfigurationError, match=r"detectors\[1\]"):
        storage.add_detectors([make_detector("ok"), bad])
    with pytest.raises(ConfigurationError, match=r"detectors\[1\].*string"):
        storage.add_detectors([make_detector("ok"), unnamed])

    assert storage.num_detectors == 0
    assert storage.detector_names == []


def test_invalid_dataset_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="num_inputs"):
        FramesStorage(object())  # type: ignore[arg-type]


def test_unknown_detector_name_raises_key_error(make_dataset, make_storage) -> None:
    storage = make_storage(make_dataset())
    with pytest.raises(KeyError):
        storage.entry("missing")
