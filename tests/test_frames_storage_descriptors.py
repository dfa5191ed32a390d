from __future__ import annotations

from featbench.storage import StorageOptions


def test_results_follow_input_order_not_completion_order(
    make_dataset, make_detector, make_storage
) -> None:
    # The first images finish last.
    det = make_detector("Slow", delays={0: 0.15, 1: 0.1, 2: 0.05})
    storage = make_storage(make_dataset(num_inputs=5))
    storage.add_detectors([det])

    storage.compute_all()

    frames = storage.frames("Slow")
    descriptors = storage.descriptors("Slow")
    assert [int(f[0, 0]) for f in frames] == [0, 1, 2, 3, 4]
    assert [int(d[0, 0]) for d in descriptors] == [0, 1, 2, 3, 4]


def test_joint_descriptors_are_requested_in_one_call(
    make_dataset, make_detector, make_storage, fallback
) -> None:
    det = make_detector("Joint", joint=True)
    storage = make_storage(make_dataset(num_inputs=3))
    storage.add_detectors([det])

    storage.compute_all()

    assert det.extract_calls == 3
    assert det.with_descriptors_calls == 3
    assert fallback.calls == 0
    assert all(d.shape == (1, 2) for d in storage.descriptors("Joint"))


def test_fallback_describes_frames_of_detectors_without_descriptors(
    make_dataset, make_detector, make_storage, fallback
) -> None:
    det = make_detector("FramesOnly", joint=False)
    storage = make_storage(make_dataset(num_inputs=3))
    storage.add_detectors([det])

    storage.compute_all()

    assert det.with_descriptors_calls == 0
    assert fallback.calls == 3
    descriptors = storage.descriptors("FramesOnly")
    assert [float(d[0, 0]) for d in descriptors] == [0.0, -1.0, -2.0]


def test_no_descriptors_when_disabled(make_dataset, make_detector, make_storage, fallback) -> None:
    joint = make_detector("Joint", joint=True)
    frames_only = make_detector("FramesOnly", joint=False)
    storage = make_storage(
        make_dataset(num_inputs=2),
        options=StorageOptions(compute_descriptors=False),
    )
    storage.add_detectors([joint, frames_only])

    storage.compute_all()

    assert joint.with_descriptors_calls == 0
    assert fallback.calls == 0
    for name in ("Joint", "FramesOnly"):
        assert storage.descriptors(name) == (None, None)
        assert all(f is not None for f in storage.frames(name))


def test_failing_fallback_is_reported_for_its_detector(
    make_dataset, make_detector, make_storage
) -> None:
    def broken_fallback(image, frames):
        raise ValueError("no SIFT in this build")

    storage = make_storage(make_dataset(num_inputs=2), descriptor_fallback=broken_fallback)
    storage.add_detectors([make_detector("FramesOnly", joint=False), make_detector("Joint")])

    report = storage.compute_all()

    assert report.failed_names == ["FramesOnly"]
    assert "no SIFT in this build" in report.issues[0].message
    assert storage.entry("Joint").is_computed
