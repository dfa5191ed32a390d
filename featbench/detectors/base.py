"""Base class of the bundled detectors: name, options and health state."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from featbench.interfaces import IDetector
from featbench.signature import Signature, join_signatures, options_signature

log = logging.getLogger(__name__)


class GenericDetector(IDetector):
    """Holds what every detector wrapper shares.

    Subclasses set ``detector_name`` and implement ``extract``; they call
    ``mark_unhealthy`` when they find out they cannot run (missing library,
    unsupported option), which the frames storage reports after a pass.
    """

    detector_name: str = "generic"
    joint_descriptors: bool = False

    def __init__(self, *, name: str | None = None, **options: Any) -> None:
        self._name = name or self.detector_name
        self._options: dict[str, Any] = dict(options)
        self._healthy = True
        self._error = ""

    @property
    def options(self) -> Mapping[str, Any]:
        return dict(self._options)

    def name(self) -> str:
        return self._name

    def is_healthy(self) -> bool:
        return self._healthy

    def last_error(self) -> str:
        return self._error

    def supports_joint_descriptors(self) -> bool:
        return self.joint_descriptors

    def mark_unhealthy(self, message: str) -> None:
        if self._healthy:
            log.warning("Detector %s disabled: %s", self._name, message)
        self._healthy = False
        self._error = message

    def binary_signature(self) -> Signature:
        """Signature of the code backing the detector; subclasses override."""
        return type(self).__qualname__

    def signature(self) -> Signature:
        return join_signatures(
            self.binary_signature(),
            options_signature({"detector": self.detector_name, **self._options}),
        )

    def __repr__(self) -> str:
        return f"<Detector: {self._name}>"
