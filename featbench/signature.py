"""Signatures: cheap, comparable fingerprints of dataset and detector state.

A signature is a plain string. Two signatures computed from the same state
compare equal; anything that should invalidate cached frames (a rebuilt
binary, an edited image, a changed option) changes it. Signatures are built
from file modification times and a deterministic rendering of option values,
never from the data the cache guards.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

Signature = str

EMPTY_SIGNATURE: Signature = ""


def file_signature(*paths: str | os.PathLike[str]) -> Signature:
    """Signature of files from their path, size and modification time.

    Missing files are part of the signature too, so a file appearing later
    changes it.
    """
    parts: list[str] = []
    for raw in paths:
        path = Path(raw)
        try:
            st = path.stat()
        except OSError:
            parts.append(f"{path}:missing")
            continue
        parts.append(f"{path}:{st.st_size}:{st.st_mtime_ns}")
    return ";".join(parts)


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_normalize(v) for v in value), key=repr)
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return repr(value)


def options_signature(options: Mapping[str, Any] | Iterable[Any]) -> Signature:
    """Deterministic rendering of option values (key order does not matter)."""
    if not isinstance(options, Mapping):
        options = list(options)
    return json.dumps(_normalize(options), sort_keys=True, separators=(",", ":"))


def join_signatures(*parts: Signature) -> Signature:
    return ";".join(parts)
