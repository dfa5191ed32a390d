"""Build/version metadata.

When installed, the version comes from the package metadata; builds can
override it (and add the git sha) through environment variables:

- FEATBENCH_VERSION: human readable version (e.g. "0.3.0")
- FEATBENCH_GIT_SHA: short git sha
"""

from __future__ import annotations

import os
from importlib import metadata


def get_build_info() -> dict[str, str]:
    try:
        installed = metadata.version("featbench")
    except metadata.PackageNotFoundError:
        installed = "0.0.0-dev"
    version = os.getenv("FEATBENCH_VERSION", installed)
    sha = os.getenv("FEATBENCH_GIT_SHA", "dev")
    return {"version": version, "git_sha": sha}


def get_version_string() -> str:
    info = get_build_info()
    ver = info["version"].strip() or "0.0.0-dev"
    sha = info["git_sha"].strip() or "dev"
    return f"v{ver} ({sha})"
