"""
Entry point of the feature detector benchmark.

Run: python main.py run benchmark.yaml
Requires: pip install -e .
"""
from __future__ import annotations

from featbench.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
