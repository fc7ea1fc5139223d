"""
Pytest bootstrap for src/ layout.

- Puts ./src first on sys.path so the local `rtt` wins over any installed copy,
  and the repo root last so `tests._factories` resolves.
- Forces the non-interactive Agg backend before anything imports pyplot.
"""
from __future__ import annotations

import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

repo_root = Path(__file__).resolve().parents[1]
src = repo_root / "src"
if src.is_dir():
    src_str = str(src)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)
# `from tests._factories import ...` needs the repo root importable
if str(repo_root) not in sys.path:
    sys.path.append(str(repo_root))
