"""Minimal .env reader used before settings are resolved."""

from __future__ import annotations

import os
from pathlib import Path


def default_env_path() -> Path:
  """Return the .env path at the project root."""

  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  """Strip one pair of matching surrounding quotes."""
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return value[1:-1]
  return value


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Copy KEY=VALUE lines from a .env file into os.environ."""

  if not path.is_file():
    return

  for raw_line in path.read_text(encoding="utf-8").splitlines():
    line = raw_line.strip()
    # Skip blanks, comments and anything that is not an assignment.
    if not line or line.startswith("#") or "=" not in line:
      continue
    line = line.removeprefix("export ").lstrip()
    key, _, value = line.partition("=")
    key = key.strip()
    if not key:
      continue
    if key in os.environ and not override:
      continue
    os.environ[key] = _unquote(value.strip())
