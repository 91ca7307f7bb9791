"""Content checksums used to skip re-analysis of unchanged calendars."""

from __future__ import annotations

import hashlib
import uuid


def generate_checksum(text: str) -> str:
  """Return the MD5 digest of ``text`` formatted as a UUID string."""
  digest = hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()
  return str(uuid.UUID(hex=digest))
