"""Exception types raised by the analysis engine and its collaborators."""

from __future__ import annotations


class BottleneckContractError(RuntimeError):
  """Raised when a bottleneck would be built from lessons lacking identity or a shared target."""


class ScheduleFetchError(RuntimeError):
  """Raised when the remote schedule API cannot be reached or answers malformed data."""


class CalendarParseError(ValueError):
  """Raised when a calendar document cannot be parsed into lessons."""


class JobProcessingError(RuntimeError):
  """Raised inside a job body when a collaborator produced no usable data."""
