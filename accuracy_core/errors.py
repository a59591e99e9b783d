"""Error taxonomy for the accuracy pipeline.

Two kinds of problems exist:

* :class:`ValidationError` — the input cannot produce a market baseline at
  all (no odds, or every quote unusable).  Raised immediately and never
  retried; HTTP callers map it to a 4xx response.
* :class:`DegradedDataWarning` — an optional field is missing or thin.  It is
  *not* raised: the pipeline carries instances as values, logs them, and
  copies their messages into ``output.warnings`` while still returning a
  complete (possibly suppressed) result.

Arithmetic hazards (zero means in CV, ``log(0)`` in log-loss, zero-sum
distributions) are clamped where they occur and never surface as errors.
"""

from __future__ import annotations


class AccuracyCoreError(Exception):
    """Base class for all errors raised by ``accuracy_core``."""


class ValidationError(AccuracyCoreError, ValueError):
    """Malformed or missing required input.  Fail fast, never retried."""


class DegradedDataWarning(UserWarning):
    """Missing or thin optional data that lowers data quality.

    Attributes:
        code: Stable machine-readable identifier (e.g. ``"missing_home_stats"``).
        message: Human-readable description copied into ``output.warnings``.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"DegradedDataWarning(code={self.code!r}, message={self.message!r})"
