# premium_engine/errors.py
"""
Error taxonomy for the premium engine.

- ConfigurationError: fatal, raised immediately (bad loadings, bad tables).
- StageError: a pipeline stage failed; the orchestrator catches it once and
  downgrades the request to the standard calculation.

Data unavailability and compliance violations are not exceptions.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid engine configuration (loadings, rate tables, rate types)."""


class StageError(RuntimeError):
    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"Stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause
