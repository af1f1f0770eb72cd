from __future__ import annotations


class CircuitSenseError(Exception):
    """Base class for recoverable workbench failures."""


class InferenceFailure(CircuitSenseError):
    """Board analysis call failed or returned output that does not fit the schema."""


class OCRFailure(CircuitSenseError):
    """Meter photo could not be read."""
