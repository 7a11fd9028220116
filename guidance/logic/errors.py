"""
Engine Errors

The engine is total over snapshots that carry an identity; a missing
user id is the only condition it refuses to compute.
"""

from typing import Optional


class ValidationError(ValueError):
    """Raised when a snapshot is missing its required identity field."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
