"""
Error taxonomy for tessellation failures.

All errors are fatal: a tessellation that fails on a given node set and
tolerance fails the same way every time, so nothing is retried.
"""

from enum import Enum
from typing import Optional

import numpy as np


class ErrorKind(Enum):
    """Which part of the pipeline a failure comes from."""
    INPUT = "input"              # bad node set (duplicates)
    CONSISTENCY = "consistency"  # Delaunay and Voronoi structures disagree
    STRUCTURAL = "structural"    # malformed triangulation or cache misuse


class TessellationError(Exception):
    """Base class for tessellation failures."""

    kind = ErrorKind.STRUCTURAL

    def __init__(self, message: str, kind: Optional[ErrorKind] = None,
                 hint: Optional[str] = None, nodes: Optional[np.ndarray] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.hint = hint
        self.nodes = nodes

    def __str__(self):
        message = super().__str__()
        if self.hint:
            return f"{message}\n\nHint: {self.hint}"
        return message


class DuplicateNodeError(TessellationError):
    """Two or more input nodes coincide within tolerance."""

    kind = ErrorKind.INPUT

    def __init__(self, pairs: np.ndarray, tolerance: float):
        self.pairs = np.asarray(pairs, dtype=np.int64).reshape(-1, 2)
        shown = ", ".join(f"({a}, {b})" for a, b in self.pairs[:10])
        more = "" if len(self.pairs) <= 10 else f" and {len(self.pairs) - 10} more"
        super().__init__(
            f"Duplicate nodes within tolerance {tolerance:g}: {shown}{more}"
        )


class ConsistencyError(TessellationError):
    """Derived Delaunay and Voronoi artifacts contradict each other."""

    kind = ErrorKind.CONSISTENCY


class StructuralError(TessellationError):
    """The triangulation cannot be walked, or a cache invariant is broken."""

    kind = ErrorKind.STRUCTURAL
