"""
Core tessellation functionality.
"""

from .types import NO_LINK, Link, Node, Triangle
from .errors import (ConsistencyError, DuplicateNodeError, ErrorKind,
                     StructuralError, TessellationError)
from .triangulation import DelaunayAlgorithm, compute_delaunay
from .tessellation import (CacheState, ConsistencyCheck, SphericalTessellation,
                           TessellationOptions)

__all__ = ['NO_LINK', 'Link', 'Node', 'Triangle',
           'ConsistencyError', 'DuplicateNodeError', 'ErrorKind', 'StructuralError',
           'TessellationError', 'DelaunayAlgorithm', 'compute_delaunay',
           'CacheState', 'ConsistencyCheck', 'SphericalTessellation', 'TessellationOptions']
