"""
py-sphtess: Voronoi tessellation and Delaunay triangulation on the sphere.
"""

__version__ = "0.1.0"

from .core import (NO_LINK, CacheState, ConsistencyCheck, ConsistencyError, DelaunayAlgorithm,
                   DuplicateNodeError, ErrorKind, Link, Node, SphericalTessellation,
                   StructuralError, TessellationError, TessellationOptions)

__all__ = ['NO_LINK', 'CacheState', 'ConsistencyCheck', 'ConsistencyError', 'DelaunayAlgorithm',
           'DuplicateNodeError', 'ErrorKind', 'Link', 'Node', 'SphericalTessellation',
           'StructuralError', 'TessellationError', 'TessellationOptions', '__version__']
