"""
Delaunay triangulation of nodes on the unit sphere.

Two interchangeable strategies produce the same kind of output, an (M, 3)
array of node-index triples oriented so that the circumcenter of each
triangle is the center of its empty circumcircle:

- QHULL: the spherical Delaunay triangulation is the convex hull of the
  nodes' unit vectors (scipy.spatial.ConvexHull, O(N log N)).
- BRUTE_FORCE: exhaustive search for empty circumcircles, O(N^4) in the
  worst case. Slow reference path only.
"""

from enum import Enum
from itertools import combinations
from typing import Optional

import numpy as np
import structlog
from scipy.spatial import ConvexHull, QhullError

from .errors import DuplicateNodeError, StructuralError
from .geometry import angles_around_axis, circumcenter, distance, find_duplicates

logger = structlog.get_logger()

# Triples handled per vectorised block in the brute force search
BRUTE_FORCE_BLOCK = 2048


class DelaunayAlgorithm(Enum):
    """Triangulation strategy."""
    QHULL = "qhull"
    BRUTE_FORCE = "brute_force"


def compute_delaunay(points: np.ndarray, tolerance: float,
                     algorithm: DelaunayAlgorithm = DelaunayAlgorithm.QHULL) -> np.ndarray:
    """
    Compute the Delaunay triangulation of nodes on the sphere.

    Args:
        points: (N, 3) unit vectors
        tolerance: Distance under which two nodes are considered duplicates,
            and slack for the empty-circle test of the brute force strategy
        algorithm: Triangulation strategy

    Returns:
        (M, 3) int64 array of triangles

    Raises:
        DuplicateNodeError: If two nodes coincide within tolerance
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    algorithm = DelaunayAlgorithm(algorithm)

    duplicates = find_duplicates(points, tolerance)
    if len(duplicates):
        raise DuplicateNodeError(duplicates, tolerance)

    if len(points) < 3:
        return np.empty((0, 3), dtype=np.int64)

    logger.info("Computing Delaunay triangulation",
                nodes=len(points), algorithm=algorithm.value)

    if algorithm is DelaunayAlgorithm.BRUTE_FORCE:
        logger.warning("BRUTE_FORCE algorithm is probably broken on lattices that have "
                       "more than three nodes on a circumcircle (e.g. regular lattices)")
        triangles = delaunay_brute_force(points, tolerance)
    else:
        normal = coplanar_normal(points, tolerance)
        if normal is not None:
            logger.info("All nodes lie on one circle, using double fan")
            triangles = double_fan(points, normal)
        else:
            triangles = delaunay_convex_hull(points)

    logger.info("Delaunay triangulation computed", triangles=len(triangles))
    return triangles


def coplanar_normal(points: np.ndarray, tolerance: float) -> Optional[np.ndarray]:
    """
    Normal of the plane containing all points, if there is one.

    Points on the sphere are coplanar exactly when they are concyclic.

    Returns:
        Unit normal, or None if some point is farther than tolerance from
        the best fitting plane
    """
    centered = points - points.mean(axis=0)
    _, _, vt = np.linalg.svd(centered, full_matrices=False)
    normal = vt[-1]
    if np.max(np.abs(centered @ normal)) > tolerance:
        return None
    return normal


def double_fan(points: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """
    Triangulate concyclic nodes.

    The nodes split the sphere into the two caps on either side of their
    circle. Each cap gets a fan around the first node in angular order,
    wound so that its circumcenter is the cap's pole.
    """
    order = np.argsort(angles_around_axis(points, normal), kind="stable")
    apex = np.full(len(order) - 2, order[0])
    left, right = order[1:-1], order[2:]

    triangles = np.empty((2 * len(apex), 3), dtype=np.int64)
    triangles[0::2] = np.column_stack([apex, left, right])
    triangles[1::2] = np.column_stack([apex, right, left])
    return triangles


def delaunay_convex_hull(points: np.ndarray) -> np.ndarray:
    """
    Delaunay triangles as the facets of the nodes' convex hull.

    Each facet's plane cuts off a cap of the sphere that contains no other
    node; the outward facet normal is the center of that cap. Facets are
    wound so that the circumcenter of the triangle points along that normal.
    """
    try:
        hull = ConvexHull(points)
    except QhullError as e:
        raise StructuralError(f"Convex hull computation failed: {e}") from e

    triangles = hull.simplices.astype(np.int64)
    a, b, c = points[triangles[:, 0]], points[triangles[:, 1]], points[triangles[:, 2]]
    facing = np.sum(np.cross(b - a, c - a) * hull.equations[:, :3], axis=1)
    flip = facing < 0.0
    triangles[flip] = triangles[flip][:, [0, 2, 1]]

    missing = np.setdiff1d(np.arange(len(points)), np.unique(triangles))
    if len(missing):
        raise StructuralError(
            f"Nodes {missing[:10].tolist()} are not part of the convex hull "
            f"({len(missing)} in total)"
        )
    return triangles


def delaunay_brute_force(points: np.ndarray, tolerance: float) -> np.ndarray:
    """
    Find all triangles with an empty circumcircle by exhaustive search.

    Both windings of every triple of nodes are tested. A winding is kept if
    no other node is closer to its circumcenter than the mean corner
    distance minus tolerance.
    """
    n = len(points)
    triples = np.array(list(combinations(range(n), 3)), dtype=np.int64).reshape(-1, 3)
    found = []

    for start in range(0, len(triples), BRUTE_FORCE_BLOCK):
        block = triples[start:start + BRUTE_FORCE_BLOCK]
        windings = np.empty((2 * len(block), 3), dtype=np.int64)
        windings[0::2] = block
        windings[1::2] = block[:, [0, 2, 1]]

        corners = points[windings]
        centers = circumcenter(corners[:, 0], corners[:, 1], corners[:, 2])
        radius = distance(centers[:, None, :], corners).mean(axis=1) - tolerance

        distances = distance(centers[:, None, :], points[None, :, :])
        rows = np.arange(len(windings))[:, None]
        distances[rows, windings] = np.inf

        empty = ~np.any(distances <= radius[:, None], axis=1)
        found.append(windings[empty])

    if not found:
        return np.empty((0, 3), dtype=np.int64)
    return np.concatenate(found)


def triangle_links(triangles: np.ndarray) -> np.ndarray:
    """Undirected edges of a set of triangles, canonical and sorted, each once."""
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    edges = np.sort(triangles[:, [[0, 1], [0, 2], [1, 2]]].reshape(-1, 2), axis=1)
    if len(edges) == 0:
        return edges
    return np.unique(edges, axis=0)
