"""
Geometry kernel for points on the unit sphere.

Points are handled as unit vectors in numpy arrays with the coordinates on
the last axis, so every function works on single points of shape (3,) as
well as on stacks of shape (..., 3).
"""

import numpy as np
from scipy.spatial import cKDTree

FULL_SPHERE = 4.0 * np.pi


def to_cartesian(lon, lat) -> np.ndarray:
    """Convert longitude/latitude in radians to unit vectors."""
    lon = np.asarray(lon, dtype=float)
    lat = np.asarray(lat, dtype=float)
    cos_lat = np.cos(lat)
    return np.stack([cos_lat * np.cos(lon), cos_lat * np.sin(lon), np.sin(lat)], axis=-1)


def nodes_to_cartesian(nodes: np.ndarray) -> np.ndarray:
    """Convert an (N, 2) lon/lat array to an (N, 3) array of unit vectors."""
    nodes = np.asarray(nodes, dtype=float).reshape(-1, 2)
    return to_cartesian(nodes[:, 0], nodes[:, 1])


def to_lonlat(xyz: np.ndarray) -> np.ndarray:
    """Convert vectors to (..., 2) longitude/latitude in radians.

    Vectors need not be normalised.
    """
    xyz = np.asarray(xyz, dtype=float)
    x, y, z = xyz[..., 0], xyz[..., 1], xyz[..., 2]
    return np.stack([np.arctan2(y, x), np.arctan2(z, np.hypot(x, y))], axis=-1)


def normalize(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=float)
    return v / np.linalg.norm(v, axis=-1, keepdims=True)


def distance(p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """Great-circle distance between unit vectors."""
    p1 = np.asarray(p1, dtype=float)
    p2 = np.asarray(p2, dtype=float)
    # atan2 form stays accurate for both tiny and near-antipodal separations
    return np.arctan2(np.linalg.norm(np.cross(p1, p2), axis=-1), np.sum(p1 * p2, axis=-1))


def circumcenter(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> np.ndarray:
    """
    Circumcenter of the spherical triangle (p1, p2, p3).

    The result depends on the winding: swapping two corners yields the
    antipodal point. For a counter-clockwise triangle seen from outside the
    sphere, the circumcenter lies on the same side as the triangle.

    Args:
        p1, p2, p3: Unit vectors, shape (3,) or (M, 3)

    Returns:
        Unit vector(s) equidistant from all three corners
    """
    p1 = np.asarray(p1, dtype=float)
    normal = np.cross(np.asarray(p2, dtype=float) - p1, np.asarray(p3, dtype=float) - p1)
    return normalize(normal)


def triangle_area(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> np.ndarray:
    """
    Area of the spherical triangle with corners p1, p2, p3 (unsigned).

    Uses the Van Oosterom-Strackee formula for the spherical excess:
        tan(E/2) = |p1 . (p2 x p3)| / (1 + p1.p2 + p2.p3 + p3.p1)
    """
    p1 = np.asarray(p1, dtype=float)
    p2 = np.asarray(p2, dtype=float)
    p3 = np.asarray(p3, dtype=float)
    triple = np.abs(np.sum(p1 * np.cross(p2, p3), axis=-1))
    denominator = (1.0 + np.sum(p1 * p2, axis=-1) + np.sum(p2 * p3, axis=-1)
                   + np.sum(p3 * p1, axis=-1))
    return 2.0 * np.arctan2(triple, denominator)


def cluster_by_distance(points: np.ndarray, tolerance: float) -> np.ndarray:
    """
    Find all pairs of points closer than `tolerance` on the sphere.

    Args:
        points: (N, 3) unit vectors
        tolerance: Great-circle distance threshold in radians

    Returns:
        (K, 2) array of index pairs (i, j) with i < j, sorted lexicographically
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(points) < 2:
        return np.empty((0, 2), dtype=np.int64)

    # Chord length matching the great-circle tolerance
    chord = 2.0 * np.sin(min(tolerance, np.pi) / 2.0)
    pairs = cKDTree(points).query_pairs(r=chord, output_type="ndarray")
    pairs = np.sort(pairs.astype(np.int64), axis=1)
    if len(pairs) == 0:
        return pairs.reshape(0, 2)
    order = np.lexsort((pairs[:, 1], pairs[:, 0]))
    return pairs[order]


def find_duplicates(points: np.ndarray, tolerance: float) -> np.ndarray:
    """Index pairs of nodes that coincide within tolerance."""
    return cluster_by_distance(points, tolerance)


def angles_around_axis(points: np.ndarray, axis: np.ndarray) -> np.ndarray:
    """
    Signed angle in [0, 2pi) of each point around `axis`.

    Points are projected onto the plane orthogonal to the axis. Angles are
    measured counter-clockwise (right-handed about the axis) from the
    projection of the first point, which therefore gets angle 0.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    axis = normalize(axis)
    ax_x = points[0] - np.dot(points[0], axis) * axis
    ax_x = normalize(ax_x)
    ax_y = normalize(np.cross(axis, ax_x))
    angles = np.arctan2(points @ ax_y, points @ ax_x)
    angles = np.mod(angles, 2.0 * np.pi)
    angles[0] = 0.0
    return angles
