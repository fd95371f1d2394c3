"""
Closed-form tessellations for node sets without a general triangulation.

For fewer than four nodes the fan-walking derivation does not apply, so all
artifacts are written down directly. Node sets that lie on a single circle
(the N = 3 case, and concyclic sets with N > 3) share the cell area rule in
`concyclic_cell_areas`.
"""

from dataclasses import dataclass, field

import numpy as np

from .geometry import FULL_SPHERE, angles_around_axis, circumcenter, to_lonlat
from .incidence import Incidence, group_indices
from .types import NO_LINK


def _no_links() -> np.ndarray:
    return np.empty((0, 2), dtype=np.int64)


@dataclass
class SmallTessellation:
    """All artifacts of a tessellation with at most three nodes."""
    areas: np.ndarray
    triangles: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.int64))
    delaunay_links: np.ndarray = field(default_factory=_no_links)
    voronoi_xyz: np.ndarray = field(default_factory=lambda: np.empty((0, 3)))
    voronoi_links: np.ndarray = field(default_factory=_no_links)
    delaunay_to_voronoi: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))
    dual_links: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))

    @property
    def voronoi_lonlat(self) -> np.ndarray:
        return to_lonlat(self.voronoi_xyz).reshape(-1, 2)

    @property
    def voronoi_to_delaunay(self) -> Incidence:
        return group_indices(self.delaunay_to_voronoi,
                             np.arange(len(self.delaunay_to_voronoi)),
                             len(self.voronoi_xyz))


def concyclic_cell_areas(points: np.ndarray, axis: np.ndarray) -> np.ndarray:
    """
    Voronoi cell areas of nodes that all lie on one circle.

    The circle's two poles are the only Voronoi vertices and every cell is a
    lune between them. A lune spanning an angle phi around the axis has area
    2 * phi, and a node's cell reaches halfway to each angular neighbour, so
    its area is the sum of the two angular gaps next to it.

    Args:
        points: (N, 3) node unit vectors, N >= 1
        axis: One of the circle's poles (any Voronoi vertex)

    Returns:
        (N,) cell areas summing to 4 pi
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    n = len(points)
    if n == 1:
        return np.array([FULL_SPHERE])

    angles = angles_around_axis(points, axis)
    order = np.argsort(angles, kind="stable")
    ordered = angles[order]

    # gaps[t] separates ordered node t from ordered node t + 1, wrapping around
    gaps = np.empty(n)
    gaps[:-1] = np.diff(ordered)
    gaps[-1] = 2.0 * np.pi - ordered[-1] + ordered[0]

    areas = np.empty(n)
    areas[order] = gaps + np.roll(gaps, 1)
    return areas


def small_tessellation(points: np.ndarray) -> SmallTessellation:
    """
    Tessellation of zero to three nodes.

    - 0 nodes: everything empty.
    - 1 node: its cell is the whole sphere.
    - 2 nodes: a great circle splits the sphere in half. The Voronoi vertices
      are not unique, so none are reported.
    - 3 nodes: two triangles (both windings), two antipodal Voronoi vertices.
      All three Voronoi edges join the same two vertices, which a network
      with at most one link per vertex pair cannot express, so no Voronoi
      edges are reported and no Delaunay link has a dual.

    Args:
        points: (N, 3) node unit vectors with N <= 3

    Returns:
        SmallTessellation
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    n = len(points)
    if n > 3:
        raise ValueError(f"Closed-form tessellation needs at most 3 nodes, got {n}")

    if n == 0:
        return SmallTessellation(areas=np.empty(0))
    if n == 1:
        return SmallTessellation(areas=np.array([FULL_SPHERE]))
    if n == 2:
        return SmallTessellation(areas=np.full(2, FULL_SPHERE / 2.0))

    p1, p2, p3 = points
    voronoi_xyz = np.stack([circumcenter(p1, p2, p3), circumcenter(p1, p3, p2)])
    delaunay_links = np.array([[0, 1], [0, 2], [1, 2]], dtype=np.int64)

    return SmallTessellation(
        areas=concyclic_cell_areas(points, voronoi_xyz[0]),
        triangles=np.array([[0, 1, 2], [0, 2, 1]], dtype=np.int64),
        delaunay_links=delaunay_links,
        voronoi_xyz=voronoi_xyz,
        delaunay_to_voronoi=np.array([0, 1], dtype=np.int64),
        dual_links=np.full(len(delaunay_links), NO_LINK, dtype=np.int64),
    )
