"""
Voronoi vertices from Delaunay triangles.

Every Delaunay triangle contributes its circumcenter as a candidate Voronoi
vertex. Where four or more nodes share one empty circumcircle, several
triangles have (numerically) the same circumcenter; such clusters are merged
into a single vertex so that the Voronoi network has no zero-length edges.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import structlog

from .geometry import circumcenter, cluster_by_distance, to_lonlat
from .incidence import Incidence, group_indices

logger = structlog.get_logger()


@dataclass
class VoronoiVertices:
    """Merged Voronoi vertices and their relation to the Delaunay triangles."""
    xyz: np.ndarray                  # (V, 3) unit vectors
    lonlat: np.ndarray               # (V, 2) radians
    delaunay_to_voronoi: np.ndarray  # (M,) triangle -> vertex
    voronoi_to_delaunay: Incidence   # vertex -> contributing triangles

    def __len__(self) -> int:
        return len(self.xyz)


class UnionFind:
    """Disjoint sets over range(n) with path compression and union by rank."""

    def __init__(self, n: int):
        self.parent = np.arange(n, dtype=np.int64)
        self.rank = np.zeros(n, dtype=np.int8)

    def find(self, i: int) -> int:
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return int(root)

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        if self.rank[root_a] < self.rank[root_b]:
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a
        if self.rank[root_a] == self.rank[root_b]:
            self.rank[root_a] += 1


def merge_clusters(centers: np.ndarray, tolerance: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Merge candidate vertices that lie within tolerance of each other.

    Proximity pairs are unioned transitively, so a chain of near-duplicates
    ends up as one cluster regardless of the order the pairs arrive in.
    Output indices are dense and assigned in order of first appearance.

    Args:
        centers: (M, 3) candidate vertices, one per triangle
        tolerance: Merge distance in radians

    Returns:
        Tuple of (mapping, representatives): mapping[t] is the merged vertex
        index of candidate t, representatives[v] the lowest candidate index
        in cluster v
    """
    m = len(centers)
    pairs = cluster_by_distance(centers, tolerance)
    roots = np.arange(m, dtype=np.int64)

    if len(pairs):
        clusters = UnionFind(m)
        for a, b in pairs:
            clusters.union(int(a), int(b))
        for i in np.unique(pairs):
            roots[i] = clusters.find(int(i))
        logger.debug("Merged cocircular clusters", pairs=len(pairs))

    _, first_seen, inverse = np.unique(roots, return_index=True, return_inverse=True)
    appearance = np.argsort(first_seen, kind="stable")
    dense = np.empty_like(appearance)
    dense[appearance] = np.arange(len(appearance))

    return dense[inverse.ravel()], first_seen[appearance]


def build_voronoi_vertices(points: np.ndarray, triangles: np.ndarray,
                           tolerance: float) -> VoronoiVertices:
    """
    Compute the merged Voronoi vertices of a Delaunay triangulation.

    Args:
        points: (N, 3) node unit vectors
        triangles: (M, 3) Delaunay triangles
        tolerance: Distance under which circumcenters are the same vertex

    Returns:
        VoronoiVertices with dense vertex indices
    """
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    logger.info("Computing Voronoi vertices", triangles=len(triangles))

    corners = points[triangles]
    centers = circumcenter(corners[:, 0], corners[:, 1], corners[:, 2])
    mapping, representatives = merge_clusters(centers, tolerance)

    xyz = centers[representatives]
    inverse = group_indices(mapping, np.arange(len(triangles)), len(xyz))

    logger.info("Voronoi vertices computed",
                vertices=len(xyz), merged=len(triangles) - len(xyz))
    return VoronoiVertices(
        xyz=xyz,
        lonlat=to_lonlat(xyz),
        delaunay_to_voronoi=mapping,
        voronoi_to_delaunay=inverse,
    )
