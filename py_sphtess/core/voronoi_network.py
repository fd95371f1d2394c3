"""
Voronoi network (edges) and Voronoi cell areas.

The Voronoi cell of a node is bounded by the circumcenters of the Delaunay
triangles around it. Walking those triangles in fan order gives the cell
boundary as a closed ring of Voronoi vertices: consecutive ring vertices are
the Voronoi edges, and the fan of spherical triangles between the node and
each ring edge adds up to the cell area.
"""

from dataclasses import dataclass
from typing import List

import numpy as np
import structlog

from .errors import StructuralError
from .geometry import triangle_area
from .incidence import node_triangles
from .special_cases import concyclic_cell_areas
from .types import Triangle

logger = structlog.get_logger()


@dataclass
class VoronoiNetwork:
    """Deduplicated Voronoi edges and per-node cell areas."""
    links: np.ndarray  # (E, 2) canonical vertex pairs, sorted
    areas: np.ndarray  # (N,) steradians


def fan_path(node: int, incident: np.ndarray, triangles: np.ndarray) -> List[int]:
    """
    Order the triangles around a node into a closed fan.

    Starting from the first incident triangle, repeatedly appends an unused
    incident triangle that shares an edge with the last one. This is
    O(k^2) for k incident triangles, which is fine as long as k stays small
    (it is bounded by the local node density, about six on average).

    Raises:
        StructuralError: If the fan cannot be continued while triangles remain
    """
    local = [Triangle(*triangles[t]) for t in incident]
    available = [True] * len(local)
    available[0] = False

    path = [int(incident[0])]
    last = local[0]
    for _ in range(1, len(local)):
        for k in range(1, len(local)):
            if available[k] and last.common_border(local[k]):
                path.append(int(incident[k]))
                last = local[k]
                available[k] = False
                break
        else:
            raise StructuralError(
                f"Triangle fan around node {node} cannot be closed: "
                f"{len(path)} of {len(local)} incident triangles reached"
            )
    return path


def cell_ring(path: List[int], delaunay_to_voronoi: np.ndarray) -> np.ndarray:
    """Voronoi vertices along a fan, without repeats of merged vertices."""
    vertices = delaunay_to_voronoi[path]
    return vertices[vertices != np.roll(vertices, 1)]


def build_voronoi_network(points: np.ndarray, triangles: np.ndarray,
                          delaunay_to_voronoi: np.ndarray,
                          voronoi_xyz: np.ndarray) -> VoronoiNetwork:
    """
    Derive Voronoi edges and cell areas from the triangulation.

    Args:
        points: (N, 3) node unit vectors
        triangles: (M, 3) Delaunay triangles
        delaunay_to_voronoi: (M,) triangle -> merged Voronoi vertex
        voronoi_xyz: (V, 3) Voronoi vertex unit vectors

    Returns:
        VoronoiNetwork with each edge listed once

    Raises:
        StructuralError: If some node's triangle fan is malformed
    """
    n = len(points)
    logger.info("Computing Voronoi network", nodes=n, vertices=len(voronoi_xyz))

    if len(voronoi_xyz) == 2:
        # All nodes on one circle: every cell is a lune between the two
        # vertices and edges cannot be told apart
        logger.info("Concyclic node set, cell areas from angular gaps")
        return VoronoiNetwork(
            links=np.empty((0, 2), dtype=np.int64),
            areas=concyclic_cell_areas(points, voronoi_xyz[0]),
        )

    incidence = node_triangles(triangles, n)
    capacity = len(incidence.indices)
    apex = np.empty(capacity, dtype=np.int64)
    ring_from = np.empty(capacity, dtype=np.int64)
    ring_to = np.empty(capacity, dtype=np.int64)

    cursor = 0
    for i in range(n):
        incident = incidence[i]
        if len(incident) == 0:
            raise StructuralError(f"Node {i} is not part of any Delaunay triangle")

        ring = cell_ring(fan_path(i, incident, triangles), delaunay_to_voronoi)
        size = len(ring)
        apex[cursor:cursor + size] = i
        ring_from[cursor:cursor + size] = ring
        ring_to[cursor:cursor + size] = np.roll(ring, -1)
        cursor += size

    apex, ring_from, ring_to = apex[:cursor], ring_from[:cursor], ring_to[:cursor]

    partial = triangle_area(points[apex], voronoi_xyz[ring_from], voronoi_xyz[ring_to])
    areas = np.bincount(apex, weights=partial, minlength=n)

    # Every edge borders two cells and is emitted once from each
    emitted = np.sort(np.column_stack([ring_from, ring_to]), axis=1)
    if len(emitted):
        links, counts = np.unique(emitted, axis=0, return_counts=True)
    else:
        links, counts = emitted.reshape(0, 2), np.empty(0, dtype=np.int64)
    irregular = np.count_nonzero(counts != 2)
    if irregular:
        logger.warning("Voronoi edges not shared by exactly two cells", edges=irregular)

    logger.info("Voronoi network computed", edges=len(links))
    return VoronoiNetwork(links=links.astype(np.int64), areas=areas)
