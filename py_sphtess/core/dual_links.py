"""
Dual map from Delaunay links to Voronoi links.

A Delaunay link (a, b) is shared by exactly two triangles; their two
Voronoi vertices span the Voronoi edge that crosses (a, b). Where both
triangles were merged into one vertex (cocircular nodes) the dual edge has
zero length and the link has no dual.
"""

import numpy as np
import structlog

from .errors import ConsistencyError, StructuralError
from .types import NO_LINK

logger = structlog.get_logger()

# Edges of a triangle as pairs of corner positions
TRIANGLE_EDGES = np.array([[0, 1], [0, 2], [1, 2]])


def pair_keys(pairs: np.ndarray, base: int) -> np.ndarray:
    """Encode canonical index pairs as sortable integers."""
    return pairs[:, 0] * np.int64(base) + pairs[:, 1]


def triangle_pairs(triangles: np.ndarray, links: np.ndarray, n_nodes: int) -> np.ndarray:
    """
    The two triangles sharing each link.

    Args:
        triangles: (M, 3) Delaunay triangles
        links: (L, 2) canonical Delaunay links
        n_nodes: Number of input nodes

    Returns:
        (L, 2) triangle indices

    Raises:
        StructuralError: If a link is not shared by exactly two triangles
    """
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    links = np.asarray(links, dtype=np.int64).reshape(-1, 2)

    edges = np.sort(triangles[:, TRIANGLE_EDGES].reshape(-1, 2), axis=1)
    owners = np.repeat(np.arange(len(triangles), dtype=np.int64), 3)
    edge_keys = pair_keys(edges, n_nodes)
    order = np.argsort(edge_keys, kind="stable")
    edge_keys, owners = edge_keys[order], owners[order]

    unique_keys, first, counts = np.unique(edge_keys, return_index=True, return_counts=True)
    link_keys = pair_keys(links, n_nodes)
    position = np.searchsorted(unique_keys, link_keys)
    position = np.minimum(position, max(len(unique_keys) - 1, 0))

    if len(unique_keys):
        valid = (unique_keys[position] == link_keys) & (counts[position] == 2)
    else:
        valid = np.zeros(len(links), dtype=bool)
    if not np.all(valid):
        bad = int(np.flatnonzero(~valid)[0])
        matched = len(unique_keys) and unique_keys[position[bad]] == link_keys[bad]
        found = int(counts[position[bad]]) if matched else 0
        raise StructuralError(
            f"Dual edge not found: Delaunay link ({links[bad, 0]}, {links[bad, 1]}) "
            f"is shared by {found} triangles instead of two"
        )

    start = first[position]
    return np.column_stack([owners[start], owners[start + 1]])


def resolve_dual_links(delaunay_links: np.ndarray, triangles: np.ndarray,
                       delaunay_to_voronoi: np.ndarray, voronoi_links: np.ndarray,
                       n_nodes: int) -> np.ndarray:
    """
    Map each Delaunay link to the index of its dual Voronoi link.

    Voronoi links are looked up through their sorted integer keys.

    Args:
        delaunay_links: (L, 2) canonical Delaunay links
        triangles: (M, 3) Delaunay triangles
        delaunay_to_voronoi: (M,) triangle -> Voronoi vertex
        voronoi_links: (E, 2) canonical Voronoi links
        n_nodes: Number of input nodes

    Returns:
        (L,) index into voronoi_links, or NO_LINK where the dual is undefined

    Raises:
        StructuralError: If a Delaunay link is not shared by two triangles
        ConsistencyError: If a dual edge is missing from the Voronoi links
    """
    delaunay_links = np.asarray(delaunay_links, dtype=np.int64).reshape(-1, 2)
    voronoi_links = np.asarray(voronoi_links, dtype=np.int64).reshape(-1, 2)
    n_vertices = len(np.unique(delaunay_to_voronoi))
    logger.info("Resolving dual links",
                delaunay_links=len(delaunay_links), voronoi_links=len(voronoi_links))

    if n_vertices == 2:
        # Concyclic nodes: all Voronoi edges join the same two vertices
        return np.full(len(delaunay_links), NO_LINK, dtype=np.int64)

    pairs = triangle_pairs(triangles, delaunay_links, n_nodes)
    duals = np.sort(delaunay_to_voronoi[pairs], axis=1)
    collapsed = duals[:, 0] == duals[:, 1]

    result = np.full(len(delaunay_links), NO_LINK, dtype=np.int64)
    wanted = np.flatnonzero(~collapsed)
    if len(wanted):
        base = max(n_vertices, 1)
        voronoi_keys = pair_keys(voronoi_links, base)
        sorter = np.argsort(voronoi_keys, kind="stable")
        query = pair_keys(duals[wanted], base)
        position = np.searchsorted(voronoi_keys, query, sorter=sorter)
        position = np.minimum(position, max(len(voronoi_keys) - 1, 0))
        if len(voronoi_keys):
            hits = sorter[position]
            missing = voronoi_keys[hits] != query
        else:
            hits = np.zeros(len(query), dtype=np.int64)
            missing = np.ones(len(query), dtype=bool)
        if np.any(missing):
            first = int(np.argmax(missing))
            a, b = duals[wanted[first]]
            raise ConsistencyError(f"Link ({a}, {b}) not found in set of Voronoi links")
        result[wanted] = hits

    logger.info("Dual links resolved", undefined=int(np.count_nonzero(collapsed)))
    return result
