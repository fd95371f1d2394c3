"""
Voronoi tessellation and Delaunay triangulation of nodes on a sphere.

SphericalTessellation computes the Delaunay triangulation on construction
and derives everything else lazily:

    triangles -> Delaunay links
    triangles -> Voronoi vertices -> Voronoi network (edges + cell areas)
    Delaunay links + Voronoi network -> dual links

Each artifact is computed at most once per instance and kept for the
lifetime of the instance. Cached arrays are read-only and every query
returns the same array object. Once the Voronoi vertices and cell areas are
both known, the node coordinates are no longer needed and are released;
this keeps memory in check for node sets in the millions.

Cache-filling queries mutate the instance without locking, so the first
call to each query must not run concurrently with other calls on the same
instance.
"""

from dataclasses import dataclass
from enum import Flag
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from ..config import Settings, settings
from .dual_links import pair_keys, resolve_dual_links
from .errors import ConsistencyError, DuplicateNodeError, StructuralError, TessellationError
from .geometry import FULL_SPHERE, find_duplicates, nodes_to_cartesian
from .incidence import Incidence
from .special_cases import small_tessellation
from .triangulation import DelaunayAlgorithm, compute_delaunay, triangle_links
from .types import NO_LINK, Link, Node, Triangle
from .voronoi_network import build_voronoi_network
from .voronoi_vertices import build_voronoi_vertices

logger = structlog.get_logger()

ERROR_HINT = ("Changing tolerance or inverting the latitude coordinates "
              "may solve the problems encountered.")


class CacheState(Flag):
    """Derived artifacts that have been computed."""
    NONE = 0
    DELAUNAY_LINKS = 1
    VORONOI_VERTICES = 2
    VORONOI_NETWORK = 4
    VORONOI_CELL_AREAS = 8
    DUAL_LINKS = 16
    ALL = 31


# Flags that must already be set (or be set together) before each flag
CACHE_DEPENDENCIES = {
    CacheState.VORONOI_NETWORK: CacheState.VORONOI_VERTICES,
    CacheState.VORONOI_CELL_AREAS: CacheState.VORONOI_VERTICES,
    CacheState.DUAL_LINKS: CacheState.DELAUNAY_LINKS | CacheState.VORONOI_NETWORK,
}


class ConsistencyCheck(Flag):
    """Checks run once at construction."""
    NONE = 0
    DUAL_LINKS = 1  # every Delaunay link must resolve to a Voronoi link
    CELL_AREAS = 2  # cell areas must sum to 4 pi within 10 * N * tolerance
    ALL = 3


@dataclass
class TessellationOptions:
    """Options for building a SphericalTessellation."""
    tolerance: float = 1e-10
    algorithm: DelaunayAlgorithm = DelaunayAlgorithm.QHULL
    checks: ConsistencyCheck = ConsistencyCheck.ALL
    on_error_display_nodes: bool = False

    def __post_init__(self):
        self.algorithm = DelaunayAlgorithm(self.algorithm)
        if self.tolerance <= 0.0:
            raise ValueError(f"Tolerance must be positive, got {self.tolerance}")

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "TessellationOptions":
        """Options with the defaults configured through the environment."""
        source = source or settings
        checks = ConsistencyCheck.NONE
        if source.check_dual_links:
            checks |= ConsistencyCheck.DUAL_LINKS
        if source.check_cell_areas:
            checks |= ConsistencyCheck.CELL_AREAS
        return cls(
            tolerance=source.tolerance,
            algorithm=DelaunayAlgorithm(source.algorithm),
            checks=checks,
            on_error_display_nodes=source.on_error_display_nodes,
        )


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


def _as_lonlat(nodes: Union[Sequence[Node], np.ndarray]) -> np.ndarray:
    lonlat = np.array(nodes, dtype=float)
    if lonlat.size == 0:
        return lonlat.reshape(0, 2)
    if lonlat.ndim != 2 or lonlat.shape[1] != 2:
        raise ValueError(f"Nodes must be (N, 2) longitude/latitude pairs, got shape {lonlat.shape}")
    return lonlat


class SphericalTessellation:
    """Voronoi tessellation and Delaunay triangulation of nodes on the unit sphere."""

    def __init__(self, nodes: Union[Sequence[Node], np.ndarray],
                 options: Optional[TessellationOptions] = None):
        """
        Triangulate the nodes and run the requested consistency checks.

        Args:
            nodes: Node instances or an (N, 2) array of [lon, lat] in radians
            options: Tolerance, algorithm and checks; defaults from settings

        Raises:
            ValueError: If the node array has the wrong shape
            TessellationError: If triangulation or a consistency check fails;
                the original error is chained as __cause__ and its kind kept
        """
        self.options = options or TessellationOptions.from_settings()
        self.tolerance = self.options.tolerance
        lonlat = _as_lonlat(nodes)
        self.n = len(lonlat)

        self._points: Optional[np.ndarray] = nodes_to_cartesian(lonlat)
        self._state = CacheState.NONE
        self._triangles = np.empty((0, 3), dtype=np.int64)
        self._delaunay_links: Optional[np.ndarray] = None
        self._voronoi_xyz: Optional[np.ndarray] = None
        self._voronoi_lonlat: Optional[np.ndarray] = None
        self._voronoi_links: Optional[np.ndarray] = None
        self._delaunay_to_voronoi: Optional[np.ndarray] = None
        self._voronoi_to_delaunay: Optional[Incidence] = None
        self._areas: Optional[np.ndarray] = None
        self._dual_links: Optional[np.ndarray] = None

        logger.info("Creating spherical tessellation", nodes=self.n,
                    tolerance=self.tolerance, algorithm=self.options.algorithm.value)
        try:
            if self.n <= 3:
                self._build_small()
            else:
                self._triangles = _frozen(compute_delaunay(
                    self._points, self.tolerance, self.options.algorithm))
                self._run_checks()
        except TessellationError as e:
            displayed = None
            if self.options.on_error_display_nodes:
                displayed = lonlat
                logger.error("Node set that caused the error", nodes=lonlat.tolist())
            raise TessellationError(
                f"Tessellation failed: {e}", kind=e.kind, hint=ERROR_HINT, nodes=displayed
            ) from e

    def _build_small(self) -> None:
        """Adopt the closed-form artifacts for at most three nodes."""
        if self.n > 1:
            duplicates = find_duplicates(self._points, self.tolerance)
            if len(duplicates):
                raise DuplicateNodeError(duplicates, self.tolerance)

        small = small_tessellation(self._points)
        self._triangles = _frozen(small.triangles)
        self._delaunay_links = _frozen(small.delaunay_links)
        self._voronoi_xyz = _frozen(small.voronoi_xyz)
        self._voronoi_lonlat = _frozen(small.voronoi_lonlat)
        self._voronoi_links = _frozen(small.voronoi_links)
        self._delaunay_to_voronoi = _frozen(small.delaunay_to_voronoi)
        self._voronoi_to_delaunay = small.voronoi_to_delaunay
        self._areas = _frozen(small.areas)
        self._dual_links = _frozen(small.dual_links)
        self._mark_cached(CacheState.ALL)

    def _run_checks(self) -> None:
        checks = self.options.checks
        if ConsistencyCheck.DUAL_LINKS in checks:
            self._calculate_dual_links()

        if ConsistencyCheck.CELL_AREAS in checks:
            self._calculate_voronoi_cell_areas()
            total = float(np.sum(self._areas))
            bound = 10.0 * self.n * self.tolerance
            if abs(total - FULL_SPHERE) > bound:
                raise ConsistencyError(
                    f"Sum of Voronoi areas ({total!r}) is more than 10*N times farther "
                    f"than tolerance away from 4pi={FULL_SPHERE!r}"
                )
            logger.debug("Cell area check passed", deviation=abs(total - FULL_SPHERE), bound=bound)

    # ------------------------------------------------------------------
    # Cache management

    @property
    def cache_state(self) -> CacheState:
        return self._state

    @property
    def nodes_released(self) -> bool:
        """True once the node coordinates have been dropped."""
        return self._points is None

    def _mark_cached(self, flags: CacheState) -> None:
        """Set cache flags; a flag needs all its dependencies set before or with it."""
        available = self._state | flags
        for flag, required in CACHE_DEPENDENCIES.items():
            if flag in flags and (required & ~available) != CacheState.NONE:
                raise StructuralError(
                    f"Cannot mark {flag} cached before {required & ~available}"
                )
        self._state = available
        self._tidy_up()

    def _tidy_up(self) -> None:
        """Release node coordinates once nothing left to compute needs them."""
        done = CacheState.VORONOI_VERTICES | CacheState.VORONOI_CELL_AREAS
        if self._points is not None and (self._state & done) == done:
            self._points = None
            logger.debug("Released node coordinates", nodes=self.n)

    def _calculate_delaunay_links(self) -> None:
        if CacheState.DELAUNAY_LINKS in self._state:
            return
        self._delaunay_links = _frozen(triangle_links(self._triangles))
        self._mark_cached(CacheState.DELAUNAY_LINKS)

    def _calculate_voronoi_vertices(self) -> None:
        if CacheState.VORONOI_VERTICES in self._state:
            return
        vertices = build_voronoi_vertices(self._points, self._triangles, self.tolerance)
        self._voronoi_xyz = _frozen(vertices.xyz)
        self._voronoi_lonlat = _frozen(vertices.lonlat)
        self._delaunay_to_voronoi = _frozen(vertices.delaunay_to_voronoi)
        self._voronoi_to_delaunay = vertices.voronoi_to_delaunay
        self._mark_cached(CacheState.VORONOI_VERTICES)

    def _calculate_voronoi_network(self) -> None:
        if CacheState.VORONOI_NETWORK in self._state:
            return
        self._calculate_voronoi_vertices()

        network = build_voronoi_network(self._points, self._triangles,
                                        self._delaunay_to_voronoi, self._voronoi_xyz)
        self._voronoi_links = _frozen(network.links)
        self._areas = _frozen(network.areas)
        # One pass yields both edges and areas
        self._mark_cached(CacheState.VORONOI_NETWORK | CacheState.VORONOI_CELL_AREAS)

    def _calculate_voronoi_cell_areas(self) -> None:
        if CacheState.VORONOI_CELL_AREAS in self._state:
            return
        self._calculate_voronoi_network()

    def _calculate_dual_links(self) -> None:
        if CacheState.DUAL_LINKS in self._state:
            return
        self._calculate_delaunay_links()
        self._calculate_voronoi_network()

        self._dual_links = _frozen(resolve_dual_links(
            self._delaunay_links, self._triangles, self._delaunay_to_voronoi,
            self._voronoi_links, self.n))
        self._mark_cached(CacheState.DUAL_LINKS)

    # ------------------------------------------------------------------
    # Queries

    def size(self) -> int:
        """Number of Delaunay triangles."""
        return len(self._triangles)

    def __len__(self) -> int:
        return self.size()

    def delaunay_triangles(self) -> np.ndarray:
        """(M, 3) Delaunay triangles as node-index triples."""
        return self._triangles

    def delaunay_triangulation(self) -> np.ndarray:
        """(L, 2) Delaunay links, canonical (i < j) and sorted."""
        self._calculate_delaunay_links()
        return self._delaunay_links

    def voronoi_tesselation(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Voronoi vertices and links.

        Returns:
            Tuple of ((V, 2) vertex [lon, lat] in radians, (E, 2) links)
        """
        self._calculate_voronoi_network()
        return self._voronoi_lonlat, self._voronoi_links

    def voronoi_cell_areas(self) -> np.ndarray:
        """(N,) Voronoi cell area of every node, in steradians."""
        self._calculate_voronoi_cell_areas()
        return self._areas

    def dual_links(self) -> np.ndarray:
        """
        (L,) index of the Voronoi link dual to each Delaunay link.

        Entries are NO_LINK where the dual edge has collapsed to a point
        (merged cocircular nodes) or cannot be expressed (concyclic nodes).
        """
        self._calculate_dual_links()
        return self._dual_links

    def dual_link(self, link: Iterable[int]) -> Optional[Link]:
        """
        The Voronoi link dual to one Delaunay link.

        Returns:
            Canonical Voronoi Link, or None if the dual is undefined

        Raises:
            KeyError: If the link is not part of the Delaunay triangulation
        """
        a, b = link
        key = Link.canonical(int(a), int(b))
        links = self.delaunay_triangulation()
        duals = self.dual_links()

        keys = pair_keys(links, max(self.n, 1))
        query = key.i * max(self.n, 1) + key.j
        position = int(np.searchsorted(keys, query))
        if position >= len(keys) or keys[position] != query:
            raise KeyError(f"{key} is not a Delaunay link")

        index = duals[position]
        if index == NO_LINK:
            return None
        return Link(*(int(v) for v in self._voronoi_links[index]))

    def delaunay_to_voronoi(self) -> np.ndarray:
        """(M,) Voronoi vertex index of every Delaunay triangle."""
        self._calculate_voronoi_vertices()
        return self._delaunay_to_voronoi

    def associated_nodes(self, voronoi_vertices: Iterable[int]) -> np.ndarray:
        """
        Nodes whose Voronoi cells touch any of the given Voronoi vertices.

        Args:
            voronoi_vertices: Voronoi vertex indices

        Returns:
            Sorted array of node indices
        """
        self._calculate_voronoi_vertices()
        vertices = np.asarray(list(voronoi_vertices), dtype=np.int64)
        if len(vertices) == 0:
            return np.empty(0, dtype=np.int64)

        contributing = np.concatenate([self._voronoi_to_delaunay[v] for v in vertices])
        return np.unique(self._triangles[contributing])

    def debug_summary(self, sort_triangles: bool = True) -> Dict[str, List]:
        """
        Log the triangulation and, if known, the Voronoi vertices.

        Triangles are rotated so that their smallest index comes first; with
        sort_triangles they are also sorted, which makes two triangulations
        of the same nodes easy to compare. Vertices follow the triangle
        order and are given in degrees.
        """
        rotated = [Triangle(*(int(v) for v in t)).rotated() for t in self._triangles]
        order = list(range(len(rotated)))
        if sort_triangles:
            order.sort(key=lambda t: rotated[t])

        summary = {"triangles": [list(rotated[t]) for t in order]}
        if CacheState.VORONOI_VERTICES in self._state:
            degrees = np.degrees(self._voronoi_lonlat[self._delaunay_to_voronoi[order]])
            summary["voronoi_vertices"] = degrees.tolist()

        logger.debug("Tessellation debug output", **summary)
        return summary
