#!/usr/bin/env python3
"""
Demonstration of spherical tessellation features.

This script walks through:
1. Lazy derivation and caching
2. Merging of cocircular nodes (cube corners)
3. Concyclic node sets
4. Error reporting for duplicate nodes
"""

import itertools

import numpy as np

from py_sphtess import SphericalTessellation, TessellationError, TessellationOptions
from py_sphtess.core import ConsistencyCheck
from py_sphtess.core.geometry import to_lonlat
from py_sphtess.utils.random import random_sphere_nodes


def main():
    print("=== Spherical Tessellation Demo ===\n")

    # 1. Nothing beyond the triangulation is computed until asked for
    print("1. Lazy derivation on 1000 random nodes...")
    nodes = random_sphere_nodes(1000, seed=42)
    tessellation = SphericalTessellation(nodes, TessellationOptions(checks=ConsistencyCheck.NONE))
    print(f"   - Triangles: {tessellation.size()}")
    print(f"   - Cached after construction: {tessellation.cache_state}")

    areas = tessellation.voronoi_cell_areas()
    print(f"   - Cached after cell areas: {tessellation.cache_state}")
    print(f"   - Nodes released: {tessellation.nodes_released}")
    print(f"   - Area sum - 4pi: {areas.sum() - 4 * np.pi:.3e}")
    print(f"   - Same array on second call: {tessellation.voronoi_cell_areas() is areas}")

    # 2. Four nodes per cube face share one circumcircle
    print("\n2. Cube corners...")
    corners = np.array(list(itertools.product([-1.0, 1.0], repeat=3))) / np.sqrt(3.0)
    cube = SphericalTessellation(to_lonlat(corners))
    vertices, links = cube.voronoi_tesselation()
    undefined = np.count_nonzero(cube.dual_links() < 0)
    print(f"   - Triangles: {cube.size()}, merged Voronoi vertices: {len(vertices)}")
    print(f"   - Voronoi links: {len(links)}, Delaunay links: {len(cube.delaunay_triangulation())}")
    print(f"   - Links without dual (face diagonals): {undefined}")
    print(f"   - Cell areas: {np.round(cube.voronoi_cell_areas(), 6)}")

    # 3. All nodes on one circle: two vertices, lune-shaped cells
    print("\n3. Nodes on a small circle...")
    lon = np.array([0.0, 0.5, 1.7, 3.0, 4.4])
    ring = SphericalTessellation(np.column_stack([lon, np.full(5, np.pi / 6)]))
    vertices, links = ring.voronoi_tesselation()
    print(f"   - Voronoi vertices (deg): {np.round(np.degrees(vertices), 3).tolist()}")
    print(f"   - Voronoi links: {len(links)}")
    print(f"   - Cell areas: {np.round(ring.voronoi_cell_areas(), 6)}")

    # 4. Failures carry a kind and a hint
    print("\n4. Duplicate nodes...")
    try:
        SphericalTessellation(np.array([[0.0, 0.0], [1.0, 0.5], [0.0, 0.0], [2.0, -0.5]]))
    except TessellationError as e:
        print(f"   - Kind: {e.kind.value}")
        print(f"   - Cause: {e.__cause__}")
        print(f"   - Hint: {e.hint}")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
