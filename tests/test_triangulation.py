"""Tests for the Delaunay triangulation strategies."""

import numpy as np
import pytest

from py_sphtess.core.errors import DuplicateNodeError, ErrorKind
from py_sphtess.core.geometry import circumcenter, distance, nodes_to_cartesian
from py_sphtess.core.triangulation import (
    DelaunayAlgorithm, compute_delaunay, coplanar_normal, delaunay_brute_force,
    double_fan, triangle_links
)
from py_sphtess.core.types import Triangle
from py_sphtess.utils.random import random_sphere_nodes

TOLERANCE = 1e-10


def rotated_set(triangles):
    return {Triangle(*(int(v) for v in t)).rotated() for t in triangles}


class TestComputeDelaunay:
    """Test the triangulation entry point."""

    def test_tetrahedron(self, tetrahedron_nodes):
        """Test that four nodes in general position give four triangles."""
        triangles = compute_delaunay(nodes_to_cartesian(tetrahedron_nodes), TOLERANCE)
        assert triangles.shape == (4, 3)
        assert set(np.unique(triangles)) == {0, 1, 2, 3}

    def test_triangle_count(self, random_nodes):
        """Test Euler's formula: a triangulated sphere has 2N - 4 triangles."""
        triangles = compute_delaunay(nodes_to_cartesian(random_nodes), TOLERANCE)
        assert len(triangles) == 2 * len(random_nodes) - 4

    def test_empty_circumcircles(self, random_nodes):
        """Test that no node lies inside a triangle's circumcircle."""
        points = nodes_to_cartesian(random_nodes)
        triangles = compute_delaunay(points, TOLERANCE)

        corners = points[triangles]
        centers = circumcenter(corners[:, 0], corners[:, 1], corners[:, 2])
        radius = distance(centers, corners[:, 0])
        nearest = np.min(distance(centers[:, None, :], points[None, :, :]), axis=1)
        np.testing.assert_allclose(nearest, radius, atol=1e-12)

    def test_fewer_than_three_nodes(self):
        """Test that one or two nodes give no triangles."""
        points = nodes_to_cartesian(np.array([[0.0, 0.0], [1.0, 0.5]]))
        assert compute_delaunay(points, TOLERANCE).shape == (0, 3)

    def test_duplicates_rejected(self):
        """Test that nodes closer than tolerance are reported."""
        nodes = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1e-12], [2.0, 1.0]])
        with pytest.raises(DuplicateNodeError) as excinfo:
            compute_delaunay(nodes_to_cartesian(nodes), TOLERANCE)

        assert excinfo.value.kind is ErrorKind.INPUT
        np.testing.assert_array_equal(excinfo.value.pairs, [[0, 2]])

    def test_distinct_nodes_just_outside_tolerance(self):
        """Test that nodes farther apart than tolerance are accepted."""
        nodes = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1e-4], [2.0, 1.0], [0.5, -1.2]])
        triangles = compute_delaunay(nodes_to_cartesian(nodes), 1e-6)
        assert len(triangles) == 6

    def test_algorithm_by_name(self, tetrahedron_nodes):
        """Test that the strategy may be given by its string value."""
        triangles = compute_delaunay(nodes_to_cartesian(tetrahedron_nodes), TOLERANCE,
                                     "brute_force")
        assert len(triangles) == 4


class TestConcyclicNodes:
    """Test triangulation of nodes that all lie on one circle."""

    def test_coplanar_detected(self, equator_nodes):
        normal = coplanar_normal(nodes_to_cartesian(equator_nodes), TOLERANCE)
        assert normal is not None
        np.testing.assert_allclose(np.abs(normal), [0.0, 0.0, 1.0], atol=1e-12)

    def test_general_position_not_coplanar(self, random_nodes):
        assert coplanar_normal(nodes_to_cartesian(random_nodes), TOLERANCE) is None

    def test_double_fan(self, equator_nodes):
        """Test that each cap is fanned from the same apex."""
        triangles = compute_delaunay(nodes_to_cartesian(equator_nodes), TOLERANCE)

        assert triangles.shape == (8, 3)
        assert np.all(triangles[:, 0] == triangles[0, 0])

    def test_caps_alternate(self, equator_nodes):
        """Test that the fans alternate between the two poles."""
        points = nodes_to_cartesian(equator_nodes)
        triangles = double_fan(points, np.array([0.0, 0.0, 1.0]))

        corners = points[triangles]
        centers = circumcenter(corners[:, 0], corners[:, 1], corners[:, 2])
        np.testing.assert_allclose(centers[0::2], np.tile([0.0, 0.0, 1.0], (4, 1)), atol=1e-12)
        np.testing.assert_allclose(centers[1::2], np.tile([0.0, 0.0, -1.0], (4, 1)), atol=1e-12)

    def test_small_circle(self):
        """Test nodes on a circle that is not a great circle."""
        lon = np.array([0.0, 0.5, 1.7, 3.0, 4.4])
        nodes = np.column_stack([lon, np.full(5, np.pi / 6)])
        triangles = compute_delaunay(nodes_to_cartesian(nodes), TOLERANCE)
        assert triangles.shape == (6, 3)


class TestBruteForce:
    """Test the exhaustive empty-circle search."""

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_matches_convex_hull(self, seed):
        """Test that both strategies find the same triangles with the same winding."""
        points = nodes_to_cartesian(random_sphere_nodes(12, seed=seed))

        hull = compute_delaunay(points, TOLERANCE, DelaunayAlgorithm.QHULL)
        brute = compute_delaunay(points, TOLERANCE, DelaunayAlgorithm.BRUTE_FORCE)

        assert rotated_set(brute) == rotated_set(hull)

    def test_one_winding_per_triple(self, tetrahedron_nodes):
        """Test that exactly one winding of each hull triangle survives."""
        triangles = delaunay_brute_force(nodes_to_cartesian(tetrahedron_nodes), TOLERANCE)
        triples = {tuple(sorted(int(v) for v in t)) for t in triangles}
        assert len(triangles) == 4
        assert len(triples) == 4


class TestTriangleLinks:
    """Test extraction of Delaunay links from triangles."""

    def test_links_are_canonical(self):
        links = triangle_links(np.array([[2, 1, 0], [0, 3, 1]]))
        np.testing.assert_array_equal(links, [[0, 1], [0, 2], [0, 3], [1, 2], [1, 3]])

    def test_euler_link_count(self, random_nodes):
        """Test that a triangulated sphere has 3N - 6 links."""
        triangles = compute_delaunay(nodes_to_cartesian(random_nodes), TOLERANCE)
        assert len(triangle_links(triangles)) == 3 * len(random_nodes) - 6

    def test_no_triangles(self):
        assert triangle_links(np.empty((0, 3), dtype=np.int64)).shape == (0, 2)
