"""Tests for the spherical geometry kernel."""

import numpy as np
import pytest

from py_sphtess.core.geometry import (
    FULL_SPHERE, angles_around_axis, circumcenter, cluster_by_distance,
    distance, nodes_to_cartesian, to_cartesian, to_lonlat, triangle_area
)
from py_sphtess.core.types import Link, Node, Triangle

X = np.array([1.0, 0.0, 0.0])
Y = np.array([0.0, 1.0, 0.0])
Z = np.array([0.0, 0.0, 1.0])


class TestCoordinates:
    """Test conversion between lon/lat and unit vectors."""

    def test_axes(self):
        """Test that the reference directions land on the coordinate axes."""
        np.testing.assert_allclose(to_cartesian(0.0, 0.0), X, atol=1e-15)
        np.testing.assert_allclose(to_cartesian(np.pi / 2, 0.0), Y, atol=1e-15)
        np.testing.assert_allclose(to_cartesian(1.234, np.pi / 2), Z, atol=1e-15)

    def test_back_and_forth(self):
        """Test that converting to vectors and back preserves coordinates."""
        nodes = np.array([[0.3, -0.4], [-2.5, 1.1], [3.0, 0.0]])
        np.testing.assert_allclose(to_lonlat(nodes_to_cartesian(nodes)), nodes, atol=1e-14)

    def test_unnormalised_vectors(self):
        """Test that to_lonlat accepts vectors of any length."""
        np.testing.assert_allclose(to_lonlat(np.array([0.0, 0.0, 5.0])), [0.0, np.pi / 2])

    def test_unit_length(self):
        """Test that converted nodes are unit vectors."""
        points = nodes_to_cartesian(np.array([[0.1, 0.2], [4.0, -1.2]]))
        np.testing.assert_allclose(np.linalg.norm(points, axis=1), 1.0)


class TestDistance:
    """Test great-circle distances."""

    def test_orthogonal(self):
        assert distance(X, Y) == pytest.approx(np.pi / 2)

    def test_antipodal(self):
        assert distance(X, -X) == pytest.approx(np.pi)

    def test_identical(self):
        assert distance(Z, Z) == pytest.approx(0.0)

    def test_vectorised(self):
        """Test distances between stacks of points."""
        result = distance(np.array([X, Y]), np.array([Y, Y]))
        np.testing.assert_allclose(result, [np.pi / 2, 0.0], atol=1e-15)


class TestCircumcenter:
    """Test circumcenters of spherical triangles."""

    def test_octant(self):
        """Test that the octant triangle's circumcenter is its center."""
        center = circumcenter(X, Y, Z)
        np.testing.assert_allclose(center, np.ones(3) / np.sqrt(3.0))

    def test_winding_gives_antipode(self):
        """Test that reversing the winding flips the circumcenter."""
        np.testing.assert_allclose(circumcenter(X, Z, Y), -circumcenter(X, Y, Z))

    def test_equidistant(self):
        """Test that the circumcenter is equidistant from the corners."""
        p = nodes_to_cartesian(np.array([[0.1, 0.2], [1.0, -0.3], [0.5, 0.9]]))
        center = circumcenter(p[0], p[1], p[2])
        distances = distance(center, p)
        np.testing.assert_allclose(distances, distances[0])


class TestTriangleArea:
    """Test spherical triangle areas."""

    def test_octant(self):
        """Test that one octant covers an eighth of the sphere."""
        assert triangle_area(X, Y, Z) == pytest.approx(FULL_SPHERE / 8)

    def test_winding_independent(self):
        assert triangle_area(X, Z, Y) == pytest.approx(triangle_area(X, Y, Z))

    def test_degenerate(self):
        """Test that a triangle with coincident corners has no area."""
        assert triangle_area(X, X, Y) == pytest.approx(0.0)

    def test_large_triangle(self):
        """Test a triangle larger than a hemisphere's quarter."""
        a = to_cartesian(0.0, 0.0)
        b = to_cartesian(2 * np.pi / 3, 0.0)
        c = to_cartesian(4 * np.pi / 3, 0.0)
        # Three equator points span a hemisphere
        assert triangle_area(a, b, c) == pytest.approx(FULL_SPHERE / 2)


class TestClustering:
    """Test proximity clustering under tolerance."""

    def test_pairs_within_tolerance(self):
        """Test that only close points are paired."""
        points = to_cartesian(np.array([0.0, 2.0, 1e-6, 2.0 + 5e-7]), np.zeros(4))
        pairs = cluster_by_distance(points, 1e-5)
        np.testing.assert_array_equal(pairs, [[0, 2], [1, 3]])

    def test_no_pairs(self):
        points = to_cartesian(np.array([0.0, 1.0, 2.0]), np.zeros(3))
        assert cluster_by_distance(points, 1e-8).shape == (0, 2)

    def test_single_point(self):
        assert cluster_by_distance(X.reshape(1, 3), 1.0).shape == (0, 2)


class TestAnglesAroundAxis:
    """Test angular positions around an axis."""

    def test_equator(self):
        """Test that equator points are measured counter-clockwise about +z."""
        lon = np.array([0.5, 1.5, 3.0, 5.0])
        points = to_cartesian(lon, np.zeros(4))
        np.testing.assert_allclose(angles_around_axis(points, Z), lon - 0.5, atol=1e-14)

    def test_reverse_axis(self):
        """Test that the opposite axis measures the other way round."""
        points = to_cartesian(np.array([0.0, 1.0]), np.zeros(2))
        angles = angles_around_axis(points, -Z)
        assert angles[1] == pytest.approx(2 * np.pi - 1.0)


class TestValueTypes:
    """Test Node, Triangle and Link."""

    def test_node_fields(self):
        node = Node(lon=1.0, lat=-0.5)
        assert node.lon == 1.0 and node.lat == -0.5

    def test_common_border(self):
        """Test that triangles sharing two nodes have a common border."""
        assert Triangle(0, 1, 2).common_border(Triangle(2, 1, 5))
        assert not Triangle(0, 1, 2).common_border(Triangle(0, 3, 4))
        # Both windings of the same nodes share three, not two
        assert not Triangle(0, 1, 2).common_border(Triangle(0, 2, 1))

    def test_rotated(self):
        assert Triangle(5, 2, 7).rotated() == Triangle(2, 7, 5)
        assert Triangle(5, 7, 2).rotated() == Triangle(2, 5, 7)
        assert Triangle(1, 7, 2).rotated() == Triangle(1, 7, 2)

    def test_canonical_link(self):
        assert Link.canonical(7, 3) == Link(3, 7)
        assert Link.canonical(3, 7) == Link.canonical(7, 3)
