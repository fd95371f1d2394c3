"""Value types shared by the tessellation modules."""

from typing import NamedTuple

# Dual map entry for Delaunay links without a Voronoi counterpart
NO_LINK = -1


class Node(NamedTuple):
    """A point on the unit sphere, in radians."""
    lon: float
    lat: float


class Triangle(NamedTuple):
    """Ordered triple of node indices.

    (i, j, k) and (i, k, j) are the two windings of the same three nodes and
    have antipodal circumcenters.
    """
    i: int
    j: int
    k: int

    def common_border(self, other: "Triangle") -> bool:
        """True if both triangles share exactly two node indices."""
        return len(set(self) & set(other)) == 2

    def rotated(self) -> "Triangle":
        """Same winding, rotated so the smallest index comes first."""
        if self.k < self.i and self.k < self.j:
            return Triangle(self.k, self.i, self.j)
        if self.j < self.i and self.j < self.k:
            return Triangle(self.j, self.k, self.i)
        return self


class Link(NamedTuple):
    """Undirected edge between two indices, canonical when i < j."""
    i: int
    j: int

    @classmethod
    def canonical(cls, a: int, b: int) -> "Link":
        if a < b:
            return cls(a, b)
        return cls(b, a)
