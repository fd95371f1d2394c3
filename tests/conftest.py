"""Shared node sets for the tessellation tests."""

import itertools

import numpy as np
import pytest

from py_sphtess.core.geometry import to_lonlat
from py_sphtess.core.tessellation import ConsistencyCheck, TessellationOptions
from py_sphtess.utils.random import random_sphere_nodes


@pytest.fixture
def octahedron_nodes():
    """Six nodes at the unit axis directions: no four of them share an empty circle."""
    return np.array([
        [0.0, 0.0],
        [np.pi / 2, 0.0],
        [np.pi, 0.0],
        [-np.pi / 2, 0.0],
        [0.0, np.pi / 2],
        [0.0, -np.pi / 2],
    ])


@pytest.fixture
def cube_nodes():
    """Eight cube corners: every face holds four cocircular nodes."""
    corners = np.array(list(itertools.product([-1.0, 1.0], repeat=3))) / np.sqrt(3.0)
    return to_lonlat(corners)


@pytest.fixture
def tetrahedron_nodes():
    corners = np.array([[1, 1, 1], [1, -1, -1], [-1, 1, -1], [-1, -1, 1]]) / np.sqrt(3.0)
    return to_lonlat(corners)


@pytest.fixture
def equator_nodes():
    """Six evenly spaced nodes on the equator."""
    lon = np.arange(6) * np.pi / 3
    return np.column_stack([lon, np.zeros(6)])


@pytest.fixture
def random_nodes():
    return random_sphere_nodes(200, seed=20160101)


@pytest.fixture
def unchecked():
    """Options that skip the construction-time checks, so nothing is cached up front."""
    return TessellationOptions(checks=ConsistencyCheck.NONE)
