"""
Random node sets on the sphere.

Nodes are drawn uniformly by area, so that random sets exercise the
tessellation the same way everywhere on the sphere, poles included.
"""

from typing import Optional

import numpy as np


def random_seed() -> int:
    """
    Draw a fresh seed.

    Log or print it to be able to reproduce a run later.
    """
    return int(np.random.SeedSequence().entropy % (2**63))


def random_sphere_nodes(n: int, seed: Optional[int] = None,
                        rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Generate nodes uniformly distributed on the unit sphere.

    Args:
        n: Number of nodes
        seed: Seed for a new generator (ignored if rng is given)
        rng: Generator to draw from, e.g. to produce several sets in sequence

    Returns:
        (n, 2) array of [lon, lat] in radians
    """
    if rng is None:
        rng = np.random.default_rng(seed)
    lon = 2.0 * np.pi * rng.random(n)
    lat = np.arcsin(2.0 * rng.random(n) - 1.0)
    return np.column_stack([lon, lat])
