"""
Arena-style incidence lists.

One flat array holds the member indices of all groups back to back; an
offsets array of length K + 1 marks where each group starts. This avoids one
Python list per node, which matters for node sets in the millions.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Incidence:
    """Groups of indices, addressed by key."""
    indices: np.ndarray
    offsets: np.ndarray

    def __len__(self) -> int:
        return len(self.offsets) - 1

    def __getitem__(self, key: int) -> np.ndarray:
        return self.indices[self.offsets[key]:self.offsets[key + 1]]

    def counts(self) -> np.ndarray:
        return np.diff(self.offsets)


def group_indices(keys: np.ndarray, members: np.ndarray, n_keys: int) -> Incidence:
    """
    Group `members` by their `keys`.

    Members keep their relative order within each group.

    Args:
        keys: Key of every member, values in range(n_keys)
        members: Member indices, same length as keys
        n_keys: Number of groups

    Returns:
        Incidence with one group per key
    """
    keys = np.asarray(keys, dtype=np.int64).ravel()
    members = np.asarray(members, dtype=np.int64).ravel()
    order = np.argsort(keys, kind="stable")
    offsets = np.zeros(n_keys + 1, dtype=np.int64)
    np.cumsum(np.bincount(keys, minlength=n_keys), out=offsets[1:])
    return Incidence(indices=members[order], offsets=offsets)


def node_triangles(triangles: np.ndarray, n_nodes: int) -> Incidence:
    """Triangles incident to each node, in ascending triangle order."""
    triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    owners = np.repeat(np.arange(len(triangles), dtype=np.int64), 3)
    return group_indices(triangles.ravel(), owners, n_nodes)
