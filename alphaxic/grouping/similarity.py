"""Profile similarity and co-elution grouping.

Examples
--------
>>> profiles = np.array([
...     [0.0, 10.0, 100.0, 50.0, 5.0],
...     [0.0, 12.0, 95.0, 48.0, 6.0],
...     [100.0, 50.0, 10.0, 5.0, 0.0],  # Different elution
... ])
>>> matrix = similarity_matrix(profiles)
>>> connected_components(matrix, min_similarity=0.8)
[[0, 1], [2]]
"""

from __future__ import annotations

from typing import List

import numpy as np
from numba import njit


@njit
def cosine_similarity(profile1: np.ndarray, profile2: np.ndarray) -> float:
    """Calculate cosine similarity between two intensity profiles.

    Parameters
    ----------
    profile1 : np.ndarray
        First intensity profile (1D array)
    profile2 : np.ndarray
        Second intensity profile (same length as profile1)

    Returns
    -------
    float
        Cosine similarity in range [0, 1]; 0.0 if either profile is all zero

    Notes
    -----
    The cosine similarity is calculated as:
        similarity = dot(v1, v2) / (||v1|| * ||v2||)
    """
    dot_product = 0.0
    norm1 = 0.0
    norm2 = 0.0

    for i in range(len(profile1)):
        dot_product += profile1[i] * profile2[i]
        norm1 += profile1[i] * profile1[i]
        norm2 += profile2[i] * profile2[i]

    if norm1 == 0.0 or norm2 == 0.0:
        return 0.0

    similarity = dot_product / (np.sqrt(norm1) * np.sqrt(norm2))

    # Clip rounding overshoot
    return max(0.0, min(1.0, similarity))


@njit
def similarity_matrix(profiles: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity of profiles sampled on a common grid.

    Parameters
    ----------
    profiles : np.ndarray
        2D array [n_profiles, n_points]

    Returns
    -------
    np.ndarray
        Symmetric [n_profiles, n_profiles] matrix; the diagonal is 1.0 for
        every profile with signal
    """
    n = profiles.shape[0]
    matrix = np.zeros((n, n), dtype=np.float64)

    for i in range(n):
        for j in range(i, n):
            similarity = cosine_similarity(profiles[i], profiles[j])
            matrix[i, j] = similarity
            matrix[j, i] = similarity

    return matrix


def _find_root(parent: List[int], i: int) -> int:
    while parent[i] != i:
        parent[i] = parent[parent[i]]
        i = parent[i]
    return i


def connected_components(matrix: np.ndarray, min_similarity: float) -> List[List[int]]:
    """Group indices linked by similarity >= ``min_similarity`` (union-find).

    Returns
    -------
    groups : list of list of int
        Each group sorted ascending; groups ordered by their first member
    """
    n = matrix.shape[0]
    parent = list(range(n))

    for i in range(n):
        for j in range(i + 1, n):
            if matrix[i, j] >= min_similarity:
                root_i = _find_root(parent, i)
                root_j = _find_root(parent, j)
                if root_i != root_j:
                    parent[max(root_i, root_j)] = min(root_i, root_j)

    groups = {}
    for i in range(n):
        groups.setdefault(_find_root(parent, i), []).append(i)

    return sorted(groups.values(), key=lambda members: members[0])
