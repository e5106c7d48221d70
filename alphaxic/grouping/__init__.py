"""Co-elution grouping of XICs.

Examples
--------
>>> from alphaxic.grouping import XICGroups
>>>
>>> groups = XICGroups(isotope_xics, min_similarity=0.7)
>>> groups.groups
[[0, 1, 2]]
"""

from .similarity import (
    connected_components,
    cosine_similarity,
    similarity_matrix,
)
from .xic_groups import XICGroups

__all__ = [
    "XICGroups",
    "cosine_similarity",
    "similarity_matrix",
    "connected_components",
]
