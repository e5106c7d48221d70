"""Error taxonomy for AlphaXIC.

Every contract violation in the indexing / XIC core is raised synchronously
at the offending call. The classes also derive from the matching builtin
(ValueError / IndexError) so callers that catch those keep working.
"""


class AlphaXicError(Exception):
    """Base class for all AlphaXIC errors."""


class InvalidInputError(AlphaXicError, ValueError):
    """Malformed arguments: mismatched array lengths, non-positive tolerance or step."""


class EmptyInputError(AlphaXicError, ValueError):
    """An object was constructed from an empty collection (e.g. an XIC with no peaks)."""


class IndexOutOfRangeError(AlphaXicError, IndexError):
    """A scan index outside the indexed scan range."""


class InsufficientDataError(AlphaXicError, ValueError):
    """Too few points for spline fitting."""


class LengthMismatchError(AlphaXicError, ValueError):
    """x and y arrays of different length passed to spline fitting."""
