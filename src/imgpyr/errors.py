"""Exceptions and warnings raised by imgpyr."""
# numpydoc ignore=ES01

__all__ = [
    "InvalidParameterError",
    "ShapeMismatchError",
    "UnsupportedPyramidTypeError",
    "RankDeficiencyWarning",
]


class InvalidParameterError(ValueError):
    """Pyramid construction parameters are invalid.

    Raised before any computation happens, e.g., for a negative height, zero
    orientations, a scale outside ``(0, 1)``, or a height that leaves the coarsest
    level with less than one pixel.
    """


class ShapeMismatchError(ValueError):
    """Replacement subband does not have the shape of the subband it replaces."""


class UnsupportedPyramidTypeError(TypeError):
    """Pyramid type tag is not one of :class:`imgpyr.PyramidType`."""


class RankDeficiencyWarning(UserWarning):
    """Steering matrix is not full rank.

    Reconstruction is still possible, but orientation selectivity of the steered
    responses is reduced.
    """
