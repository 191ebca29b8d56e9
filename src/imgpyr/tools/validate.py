"""
Functions to validate pyramid inputs and parameters.

These are shared by all pyramid constructors, so that the same image and the same
parameters are accepted or rejected the same way regardless of the pyramid type.
"""

import math
import warnings
from typing import Literal

import torch
from torch import Tensor

from ..errors import InvalidParameterError

FLOAT_TYPES = [torch.float16, torch.float32, torch.float64]


def validate_input(image: Tensor, warn_odd: bool = False):
    """
    Determine whether ``image`` can be decomposed into a pyramid.

    In particular, this function:

    - Checks if image has a real floating point dtype (``TypeError``).

    - Checks that image has at least two dimensions, the last two being height and
      width (``InvalidParameterError``).

    - If ``warn_odd`` is True, warns if either of the last two dimensions is odd.

    Parameters
    ----------
    image
        The tensor to validate.
    warn_odd
        Whether to warn about odd-sized images. Frequency-domain pyramids cannot
        reconstruct those exactly.

    Raises
    ------
    TypeError
        If ``image`` does not have a real floating point dtype.
    InvalidParameterError
        If ``image`` has fewer than two dimensions or is empty.

    Warns
    -----
    UserWarning
        If ``warn_odd`` and the image has an odd height or width.
    """
    if image.dtype not in FLOAT_TYPES:
        raise TypeError(
            "Only real float dtypes are" + f" allowed but got type {image.dtype}"
        )
    if image.ndimension() < 2:
        raise InvalidParameterError(
            f"image must have at least 2 dimensions but has {image.ndimension()}!"
        )
    if min(image.shape[-2:]) < 1:
        raise InvalidParameterError(f"image must not be empty, got {image.shape}")
    if warn_odd:
        check_even_shape(image.shape[-2:])


def check_even_shape(image_shape: tuple[int, int]):
    """Warn if either of the image dimensions is odd."""  # numpydoc ignore=PR01
    if (image_shape[0] % 2 != 0) or (image_shape[1] % 2 != 0):
        warnings.warn("Reconstruction will not be perfect with odd-sized images")


def validate_scale(scale: float):
    """Check that the downsampling factor lies strictly between 0 and 1."""
    # numpydoc ignore=PR01,RT01
    if not 0 < scale < 1:
        raise InvalidParameterError(f"scale must lie in (0, 1) but got {scale}")


def auto_height(
    image_shape: tuple[int, int],
    scale: float = 0.5,
    min_size: int = 15,
    max_levels: int = 23,
) -> int:
    """
    Number of levels that fit in an image of a given shape.

    The coarsest level is roughly ``min_size`` pixels along the shortest image
    dimension, i.e. the height is

        ceil(log2(min(image_shape)) / log2(1/scale) - log2(min_size) / log2(1/scale))

    capped at ``max_levels`` and never negative.

    Parameters
    ----------
    image_shape
        Height and width of the image.
    scale
        Downsampling factor between adjacent levels.
    min_size
        Approximate size of the coarsest level.
    max_levels
        Upper bound on the returned height.

    Returns
    -------
    height
        The number of levels, excluding the residuals.

    Raises
    ------
    InvalidParameterError
        If ``scale`` is not in ``(0, 1)`` or ``min_size`` is not positive.

    Examples
    --------
    >>> from imgpyr.tools.validate import auto_height
    >>> auto_height((64, 64))
    3
    """
    validate_scale(scale)
    if min_size <= 0:
        raise InvalidParameterError(f"min_size must be positive but got {min_size}")
    octave = math.log2(1 / scale)
    height = math.ceil(
        math.log2(min(image_shape)) / octave - math.log2(min_size) / octave
    )
    return int(max(0, min(height, max_levels)))


def validate_height(
    height: Literal["auto"] | int,
    image_shape: tuple[int, int],
    scale: float = 0.5,
    min_size: int = 15,
    max_levels: int = 23,
) -> int:
    """
    Turn the user-facing height argument into a number of levels.

    Parameters
    ----------
    height
        ``"auto"`` or a non-negative int.
    image_shape
        Height and width of the image.
    scale
        Downsampling factor between adjacent levels.
    min_size
        Passed to :func:`auto_height` when ``height="auto"``.
    max_levels
        Passed to :func:`auto_height` when ``height="auto"``.

    Returns
    -------
    height
        The number of levels, excluding the residuals.

    Raises
    ------
    InvalidParameterError
        If ``height`` is neither ``"auto"`` nor a non-negative integer.
    """
    if isinstance(height, str):
        if height != "auto":
            raise InvalidParameterError(
                f"height must be 'auto' or a non-negative int but got {height}"
            )
        return auto_height(image_shape, scale, min_size, max_levels)
    if isinstance(height, bool) or int(height) != height:
        raise InvalidParameterError(f"Height must be an integer but got {height}")
    if height < 0:
        raise InvalidParameterError("Height must be a non-negative integer.")
    return int(height)
