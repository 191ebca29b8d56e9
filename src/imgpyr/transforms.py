"""Functional entry points: build a pyramid from an image, and invert it.

These wrap the ``torch.nn.Module`` transforms in
:mod:`imgpyr.canonical_computations`, creating the transform from the image (or
pyramid) shape and parameters on every call. If you transform many images of the
same shape, create the module once and call it directly instead.
"""

from typing import Literal

import numpy as np
from torch import Tensor

from .canonical_computations.laplacian_pyramid import (
    GaussianPyramid,
    LaplacianPyramid,
)
from .canonical_computations.steerable_pyramid_freq import SteerablePyramidFreq
from .errors import UnsupportedPyramidTypeError
from .pyramid import ImagePyramid, PyramidType
from .tools.data import to_tensor
from .tools.validate import validate_input

__all__ = ["build_steerable", "build_laplacian", "build_gaussian", "reconstruct"]


def build_steerable(
    image: Tensor | np.ndarray,
    height: Literal["auto"] | int,
    num_orientations: int,
    twidth: float = 1,
    scale: float = 0.5,
) -> ImagePyramid:
    """Build the complex steerable pyramid of an image.

    Parameters
    ----------
    image
        Real image, or batch of images, of shape ``(..., height, width)``.
    height
        Number of oriented levels, or ``"auto"``.
    num_orientations
        Number of orientations per level.
    twidth
        Width of the radial transition, in octaves.
    scale
        Downsampling factor between adjacent levels.

    Returns
    -------
    pyramid
        The pyramid, with complex oriented bands.

    Raises
    ------
    InvalidParameterError
        If ``num_orientations < 1``, ``height < 0``, ``scale`` is not in ``(0,
        1)``, or ``height`` would give a level smaller than one pixel.

    Examples
    --------
    >>> import torch
    >>> from imgpyr import build_steerable, reconstruct
    >>> img = torch.rand(64, 64, dtype=torch.float64)
    >>> pyr = build_steerable(img, height=3, num_orientations=4)
    >>> pyr.num_levels, pyr.pyr_size[(4, None)]
    (3, (8, 8))
    >>> torch.allclose(reconstruct(pyr), img)
    True
    """
    image = to_tensor(image)
    validate_input(image)
    transform = SteerablePyramidFreq(
        image.shape,
        height=height,
        num_orientations=num_orientations,
        twidth=twidth,
        scale=scale,
    )
    return transform(image)


def build_laplacian(
    image: Tensor | np.ndarray, height: Literal["auto"] | int = "auto"
) -> ImagePyramid:
    """Build the Laplacian pyramid of an image.

    Parameters
    ----------
    image
        Real image, or batch of images, of shape ``(..., height, width)``.
    height
        Number of levels between the residuals, or ``"auto"``.

    Returns
    -------
    pyramid
        The pyramid.
    """
    image = to_tensor(image)
    validate_input(image)
    return LaplacianPyramid(image.shape, height=height)(image)


def build_gaussian(
    image: Tensor | np.ndarray, height: Literal["auto"] | int = "auto"
) -> ImagePyramid:
    """Build the Gaussian pyramid of an image.

    Parameters
    ----------
    image
        Real image, or batch of images, of shape ``(..., height, width)``.
    height
        Number of levels between the image and the coarsest level, or ``"auto"``.

    Returns
    -------
    pyramid
        The pyramid.
    """
    image = to_tensor(image)
    validate_input(image)
    return GaussianPyramid(image.shape, height=height)(image)


def reconstruct(
    pyramid: ImagePyramid,
    levels: Literal["all"] | list[int] = "all",
    bands: Literal["all"] | list[int] = "all",
) -> Tensor:
    """Turn a pyramid back into an image.

    Complex steerable pyramids are converted to real bands first (the given
    pyramid is not modified). Laplacian pyramids are collapsed, and Gaussian
    pyramids return their finest level.

    Parameters
    ----------
    pyramid
        The pyramid to reconstruct.
    levels
        Levels to include, complex steerable pyramids only. See
        :meth:`SteerablePyramidFreq.recon_pyr`.
    bands
        Orientations to include, complex steerable pyramids only. See
        :meth:`SteerablePyramidFreq.recon_pyr`.

    Returns
    -------
    image
        The reconstructed image, or batch of images.

    Raises
    ------
    UnsupportedPyramidTypeError
        If ``pyramid.pyramid_type`` is not a :class:`PyramidType`.
    ValueError
        If ``levels`` or ``bands`` is anything but ``"all"`` for a spatial
        pyramid.
    """
    pyramid_type = getattr(pyramid, "pyramid_type", None)
    if pyramid_type is PyramidType.COMPLEX_STEERABLE:
        transform = SteerablePyramidFreq.from_pyramid(pyramid)
        return transform.recon_pyr(pyramid, levels=levels, bands=bands)
    elif pyramid_type in (PyramidType.LAPLACIAN, PyramidType.GAUSSIAN):
        if any(not isinstance(arg, str) or arg != "all" for arg in (levels, bands)):
            raise ValueError(
                "levels and bands are only supported for complex steerable pyramids,"
                f" they must be 'all' but got levels={levels}, bands={bands}"
            )
        if pyramid_type is PyramidType.LAPLACIAN:
            transform = LaplacianPyramid.from_pyramid(pyramid)
        else:
            transform = GaussianPyramid.from_pyramid(pyramid)
        return transform.recon_pyr(pyramid)
    else:
        raise UnsupportedPyramidTypeError(
            f"Unsupported pyramid type {pyramid_type!r}, must be one of"
            f" {[t.value for t in PyramidType]}"
        )
