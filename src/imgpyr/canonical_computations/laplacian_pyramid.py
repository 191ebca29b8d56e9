"""
Gaussian and Laplacian pyramids.

Spatial-domain pyramids, built by repeatedly blurring and downsampling by a factor
of 2.
"""

import math
from collections import OrderedDict
from typing import Literal

import torch
import torch.nn as nn

from ..errors import InvalidParameterError
from ..pyramid import ImagePyramid, PyramidType
from ..tools.conv import blur_downsample, upsample_blur
from ..tools.validate import validate_height, validate_input


def _level_shapes(image_shape: tuple[int, int], num_levels: int) -> list[tuple]:
    """Shapes of levels ``0 ... num_levels + 1``, checking each can be downsampled.

    Reflect padding of the 5-tap filter needs at least 3 pixels along each
    dimension of every image that gets downsampled.
    """  # numpydoc ignore=PR01,RT01
    shapes = [tuple(image_shape)]
    for level in range(num_levels + 1):
        if min(shapes[-1]) < 3:
            if level == 0:
                raise InvalidParameterError(
                    f"image of shape {shapes[0]} is too small to downsample"
                )
            raise InvalidParameterError(
                f"Cannot build pyramid higher than {level - 1:d} levels:"
                f" level {level} has shape {shapes[-1]}, which is too small to"
                " downsample"
            )
        shapes.append(tuple(math.ceil(s / 2) for s in shapes[-1]))
    return shapes


class GaussianPyramid(nn.Module):
    """
    Gaussian Pyramid in Torch.

    Level 0 is the image itself, every following level is the previous one blurred
    with a 5-tap binomial filter and downsampled by 2, ``num_levels + 1`` times in
    total.

    Parameters
    ----------
    image_shape
        Shape of the input images. Only the last two entries (height, width) are
        used.
    height
        Number of levels between the image and the coarsest level. If ``"auto"``,
        it is determined from ``image_shape``, see
        :func:`~imgpyr.tools.validate.auto_height`.
    min_size
        Approximate size of the coarsest level, used when ``height="auto"``.
    max_levels
        Maximum height, used when ``height="auto"``.
    scale_filter
        If ``True``, the downsampling filter sums to 1, so the mean of each level
        approximately matches that of the image. If ``False``, it sums to 2.

    Attributes
    ----------
    num_levels : int
        Number of levels between the two residuals.
    pyr_size : collections.OrderedDict
        Shape of every level, keyed by ``(level, None)``.

    Raises
    ------
    InvalidParameterError
        If ``height`` is invalid, or so large that some level would be smaller than
        3 pixels before downsampling.

    Examples
    --------
    >>> import torch
    >>> from imgpyr.canonical_computations import GaussianPyramid
    >>> gpyr = GaussianPyramid((64, 64))
    >>> list(gpyr(torch.rand(64, 64)).pyr_size.values())
    [(64, 64), (32, 32), (16, 16), (8, 8), (4, 4)]
    """

    pyramid_type = PyramidType.GAUSSIAN

    def __init__(
        self,
        image_shape: tuple[int, int],
        height: Literal["auto"] | int = "auto",
        min_size: int = 15,
        max_levels: int = 23,
        scale_filter: bool = True,
    ):
        super().__init__()
        self.image_shape = tuple(int(i) for i in image_shape[-2:])
        self.num_levels = validate_height(
            height, self.image_shape, 0.5, min_size, max_levels
        )
        self.scale_filter = scale_filter
        self.pyr_size = OrderedDict(
            ((level, None), shape)
            for level, shape in enumerate(
                _level_shapes(self.image_shape, self.num_levels)
            )
        )
        # This model has no trainable parameters, so it's always in eval mode
        self.eval()

    def _check_input(self, x: torch.Tensor):
        validate_input(x)
        if tuple(x.shape[-2:]) != self.image_shape:
            raise ValueError(
                f"Input image has shape {tuple(x.shape[-2:])} but the pyramid was"
                f" built for images of shape {self.image_shape}"
            )

    def _pyramid(self, pyr_coeffs: OrderedDict) -> ImagePyramid:
        return ImagePyramid(
            pyr_coeffs,
            self.pyramid_type,
            self.num_levels,
            1,
            scale=0.5,
            scale_filter=self.scale_filter,
        )

    def _check_pyramid(self, pyramid: ImagePyramid):
        if pyramid.pyramid_type is not self.pyramid_type:
            raise ValueError(
                f"pyramid must be a {self.pyramid_type.value} pyramid but is"
                f" {pyramid.pyramid_type.value}"
            )
        if pyramid.pyr_size != self.pyr_size:
            raise ValueError(
                f"pyramid ({pyramid!r}) does not match this transform, which has"
                f" {self.num_levels} levels and image shape {self.image_shape}"
            )
        if pyramid.scale_filter != self.scale_filter:
            raise ValueError(
                f"pyramid was built with scale_filter={pyramid.scale_filter} but"
                f" this transform has scale_filter={self.scale_filter}"
            )

    @classmethod
    def from_pyramid(cls, pyramid: ImagePyramid):
        """Create the transform that built ``pyramid``.

        Parameters
        ----------
        pyramid
            A pyramid of the type this class builds.

        Returns
        -------
        transform
            A transform with the same image shape, height and filter
            normalization as ``pyramid``.
        """
        return cls(
            pyramid.image_shape,
            height=pyramid.num_levels,
            scale_filter=pyramid.scale_filter,
        )

    def forward(self, x: torch.Tensor) -> ImagePyramid:
        """
        Build the Gaussian pyramid of an image.

        Parameters
        ----------
        x
            Image, or batch of images, of shape ``(..., height, width)``.

        Returns
        -------
        pyramid
            Gaussian pyramid, with the image at level 0 and successively blurred
            and downsampled copies at levels ``1 ... num_levels + 1``.

        Raises
        ------
        TypeError
            If ``x`` is not a real floating point tensor.
        ValueError
            If the last two dimensions of ``x`` do not match ``image_shape``.
        """
        self._check_input(x)
        pyr_coeffs = OrderedDict()
        pyr_coeffs[(0, None)] = x.clone()
        for level in range(1, self.num_levels + 2):
            x = blur_downsample(x, scale_filter=self.scale_filter)
            pyr_coeffs[(level, None)] = x
        return self._pyramid(pyr_coeffs)

    def recon_pyr(self, pyramid: ImagePyramid) -> torch.Tensor:
        """
        Reconstruct the image from its Gaussian pyramid.

        The finest level already is the image, so this returns a copy of it.

        Parameters
        ----------
        pyramid
            Gaussian pyramid, as returned by ``self.forward``.

        Returns
        -------
        x
            Image, or batch of images.
        """
        self._check_pyramid(pyramid)
        return pyramid.subband(0).clone()


class LaplacianPyramid(GaussianPyramid):
    """
    Laplacian Pyramid in Torch.

    The Laplacian pyramid (Burt and Adelson, 1983, [1]_) is a multiscale image
    representation. It decomposes the image by computing the local mean using Gaussian
    blurring filters and subtracting it from the image and repeating this operation on
    the local mean itself after downsampling. This representation is overcomplete and
    invertible, for any image size.

    Levels ``0 ... num_levels`` hold the differences, level ``num_levels + 1`` the
    final local mean.

    Parameters
    ----------
    image_shape
        Shape of the input images. Only the last two entries (height, width) are
        used.
    height
        Number of difference levels after the first one. If ``"auto"``, it is
        determined from ``image_shape``, see
        :func:`~imgpyr.tools.validate.auto_height`.
    min_size
        Approximate size of the coarsest level, used when ``height="auto"``.
    max_levels
        Maximum height, used when ``height="auto"``.
    scale_filter
        If ``True``, the norm of the downsampling/upsampling filter is 1. If ``False``,
        it is 2. If the norm is 1, the image is multiplied by 4 during the upsampling
        operation; the net effect is that the :math:`n` -th scale of the pyramid is
        divided by :math:`2^n`.

    Attributes
    ----------
    num_levels : int
        Number of levels between the two residuals.
    pyr_size : collections.OrderedDict
        Shape of every level, keyed by ``(level, None)``.

    Raises
    ------
    InvalidParameterError
        If ``height`` is invalid, or so large that some level would be smaller than
        3 pixels before downsampling.

    References
    ----------
    .. [1] Burt, P. and Adelson, E., 1983. The Laplacian pyramid as a compact
       image code. IEEE Transactions on communications, 31(4), pp.532-540.

    Examples
    --------
    >>> import torch
    >>> from imgpyr.canonical_computations import LaplacianPyramid
    >>> lpyr = LaplacianPyramid((64, 64))
    >>> img = torch.rand(64, 64)
    >>> torch.allclose(lpyr.recon_pyr(lpyr(img)), img, atol=1e-6)
    True
    """

    pyramid_type = PyramidType.LAPLACIAN

    def forward(self, x: torch.Tensor) -> ImagePyramid:
        """
        Build the Laplacian pyramid of an image.

        Parameters
        ----------
        x
            Image, or batch of images, of shape ``(..., height, width)``. Leading
            dimensions are handled separately.

        Returns
        -------
        pyramid
            Laplacian pyramid, from fine (level 0) to coarse (level
            ``num_levels + 1``).

        Raises
        ------
        TypeError
            If ``x`` is not a real floating point tensor.
        ValueError
            If the last two dimensions of ``x`` do not match ``image_shape``.
        """
        self._check_input(x)
        pyr_coeffs = OrderedDict()
        for level in range(self.num_levels + 1):
            odd = torch.as_tensor(x.shape[-2:]) % 2
            x_down = blur_downsample(x, scale_filter=self.scale_filter)
            x_up = upsample_blur(x_down, odd, scale_filter=self.scale_filter)
            pyr_coeffs[(level, None)] = x - x_up
            x = x_down
        pyr_coeffs[(self.num_levels + 1, None)] = x
        return self._pyramid(pyr_coeffs)

    def recon_pyr(self, pyramid: ImagePyramid) -> torch.Tensor:
        """
        Reconstruct the image from its Laplacian pyramid coefficients.

        Parameters
        ----------
        pyramid
            Laplacian pyramid, as returned by ``self.forward`` (possibly with
            updated subbands).

        Returns
        -------
        x
            Image, or batch of images.
        """
        self._check_pyramid(pyramid)
        x = pyramid.subband(self.num_levels + 1)
        for level in range(self.num_levels, -1, -1):
            y = pyramid.subband(level)
            odd = torch.as_tensor(y.shape[-2:]) % 2
            x = y + upsample_blur(x, odd, scale_filter=self.scale_filter)
        return x
