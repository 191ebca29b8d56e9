"""Complex steerable frequency pyramid

Construct a complex steerable pyramid on two dimensional signals, in the Fourier
domain, and invert it.
"""

import warnings
from collections import OrderedDict
from typing import Literal

import numpy as np
import torch
import torch.fft as fft
import torch.nn as nn
from numpy.typing import NDArray
from scipy.special import factorial
from torch import Tensor

from ..errors import InvalidParameterError
from ..pyramid import ImagePyramid, PyramidType
from ..tools.validate import (
    check_even_shape,
    validate_height,
    validate_input,
    validate_scale,
)
from .frequency_masks import FrequencyLevels
from .steering import harmonics, steer, steer_to_harmonics_mtx

complex_types = [torch.cdouble, torch.cfloat, torch.chalf]


def _shifted_fft2(x: Tensor) -> Tensor:
    return fft.fftshift(fft.fft2(x, dim=(-2, -1)), dim=(-2, -1))


def _unshifted_ifft2(x: Tensor) -> Tensor:
    return fft.ifft2(fft.ifftshift(x, dim=(-2, -1)), dim=(-2, -1))


class SteerablePyramidFreq(nn.Module):
    r"""Complex steerable frequency pyramid in Torch

    Construct a complex steerable pyramid on two dimensional signals, in the
    Fourier domain. Boundary-handling is circular. Reconstruction is exact (within
    floating point errors) for images with even height and width. If the image has
    an odd shape, reconstruction will not be exact.

    The squared radial functions tile the Fourier plane with a raised-cosine
    falloff. Angular functions are ``cos(theta - pi*(o-1)/K)^(K-1)`` lobes
    restricted to the half-plane around the orientation, which makes the oriented
    bands complex (analytic): their real and imaginary parts correspond to a pair of
    even and odd symmetric filters.

    All masks are computed once, here, from a single
    :class:`~imgpyr.canonical_computations.frequency_masks.FrequencyLevels`
    schedule, and shared by :meth:`forward`, :meth:`convert_to_real` and
    :meth:`recon_pyr`.

    Parameters
    ----------
    image_shape
        Shape of the input images. Only the last two entries (height, width) are
        used.
    height
        The height of the pyramid, i.e., the number of oriented levels. If
        ``"auto"``, it is determined from ``image_shape``, see
        :func:`~imgpyr.tools.validate.auto_height`. If ``height=0``, the pyramid
        only contains the two residuals.
    num_orientations
        The number of orientations, ``K``. The angular filters are derivatives of
        order ``K-1``, the smallest order that is steerable with ``K`` filters.
    twidth
        The width of the transition region of the radial lowpass function, in
        octaves.
    scale
        Downsampling factor between adjacent levels, in ``(0, 1)``.
    min_size
        Approximate size of the coarsest level, used when ``height="auto"``.
    max_levels
        Maximum height, used when ``height="auto"``.

    Attributes
    ----------
    image_shape : tuple
        Height and width of the input images.
    num_levels : int
        Number of oriented levels.
    order : int
        Order of the angular derivative filters, ``num_orientations - 1``.
    harmonics : numpy.ndarray
        The angular harmonics of the filters, see
        :func:`~imgpyr.canonical_computations.steering.harmonics`.
    angles : numpy.ndarray
        Orientation of each band, ``pi * (o - 1) / num_orientations``.
    steermtx : numpy.ndarray
        Maps band responses onto their angular harmonics.
    pyr_size : collections.OrderedDict
        Shape of every subband, keyed by ``(level, orientation)``.

    Raises
    ------
    InvalidParameterError
        If any of the parameters is invalid, or if ``height`` would give a level
        with a frequency region smaller than one pixel.

    Warns
    -----
    UserWarning
        If ``image_shape`` is odd along either dimension, or if
        ``num_orientations=1``.
    RankDeficiencyWarning
        If the steering matrix is not full rank.

    References
    ----------
    .. [1] E P Simoncelli and W T Freeman, "The Steerable Pyramid: A Flexible
       Architecture for Multi-Scale Derivative Computation," Second Int'l Conf
       on Image Processing, Washington, DC, Oct 1995.
    .. [2] J Portilla and E P Simoncelli, "A Parametric Texture Model Based on
       Joint Statistics of Complex Wavelet Coefficients," Int'l Journal of
       Computer Vision, 40(1):49-71, Oct 2000.

    Examples
    --------
    >>> import torch
    >>> from imgpyr.canonical_computations import SteerablePyramidFreq
    >>> pyr = SteerablePyramidFreq((64, 64), height=3, num_orientations=4)
    >>> img = torch.rand(64, 64, dtype=torch.float64)
    >>> coeffs = pyr(img)
    >>> coeffs.subband(1, 2).shape
    torch.Size([64, 64])
    >>> torch.allclose(pyr.recon_pyr(coeffs), img)
    True
    """

    def __init__(
        self,
        image_shape: tuple[int, int],
        height: Literal["auto"] | int = "auto",
        num_orientations: int = 4,
        twidth: float = 1,
        scale: float = 0.5,
        min_size: int = 15,
        max_levels: int = 23,
    ):
        super().__init__()

        if (
            isinstance(num_orientations, bool)
            or int(num_orientations) != num_orientations
        ):
            raise InvalidParameterError(
                f"num_orientations must be an integer but got {num_orientations}"
            )
        if num_orientations < 1:
            raise InvalidParameterError(
                f"num_orientations must be positive but got {num_orientations}"
            )
        if num_orientations == 1:
            # a single half-plane lobe has no support on the vertical frequency axis
            warnings.warn(
                "With num_orientations=1 the vertical frequency axis is not covered"
                " by any band. Reconstruction will not be perfect"
            )
        validate_scale(scale)

        self.image_shape = tuple(int(i) for i in image_shape[-2:])
        check_even_shape(self.image_shape)
        self.num_levels = validate_height(
            height, self.image_shape, scale, min_size, max_levels
        )
        self.num_orientations = int(num_orientations)
        self.order = self.num_orientations - 1
        self.twidth = twidth
        self.scale = scale

        self.harmonics = harmonics(self.num_orientations)
        self.angles = np.pi * np.arange(self.num_orientations) / self.num_orientations
        self.steermtx = steer_to_harmonics_mtx(self.harmonics, self.angles)

        # normalizes the angular filters so that the squared masks of all
        # orientations sum to one
        const = (
            (2 ** (2 * self.order))
            * (factorial(self.order, exact=True) ** 2)
            / float(self.num_orientations * factorial(2 * self.order, exact=True))
        )

        levels = FrequencyLevels(self.image_shape, self.num_levels, scale, twidth)
        self.register_buffer("hi0mask", torch.as_tensor(levels.hi0mask))
        self.register_buffer("lo0mask", torch.as_tensor(levels.lo0mask))

        self.pyr_size = OrderedDict()
        self.pyr_size[(0, None)] = self.image_shape
        self._loindices = []
        for freq_level in levels:
            i = freq_level.level - 1
            self.register_buffer(
                f"_himasks_scale_{i}", torch.as_tensor(freq_level.himask)
            )
            self.register_buffer(
                f"_lomasks_scale_{i}", torch.as_tensor(freq_level.lomask)
            )
            self.register_buffer(
                f"_anglemasks_scale_{i}",
                torch.as_tensor(self._angle_masks(freq_level.angle, const)),
            )
            self.register_buffer(
                f"_realmasks_scale_{i}",
                torch.as_tensor(self._real_masks(freq_level.angle)),
            )
            self._loindices.append((freq_level.lostart, freq_level.loend))
            for b in range(1, self.num_orientations + 1):
                self.pyr_size[(freq_level.level, b)] = freq_level.angle.shape
        self.pyr_size[(self.num_levels + 1, None)] = levels.region_shapes[-1]

    def _angle_masks(self, angle: NDArray, const: float) -> NDArray:
        """Half-plane ``cos^order`` lobes of every orientation, shape ``(K, h, w)``.

        The factor of 2 accounts for each band only keeping one half of the
        spectrum of a real image.
        """  # numpydoc ignore=PR01,RT01
        ang = angle[None] - self.angles[:, None, None]
        half_plane = np.abs(np.mod(ang + np.pi, 2 * np.pi) - np.pi) < np.pi / 2
        return half_plane * 2 * np.sqrt(const) * np.cos(ang) ** self.order

    def _real_masks(self, angle: NDArray) -> NDArray:
        """Masks that turn complex bands into real ones, in fft (unshifted) layout.

        The masks are 2 on the half-plane of each orientation, 0 on the opposite
        one and 1 on the boundary, at zero frequency and along the first row and
        column (the Nyquist frequencies of even-sized regions).
        """  # numpydoc ignore=PR01,RT01
        ctr = np.ceil((np.array(angle.shape) + 0.5) / 2).astype(int)
        ang = angle.copy()
        ang[ctr[0] - 1, ctr[1] - 1] = -np.pi / 2
        xang = np.mod(ang[None] - (self.angles[:, None, None] + np.pi), 2 * np.pi)
        xang = np.abs(xang - np.pi)
        amask = 2.0 * (xang < np.pi / 2) + (xang == np.pi / 2)
        amask[:, ctr[0] - 1, ctr[1] - 1] = 1.0
        amask[:, :, 0] = 1.0
        amask[:, 0, :] = 1.0
        return np.fft.ifftshift(amask, axes=(-2, -1))

    def _mask(self, name: str, like: Tensor) -> Tensor:
        # buffers are float64, match the precision and device of the data
        return getattr(self, name).to(device=like.device, dtype=like.real.dtype)

    @classmethod
    def from_pyramid(cls, pyramid: ImagePyramid) -> "SteerablePyramidFreq":
        """Create the transform that built ``pyramid``.

        Parameters
        ----------
        pyramid
            A complex steerable pyramid.

        Returns
        -------
        transform
            A transform with the same image shape, height, number of orientations,
            transition width and scale as ``pyramid``.

        Raises
        ------
        ValueError
            If ``pyramid`` is not a complex steerable pyramid.
        """
        if pyramid.pyramid_type is not PyramidType.COMPLEX_STEERABLE:
            raise ValueError(
                "pyramid must be a complex steerable pyramid but is"
                f" {pyramid.pyramid_type.value}"
            )
        with warnings.catch_warnings():
            # already warned about when the pyramid was built
            warnings.simplefilter("ignore")
            return cls(
                pyramid.image_shape,
                height=pyramid.num_levels,
                num_orientations=pyramid.num_orientations,
                twidth=pyramid.twidth,
                scale=pyramid.scale,
            )

    def forward(self, x: Tensor) -> ImagePyramid:
        r"""Generate the complex steerable pyramid coefficients for an image

        Parameters
        ----------
        x
            The image(s) to analyze, a real tensor of shape ``(..., height,
            width)``. Leading dimensions (e.g. batch and channel) are transformed
            independently.

        Returns
        -------
        pyramid
            The pyramid, with complex oriented bands at levels ``1 ...
            num_levels``, the complex high-pass residual at level 0 and the real
            low-pass residual at level ``num_levels + 1``.

        Raises
        ------
        TypeError
            If ``x`` is not a real floating point tensor.
        ValueError
            If the last two dimensions of ``x`` do not match ``image_shape``.
        """
        validate_input(x)
        if tuple(x.shape[-2:]) != self.image_shape:
            raise ValueError(
                f"Input image has shape {tuple(x.shape[-2:])} but the pyramid was"
                f" built for images of shape {self.image_shape}"
            )
        pyr_coeffs = OrderedDict()

        imdft = _shifted_fft2(x)

        # high-pass residual, kept complex like the bands
        hi0dft = imdft * self._mask("hi0mask", x)
        pyr_coeffs[(0, None)] = _unshifted_ifft2(hi0dft)

        # input to the next scale is the low-pass filtered component
        lodft = imdft * self._mask("lo0mask", x)

        complex_const = (-1j) ** self.order
        for i in range(self.num_levels):
            himask = self._mask(f"_himasks_scale_{i}", x)
            anglemasks = self._mask(f"_anglemasks_scale_{i}", x)

            # all orientations at once, stacked along dim -3
            banddft = complex_const * lodft.unsqueeze(-3) * (anglemasks * himask)
            bands = _unshifted_ifft2(banddft)
            for b in range(self.num_orientations):
                pyr_coeffs[(i + 1, b + 1)] = bands[..., b, :, :]

            # crop to the next, smaller frequency region and low-pass it
            lostart, loend = self._loindices[i]
            lodft = lodft[..., lostart[0] : loend[0], lostart[1] : loend[1]]
            lodft = lodft * self._mask(f"_lomasks_scale_{i}", x)

        pyr_coeffs[(self.num_levels + 1, None)] = _unshifted_ifft2(lodft).real

        return ImagePyramid(
            pyr_coeffs,
            PyramidType.COMPLEX_STEERABLE,
            self.num_levels,
            self.num_orientations,
            scale=self.scale,
            twidth=self.twidth,
            is_complex=True,
        )

    def _check_pyramid(self, pyramid: ImagePyramid):
        """Make sure ``pyramid`` has the layout this transform produces."""
        # numpydoc ignore=PR01
        if pyramid.pyramid_type is not PyramidType.COMPLEX_STEERABLE:
            raise ValueError(
                "pyramid must be a complex steerable pyramid but is"
                f" {pyramid.pyramid_type.value}"
            )
        if (
            pyramid.num_levels != self.num_levels
            or pyramid.num_orientations != self.num_orientations
            or pyramid.image_shape != self.image_shape
        ):
            raise ValueError(
                f"pyramid ({pyramid!r}) does not match this transform, which has"
                f" {self.num_levels} levels, {self.num_orientations} orientations"
                f" and image shape {self.image_shape}"
            )
        if pyramid.scale != self.scale or pyramid.twidth != self.twidth:
            raise ValueError(
                f"pyramid was built with scale={pyramid.scale},"
                f" twidth={pyramid.twidth} but this transform has"
                f" scale={self.scale}, twidth={self.twidth}"
            )

    def convert_to_real(self, pyramid: ImagePyramid) -> ImagePyramid:
        """Turn the complex oriented bands of ``pyramid`` into real ones.

        Each complex band only holds one half of the spectrum (twice over). This
        masks the band's spectrum with a 0/1/2 angular step around its orientation
        and keeps half of the real part, which gives the band of a real steerable
        pyramid. The high-pass residual, which is real up to rounding, is replaced
        by its real part.

        Parameters
        ----------
        pyramid
            A complex steerable pyramid built by this transform.

        Returns
        -------
        real_pyramid
            A new pyramid with real bands. ``pyramid`` is unchanged.

        Raises
        ------
        ValueError
            If ``pyramid`` was not built by an equivalent transform, or has already
            been converted.
        """
        self._check_pyramid(pyramid)
        if not pyramid.is_complex:
            raise ValueError("pyramid bands have already been converted to real")

        pyr_coeffs = OrderedDict()
        for level in range(self.num_levels + 2):
            if level in (0, self.num_levels + 1):
                pyr_coeffs[(level, None)] = pyramid.subband(level).real.clone()
                continue
            bands = torch.stack(
                [
                    pyramid.subband(level, b)
                    for b in range(1, self.num_orientations + 1)
                ],
                dim=-3,
            )
            amask = self._mask(f"_realmasks_scale_{level - 1}", bands)
            bands = 0.5 * fft.ifft2(
                amask * fft.fft2(bands, dim=(-2, -1)), dim=(-2, -1)
            ).real
            for b in range(self.num_orientations):
                pyr_coeffs[(level, b + 1)] = bands[..., b, :, :]

        return ImagePyramid(
            pyr_coeffs,
            PyramidType.COMPLEX_STEERABLE,
            self.num_levels,
            self.num_orientations,
            scale=self.scale,
            twidth=self.twidth,
            is_complex=False,
        )

    def _recon_levels_check(self, levels: Literal["all"] | list[int]) -> list[int]:
        r"""Check whether levels arg is valid for reconstruction and return valid version

        Parameters
        ----------
        levels
            If ``list``, should contain some subset of integers from ``0`` (the
            high-pass residual) to ``num_levels + 1`` (the low-pass residual). If
            ``"all"``, the returned value contains all levels.

        Returns
        -------
        levels
            Sorted list of the levels to reconstruct from.

        Raises
        ------
        TypeError
            If ``levels`` is neither ``"all"`` nor an iterable.
        InvalidParameterError
            If any of the levels does not exist.
        """
        if isinstance(levels, str):
            if levels != "all":
                raise TypeError(
                    "levels must be a list of levels or the string 'all' but"
                    f" got {levels}"
                )
            return list(range(self.num_levels + 2))
        if not hasattr(levels, "__iter__"):
            raise TypeError(
                f"levels must be a list of levels or the string 'all' but got {levels}"
            )
        levels = sorted({int(i) for i in levels})
        if levels and (levels[0] < 0 or levels[-1] > self.num_levels + 1):
            raise InvalidParameterError(
                f"Level numbers must be in the range [0, {self.num_levels + 1:d}]"
                f" but got {levels}"
            )
        return levels

    def _recon_bands_check(self, bands: Literal["all"] | list[int]) -> list[int]:
        """Check whether bands arg is valid for reconstruction and return valid version

        Bands that do not exist are dropped, with a warning.

        Parameters
        ----------
        bands
            If ``list``, should contain some subset of integers from ``1`` to
            ``num_orientations``. If ``"all"``, the returned value contains all
            orientations.

        Returns
        -------
        bands
            Sorted list of the orientations to reconstruct from.

        Raises
        ------
        TypeError
            If ``bands`` is neither ``"all"`` nor an iterable.
        """
        if isinstance(bands, str):
            if bands != "all":
                raise TypeError(
                    f"bands must be a list of ints or the string 'all' but got {bands}"
                )
            return list(range(1, self.num_orientations + 1))
        if not hasattr(bands, "__iter__"):
            raise TypeError(
                f"bands must be a list of ints or the string 'all' but got {bands}"
            )
        valid = []
        for b in sorted({int(i) for i in bands}):
            if 1 <= b <= self.num_orientations:
                valid.append(b)
            else:
                warnings.warn(
                    f"You wanted band {b:d} in the reconstruction but the pyramid"
                    f" has orientations 1 to {self.num_orientations:d}, so we're"
                    " ignoring that band"
                )
        return valid

    def recon_pyr(
        self,
        pyramid: ImagePyramid,
        levels: Literal["all"] | list[int] = "all",
        bands: Literal["all"] | list[int] = "all",
    ) -> Tensor:
        """Reconstruct the image or batch of images, optionally using subset of
        pyramid coefficients.

        Complex pyramids are first converted with :meth:`convert_to_real`. Omitted
        levels and bands contribute nothing, so the reconstruction is linear in the
        selection: reconstructions from disjoint selections sum to the full one.

        Parameters
        ----------
        pyramid
            The pyramid to reconstruct from, as returned by :meth:`forward`
            (possibly with updated subbands).
        levels
            If ``list``, some subset of ``0 ... num_levels + 1``. If ``"all"``, use
            all levels.
        bands
            If ``list``, some subset of ``1 ... num_orientations``. If ``"all"``,
            use all orientations. Only affects the oriented levels.

        Returns
        -------
        recon
            The reconstructed image, a real tensor of shape ``(..., height,
            width)``.

        Raises
        ------
        ValueError
            If ``pyramid`` was not built by an equivalent transform.
        """
        self._check_pyramid(pyramid)
        levels = self._recon_levels_check(levels)
        bands = self._recon_bands_check(bands)
        if pyramid.is_complex:
            pyramid = self.convert_to_real(pyramid)

        # start from the low-pass residual and work up to finer scales
        lodft = _shifted_fft2(pyramid.subband(self.num_levels + 1))
        if self.num_levels + 1 not in levels:
            lodft = torch.zeros_like(lodft)

        complex_const = 1j**self.order
        for i in reversed(range(self.num_levels)):
            level = i + 1
            lostart, loend = self._loindices[i]
            shape = self.pyr_size[(level, 1)]

            # place the upsampled and low-passed coarser scales
            recondft = torch.zeros(
                *lodft.shape[:-2], *shape, dtype=lodft.dtype, device=lodft.device
            )
            recondft[..., lostart[0] : loend[0], lostart[1] : loend[1]] = (
                lodft * self._mask(f"_lomasks_scale_{i}", lodft)
            )

            if level in levels and bands:
                coeffs = torch.stack(
                    [pyramid.subband(level, b) for b in bands], dim=-3
                )
                banddft = _shifted_fft2(coeffs)
                anglemasks = self._mask(f"_anglemasks_scale_{i}", banddft)
                anglemasks = anglemasks[[b - 1 for b in bands]]
                himask = self._mask(f"_himasks_scale_{i}", banddft)
                orientdft = complex_const * (banddft * anglemasks * himask).sum(-3)
                recondft = recondft + orientdft
            lodft = recondft

        outdft = lodft * self._mask("lo0mask", lodft)
        if 0 in levels:
            hidft = _shifted_fft2(pyramid.subband(0))
            outdft = outdft + hidft * self._mask("hi0mask", hidft)

        return _unshifted_ifft2(outdft).real

    def steer_coeffs(
        self,
        pyramid: ImagePyramid,
        angles: list[float],
        even_phase: bool = True,
    ) -> tuple[dict, dict]:
        """Steer pyramid coefficients to the specified angles

        This allows you to have filters of the derivative order of this pyramid,
        but arbitrary angles or number of orientations. Steering to
        ``self.angles[b-1]`` gives back band ``b``.

        Parameters
        ----------
        pyramid
            The pyramid to steer. Its bands must be real, see
            :meth:`convert_to_real`.
        angles
            List of angles (in radians) to steer the pyramid coefficients to.
        even_phase
            Specifies whether the harmonics are cosine or sine phase aligned about
            those positions.

        Returns
        -------
        resteered_coeffs
            Dictionary of re-steered pyramid coefficients, keyed by ``(level, j)``
            where ``level`` runs over ``1 ... num_levels`` and ``j`` indexes
            ``angles``, starting at 1.
        resteering_weights
            Dictionary of the weights used to re-steer the pyramid coefficients,
            with the same keys as ``resteered_coeffs``.

        Raises
        ------
        ValueError
            If the bands of ``pyramid`` are complex.
        """
        self._check_pyramid(pyramid)
        if pyramid.is_complex or pyramid.subband(0).dtype in complex_types:
            raise ValueError(
                "steering only implemented for real coefficients, call"
                " convert_to_real first"
            )
        if even_phase:
            steermtx = self.steermtx
        else:
            steermtx = steer_to_harmonics_mtx(
                self.harmonics, self.angles, even_phase=False
            )

        resteered_coeffs = {}
        resteering_weights = {}
        for level in range(1, self.num_levels + 1):
            basis = torch.stack(
                [
                    pyramid.subband(level, b)
                    for b in range(1, self.num_orientations + 1)
                ],
                dim=-1,
            )
            for j, a in enumerate(angles):
                res, steervect = steer(
                    basis, a, self.harmonics, steermtx, even_phase=even_phase
                )
                resteering_weights[(level, j + 1)] = steervect
                resteered_coeffs[(level, j + 1)] = res

        return resteered_coeffs, resteering_weights
