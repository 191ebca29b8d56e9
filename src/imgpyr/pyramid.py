"""Container for the subbands of a multi-scale image decomposition."""

import enum
from collections import OrderedDict
from collections.abc import Iterator

import numpy as np
import torch
from torch import Tensor

from .errors import ShapeMismatchError, UnsupportedPyramidTypeError

KEY_TYPE = tuple[int, int | None]


class PyramidType(enum.Enum):
    """The kinds of pyramid this package builds."""

    COMPLEX_STEERABLE = "complex_steerable"
    LAPLACIAN = "laplacian"
    GAUSSIAN = "gaussian"


class ImagePyramid:
    r"""Subbands of an image pyramid, plus the parameters that produced them.

    Subbands are keyed by ``(level, orientation)``. Level ``0`` is always the
    highest-frequency residual and level ``num_levels + 1`` the lowest-frequency
    one. For complex steerable pyramids, levels ``1 ... num_levels`` hold one band
    per orientation ``1 ... num_orientations``; every other level (and every level
    of Laplacian and Gaussian pyramids) holds a single band, stored with
    ``orientation=None``.

    Pyramids are treated as values: :meth:`update_subband` returns an updated copy
    and never touches the original. :meth:`update_subband_` is the in-place
    variant.

    Parameters
    ----------
    pyr_coeffs
        Mapping from ``(level, orientation)`` to tensors of shape ``(..., height,
        width)``.
    pyramid_type
        The kind of pyramid.
    num_levels
        Number of levels between the two residuals.
    num_orientations
        Number of oriented bands per level (1 for non-oriented pyramids).
    scale
        Downsampling factor between adjacent levels.
    twidth
        Width of the radial transition, in octaves (frequency-domain pyramids
        only).
    is_complex
        Whether the oriented bands are still complex, i.e. have not been through
        :meth:`imgpyr.canonical_computations.SteerablePyramidFreq.convert_to_real`.
    scale_filter
        Whether the blur filters of a spatial pyramid were normalized, see
        :class:`imgpyr.canonical_computations.GaussianPyramid`.

    Attributes
    ----------
    image_shape : tuple
        Height and width of the decomposed image (the shape of level 0).

    Raises
    ------
    UnsupportedPyramidTypeError
        If ``pyramid_type`` is not a :class:`PyramidType` (or one of its values).
    KeyError
        If ``pyr_coeffs`` does not contain exactly the expected keys.
    """

    def __init__(
        self,
        pyr_coeffs: dict[KEY_TYPE, Tensor],
        pyramid_type: PyramidType | str,
        num_levels: int,
        num_orientations: int = 1,
        scale: float = 0.5,
        twidth: float = 1,
        is_complex: bool = False,
        scale_filter: bool = True,
    ):
        try:
            self.pyramid_type = PyramidType(pyramid_type)
        except ValueError:
            raise UnsupportedPyramidTypeError(
                f"Unsupported pyramid type {pyramid_type!r}, must be one of"
                f" {[t.value for t in PyramidType]}"
            )
        self.num_levels = int(num_levels)
        self.num_orientations = int(num_orientations)
        self.scale = scale
        self.twidth = twidth
        self.is_complex = is_complex
        self.scale_filter = scale_filter

        expected = self._expected_keys()
        if set(pyr_coeffs.keys()) != set(expected):
            raise KeyError(
                f"pyr_coeffs keys {sorted(pyr_coeffs.keys(), key=str)} do not match"
                f" the expected keys {expected}"
            )
        self.pyr_coeffs = OrderedDict((k, pyr_coeffs[k]) for k in expected)
        self.image_shape = tuple(self.pyr_coeffs[(0, None)].shape[-2:])

    @property
    def is_oriented(self) -> bool:
        return self.pyramid_type is PyramidType.COMPLEX_STEERABLE

    def _expected_keys(self) -> list[KEY_TYPE]:
        keys = [(0, None)]
        for level in range(1, self.num_levels + 1):
            if self.is_oriented:
                keys.extend(
                    (level, ori) for ori in range(1, self.num_orientations + 1)
                )
            else:
                keys.append((level, None))
        keys.append((self.num_levels + 1, None))
        return keys

    def _check_key(self, level: int, orientation: int | None) -> KEY_TYPE:
        """Make sure the subband exists, raising an ``IndexError`` if not."""
        if not 0 <= level <= self.num_levels + 1:
            raise IndexError(
                f"level must be in [0, {self.num_levels + 1}] but got {level}"
            )
        oriented_level = self.is_oriented and 1 <= level <= self.num_levels
        if orientation is None:
            if oriented_level:
                raise IndexError(
                    f"level {level} is oriented, orientation must be in"
                    f" [1, {self.num_orientations}]"
                )
        elif not oriented_level:
            raise IndexError(f"level {level} has no orientations")
        elif not 1 <= orientation <= self.num_orientations:
            raise IndexError(
                f"orientation must be in [1, {self.num_orientations}] but got"
                f" {orientation}"
            )
        return (level, orientation)

    def subband(self, level: int, orientation: int | None = None) -> Tensor:
        """The subband at ``level`` (and ``orientation``, for oriented levels).

        Parameters
        ----------
        level
            Level of the subband, ``0`` is the high-pass residual and
            ``num_levels + 1`` the low-pass residual.
        orientation
            Orientation of the subband, ``1 ... num_orientations``. Must be None
            for non-oriented levels.

        Returns
        -------
        band
            The stored subband.

        Raises
        ------
        IndexError
            If ``level`` or ``orientation`` is out of range for this pyramid.
        """
        return self.pyr_coeffs[self._check_key(level, orientation)]

    def update_subband_(
        self,
        level: int,
        new_values: Tensor | np.ndarray,
        orientation: int | None = None,
    ) -> "ImagePyramid":
        """Replace a subband in place.

        ``new_values`` is copied, so later changes to it do not affect the pyramid.

        Parameters
        ----------
        level
            Level of the subband.
        new_values
            The replacement, with exactly the shape of the current subband.
        orientation
            Orientation of the subband, None for non-oriented levels.

        Returns
        -------
        self
            This pyramid.

        Raises
        ------
        IndexError
            If ``level`` or ``orientation`` is out of range for this pyramid.
        ShapeMismatchError
            If ``new_values`` does not have the shape of the current subband.
        """
        key = self._check_key(level, orientation)
        old = self.pyr_coeffs[key]
        new_values = torch.as_tensor(new_values, device=old.device)
        if new_values.shape != old.shape:
            raise ShapeMismatchError(
                f"subband {key} has shape {tuple(old.shape)} but new values have"
                f" shape {tuple(new_values.shape)}"
            )
        self.pyr_coeffs[key] = new_values.clone()
        return self

    def update_subband(
        self,
        level: int,
        new_values: Tensor | np.ndarray,
        orientation: int | None = None,
    ) -> "ImagePyramid":
        """Return a copy of this pyramid with one subband replaced.

        Parameters
        ----------
        level
            Level of the subband.
        new_values
            The replacement, with exactly the shape of the current subband.
        orientation
            Orientation of the subband, None for non-oriented levels.

        Returns
        -------
        pyramid
            The updated copy. ``self`` is unchanged.

        Raises
        ------
        IndexError
            If ``level`` or ``orientation`` is out of range for this pyramid.
        ShapeMismatchError
            If ``new_values`` does not have the shape of the current subband.
        """
        # check before copying everything
        key = self._check_key(level, orientation)
        if tuple(np.shape(new_values)) != tuple(self.pyr_coeffs[key].shape):
            raise ShapeMismatchError(
                f"subband {key} has shape {tuple(self.pyr_coeffs[key].shape)} but"
                f" new values have shape {tuple(np.shape(new_values))}"
            )
        return self.clone().update_subband_(level, new_values, orientation)

    def clone(self, pyr_coeffs: dict[KEY_TYPE, Tensor] | None = None) -> "ImagePyramid":
        """Copy of this pyramid that shares no subband storage with it.

        Parameters
        ----------
        pyr_coeffs
            If not None, use these subbands instead of copies of the current
            ones (they are still cloned).

        Returns
        -------
        pyramid
            The copy.
        """
        if pyr_coeffs is None:
            pyr_coeffs = self.pyr_coeffs
        return ImagePyramid(
            OrderedDict((k, v.clone()) for k, v in pyr_coeffs.items()),
            self.pyramid_type,
            self.num_levels,
            self.num_orientations,
            self.scale,
            self.twidth,
            self.is_complex,
            self.scale_filter,
        )

    @property
    def pyr_size(self) -> OrderedDict:
        """Height and width of each subband, keyed like the subbands."""
        return OrderedDict((k, tuple(v.shape[-2:])) for k, v in self.pyr_coeffs.items())

    def keys(self):
        return self.pyr_coeffs.keys()

    def items(self):
        return self.pyr_coeffs.items()

    def __iter__(self) -> Iterator[KEY_TYPE]:
        return iter(self.pyr_coeffs)

    def __len__(self) -> int:
        return len(self.pyr_coeffs)

    def __repr__(self) -> str:
        return (
            f"ImagePyramid(pyramid_type={self.pyramid_type.value},"
            f" num_levels={self.num_levels},"
            f" num_orientations={self.num_orientations}, scale={self.scale},"
            f" image_shape={self.image_shape}, is_complex={self.is_complex})"
        )


def subband(
    pyramid: ImagePyramid, level: int, orientation: int | None = None
) -> Tensor:
    """Functional form of :meth:`ImagePyramid.subband`."""  # numpydoc ignore=PR01,RT01
    return pyramid.subband(level, orientation)


def update_subband(
    pyramid: ImagePyramid,
    level: int,
    new_values: Tensor | np.ndarray,
    orientation: int | None = None,
) -> ImagePyramid:
    """Functional form of :meth:`ImagePyramid.update_subband`."""
    # numpydoc ignore=PR01,RT01
    return pyramid.update_subband(level, new_values, orientation)
