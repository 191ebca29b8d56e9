"""Radial and angular frequency masks shared by the steerable pyramid transforms.

The forward and inverse transforms must apply exactly the same masks on exactly
the same frequency regions, otherwise the reconstruction error grows well beyond
floating point noise. Everything that depends on the level (the raised-cosine
position, the cropped radial and angular grids, the crop indices) is therefore
produced in one place, :class:`FrequencyLevels`, and consumed by both directions.
"""

from collections.abc import Iterator
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from ..errors import InvalidParameterError
from ..tools.signal import center_indices, interpolate1d, raised_cosine
from ..tools.validate import validate_scale


def frequency_grid(image_shape: tuple[int, int]) -> tuple[NDArray, NDArray]:
    """Log-radius and angle of every frequency of an fftshifted 2d spectrum.

    Coordinates are normalized so that they run over ``[-1, 1)`` along each axis,
    with the origin at the (1-indexed) zero-frequency bin ``ceil((dim + 0.5) / 2)``.
    ``log2(0)`` at the origin is replaced by the value of its left neighbor.

    Parameters
    ----------
    image_shape
        Height and width of the image.

    Returns
    -------
    log_rad
        ``log2`` of the normalized radial frequency, shape ``image_shape``.
    angle
        ``atan2(y, x)`` of the normalized frequency, shape ``image_shape``.
    """
    dims = np.asarray(image_shape[-2:])
    ctr = np.ceil((dims + 0.5) / 2).astype(int)

    (xramp, yramp) = np.meshgrid(
        (np.arange(1, dims[1] + 1) - ctr[1]) / (dims[1] / 2),
        (np.arange(1, dims[0] + 1) - ctr[0]) / (dims[0] / 2),
    )

    angle = np.arctan2(yramp, xramp)
    log_rad = np.sqrt(xramp**2 + yramp**2)
    log_rad[ctr[0] - 1, ctr[1] - 1] = log_rad[ctr[0] - 1, ctr[1] - 2]
    log_rad = np.log2(log_rad)
    return log_rad, angle


class RaisedCosineMasks:
    r"""Complementary radial high- and low-pass masks.

    The squared radial functions tile the Fourier plane with a raised-cosine
    falloff in log-frequency, ``twidth`` octaves wide. The lookup table holds the
    squared high-pass response; the low-pass table is its complement. Both are
    interpolated linearly and only then square-rooted, so that
    :math:`high^2 + low^2 = 1` holds to rounding error at every point, not just at
    the table nodes.

    Parameters
    ----------
    twidth
        Width of the transition region, in octaves. Must be positive.

    Attributes
    ----------
    Xrcos : numpy.ndarray
        Lookup table positions for the unshifted (level 0) transition.
    Yrcos : numpy.ndarray
        Squared high-pass lookup table values.
    YIrcos : numpy.ndarray
        Squared low-pass lookup table values, ``1 - Yrcos``.
    """

    def __init__(self, twidth: float = 1):
        if twidth <= 0:
            raise InvalidParameterError("twidth must be positive.")
        self.twidth = twidth
        self.Xrcos, self.Yrcos = raised_cosine(twidth, (-twidth / 2.0), (0, 1))
        self.YIrcos = 1.0 - self.Yrcos

    def highpass(self, log_rad: NDArray, octaves: float = 0) -> NDArray:
        """High-pass mask over ``log_rad`` with the transition moved down ``octaves``.

        Parameters
        ----------
        log_rad
            Radial log-frequency grid, see :func:`frequency_grid`.
        octaves
            How many octaves below the level-0 transition to place the mask.

        Returns
        -------
        mask
            Array of the same shape as ``log_rad``.
        """
        return np.sqrt(interpolate1d(log_rad, self.Yrcos, self.Xrcos - octaves))

    def lowpass(self, log_rad: NDArray, octaves: float = 0) -> NDArray:
        """Low-pass mask over ``log_rad`` with the transition moved down ``octaves``.

        Parameters
        ----------
        log_rad
            Radial log-frequency grid, see :func:`frequency_grid`.
        octaves
            How many octaves below the level-0 transition to place the mask.

        Returns
        -------
        mask
            Array of the same shape as ``log_rad``.
        """
        return np.sqrt(interpolate1d(log_rad, self.YIrcos, self.Xrcos - octaves))


class FrequencyLevel(NamedTuple):
    """Masks and indices for one oriented level of a steerable pyramid."""

    #: pyramid level, 1 is the finest oriented level
    level: int
    #: angle grid over the region the level's bands live on
    angle: NDArray
    #: radial log-frequency grid over the same region
    log_rad: NDArray
    #: band-pass (high-pass) mask over that region
    himask: NDArray
    #: low-pass mask over the next, smaller region
    lomask: NDArray
    #: where the next region sits inside this one
    lostart: NDArray
    loend: NDArray


class FrequencyLevels:
    """Recursive crop-and-mask schedule of a frequency-domain pyramid.

    Iterating yields one :class:`FrequencyLevel` per oriented level, finest first.
    At each level the raised-cosine transition moves one octave (``log2(1/scale)``)
    down, the high-pass mask is built over the current region, then the radial and
    angular grids are cropped (never recomputed) to the region of the next level,
    ``round(image_shape * scale**level)`` pixels centered on zero frequency, and
    the low-pass mask is built over the cropped grid.

    Parameters
    ----------
    image_shape
        Height and width of the image.
    num_levels
        Number of oriented levels.
    scale
        Downsampling factor between adjacent levels, in ``(0, 1)``.
    twidth
        Width of the radial transition, in octaves.

    Attributes
    ----------
    log_rad, angle : numpy.ndarray
        Full-resolution grids, see :func:`frequency_grid`.
    radial : RaisedCosineMasks
        The radial lookup tables.
    hi0mask, lo0mask : numpy.ndarray
        Level-0 (residual high-pass) and initial low-pass masks.
    region_shapes : list of tuple
        Shape of the frequency region of each level, ``0 ... num_levels``. The
        low-pass residual lives on the last one.

    Raises
    ------
    InvalidParameterError
        If a level would have a frequency region smaller than one pixel.
    """

    def __init__(
        self,
        image_shape: tuple[int, int],
        num_levels: int,
        scale: float = 0.5,
        twidth: float = 1,
    ):
        validate_scale(scale)
        self.image_shape = tuple(int(i) for i in image_shape[-2:])
        self.num_levels = num_levels
        self.scale = scale
        self.octave = np.log2(1 / scale)
        self.radial = RaisedCosineMasks(twidth)
        self.log_rad, self.angle = frequency_grid(self.image_shape)
        self.hi0mask = self.radial.highpass(self.log_rad)
        self.lo0mask = self.radial.lowpass(self.log_rad)

        self.region_shapes = [self.image_shape]
        for level in range(1, num_levels + 1):
            lodims = np.round(np.array(self.image_shape) * scale**level).astype(int)
            if lodims.min() < 1:
                max_ht = level - 1
                raise InvalidParameterError(
                    f"Cannot build pyramid higher than {max_ht:d} levels: level"
                    f" {level} would have a frequency region of shape"
                    f" {tuple(lodims)}"
                )
            self.region_shapes.append(tuple(int(i) for i in lodims))

    def __len__(self) -> int:
        return self.num_levels

    def __iter__(self) -> Iterator[FrequencyLevel]:
        log_rad = self.log_rad
        angle = self.angle
        for level in range(1, self.num_levels + 1):
            octaves = level * self.octave
            himask = self.radial.highpass(log_rad, octaves)

            lostart, loend = center_indices(log_rad.shape, self.region_shapes[level])
            lo_log_rad = log_rad[lostart[0] : loend[0], lostart[1] : loend[1]]
            lomask = self.radial.lowpass(lo_log_rad, octaves)

            yield FrequencyLevel(
                level, angle, log_rad, himask, lomask, lostart, loend
            )

            log_rad = lo_log_rad
            angle = angle[lostart[0] : loend[0], lostart[1] : loend[1]]
