import numpy as np
from numpy.typing import NDArray

# number of intervals in the raised-cosine lookup table
RCOS_TABLE_SIZE = 256


def raised_cosine(
    width: float = 1, position: float = 0, values: tuple[float, float] = (0, 1)
) -> tuple[NDArray, NDArray]:
    """Return a lookup table containing a "raised cosine" soft threshold function.

    Y =  VALUES(1)
        + (VALUES(2)-VALUES(1))
        * cos^2( PI/2 * (X - POSITION + WIDTH)/WIDTH )

    This lookup table is suitable for use by `interpolate1d`

    Parameters
    ----------
    width
        The width of the region over which the transition occurs.
    position
        The location of the center of the threshold.
    values
        2-tuple specifying the values to the left and right of the transition.

    Returns
    -------
    X
        The x values of this raised cosine, increasing.
    Y
        The y values of this raised cosine.
    """
    sz = RCOS_TABLE_SIZE

    k = np.arange(-sz - 1, 2)
    X = np.pi * k / (2 * sz)

    Y = values[0] + (values[1] - values[0]) * np.cos(X) ** 2

    # make sure end values are repeated, for extrapolation...
    Y[0] = Y[1]
    Y[sz + 2] = Y[sz + 1]

    # same as position + (2 * width / pi) * (X + pi / 4), but the ends of the
    # transition land exactly on position -/+ width / 2
    X = position + width * (k / sz + 0.5)

    return X, Y


def interpolate1d(x_new: NDArray, Y: NDArray, X: NDArray) -> NDArray:
    r"""One-dimensional linear interpolation.

    Returns the one-dimensional piecewise linear interpolant to a
    function with given discrete data points (X, Y), evaluated at x_new.
    Outside of ``[X[0], X[-1]]`` the end values are repeated.

    Note: this function is just a wrapper around ``np.interp()``.

    Parameters
    ----------
    x_new
        The x-coordinates at which to evaluate the interpolated values.
    Y
        The y-coordinates of the data points.
    X
        The x-coordinates of the data points, same length as Y.

    Returns
    -------
    Interpolated values of shape identical to `x_new`.
    """
    out = np.interp(x=x_new.flatten(), xp=X, fp=Y)

    return np.reshape(out, x_new.shape)


def center_indices(
    dims: tuple[int, int], lodims: tuple[int, int]
) -> tuple[NDArray, NDArray]:
    """Start and end indices of a ``lodims`` region centered in ``dims``.

    Both regions are centered on their zero-frequency bin, which after
    ``fftshift`` sits at (1-indexed) ``ceil((dims + 0.5) / 2)``.

    Parameters
    ----------
    dims
        Shape of the full region.
    lodims
        Shape of the region to cut out, no larger than ``dims``.

    Returns
    -------
    lostart, loend
        Integer arrays such that ``x[lostart[0]:loend[0], lostart[1]:loend[1]]``
        is the centered region.
    """
    dims = np.asarray(dims)
    lodims = np.asarray(lodims)
    ctr = np.ceil((dims + 0.5) / 2).astype(int)
    loctr = np.ceil((lodims + 0.5) / 2).astype(int)
    lostart = ctr - loctr
    loend = lostart + lodims
    return lostart, loend
