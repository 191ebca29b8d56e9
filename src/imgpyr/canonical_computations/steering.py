"""Steering matrices for the oriented bands of a steerable pyramid.

A set of ``K`` filters whose angular profile is a ``cos^(K-1)`` lobe is steerable:
the response at any angle is a linear combination of the ``K`` basis responses, with
weights given by a small number of angular harmonics.
"""

import warnings

import numpy as np
import torch
from numpy.typing import NDArray
from torch import Tensor

from ..errors import InvalidParameterError, RankDeficiencyWarning


def harmonics(num_orientations: int) -> NDArray:
    """Angular harmonics needed to steer ``num_orientations`` filters.

    For an even number of orientations these are the odd numbers ``1, 3, ...,
    num_orientations-1``; for an odd number, the even numbers ``0, 2, ...,
    num_orientations-1``.

    Parameters
    ----------
    num_orientations
        Number of basis filters, must be positive.

    Returns
    -------
    harmonics
        1d integer array.

    Raises
    ------
    InvalidParameterError
        If ``num_orientations < 1``.

    Examples
    --------
    >>> from imgpyr.canonical_computations.steering import harmonics
    >>> harmonics(4)
    array([1, 3])
    >>> harmonics(3)
    array([0, 2])
    """
    if num_orientations < 1:
        raise InvalidParameterError(
            f"num_orientations must be positive but got {num_orientations}"
        )
    return np.arange(1 - (num_orientations % 2), num_orientations, 2)


def harmonics_mtx(
    harmonics: NDArray, angles: NDArray, even_phase: bool = True
) -> NDArray:
    """Matrix of harmonic components evaluated at each angle.

    Row ``i`` holds ``[cos(h0*a_i) sin(h0*a_i) cos(h1*a_i) ...]`` for ``angles[i]``,
    with a single constant column in place of the cosine/sine pair when a
    harmonic is 0.

    Parameters
    ----------
    harmonics
        The harmonic numbers.
    angles
        Angles (in radians) at which the harmonics are evaluated.
    even_phase
        If False, use ``sin``, ``-cos`` pairs instead of ``cos``, ``sin``.

    Returns
    -------
    imtx
        Array of shape ``(len(angles), num_harmonic_components)``.
    """
    harmonics = np.asarray(harmonics).flatten()
    angles = np.asarray(angles, dtype=float).flatten()
    numh = 2 * harmonics.size - (harmonics == 0).sum()

    imtx = np.zeros((angles.size, numh))
    col = 0
    for h in harmonics:
        args = h * angles
        if h == 0:
            imtx[:, col] = 1
            col += 1
        elif even_phase:
            imtx[:, col] = np.cos(args)
            imtx[:, col + 1] = np.sin(args)
            col += 2
        else:
            imtx[:, col] = np.sin(args)
            imtx[:, col + 1] = -np.cos(args)
            col += 2
    return imtx


def steer_to_harmonics_mtx(
    harmonics: NDArray, angles: NDArray | None = None, even_phase: bool = True
) -> NDArray:
    """Compute a steering matrix.

    The steering matrix maps a set of basis filter responses, sampled at
    ``angles``, onto their Fourier series components (ordered ``[cos0 cos1 sin1
    cos2 sin2 ... sinN]``). It is the Moore-Penrose pseudo-inverse of
    :func:`harmonics_mtx`.

    Parameters
    ----------
    harmonics
        The harmonic numbers.
    angles
        The angles of the basis filters. If None, uses ``numh`` angles evenly
        spaced over ``[0, pi)``.
    even_phase
        Whether the harmonics are cosine or sine phase aligned about those
        positions.

    Returns
    -------
    steermtx
        Array of shape ``(num_harmonic_components, len(angles))``.

    Warns
    -----
    RankDeficiencyWarning
        If the harmonic matrix has neither full column nor full row rank.
    """
    harmonics = np.asarray(harmonics).flatten()
    numh = 2 * harmonics.size - (harmonics == 0).sum()
    if angles is None:
        angles = np.pi * np.arange(numh) / numh

    imtx = harmonics_mtx(harmonics, angles, even_phase)

    r = np.linalg.matrix_rank(imtx)
    if r != numh and r != imtx.shape[0]:
        warnings.warn(
            f"Steering matrix is not full rank (rank {r}, {numh} harmonic components,"
            f" {imtx.shape[0]} angles)",
            RankDeficiencyWarning,
        )

    return np.linalg.pinv(imtx)


def steer(
    basis: Tensor,
    angle: float,
    harmonics: NDArray,
    steermtx: NDArray,
    even_phase: bool = True,
) -> tuple[Tensor, Tensor]:
    """Steer ``basis`` to the specified ``angle``.

    Parameters
    ----------
    basis
        Tensor whose last dimension indexes the basis responses, i.e.
        ``basis[..., j]`` is the response of the ``j``-th steerable filter.
    angle
        Angle (in radians) to steer to.
    harmonics
        The harmonic numbers of the basis, see :func:`harmonics`.
    steermtx
        Matrix which maps the filters onto Fourier series components, see
        :func:`steer_to_harmonics_mtx`.
    even_phase
        Specifies whether the harmonics are cosine or sine phase aligned about
        those positions.

    Returns
    -------
    res
        The resteered basis, of shape ``basis.shape[:-1]``.
    steervect
        The weights used to resteer the basis.

    Raises
    ------
    ValueError
        If ``harmonics`` or ``steermtx`` are incompatible with ``basis``.
    """
    num = basis.shape[-1]
    harmonics = np.asarray(harmonics).flatten()
    if 2 * harmonics.size - (harmonics == 0).sum() != num:
        raise ValueError("harmonics list is incompatible with basis size!")
    if steermtx.shape != (num, num):
        raise ValueError(
            f"steermtx must have shape {(num, num)} but has shape {steermtx.shape}"
        )

    steervect = harmonics_mtx(harmonics, [angle], even_phase) @ steermtx
    steervect = torch.as_tensor(
        steervect.reshape(num), dtype=basis.dtype, device=basis.device
    )
    return basis @ steervect, steervect
