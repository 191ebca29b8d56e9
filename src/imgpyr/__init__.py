"""
imgpyr builds and inverts multi-scale image pyramids.

Three pyramids are available: the complex steerable pyramid, built and inverted in
the Fourier domain, and the spatial Gaussian and Laplacian pyramids. All of them
operate on real ``torch`` tensors of shape ``(..., height, width)`` and return an
:class:`ImagePyramid`, whose subbands are addressed by ``(level, orientation)``.
Level 0 is always the highest-frequency residual and level ``num_levels + 1`` the
lowest-frequency one.
"""
# ruff: noqa: F401
# ruff: noqa: I001
# Import order matters here to avoid circular dependencies

from . import errors, tools
from . import canonical_computations
from .errors import (
    InvalidParameterError,
    RankDeficiencyWarning,
    ShapeMismatchError,
    UnsupportedPyramidTypeError,
)
from .pyramid import ImagePyramid, PyramidType, subband, update_subband
from .canonical_computations import (
    GaussianPyramid,
    LaplacianPyramid,
    SteerablePyramidFreq,
)
from .transforms import build_gaussian, build_laplacian, build_steerable, reconstruct
from .tools.data import to_numpy

# preface with underscore so they're not exposed to __all__
from importlib.metadata import PackageNotFoundError as _PackageNotFoundError
from importlib.metadata import version as _get_version
import contextlib as _contextlib


with _contextlib.suppress(_PackageNotFoundError):
    __version__ = _get_version("imgpyr")
