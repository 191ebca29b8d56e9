# ignore F401 (unused import)
# ruff: noqa: F401

from .frequency_masks import FrequencyLevel, FrequencyLevels, RaisedCosineMasks
from .laplacian_pyramid import GaussianPyramid, LaplacianPyramid
from .steerable_pyramid_freq import SteerablePyramidFreq
from .steering import harmonics, steer, steer_to_harmonics_mtx
