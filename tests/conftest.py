import numpy as np
import pytest
import torch

DEVICE = torch.device("cuda" if torch.cuda.is_available() else "cpu")

torch.set_num_threads(1)  # torch uses all avail threads which will slow tests
torch.manual_seed(0)
if torch.cuda.is_available():
    torch.cuda.manual_seed(0)


def gaussian_bump(shape=(64, 64), sigma=None, dtype=torch.float64):
    """Isotropic 2d Gaussian centered in the image, with values in [0, 1]."""
    if sigma is None:
        sigma = min(shape) / 8
    y, x = np.meshgrid(
        np.arange(shape[0]) - shape[0] / 2,
        np.arange(shape[1]) - shape[1] / 2,
        indexing="ij",
    )
    bump = np.exp(-(x**2 + y**2) / (2 * sigma**2))
    return torch.as_tensor(bump, dtype=dtype, device=DEVICE)


def random_img(shape=(64, 64), dtype=torch.float64, seed=0):
    """Uniform noise in [0, 1), reproducible across calls."""
    generator = torch.Generator().manual_seed(seed)
    return torch.rand(*shape, generator=generator, dtype=dtype).to(DEVICE)


def texture_img(shape=(64, 64), dtype=torch.float64):
    """Oriented gratings at a few scales plus noise, so that every band has energy."""
    y, x = np.meshgrid(
        np.arange(shape[0]) / shape[0],
        np.arange(shape[1]) / shape[1],
        indexing="ij",
    )
    img = (
        np.cos(2 * np.pi * (4 * x + 2 * y))
        + 0.5 * np.cos(2 * np.pi * (9 * y - 3 * x))
        + 0.25 * np.cos(2 * np.pi * 17 * x)
    )
    img = torch.as_tensor(img, dtype=dtype, device=DEVICE)
    return img + 0.1 * random_img(shape, dtype, seed=1)


@pytest.fixture(scope="package")
def bump_img():
    return gaussian_bump()


@pytest.fixture(scope="package")
def noise_img():
    return random_img()


@pytest.fixture(scope="package")
def grating_img():
    return texture_img()
