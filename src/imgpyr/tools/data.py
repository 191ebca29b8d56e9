"""Conversion between numpy arrays and tensors."""

import contextlib

import numpy as np
import torch
from torch import Tensor

NUMPY_TO_TORCH_TYPES = {
    np.float16: torch.float16,
    np.float32: torch.float32,
    np.float64: torch.float64,
    np.complex64: torch.complex64,
    np.complex128: torch.complex128,
}

TORCH_TO_NUMPY_TYPES = {value: key for (key, value) in NUMPY_TO_TORCH_TYPES.items()}


def to_tensor(image: Tensor | np.ndarray) -> Tensor:
    """Turn an image into a floating point tensor.

    Tensors are returned unchanged. Numpy arrays share memory with the returned
    tensor when possible; integer and boolean arrays are cast to ``float64``.

    Parameters
    ----------
    image
        Array or tensor of shape ``(..., height, width)``.

    Returns
    -------
    image
        The image as a tensor.

    Examples
    --------
    >>> import numpy as np
    >>> from imgpyr.tools import to_tensor
    >>> to_tensor(np.zeros((4, 4), dtype=np.uint8)).dtype
    torch.float64
    """
    if isinstance(image, Tensor):
        return image
    image = np.asarray(image)
    if image.dtype.type not in NUMPY_TO_TORCH_TYPES:
        image = image.astype(np.float64)
    return torch.as_tensor(image)


def to_numpy(x: Tensor | np.ndarray, squeeze: bool = False) -> np.ndarray:
    r"""Cast a subband or image to numpy, keeping its precision.

    Parameters
    ----------
    x
        Tensor to be converted to `numpy.ndarray` on CPU. Arrays are passed
        through.
    squeeze
        Removes all dummy dimensions of the tensor.

    Returns
    -------
    Converted tensor as `numpy.ndarray` on CPU.
    """
    with contextlib.suppress(AttributeError):
        # in this case, it's already a numpy array
        x = x.detach().cpu().numpy().astype(TORCH_TO_NUMPY_TYPES[x.dtype])
    if squeeze:
        x = x.squeeze()
    return x
