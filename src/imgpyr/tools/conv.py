"""Spatial filtering used by the Gaussian and Laplacian pyramids."""  # numpydoc ignore=ES01

from typing import Literal

import numpy as np
import pyrtools as pt
import torch
import torch.nn.functional as F
from einops import pack, unpack
from torch import Tensor

PADDING_MODES = Literal["constant", "reflect", "replicate", "circular"]


def correlate_downsample(
    image: Tensor,
    filt: Tensor,
    padding_mode: PADDING_MODES = "reflect",
) -> Tensor:
    """
    Correlate with a filter and downsample by a factor of 2.

    This operation allows one to downsample in an alias-resistant manner, removing the
    high frequencies that would result in aliasing in a smaller image.

    Parameters
    ----------
    image
        Image, or batch of images, of shape (..., height, width). Leading
        dimensions are handled independently.
    filt
        2D tensor defining the filter to correlate with the input ``image``.
    padding_mode
        How to pad the image, so that we return an image of the appropriate size. The
        option ``"constant"`` means padding with zeros.

    Returns
    -------
    downsampled_image
        The downsampled image, of shape ``(..., ceil(height/2), ceil(width/2))``.

    Raises
    ------
    ValueError
        If ``filt`` or ``image`` has the wrong number of dimensions.

    See Also
    --------
    upsample_convolve
        Perform the inverse operation, upsampling and convolving with a filter.
    """
    if image.ndim < 2:
        raise ValueError(f"image must be at least 2d but has {image.ndim} dimensions!")
    if filt.ndim != 2:
        raise ValueError(f"filt must be 2d but has {filt.ndim} dimensions instead!")
    flat, ps = pack([image], "* h w")
    flat = flat.unsqueeze(1)
    image_padded = same_padding(flat, kernel_size=filt.shape, pad_mode=padding_mode)
    out = F.conv2d(image_padded, filt[None, None], stride=2)
    return unpack(out.squeeze(1), ps, "* h w")[0]


def upsample_convolve(
    image: Tensor,
    odd: tuple[int, int],
    filt: Tensor,
    padding_mode: PADDING_MODES = "reflect",
) -> Tensor:
    """
    Upsample by 2 and convolve with a filter.

    When upsampling an image, we need some way to estimate the new pixels; convolving
    with a filter allows us to interpolate these pixels from their neighbors.

    Parameters
    ----------
    image
        Image, or batch of images, of shape (..., height, width). Leading
        dimensions are handled independently.
    odd
        This should contain two integers of value 0 or 1, which determines whether
        the output height and width should be even (0) or odd (1).
    filt
        2D tensor defining the filter to convolve with the upsampled ``image``.
    padding_mode
        How to pad the image, so that we return an image of the appropriate size. The
        option ``"constant"`` means padding with zeros.

    Returns
    -------
    upsampled_image
        The upsampled image, of shape ``(..., 2*height - odd[0], 2*width - odd[1])``.

    Raises
    ------
    ValueError
        If ``filt`` or ``image`` has the wrong number of dimensions.

    See Also
    --------
    correlate_downsample
        Perform the inverse operation, correlating and downsampling an image.
    """
    if image.ndim < 2:
        raise ValueError(f"image must be at least 2d but has {image.ndim} dimensions!")
    if filt.ndim != 2:
        raise ValueError(f"filt must be 2d but has {filt.ndim} dimensions instead!")
    filt = filt.flip((0, 1))

    flat, ps = pack([image], "* h w")
    flat = flat.unsqueeze(1)
    pad_start = torch.as_tensor(filt.shape) // 2
    pad_end = torch.as_tensor(filt.shape) - torch.as_tensor(odd) - pad_start
    pad = torch.as_tensor([pad_start[1], pad_end[1], pad_start[0], pad_end[0]])
    image_prepad = F.pad(flat, tuple(pad // 2), mode=padding_mode)
    image_upsample = F.conv_transpose2d(
        image_prepad,
        weight=torch.ones((1, 1, 1, 1), device=image.device, dtype=image.dtype),
        stride=2,
    )
    image_postpad = F.pad(image_upsample, tuple(pad % 2))
    out = F.conv2d(image_postpad, filt[None, None])
    return unpack(out.squeeze(1), ps, "* h w")[0]


def _named_filter(filtname: str, image: Tensor) -> Tensor:
    """Separable 2d version of a ``pyrtools`` named filter."""  # noqa: DOC201
    # numpydoc ignore=PR01,RT01
    f = pt.named_filter(filtname)
    return torch.as_tensor(np.outer(f, f), dtype=image.dtype, device=image.device)


def blur_downsample(
    image: Tensor,
    n_scales: int = 1,
    filtname: str = "binom5",
    scale_filter: bool = True,
) -> Tensor:
    """
    Correlate with a named filter and downsample by 2.

    This is the REDUCE step of the Gaussian pyramid.

    Parameters
    ----------
    image
        Image, or batch of images, of shape (..., height, width).
    n_scales
        Apply the blur and downsample procedure recursively ``n_scales`` times.
        Must be positive.
    filtname
        Name of the filter. See ``pyrtools.named_filter`` for options.
    scale_filter
        If ``True``, the filter sums to 1 (i.e., it does not affect the DC component of
        the signal and the output's mean will approximately match that of the input). If
        ``False``, the filter sums to 2.

    Returns
    -------
    downsampled_image
        The downsampled image.

    Raises
    ------
    ValueError
        If ``n_scales`` is not positive.

    See Also
    --------
    upsample_blur
        Perform the inverse operation.
    """
    if n_scales < 1:
        raise ValueError("n_scales must be positive!")
    filt = _named_filter(filtname, image)
    if scale_filter:
        filt = filt / 2
    for _ in range(n_scales):
        image = correlate_downsample(image, filt)
    return image


def upsample_blur(
    image: Tensor,
    odd: tuple[int, int],
    n_scales: int = 1,
    filtname: str = "binom5",
    scale_filter: bool = True,
) -> Tensor:
    """
    Upsample by 2 and convolve with named filter.

    This is the EXPAND step of the Laplacian pyramid.

    Parameters
    ----------
    image
        Image, or batch of images, of shape (..., height, width).
    odd
        This should contain two integers of value 0 or 1, which determines whether
        the output height and width should be even (0) or odd (1).
    n_scales
        Apply the upsample and blur procedure recursively ``n_scales`` times.
        Must be positive.
    filtname
        Name of the filter. See ``pyrtools.named_filter`` for options.
    scale_filter
        If ``True``, the filter sums to 4 (i.e., it does not affect the DC component of
        the signal and the output's mean will approximately match that of the input). If
        ``False``, the filter sums to 2.

    Returns
    -------
    upsampled_image
        The upsampled image.

    Raises
    ------
    ValueError
        If ``n_scales`` is not positive.

    See Also
    --------
    blur_downsample
        Perform the inverse operation.
    """
    if n_scales < 1:
        raise ValueError("n_scales must be positive!")
    filt = _named_filter(filtname, image)
    if scale_filter:
        filt = filt * 2
    for _ in range(n_scales):
        image = upsample_convolve(image, odd, filt)
    return image


def _get_same_padding(kernel_size: int) -> int:
    """Total padding that keeps a stride-1 convolution the same size."""  # noqa: DOC201
    # numpydoc ignore=ES01,PR01,RT01
    return max(kernel_size - 1, 0)


def same_padding(
    image: Tensor,
    kernel_size: tuple[int, int],
    pad_mode: str = "circular",
) -> Tensor:
    """
    Pad a tensor so that 2D convolution will result in output with same dims.

    The padding is split between both sides, with the extra pixel (for even kernel
    sizes) going to the end.

    Parameters
    ----------
    image
        Image, or batch of images, with at least 2 dimensions (height and width).
    kernel_size
        Size of the kernel that ``image`` will be convolved with.
    pad_mode
        How to pad ``image``. See :func:`torch.nn.functional.pad` for possible
        values.

    Returns
    -------
    padded_image
        The padded tensor.

    Raises
    ------
    ValueError
        If ``image`` has fewer than 2 dimensions.
    """
    if len(image.shape) < 2:
        raise ValueError("Input must be tensor whose last dims are height x width")
    pad_h = _get_same_padding(kernel_size[0])
    pad_w = _get_same_padding(kernel_size[1])
    if pad_h > 0 or pad_w > 0:
        image = F.pad(
            image,
            [pad_w // 2, pad_w - pad_w // 2, pad_h // 2, pad_h - pad_h // 2],
            mode=pad_mode,
        )
    return image
