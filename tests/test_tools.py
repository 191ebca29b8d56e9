from contextlib import nullcontext as does_not_raise

import numpy as np
import pytest
import scipy.ndimage
import torch

import imgpyr
from conftest import DEVICE
from imgpyr.errors import InvalidParameterError
from imgpyr.tools import validate
from imgpyr.tools.signal import (
    RCOS_TABLE_SIZE,
    center_indices,
    interpolate1d,
    raised_cosine,
)


class TestSignal:
    @pytest.mark.parametrize("width", [0.5, 1, 2])
    @pytest.mark.parametrize("position", [-1, -0.5, 0])
    def test_raised_cosine(self, width, position):
        X, Y = raised_cosine(width, position, (0, 1))
        assert X.shape == Y.shape == (RCOS_TABLE_SIZE + 3,)
        assert (np.diff(X) > 0).all()
        # transition runs from position - width/2 to position + width/2
        assert X[1] == position - width / 2
        assert X[-2] == position + width / 2
        assert Y[0] == Y[1]
        assert Y[-1] == Y[-2] == 1
        np.testing.assert_allclose(Y[1], 0, atol=1e-30)
        assert (np.diff(Y) >= 0).all()

    def test_raised_cosine_values(self):
        X, Y = raised_cosine(1, 0, (2, -1))
        np.testing.assert_allclose(Y[1], 2)
        np.testing.assert_allclose(Y[-1], -1)
        # halfway through the transition
        np.testing.assert_allclose(Y[RCOS_TABLE_SIZE // 2 + 1], 0.5)

    def test_interpolate1d(self):
        X = np.array([0.0, 1.0, 2.0])
        Y = np.array([0.0, 10.0, 30.0])
        x_new = np.array([[-1.0, 0.5], [1.5, 3.0]])
        out = interpolate1d(x_new, Y, X)
        assert out.shape == x_new.shape
        np.testing.assert_allclose(out, [[0.0, 5.0], [20.0, 30.0]])

    @pytest.mark.parametrize(
        "dims,lodims,start",
        [
            ((64, 64), (32, 32), (16, 16)),
            ((63, 64), (32, 32), (15, 16)),
            ((8, 8), (4, 4), (2, 2)),
            ((9, 8), (5, 3), (2, 3)),
            ((64, 64), (64, 64), (0, 0)),
        ],
    )
    def test_center_indices(self, dims, lodims, start):
        lostart, loend = center_indices(dims, lodims)
        np.testing.assert_array_equal(lostart, start)
        np.testing.assert_array_equal(loend - lostart, lodims)
        # zero frequency stays at zero frequency
        ctr = np.ceil((np.array(dims) + 0.5) / 2).astype(int)
        loctr = np.ceil((np.array(lodims) + 0.5) / 2).astype(int)
        np.testing.assert_array_equal(lostart + loctr, ctr)


class TestDownsampleUpsample:
    @pytest.mark.parametrize("odd", [0, 1])
    @pytest.mark.parametrize("size", [9, 10, 11, 12])
    @pytest.mark.parametrize("dtype", [torch.float32, torch.float64])
    def test_filter(self, odd, size, dtype):
        img = torch.zeros([1, 1, 24 + odd, 25], device=DEVICE, dtype=dtype)
        img[0, 0, 12, 12] = 1
        filt = np.zeros([size, size + 1])
        filt[5, 5] = 1
        filt = scipy.ndimage.gaussian_filter(filt, sigma=1)
        filt = torch.as_tensor(filt, dtype=dtype, device=DEVICE)
        img_down = imgpyr.tools.correlate_downsample(img, filt=filt)
        img_up = imgpyr.tools.upsample_convolve(img_down, odd=(odd, 1), filt=filt)
        assert np.unravel_index(img_up.cpu().numpy().argmax(), img_up.shape) == (
            0,
            0,
            12,
            12,
        )

        img_down = imgpyr.tools.blur_downsample(img)
        img_up = imgpyr.tools.upsample_blur(img_down, odd=(odd, 1))
        assert np.unravel_index(img_up.cpu().numpy().argmax(), img_up.shape) == (
            0,
            0,
            12,
            12,
        )

    def test_multichannel(self):
        img = torch.randn([10, 3, 24, 25], device=DEVICE, dtype=torch.float32)
        filt = torch.randn([5, 5], device=DEVICE, dtype=torch.float32)
        img_down = imgpyr.tools.correlate_downsample(img, filt=filt)
        img_up = imgpyr.tools.upsample_convolve(img_down, odd=(0, 1), filt=filt)
        assert img_up.shape == img.shape

        img_down = imgpyr.tools.blur_downsample(img)
        img_up = imgpyr.tools.upsample_blur(img_down, odd=(0, 1))
        assert img_up.shape == img.shape

    @pytest.mark.parametrize("shape", [(24, 25), (5, 7), (3, 3)])
    def test_no_batch(self, shape):
        img = torch.randn(shape, device=DEVICE, dtype=torch.float64)
        img_down = imgpyr.tools.blur_downsample(img)
        assert img_down.shape == tuple((s + 1) // 2 for s in shape)
        odd = tuple(s % 2 for s in shape)
        assert imgpyr.tools.upsample_blur(img_down, odd=odd).shape == shape

    def test_n_scales(self):
        img = torch.randn(32, 32, device=DEVICE, dtype=torch.float64)
        twice = imgpyr.tools.blur_downsample(imgpyr.tools.blur_downsample(img))
        np.testing.assert_allclose(
            imgpyr.to_numpy(imgpyr.tools.blur_downsample(img, n_scales=2)),
            imgpyr.to_numpy(twice),
        )
        with pytest.raises(ValueError, match="n_scales must be positive"):
            imgpyr.tools.blur_downsample(img, n_scales=0)
        with pytest.raises(ValueError, match="n_scales must be positive"):
            imgpyr.tools.upsample_blur(img, odd=(0, 0), n_scales=0)

    @pytest.mark.parametrize("kernel_size", [(5, 5), (4, 5), (1, 3)])
    def test_same_padding(self, kernel_size):
        img = torch.randn(2, 1, 9, 8, device=DEVICE)
        padded = imgpyr.tools.same_padding(img, kernel_size, pad_mode="reflect")
        assert padded.shape[-2:] == (9 + kernel_size[0] - 1, 8 + kernel_size[1] - 1)
        filt = torch.ones(1, 1, *kernel_size, device=DEVICE)
        assert torch.nn.functional.conv2d(padded, filt).shape == img.shape
        with pytest.raises(ValueError, match="height x width"):
            imgpyr.tools.same_padding(torch.ones(3), (5, 5))

    def test_bad_dims(self):
        filt = torch.ones(5, 5)
        with pytest.raises(ValueError, match="at least 2d"):
            imgpyr.tools.correlate_downsample(torch.ones(8), filt)
        with pytest.raises(ValueError, match="filt must be 2d"):
            imgpyr.tools.upsample_convolve(torch.ones(8, 8), (0, 0), torch.ones(5))


class TestValidate:
    @pytest.mark.parametrize(
        "shape,expectation",
        [
            ((16, 16), does_not_raise()),
            ((1, 16, 16), does_not_raise()),
            ((2, 3, 16, 16), does_not_raise()),
            ((16,), pytest.raises(InvalidParameterError, match="at least 2")),
            ((0, 16), pytest.raises(InvalidParameterError, match="must not be empty")),
        ],
    )
    def test_input_shape(self, shape, expectation):
        img = torch.rand(*shape)
        with expectation:
            validate.validate_input(img)

    @pytest.mark.parametrize(
        "dtype,expectation",
        [
            (torch.float16, does_not_raise()),
            (torch.float32, does_not_raise()),
            (torch.float64, does_not_raise()),
            (torch.int64, pytest.raises(TypeError, match="Only real float dtypes")),
            (torch.bool, pytest.raises(TypeError, match="Only real float dtypes")),
            (torch.complex64, pytest.raises(TypeError, match="Only real float dtypes")),
        ],
    )
    def test_input_dtype(self, dtype, expectation):
        img = torch.ones(16, 16, dtype=dtype)
        with expectation:
            validate.validate_input(img)

    def test_input_odd(self):
        with pytest.warns(UserWarning, match="odd-sized images"):
            validate.validate_input(torch.rand(15, 16), warn_odd=True)

    @pytest.mark.parametrize(
        "shape,kwargs,expected",
        [
            ((64, 64), {}, 3),
            ((256, 256), {}, 5),
            ((32, 32), {}, 2),
            ((16, 16), {}, 1),
            ((8, 8), {}, 0),
            ((64, 128), {}, 3),
            ((64, 64), {"scale": 0.25}, 2),
            ((2**30, 2**30), {}, 23),
            ((256, 256), {"max_levels": 2}, 2),
            ((256, 256), {"min_size": 4}, 6),
        ],
    )
    def test_auto_height(self, shape, kwargs, expected):
        assert validate.auto_height(shape, **kwargs) == expected

    def test_auto_height_invalid(self):
        with pytest.raises(InvalidParameterError, match="min_size"):
            validate.auto_height((64, 64), min_size=0)
        with pytest.raises(InvalidParameterError, match="scale"):
            validate.auto_height((64, 64), scale=2)

    @pytest.mark.parametrize(
        "height,expectation",
        [
            ("auto", does_not_raise()),
            (0, does_not_raise()),
            (4, does_not_raise()),
            (np.int64(2), does_not_raise()),
            (3.0, does_not_raise()),
            ("max", pytest.raises(InvalidParameterError, match="'auto'")),
            (2.5, pytest.raises(InvalidParameterError, match="must be an integer")),
            (True, pytest.raises(InvalidParameterError, match="must be an integer")),
            (-1, pytest.raises(InvalidParameterError, match="non-negative")),
        ],
    )
    def test_validate_height(self, height, expectation):
        with expectation:
            out = validate.validate_height(height, (64, 64))
            assert isinstance(out, int)

    @pytest.mark.parametrize("scale", [0, 1, -0.5, 1.5])
    def test_validate_scale(self, scale):
        with pytest.raises(InvalidParameterError, match="scale must lie in"):
            validate.validate_scale(scale)


class TestData:
    @pytest.mark.parametrize(
        "dtype", [torch.float32, torch.float64, torch.complex64, torch.complex128]
    )
    def test_to_numpy(self, dtype):
        x = torch.ones(1, 3, 4, dtype=dtype, device=DEVICE)
        out = imgpyr.to_numpy(x)
        assert isinstance(out, np.ndarray)
        assert out.dtype == imgpyr.tools.TORCH_TO_NUMPY_TYPES[dtype]
        assert out.shape == (1, 3, 4)
        assert imgpyr.to_numpy(x, squeeze=True).shape == (3, 4)

    def test_to_numpy_array(self):
        x = np.zeros((2, 2))
        assert imgpyr.to_numpy(x) is x

    def test_to_numpy_requires_grad(self):
        x = torch.ones(4, 4, requires_grad=True)
        np.testing.assert_array_equal(imgpyr.to_numpy(x), np.ones((4, 4)))

    @pytest.mark.parametrize(
        "dtype,expected",
        [
            (np.float32, torch.float32),
            (np.float64, torch.float64),
            (np.uint8, torch.float64),
            (np.int32, torch.float64),
            (bool, torch.float64),
        ],
    )
    def test_to_tensor(self, dtype, expected):
        x = np.ones((4, 5), dtype=dtype)
        out = imgpyr.tools.to_tensor(x)
        assert torch.is_tensor(out)
        assert out.dtype == expected
        assert out.shape == (4, 5)

    def test_to_tensor_passthrough(self):
        x = torch.ones(4, 4)
        assert imgpyr.tools.to_tensor(x) is x

    def test_to_tensor_list(self):
        out = imgpyr.tools.to_tensor([[1.0, 2.0], [3.0, 4.0]])
        assert out.dtype == torch.float64
