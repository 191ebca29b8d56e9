import math

import numpy as np
import pytest
import torch

import imgpyr
from conftest import DEVICE, random_img
from imgpyr.canonical_computations import GaussianPyramid, LaplacianPyramid
from imgpyr.errors import InvalidParameterError
from imgpyr.tools.conv import blur_downsample
from imgpyr.tools.data import to_numpy


class TestLaplacianPyramid:
    @pytest.mark.parametrize("shape", [(64, 64), (63, 64), (65, 47), (32, 48)])
    def test_recon(self, shape):
        img = random_img(shape)
        pyr = imgpyr.build_laplacian(img)
        recon = imgpyr.reconstruct(pyr)
        assert recon.shape == img.shape
        np.testing.assert_allclose(to_numpy(recon), to_numpy(img), atol=1e-10)

    def test_recon_float32(self):
        img = random_img((64, 64), dtype=torch.float32)
        lpyr = LaplacianPyramid(img.shape)
        pyr = lpyr(img)
        assert pyr.subband(0).dtype == torch.float32
        recon = lpyr.recon_pyr(pyr)
        assert recon.dtype == torch.float32
        np.testing.assert_allclose(to_numpy(recon), to_numpy(img), atol=1e-5)

    def test_batch(self):
        imgs = torch.stack([random_img(seed=i) for i in range(6)]).reshape(
            2, 3, 64, 64
        )
        lpyr = LaplacianPyramid(imgs.shape, height=2)
        pyr = lpyr(imgs)
        for k, v in pyr.items():
            assert v.shape == (2, 3, *pyr.pyr_size[k])
        single = lpyr(imgs[1, 2])
        for k in pyr:
            np.testing.assert_allclose(
                to_numpy(pyr.subband(k[0])[1, 2]), to_numpy(single.subband(k[0]))
            )
        np.testing.assert_allclose(
            to_numpy(lpyr.recon_pyr(pyr)), to_numpy(imgs), atol=1e-10
        )

    @pytest.mark.parametrize("height", [0, 1, 2, 4])
    def test_level_shapes(self, height):
        lpyr = LaplacianPyramid((64, 48), height=height)
        pyr = lpyr(random_img((64, 48)))
        assert len(pyr) == height + 2
        assert list(pyr.keys()) == [(level, None) for level in range(height + 2)]
        for level in range(height + 2):
            expected = (math.ceil(64 / 2**level), math.ceil(48 / 2**level))
            assert pyr.subband(level).shape == expected
            assert lpyr.pyr_size[(level, None)] == expected
        assert pyr.num_levels == height
        assert pyr.pyramid_type is imgpyr.PyramidType.LAPLACIAN

    def test_odd_level_shapes(self):
        pyr = imgpyr.build_laplacian(random_img((65, 47)), height=2)
        assert [tuple(v.shape) for v in pyr.pyr_coeffs.values()] == [
            (65, 47),
            (33, 24),
            (17, 12),
            (9, 6),
        ]

    def test_residual_is_gaussian(self, noise_img):
        lpyr = imgpyr.build_laplacian(noise_img, height=2)
        gpyr = imgpyr.build_gaussian(noise_img, height=2)
        np.testing.assert_allclose(
            to_numpy(lpyr.subband(3)), to_numpy(gpyr.subband(3)), atol=1e-12
        )

    def test_constant_image(self):
        img = torch.full((64, 64), 0.7, dtype=torch.float64, device=DEVICE)
        pyr = imgpyr.build_laplacian(img, height=2)
        for level in range(3):
            np.testing.assert_allclose(to_numpy(pyr.subband(level)), 0, atol=1e-12)
        np.testing.assert_allclose(to_numpy(pyr.subband(3)), 0.7, atol=1e-12)

    @pytest.mark.parametrize(
        "shape,height,match",
        [
            ((64, 64), 5, "higher than 4 levels"),
            ((64, 64), -1, "non-negative"),
            ((64, 64), "tall", "height must be 'auto'"),
            ((2, 64), 0, "too small to downsample"),
            ((64, 3), 1, "higher than 0 levels"),
        ],
    )
    def test_invalid_height(self, shape, height, match):
        with pytest.raises(InvalidParameterError, match=match):
            LaplacianPyramid(shape, height=height)

    def test_auto_height(self):
        lpyr = LaplacianPyramid((64, 64))
        assert lpyr.num_levels == imgpyr.tools.validate.auto_height((64, 64))
        assert lpyr.pyr_size[(lpyr.num_levels + 1, None)] == (4, 4)

    def test_wrong_input(self, noise_img):
        lpyr = LaplacianPyramid((32, 32), height=1)
        with pytest.raises(ValueError, match="built for images of shape"):
            lpyr(noise_img)
        with pytest.raises(TypeError, match="float dtypes"):
            lpyr(torch.ones(32, 32, dtype=torch.int32))

    def test_recon_wrong_pyramid(self, noise_img):
        pyr = imgpyr.build_laplacian(noise_img, height=2)
        with pytest.raises(ValueError, match="does not match"):
            LaplacianPyramid((64, 64), height=1).recon_pyr(pyr)
        with pytest.raises(ValueError, match="must be a laplacian pyramid"):
            LaplacianPyramid((64, 64), height=2).recon_pyr(
                imgpyr.build_gaussian(noise_img, height=2)
            )

    def test_recon_updated(self, noise_img):
        # collapsing is linear: zeroing the finest level removes it from the image
        pyr = imgpyr.build_laplacian(noise_img, height=2)
        finest = pyr.subband(0)
        new_pyr = pyr.update_subband(0, torch.zeros_like(finest))
        np.testing.assert_allclose(
            to_numpy(imgpyr.reconstruct(new_pyr)),
            to_numpy(noise_img - finest),
            atol=1e-10,
        )

    def test_numpy_input(self):
        img = np.random.default_rng(0).random((32, 32))
        pyr = imgpyr.build_laplacian(img, height=1)
        np.testing.assert_allclose(
            imgpyr.to_numpy(imgpyr.reconstruct(pyr)), img, atol=1e-10
        )

    def test_levels_not_supported(self, noise_img):
        pyr = imgpyr.build_laplacian(noise_img)
        with pytest.raises(ValueError, match="only supported for complex steerable"):
            imgpyr.reconstruct(pyr, levels=[0, 1])
        with pytest.raises(ValueError, match="only supported for complex steerable"):
            imgpyr.reconstruct(pyr, bands=[1])
        with pytest.raises(ValueError, match="must be 'all'"):
            imgpyr.reconstruct(pyr, levels="bogus")
        with pytest.raises(ValueError, match="must be 'all'"):
            imgpyr.reconstruct(pyr, bands="none")

    @pytest.mark.parametrize("scale_filter", [True, False])
    def test_reconstruct_scale_filter(self, noise_img, scale_filter):
        lpyr = LaplacianPyramid(noise_img.shape, height=2, scale_filter=scale_filter)
        pyr = lpyr(noise_img)
        assert pyr.scale_filter is scale_filter
        assert pyr.clone().scale_filter is scale_filter
        assert LaplacianPyramid.from_pyramid(pyr).scale_filter is scale_filter
        np.testing.assert_allclose(
            to_numpy(imgpyr.reconstruct(pyr)), to_numpy(noise_img), atol=1e-10
        )

    def test_recon_wrong_scale_filter(self, noise_img):
        pyr = LaplacianPyramid(noise_img.shape, height=2, scale_filter=False)(
            noise_img
        )
        with pytest.raises(ValueError, match="scale_filter=False"):
            LaplacianPyramid(noise_img.shape, height=2).recon_pyr(pyr)


class TestGaussianPyramid:
    def test_levels(self, noise_img):
        pyr = imgpyr.build_gaussian(noise_img, height=2)
        assert pyr.pyramid_type is imgpyr.PyramidType.GAUSSIAN
        assert list(pyr.keys()) == [(0, None), (1, None), (2, None), (3, None)]
        assert torch.equal(pyr.subband(0), noise_img)
        # level 0 is a copy
        assert pyr.subband(0).data_ptr() != noise_img.data_ptr()
        for level in range(1, 4):
            np.testing.assert_allclose(
                to_numpy(pyr.subband(level)),
                to_numpy(blur_downsample(pyr.subband(level - 1))),
            )

    def test_constant_image(self):
        img = torch.full((2, 65, 47), -1.5, dtype=torch.float64, device=DEVICE)
        pyr = imgpyr.build_gaussian(img)
        for v in pyr.pyr_coeffs.values():
            np.testing.assert_allclose(to_numpy(v), -1.5, atol=1e-12)

    @pytest.mark.parametrize("scale_filter", [True, False])
    def test_scale_filter(self, noise_img, scale_filter):
        gpyr = GaussianPyramid(noise_img.shape, height=1, scale_filter=scale_filter)
        pyr = gpyr(noise_img)
        ratio = (pyr.subband(1).mean() / noise_img.mean()).item()
        assert ratio == pytest.approx(1.0 if scale_filter else 2.0, rel=0.05)

    def test_recon(self, noise_img):
        pyr = imgpyr.build_gaussian(noise_img)
        recon = imgpyr.reconstruct(pyr)
        assert torch.equal(recon, noise_img)
        assert recon.data_ptr() != pyr.subband(0).data_ptr()

    def test_default_height_sizes(self):
        pyr = GaussianPyramid((64, 64))(random_img())
        assert list(pyr.pyr_size.values()) == [
            (64, 64),
            (32, 32),
            (16, 16),
            (8, 8),
            (4, 4),
        ]

    def test_from_pyramid(self, noise_img):
        pyr = imgpyr.build_gaussian(noise_img, height=1)
        gpyr = GaussianPyramid.from_pyramid(pyr)
        assert gpyr.num_levels == 1
        assert gpyr.image_shape == (64, 64)
        with pytest.raises(ValueError, match="does not match"):
            GaussianPyramid((64, 64), height=2).recon_pyr(pyr)

    def test_levels_not_supported(self, noise_img):
        pyr = imgpyr.build_gaussian(noise_img, height=1)
        with pytest.raises(ValueError, match="only supported for complex steerable"):
            imgpyr.reconstruct(pyr, levels=[0])
