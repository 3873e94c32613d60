#!/usr/bin/env python3
"""
test_window.py

Tests that the hand-computed window sum matches the library convolution.
"""
import pytest
import torch
import torch.nn.functional as F

from cnn_primer.kernel import window_sum


@pytest.fixture
def tensors():
    torch.manual_seed(0)
    image = torch.randn(2, 5, 5)
    weight = torch.randn(2, 3, 3)
    bias = torch.randn(1)
    return image, weight, bias


class TestWindowSum:

    def test_matches_library_everywhere(self, tensors):
        image, weight, bias = tensors
        library = F.conv2d(image.unsqueeze(0), weight.unsqueeze(0), bias)
        assert library.shape == (1, 1, 3, 3)

        for r in range(3):
            for c in range(3):
                value = window_sum(image, weight, bias[0], r, c)
                assert value == pytest.approx(float(library[0, 0, r, c]), abs=1e-5)

    def test_matches_library_with_stride_and_padding(self, tensors):
        image, weight, bias = tensors
        library = F.conv2d(image.unsqueeze(0), weight.unsqueeze(0), bias, stride=2, padding=1)
        assert library.shape == (1, 1, 3, 3)

        for r in range(3):
            for c in range(3):
                value = window_sum(image, weight, bias[0], r, c, stride=2, padding=1)
                assert value == pytest.approx(float(library[0, 0, r, c]), abs=1e-5)

    def test_without_bias(self, tensors):
        image, weight, _ = tensors
        expected = float((image[:, 1:4, 2:5] * weight).sum())
        assert window_sum(image, weight, None, 1, 2) == pytest.approx(expected, abs=1e-5)

    def test_padded_corner_only_sees_image_pixels(self):
        image = torch.ones(1, 3, 3)
        weight = torch.ones(1, 3, 3)
        # With one pixel of zero padding the corner window covers a 2x2 block of ones
        assert window_sum(image, weight, None, 0, 0, padding=1) == pytest.approx(4.0)

    def test_channel_mismatch(self, tensors):
        image, _, _ = tensors
        with pytest.raises(ValueError, match="channel mismatch"):
            window_sum(image, torch.ones(3, 3, 3), None, 0, 0)

    def test_window_outside_image(self, tensors):
        image, weight, _ = tensors
        with pytest.raises(ValueError, match="falls outside"):
            window_sum(image, weight, None, 3, 0)
        with pytest.raises(ValueError, match="falls outside"):
            window_sum(image, weight, None, -1, 0)

    def test_rejects_batched_input(self, tensors):
        image, weight, _ = tensors
        with pytest.raises(ValueError, match=r"\(C, H, W\)"):
            window_sum(image.unsqueeze(0), weight, None, 0, 0)
