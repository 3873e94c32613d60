#!/usr/bin/env python3
"""
window.py

Computes a single convolution output element by hand so a lesson can show
that what nn.Conv2d returns at (row, col) is the weighted sum of one local
neighborhood. This is an illustration, not a convolution engine.
"""
from typing import Optional

import torch
import torch.nn.functional as F

from .geometry import validate_padding, validate_stride


def window_sum(image: torch.Tensor, weight: torch.Tensor, bias: Optional[torch.Tensor],
               row: int, col: int, stride: int = 1, padding: int = 0) -> float:
    """
    Weighted sum of the neighborhood feeding output position (row, col).

    Args:
        image: Input of shape (C, H, W)
        weight: One filter of shape (C, kH, kW)
        bias: Scalar bias tensor or None
        row: Output row index
        col: Output column index
        stride: Step between filter applications
        padding: Zeros added on each side before sliding

    Returns:
        The output value as a Python float

    Raises:
        ValueError: If shapes disagree or the window leaves the padded image
    """
    if image.dim() != 3 or weight.dim() != 3:
        raise ValueError(
            f"image and weight must be (C, H, W) tensors, got {tuple(image.shape)} and {tuple(weight.shape)}"
        )
    if image.size(0) != weight.size(0):
        raise ValueError(
            f"channel mismatch: image has {image.size(0)} channels, filter has {weight.size(0)}"
        )
    validate_stride(stride)
    validate_padding(padding)

    # Zero border on both spatial axes
    padded = F.pad(image, (padding, padding, padding, padding)) if padding else image

    kh, kw = weight.shape[-2:]
    top, left = row * stride, col * stride
    if row < 0 or col < 0 or top + kh > padded.size(1) or left + kw > padded.size(2):
        raise ValueError(
            f"window at output ({row}, {col}) falls outside the padded input of size "
            f"{tuple(padded.shape[-2:])}"
        )

    patch = padded[:, top:top + kh, left:left + kw]
    total = (patch * weight).sum()
    if bias is not None:
        total = total + bias.reshape(())
    return float(total)
