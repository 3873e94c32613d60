#!/usr/bin/env python3
"""
geometry.py

Shape arithmetic and hyperparameter validation for the convolution and
pooling layers used throughout the notebook. Every lesson compares the shape
PyTorch actually produces against the shape predicted here.
"""
from typing import Optional, Sequence, Tuple, Union

IntOrPair = Union[int, Sequence[int]]


def as_pair(value: IntOrPair, name: str = "value") -> Tuple[int, int]:
    """
    Normalize an int or a (height, width) pair to a tuple.

    Args:
        value: Single int applied to both axes, or a 2-sequence
        name: Parameter name used in error messages

    Returns:
        (height, width) tuple
    """
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an int or a (height, width) pair, got {value!r}")
    if isinstance(value, int):
        return (value, value)
    if isinstance(value, (list, tuple)) and len(value) == 2 and all(
        isinstance(v, int) and not isinstance(v, bool) for v in value
    ):
        return (value[0], value[1])
    raise ValueError(f"{name} must be an int or a (height, width) pair, got {value!r}")


def validate_kernel_size(kernel_size: IntOrPair) -> None:
    """
    Validate a filter / pooling window size.

    Raises:
        ValueError: If any dimension is not a positive integer
    """
    if kernel_size is None:
        raise ValueError("kernel_size parameter is required - must specify the filter size n")

    kh, kw = as_pair(kernel_size, "kernel_size")
    if kh < 1 or kw < 1:
        raise ValueError(f"kernel_size must be positive integers (e.g., 3 or (3, 5)), got {kernel_size!r}")


def validate_stride(stride: IntOrPair) -> None:
    """
    Validate the step between successive filter applications.

    Raises:
        ValueError: If any dimension is not a positive integer
    """
    sh, sw = as_pair(stride, "stride")
    if sh < 1 or sw < 1:
        raise ValueError(f"stride must be positive integers, got {stride!r}")


def validate_padding(padding: IntOrPair) -> None:
    """
    Validate the zero border added around the input.

    Raises:
        ValueError: If any dimension is negative
    """
    ph, pw = as_pair(padding, "padding")
    if ph < 0 or pw < 0:
        raise ValueError(f"padding must be non-negative integers, got {padding!r}")


def validate_dilation(dilation: IntOrPair) -> None:
    """
    Validate the spacing between filter taps.

    Raises:
        ValueError: If any dimension is not a positive integer
    """
    dh, dw = as_pair(dilation, "dilation")
    if dh < 1 or dw < 1:
        raise ValueError(f"dilation must be positive integers, got {dilation!r}")


def validate_layer_parameters(kernel_size: IntOrPair, stride: IntOrPair = 1,
                              padding: IntOrPair = 0, dilation: IntOrPair = 1) -> None:
    """
    Validate every hyperparameter of a spatial layer at once.

    Raises:
        ValueError: If any parameter is invalid
    """
    validate_kernel_size(kernel_size)
    validate_stride(stride)
    validate_padding(padding)
    validate_dilation(dilation)


def conv_output_size(n_in: int, kernel_size: int, stride: int = 1,
                     padding: int = 0, dilation: int = 1) -> int:
    """
    Calculate the length of one spatial axis after a convolution.

    Args:
        n_in: Input size N along the axis
        kernel_size: Filter size n along the axis
        stride: Step between filter applications
        padding: Zeros added on each side
        dilation: Spacing between filter taps

    Returns:
        Output size along the axis

    Formula:
        floor((N + 2p - d(n - 1) - 1) / s) + 1, which is N - n + 1 when
        p = 0, s = 1 and d = 1

    Raises:
        ValueError: If the filter does not fit inside the padded input
    """
    if n_in < 1:
        raise ValueError(f"input size must be positive, got {n_in}")
    validate_layer_parameters(kernel_size, stride, padding, dilation)

    span = dilation * (kernel_size - 1) + 1
    out = (n_in + 2 * padding - span) // stride + 1
    if out < 1:
        raise ValueError(
            f"kernel of size {kernel_size} (dilation {dilation}) does not fit an input of "
            f"size {n_in} with padding {padding}"
        )
    return out


def pool_output_size(n_in: int, kernel_size: int, stride: Optional[int] = None,
                     padding: int = 0) -> int:
    """
    Calculate the length of one spatial axis after pooling.

    The stride defaults to the window size, so windows tile the input without
    overlapping. Partial windows at the border are dropped (floor mode).

    Raises:
        ValueError: If the window does not fit or padding exceeds half the window
    """
    if stride is None:
        stride = kernel_size
    if padding * 2 > kernel_size:
        raise ValueError(
            f"pool padding should be at most half of the kernel size, got padding={padding} "
            f"for kernel_size={kernel_size}"
        )
    return conv_output_size(n_in, kernel_size, stride=stride, padding=padding)


def conv2d_output_shape(in_hw: Sequence[int], kernel_size: IntOrPair, stride: IntOrPair = 1,
                        padding: IntOrPair = 0, dilation: IntOrPair = 1) -> Tuple[int, int]:
    """Apply conv_output_size to height and width independently."""
    kh, kw = as_pair(kernel_size, "kernel_size")
    sh, sw = as_pair(stride, "stride")
    ph, pw = as_pair(padding, "padding")
    dh, dw = as_pair(dilation, "dilation")
    h, w = in_hw
    return (
        conv_output_size(h, kh, sh, ph, dh),
        conv_output_size(w, kw, sw, pw, dw),
    )


def pool2d_output_shape(in_hw: Sequence[int], kernel_size: IntOrPair,
                        stride: Optional[IntOrPair] = None,
                        padding: IntOrPair = 0) -> Tuple[int, int]:
    """Apply pool_output_size to height and width independently."""
    kh, kw = as_pair(kernel_size, "kernel_size")
    sh, sw = as_pair(stride, "stride") if stride is not None else (kh, kw)
    ph, pw = as_pair(padding, "padding")
    h, w = in_hw
    return (
        pool_output_size(h, kh, sh, ph),
        pool_output_size(w, kw, sw, pw),
    )


def same_padding(kernel_size: int, dilation: int = 1) -> int:
    """
    Calculate the padding that keeps the spatial size unchanged at stride 1.

    Args:
        kernel_size: Filter size (odd sizes preserve the size exactly)
        dilation: Dilation rate

    Returns:
        Zeros to add on each side
    """
    validate_kernel_size(kernel_size)
    validate_dilation(dilation)
    return ((kernel_size - 1) * dilation) // 2


def receptive_field(kernel_size: int, dilation: int = 1) -> int:
    """
    Calculate how many input positions one filter application sees.

    Formula:
        RF = 1 + (n - 1) * d
    """
    validate_kernel_size(kernel_size)
    validate_dilation(dilation)
    return 1 + (kernel_size - 1) * dilation


def volume_shape(channels: int, spatial: Sequence[int]) -> Tuple[int, int, int]:
    """
    Shape of the volume formed by stacking one feature map per filter.

    Returns:
        (channels, height, width)
    """
    if channels < 1:
        raise ValueError(f"a volume needs at least one feature map, got {channels}")
    h, w = spatial
    return (channels, h, w)
