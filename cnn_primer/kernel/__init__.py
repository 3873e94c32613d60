#!/usr/bin/env python3
"""
CNN Primer Kernel Package

Shape arithmetic, hyperparameter validation and the single-window weighted
sum used to check the library's convolution and pooling layers.
"""

from .geometry import (
    as_pair,
    validate_kernel_size,
    validate_stride,
    validate_padding,
    validate_dilation,
    validate_layer_parameters,
    conv_output_size,
    pool_output_size,
    conv2d_output_shape,
    pool2d_output_shape,
    same_padding,
    receptive_field,
    volume_shape
)
from .window import window_sum

__all__ = [
    'as_pair',
    'validate_kernel_size',
    'validate_stride',
    'validate_padding',
    'validate_dilation',
    'validate_layer_parameters',
    'conv_output_size',
    'pool_output_size',
    'conv2d_output_shape',
    'pool2d_output_shape',
    'same_padding',
    'receptive_field',
    'volume_shape',
    'window_sum'
]
