#!/usr/bin/env python3
"""
training/__init__.py

Training driver and datasets for the notebook's layer stack.
"""

from .data import (
    BARS_CLASSES,
    MNIST_CLASSES,
    make_bars_dataset,
    load_mnist,
    num_classes_for,
    build_loaders
)
from .driver import (
    resolve_device,
    validate_output_width,
    evaluate,
    train,
    save_run
)

__all__ = [
    'BARS_CLASSES',
    'MNIST_CLASSES',
    'make_bars_dataset',
    'load_mnist',
    'num_classes_for',
    'build_loaders',
    'resolve_device',
    'validate_output_width',
    'evaluate',
    'train',
    'save_run'
]
