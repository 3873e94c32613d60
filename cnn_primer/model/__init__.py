#!/usr/bin/env python3
"""
CNN Primer Model Package

Builds nn.Sequential models from declarative layer stacks and traces the
shape of the volume after every layer.
"""

from .builder import (
    LayerShapeError,
    build_layer,
    build_model,
    trace_shapes,
    describe_model,
    uses_log_probabilities
)

__all__ = [
    'LayerShapeError',
    'build_layer',
    'build_model',
    'trace_shapes',
    'describe_model',
    'uses_log_probabilities'
]
