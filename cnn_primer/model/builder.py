#!/usr/bin/env python3
"""
builder.py

Turns a declarative layer stack (ModelSpec) into an nn.Sequential built from
PyTorch's own modules. Shapes are predicted layer by layer with the geometry
formulas so that linear layers can infer their input width and stacks that
cannot be composed are rejected before anything is allocated.
"""
import logging
from typing import List, Sequence, Tuple

import torch
import torch.nn as nn

from cnn_primer.kernel.geometry import (
    conv2d_output_shape,
    pool2d_output_shape,
    validate_layer_parameters
)
from cnn_primer.schema import LayerSpec, ModelSpec, LayerTrace, SPATIAL_LAYERS

logger = logging.getLogger(__name__)

Shape = Tuple[int, ...]


class LayerShapeError(ValueError):
    """Raised when a layer cannot accept the shape produced by the layer before it."""

    def __init__(self, index: int, layer: LayerSpec, in_shape: Shape, reason: str):
        self.index = index
        self.layer = layer
        self.in_shape = in_shape
        super().__init__(f"layer {index} ({layer.label()}) cannot accept input {in_shape}: {reason}")


def _count_parameters(module: nn.Module) -> int:
    return sum(p.numel() for p in module.parameters() if p.requires_grad)


def build_layer(spec: LayerSpec, in_shape: Shape, index: int = 0) -> Tuple[nn.Module, Shape]:
    """
    Create the library module for one layer spec.

    Args:
        spec: Layer description
        in_shape: Per-sample shape arriving at this layer, (C, H, W) or (F,)
        index: Position in the stack, used in error messages

    Returns:
        (module, per-sample output shape)

    Raises:
        LayerShapeError: If the layer cannot be applied to in_shape
    """
    if spec.type in SPATIAL_LAYERS:
        if len(in_shape) != 3:
            raise LayerShapeError(index, spec, in_shape, "spatial layers need a (C, H, W) volume")
        channels, height, width = in_shape
        try:
            validate_layer_parameters(spec.kernel_size, spec.stride or 1, spec.padding)
            if spec.type == "conv":
                stride = spec.stride or 1
                out_hw = conv2d_output_shape((height, width), spec.kernel_size, stride, spec.padding)
            else:
                out_hw = pool2d_output_shape((height, width), spec.kernel_size, spec.stride, spec.padding)
        except ValueError as e:
            raise LayerShapeError(index, spec, in_shape, str(e)) from e

        if spec.type == "conv":
            module = nn.Conv2d(channels, spec.out_channels, kernel_size=spec.kernel_size,
                               stride=spec.stride or 1, padding=spec.padding)
            return module, (spec.out_channels, *out_hw)
        if spec.type == "maxpool":
            module = nn.MaxPool2d(spec.kernel_size, stride=spec.stride, padding=spec.padding)
        else:
            module = nn.AvgPool2d(spec.kernel_size, stride=spec.stride, padding=spec.padding)
        return module, (channels, *out_hw)

    if spec.type == "flatten":
        flat = 1
        for dim in in_shape:
            flat *= dim
        return nn.Flatten(), (flat,)

    if spec.type == "linear":
        if len(in_shape) != 1:
            raise LayerShapeError(index, spec, in_shape, "linear layers need a flattened input, add a flatten layer first")
        return nn.Linear(in_shape[0], spec.out_features), (spec.out_features,)

    if spec.type == "logsoftmax":
        if len(in_shape) != 1:
            raise LayerShapeError(index, spec, in_shape, "log-softmax is applied to class scores")
        return nn.LogSoftmax(dim=1), in_shape

    # Shape-preserving element-wise layers
    activations = {
        "relu": nn.ReLU,
        "tanh": nn.Tanh,
        "sigmoid": nn.Sigmoid,
    }
    if spec.type in activations:
        return activations[spec.type](), in_shape
    if spec.type == "dropout":
        return nn.Dropout(spec.p), in_shape

    raise LayerShapeError(index, spec, in_shape, f"unknown layer type {spec.type!r}")


def _build_layers(model_spec: ModelSpec) -> Tuple[List[nn.Module], List[LayerTrace]]:
    modules = []
    traces = []
    shape: Shape = tuple(model_spec.input_shape)
    for index, layer in enumerate(model_spec.layers):
        module, shape = build_layer(layer, shape, index)
        modules.append(module)
        traces.append(LayerTrace(
            index=index,
            layer=layer.label(),
            output_shape=shape,
            parameters=_count_parameters(module)
        ))
    return modules, traces


def trace_shapes(model_spec: ModelSpec) -> List[LayerTrace]:
    """
    Predict the per-sample output shape of every layer without running data.

    Returns:
        One LayerTrace per layer in stack order
    """
    return _build_layers(model_spec)[1]


def build_model(model_spec: ModelSpec) -> nn.Sequential:
    """
    Compose the declarative stack into an nn.Sequential.

    The predicted trace is attached as ``model.trace`` for display.

    Raises:
        LayerShapeError: If any layer cannot accept its input
    """
    modules, traces = _build_layers(model_spec)
    shape = traces[-1].output_shape

    model = nn.Sequential(*modules)
    model.trace = traces
    logger.debug(f"Built {model_spec.name}: {len(modules)} layers, "
                 f"{_count_parameters(model):,} trainable parameters, output {shape}")
    return model


@torch.no_grad()
def describe_model(model: nn.Sequential, input_shape: Sequence[int]) -> List[Shape]:
    """
    Run one zero sample through each child and record the observed shapes.

    Args:
        model: Sequential model to probe
        input_shape: Per-sample input shape (C, H, W)

    Returns:
        Per-sample output shape of each child, in order
    """
    was_training = model.training
    model.eval()
    device = next(model.parameters(), torch.zeros(())).device
    x = torch.zeros((1, *input_shape), device=device)
    shapes = []
    try:
        for child in model:
            x = child(x)
            shapes.append(tuple(x.shape[1:]))
    finally:
        model.train(was_training)
    return shapes


def uses_log_probabilities(model_spec: ModelSpec) -> bool:
    """True when the stack ends with log-softmax, which pairs with NLL loss."""
    return model_spec.layers[-1].type == "logsoftmax"
