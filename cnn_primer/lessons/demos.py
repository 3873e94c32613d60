#!/usr/bin/env python3
"""
demos.py

The interactive cells of the notebook. Each lesson builds one PyTorch module
with fixed hyperparameters, runs it on a small seeded input, and reports the
shape the library produced next to the shape the geometry formulas predict,
together with a few numerical checks that make the concept visible:

1. Convolution as a sliding-window weighted sum (N - n + 1)
2. Zero padding to preserve the spatial size
3. Strided convolution as a subsampled dense convolution
4. Max and average pooling, and their tolerance to small shifts
5. Stacking feature maps into a volume
6. A full declarative layer stack
"""
import logging
import math
from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from cnn_primer.kernel import (
    conv2d_output_shape,
    pool2d_output_shape,
    same_padding,
    volume_shape,
    window_sum
)
from cnn_primer.lessons.narration import render_narration
from cnn_primer.model import build_model, describe_model
from cnn_primer.schema import LessonConfig, LessonResult, ModelSpec, PrimerConfig

logger = logging.getLogger(__name__)


def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-4, abs_tol=1e-5)


def _seeded_image(cfg: LessonConfig, channels: int = 1) -> torch.Tensor:
    torch.manual_seed(cfg.seed)
    return torch.randn(1, channels, cfg.image_size, cfg.image_size)


def convolution_lesson(cfg: LessonConfig) -> LessonResult:
    """Single-channel convolution without padding: the output shrinks by n - 1."""
    N, n = cfg.image_size, cfg.kernel_size
    out_hw = conv2d_output_shape((N, N), n)
    image = _seeded_image(cfg)
    conv = nn.Conv2d(1, 1, kernel_size=n)

    with torch.no_grad():
        out = conv(image)
        window_value = window_sum(image[0], conv.weight[0], conv.bias[0], row=0, col=0)
    library_value = float(out[0, 0, 0, 0])

    narration = render_narration(
        "convolution", N=N, n=n, out=out_hw[0],
        window_value=window_value, library_value=library_value
    )
    return LessonResult(
        name="convolution",
        title="Convolution without padding",
        input_shape=tuple(image.shape),
        output_shape=tuple(out.shape),
        expected_shape=(1, 1, *out_hw),
        parameters={"kernel_size": n, "stride": 1, "padding": 0},
        checks={"window_sum_matches_library": _close(window_value, library_value)},
        narration=narration,
    )


def padding_lesson(cfg: LessonConfig) -> LessonResult:
    """Zero padding before convolving; with same padding the size is preserved."""
    N, n, p = cfg.image_size, cfg.kernel_size, cfg.padding
    out_hw = conv2d_output_shape((N, N), n, padding=p)
    image = _seeded_image(cfg)
    conv = nn.Conv2d(1, 1, kernel_size=n, padding=p)

    with torch.no_grad():
        out = conv(image)
        # The corner output only sees part of the image; the rest of its window is zeros
        corner = window_sum(image[0], conv.weight[0], conv.bias[0], row=0, col=0, padding=p)

    same = same_padding(n)
    checks = {"border_window_is_zero_padded": _close(corner, float(out[0, 0, 0, 0]))}
    if p == same and n % 2 == 1:
        checks["size_preserved"] = tuple(out.shape[-2:]) == (N, N)

    narration = render_narration(
        "padding", N=N, n=n, p=p, out=out_hw[0],
        unpadded=conv2d_output_shape((N, N), n)[0], same=same
    )
    return LessonResult(
        name="padding",
        title="Padding",
        input_shape=tuple(image.shape),
        output_shape=tuple(out.shape),
        expected_shape=(1, 1, *out_hw),
        parameters={"kernel_size": n, "stride": 1, "padding": p},
        checks=checks,
        narration=narration,
    )


def strided_lesson(cfg: LessonConfig) -> LessonResult:
    """Strided convolution equals the dense feature map sampled every s positions."""
    N, n, p, s = cfg.image_size, cfg.kernel_size, cfg.padding, cfg.stride
    out_hw = conv2d_output_shape((N, N), n, stride=s, padding=p)
    image = _seeded_image(cfg)
    dense_conv = nn.Conv2d(1, 1, kernel_size=n, padding=p)
    strided_conv = nn.Conv2d(1, 1, kernel_size=n, padding=p, stride=s)
    strided_conv.load_state_dict(dense_conv.state_dict())

    with torch.no_grad():
        dense = dense_conv(image)
        out = strided_conv(image)

    subsampled = dense[..., ::s, ::s]
    checks = {
        "strided_equals_subsampled_dense": subsampled.shape == out.shape
        and torch.allclose(subsampled, out, atol=1e-5)
    }

    narration = render_narration(
        "stride", N=N, n=n, p=p, s=s, out=out_hw[0], dense=dense.shape[-1]
    )
    return LessonResult(
        name="stride",
        title="Strided convolution",
        input_shape=tuple(image.shape),
        output_shape=tuple(out.shape),
        expected_shape=(1, 1, *out_hw),
        parameters={"kernel_size": n, "stride": s, "padding": p},
        checks=checks,
        narration=narration,
    )


def pooling_lesson(cfg: LessonConfig) -> LessonResult:
    """Max and average pooling over non-overlapping k x k windows."""
    N, k = cfg.image_size, cfg.pool_size
    out_hw = pool2d_output_shape((N, N), k)
    image = _seeded_image(cfg)
    max_pool = nn.MaxPool2d(k)
    avg_pool = nn.AvgPool2d(k)

    out = max_pool(image)
    averaged = avg_pool(image)
    window = image[0, 0, :k, :k]

    # A single activation moved within the first window
    spike = torch.zeros(1, 1, N, N)
    spike[0, 0, 0, 0] = 1.0
    shifted = torch.zeros(1, 1, N, N)
    shifted[0, 0, k - 1, k - 1] = 1.0
    invariant = torch.equal(max_pool(spike), max_pool(shifted))

    checks = {
        "max_is_window_max": _close(float(out[0, 0, 0, 0]), float(window.max())),
        "average_is_window_mean": _close(float(averaged[0, 0, 0, 0]), float(window.mean())),
        "max_and_average_agree_on_shape": averaged.shape == out.shape,
        "max_pool_ignores_shift_within_window": invariant,
    }

    narration = render_narration("pooling", N=N, k=k, out=out_hw[0], invariant=invariant)
    return LessonResult(
        name="pooling",
        title="Pooling",
        input_shape=tuple(image.shape),
        output_shape=tuple(out.shape),
        expected_shape=(1, 1, *out_hw),
        parameters={"kernel_size": k, "stride": k, "modes": "max, average"},
        checks=checks,
        narration=narration,
    )


def feature_volume(cfg: LessonConfig) -> Tuple[nn.Conv2d, torch.Tensor, torch.Tensor]:
    """
    Build the multi-filter convolution used by the volume lesson.

    Returns:
        (layer, input image, output volume) with gradients disabled on the output
    """
    image = _seeded_image(cfg, channels=cfg.in_channels)
    conv = nn.Conv2d(cfg.in_channels, cfg.num_filters, kernel_size=cfg.kernel_size)
    with torch.no_grad():
        out = conv(image)
    return conv, image, out


def volume_lesson(cfg: LessonConfig) -> LessonResult:
    """Several filters stacked into a channels x height x width volume."""
    N, n = cfg.image_size, cfg.kernel_size
    out_hw = conv2d_output_shape((N, N), n)
    conv, image, out = feature_volume(cfg)

    # Every output channel is the map of exactly one filter
    with torch.no_grad():
        per_filter = all(
            torch.allclose(
                F.conv2d(image, conv.weight[j:j + 1], conv.bias[j:j + 1]),
                out[:, j:j + 1],
                atol=1e-5,
            )
            for j in range(cfg.num_filters)
        )

    narration = render_narration(
        "volume", N=N, n=n, c_in=cfg.in_channels, filters=cfg.num_filters, out=out_hw[0]
    )
    return LessonResult(
        name="volume",
        title="Feature maps and volumes",
        input_shape=tuple(image.shape),
        output_shape=tuple(out.shape),
        expected_shape=(1, *volume_shape(cfg.num_filters, out_hw)),
        parameters={"in_channels": cfg.in_channels, "filters": cfg.num_filters, "kernel_size": n},
        checks={"each_channel_is_one_filter": per_filter},
        narration=narration,
    )


def model_lesson(model_spec: ModelSpec, seed: int = 0) -> LessonResult:
    """Compose the declarative stack and compare predicted with observed shapes."""
    torch.manual_seed(seed)
    model = build_model(model_spec)
    observed = describe_model(model, model_spec.input_shape)
    predicted = [tuple(t.output_shape) for t in model.trace]
    params = sum(t.parameters for t in model.trace)

    matches = predicted == observed
    if not matches:
        logger.warning(f"Shape trace mismatch for {model_spec.name}: predicted {predicted}, observed {observed}")

    narration = render_narration(
        "model", name=model_spec.name, input_shape=model_spec.input_shape,
        num_layers=len(model_spec.layers), output_shape=observed[-1],
        params=params, matches=matches
    )
    return LessonResult(
        name="model",
        title=f"Layer stack: {model_spec.name}",
        input_shape=(1, *model_spec.input_shape),
        output_shape=(1, *observed[-1]),
        expected_shape=(1, *predicted[-1]),
        parameters={"layers": len(model_spec.layers), "trainable_parameters": params},
        checks={"every_layer_shape_matches": matches},
        narration=narration,
    )


# Notebook order
LESSONS: "OrderedDict[str, Callable[[PrimerConfig], LessonResult]]" = OrderedDict([
    ("convolution", lambda config: convolution_lesson(config.lessons)),
    ("padding", lambda config: padding_lesson(config.lessons)),
    ("stride", lambda config: strided_lesson(config.lessons)),
    ("pooling", lambda config: pooling_lesson(config.lessons)),
    ("volume", lambda config: volume_lesson(config.lessons)),
    ("model", lambda config: model_lesson(config.model, seed=config.lessons.seed)),
])


def run_lessons(config: PrimerConfig, names: Optional[Iterable[str]] = None) -> List[LessonResult]:
    """
    Run lessons in notebook order.

    Args:
        config: Validated notebook configuration
        names: Lessons to run; all of them when None

    Returns:
        One LessonResult per lesson run

    Raises:
        ValueError: If a requested lesson does not exist
    """
    selected = list(LESSONS) if names is None else list(names)
    unknown = [name for name in selected if name not in LESSONS]
    if unknown:
        raise ValueError(f"Unknown lesson(s): {', '.join(unknown)}. Available: {', '.join(LESSONS)}")

    results = []
    for name, lesson in LESSONS.items():
        if name not in selected:
            continue
        result = lesson(config)
        status = "passed" if result.passed else "FAILED"
        logger.info(f"Lesson {name}: {result.input_shape} -> {result.output_shape} "
                    f"(expected {result.expected_shape}) {status}")
        results.append(result)
    return results


def lesson_summary(results: List[LessonResult]) -> Dict[str, bool]:
    """Map of lesson name to pass/fail."""
    return {r.name: r.passed for r in results}
