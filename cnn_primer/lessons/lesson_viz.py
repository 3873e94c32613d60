#!/usr/bin/env python3
"""
lessons/lesson_viz.py

Diagrams for the notebook: feature-map grids, filter heatmaps and training
curves. Figures are rendered with the non-interactive Agg backend so they can
be written from the command line runner.
"""

import math
import logging
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
import torch

from cnn_primer.schema import TrainingHistory

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from matplotlib.figure import Figure


def _to_numpy(tensor: Union[torch.Tensor, np.ndarray]) -> np.ndarray:
    if isinstance(tensor, torch.Tensor):
        return tensor.detach().cpu().numpy()
    return np.asarray(tensor)


def plot_feature_maps(volume: Union[torch.Tensor, np.ndarray], title: str = "Feature maps",
                      max_maps: int = 16,
                      save_path: Optional[Union[str, Path]] = None) -> "Figure":
    """
    Draw each channel of a (C, H, W) volume as its own image.

    Args:
        volume: Feature volume; a leading batch dimension of 1 is dropped
        title: Figure title
        max_maps: Maximum number of channels to draw
        save_path: Optional path to save the plot

    Returns:
        Matplotlib figure object
    """
    maps = _to_numpy(volume)
    if maps.ndim == 4 and maps.shape[0] == 1:
        maps = maps[0]
    if maps.ndim != 3:
        raise ValueError(f"Expected a (C, H, W) volume, got shape {maps.shape}")

    count = min(maps.shape[0], max_maps)
    cols = min(count, 4)
    rows = math.ceil(count / cols)

    fig, axes = plt.subplots(rows, cols, figsize=(3 * cols, 3 * rows), squeeze=False)
    for i, ax in enumerate(axes.flat):
        if i < count:
            ax.imshow(maps[i], cmap="viridis", interpolation="nearest")
            ax.set_title(f"map {i}", fontsize=9)
        ax.axis("off")

    fig.suptitle(f"{title} ({maps.shape[0]}x{maps.shape[1]}x{maps.shape[2]})")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.debug(f"Saved feature maps to {save_path}")

    return fig


def plot_kernel_heatmap(weight: Union[torch.Tensor, np.ndarray], title: str = "Filter weights",
                        save_path: Optional[Union[str, Path]] = None) -> "Figure":
    """
    Annotated heatmap of one filter, summed over its input channels.

    Args:
        weight: Filter of shape (kH, kW) or (C, kH, kW)
        title: Figure title
        save_path: Optional path to save the plot

    Returns:
        Matplotlib figure object
    """
    w = _to_numpy(weight)
    if w.ndim == 3:
        w = w.sum(axis=0)
    if w.ndim != 2:
        raise ValueError(f"Expected a 2D or 3D filter, got shape {w.shape}")

    fig, ax = plt.subplots(figsize=(1 + 0.8 * w.shape[1], 1 + 0.8 * w.shape[0]))
    sns.heatmap(w, annot=True, fmt=".2f", cmap="coolwarm", center=0.0,
                square=True, cbar=False, ax=ax)
    ax.set_title(title)
    ax.set_xticks([])
    ax.set_yticks([])
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.debug(f"Saved filter heatmap to {save_path}")

    return fig


def plot_training_history(history: TrainingHistory,
                          save_path: Optional[Union[str, Path]] = None) -> "Figure":
    """
    Loss and accuracy curves of a training run.

    Args:
        history: Per-epoch records returned by the training driver
        save_path: Optional path to save the plot

    Returns:
        Matplotlib figure object
    """
    epochs = [r.epoch for r in history.epochs]

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))

    ax1.plot(epochs, [r.train_loss for r in history.epochs], marker="o")
    ax1.set_xlabel("Epoch")
    ax1.set_ylabel("Training loss")
    ax1.set_title("Loss")

    ax2.plot(epochs, [r.train_accuracy for r in history.epochs], marker="o", label="train")
    ax2.plot(epochs, [r.test_accuracy for r in history.epochs], marker="s", label="test")
    ax2.set_ylim(0.0, 1.05)
    ax2.set_xlabel("Epoch")
    ax2.set_ylabel("Accuracy")
    ax2.set_title("Accuracy")
    ax2.legend()

    fig.suptitle(f"{history.network} on {history.dataset}")
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.debug(f"Saved training curves to {save_path}")

    return fig
