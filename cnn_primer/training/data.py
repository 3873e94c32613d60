#!/usr/bin/env python3
"""
training/data.py

Datasets for the training driver. The default synthetic "bars" dataset needs
no download: each image holds one line in one of four orientations, which is
exactly the kind of local pattern a small convolution filter learns to detect.
MNIST is available through torchvision for a longer run.
"""
import logging
from typing import Tuple

import torch
from torch.utils.data import DataLoader, Dataset, TensorDataset, random_split
from torchvision import datasets, transforms

from cnn_primer.schema import TrainingConfig

logger = logging.getLogger(__name__)

BARS_CLASSES = ("horizontal", "vertical", "diagonal", "anti-diagonal")
MNIST_CLASSES = tuple(str(d) for d in range(10))
MNIST_IMAGE_SIZE = 28

# Normalization constants commonly used for MNIST
MNIST_MEAN = 0.1307
MNIST_STD = 0.3081


def make_bars_dataset(num_samples: int, image_size: int = 28, seed: int = 0,
                      noise: float = 0.1, thickness: int = 2) -> TensorDataset:
    """
    Generate single-channel images containing one bar each.

    Args:
        num_samples: Number of images
        image_size: Side of the square images
        seed: Seed for positions, labels and noise
        noise: Standard deviation of the additive Gaussian noise
        thickness: Width of the bar in pixels

    Returns:
        TensorDataset of (images (num_samples, 1, H, W), labels (num_samples,))
    """
    if num_samples < 1:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if image_size < thickness + 2:
        raise ValueError(f"image_size must be at least {thickness + 2} for bars of thickness {thickness}")

    gen = torch.Generator().manual_seed(seed)
    labels = torch.randint(0, len(BARS_CLASSES), (num_samples,), generator=gen)
    images = torch.zeros(num_samples, 1, image_size, image_size)

    rows = torch.arange(image_size).unsqueeze(1)
    cols = torch.arange(image_size).unsqueeze(0)
    max_offset = image_size // 4

    for i in range(num_samples):
        label = int(labels[i])
        if label in (0, 1):
            start = int(torch.randint(1, image_size - thickness, (1,), generator=gen))
            if label == 0:
                images[i, 0, start:start + thickness, :] = 1.0
            else:
                images[i, 0, :, start:start + thickness] = 1.0
        else:
            offset = int(torch.randint(-max_offset, max_offset + 1, (1,), generator=gen))
            if label == 2:
                diff = cols - rows - offset
            else:
                diff = cols + rows - (image_size - 1) - offset
            mask = (diff >= 0) & (diff < thickness)
            images[i, 0][mask] = 1.0

    images += noise * torch.randn(images.shape, generator=gen)
    return TensorDataset(images, labels)


def load_mnist(data_dir: str, train: bool = True, download: bool = True) -> Dataset:
    """Load the MNIST split through torchvision, normalized to zero mean / unit variance."""
    transform = transforms.Compose([
        transforms.ToTensor(),
        transforms.Normalize((MNIST_MEAN,), (MNIST_STD,)),
    ])
    return datasets.MNIST(data_dir, train=train, download=download, transform=transform)


def num_classes_for(dataset: str) -> int:
    if dataset == "bars":
        return len(BARS_CLASSES)
    if dataset == "mnist":
        return len(MNIST_CLASSES)
    raise ValueError(f"Unknown dataset: {dataset}")


def build_loaders(cfg: TrainingConfig, image_size: int) -> Tuple[DataLoader, DataLoader]:
    """
    Build train and test loaders for the configured dataset.

    Args:
        cfg: Training configuration
        image_size: Side of the square input the model expects

    Returns:
        (train_loader, test_loader)

    Raises:
        ValueError: If the dataset cannot produce inputs of image_size
    """
    if cfg.dataset == "bars":
        dataset = make_bars_dataset(cfg.num_samples, image_size, cfg.seed)
        n_test = min(max(1, round(cfg.num_samples * cfg.test_fraction)), cfg.num_samples - 1)
        n_train = cfg.num_samples - n_test
        train_set, test_set = random_split(
            dataset, [n_train, n_test], generator=torch.Generator().manual_seed(cfg.seed)
        )
    else:
        if image_size != MNIST_IMAGE_SIZE:
            raise ValueError(f"MNIST images are {MNIST_IMAGE_SIZE}x{MNIST_IMAGE_SIZE}, model expects {image_size}x{image_size}")
        train_set = load_mnist(cfg.data_dir, train=True)
        test_set = load_mnist(cfg.data_dir, train=False)

    logger.info(f"Dataset {cfg.dataset}: {len(train_set):,} train / {len(test_set):,} test samples")

    train_loader = DataLoader(
        train_set,
        batch_size=cfg.batch_size,
        shuffle=True,
        generator=torch.Generator().manual_seed(cfg.seed),
    )
    test_loader = DataLoader(test_set, batch_size=cfg.batch_size, shuffle=False)
    return train_loader, test_loader
