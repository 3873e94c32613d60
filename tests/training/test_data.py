#!/usr/bin/env python3
"""
test_data.py

Tests for the synthetic bars dataset and the loader factory.
"""
import pytest
import torch

from cnn_primer.schema import TrainingConfig
from cnn_primer.training import (
    BARS_CLASSES,
    make_bars_dataset,
    num_classes_for,
    build_loaders
)


class TestBarsDataset:

    def test_shapes_and_labels(self):
        dataset = make_bars_dataset(32, image_size=12, seed=1)
        images, labels = dataset.tensors
        assert images.shape == (32, 1, 12, 12)
        assert labels.shape == (32,)
        assert labels.min() >= 0
        assert labels.max() < len(BARS_CLASSES)

    def test_seed_is_reproducible(self):
        a = make_bars_dataset(8, image_size=10, seed=3).tensors[0]
        b = make_bars_dataset(8, image_size=10, seed=3).tensors[0]
        c = make_bars_dataset(8, image_size=10, seed=4).tensors[0]
        assert torch.equal(a, b)
        assert not torch.equal(a, c)

    def test_bar_orientation(self):
        images, labels = make_bars_dataset(64, image_size=12, seed=0, noise=0.0).tensors
        for image, label in zip(images, labels):
            if int(label) == 0:
                # A horizontal bar lights whole rows
                assert (image[0].sum(dim=1) == 12).any()
            elif int(label) == 1:
                assert (image[0].sum(dim=0) == 12).any()
            assert image.sum() > 0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            make_bars_dataset(0)
        with pytest.raises(ValueError):
            make_bars_dataset(4, image_size=3)


def test_num_classes_for():
    assert num_classes_for("bars") == 4
    assert num_classes_for("mnist") == 10
    with pytest.raises(ValueError):
        num_classes_for("cifar")


class TestBuildLoaders:

    def test_bars_split(self):
        cfg = TrainingConfig(num_samples=40, test_fraction=0.25, batch_size=8)
        train_loader, test_loader = build_loaders(cfg, image_size=12)
        assert len(train_loader.dataset) == 30
        assert len(test_loader.dataset) == 10

        x, y = next(iter(train_loader))
        assert x.shape == (8, 1, 12, 12)
        assert y.shape == (8,)

    def test_tiny_split_keeps_both_sides(self):
        cfg = TrainingConfig(num_samples=2, test_fraction=0.9)
        train_loader, test_loader = build_loaders(cfg, image_size=8)
        assert len(train_loader.dataset) == 1
        assert len(test_loader.dataset) == 1

    def test_mnist_requires_28x28(self, tmp_path):
        cfg = TrainingConfig(dataset="mnist", data_dir=str(tmp_path))
        with pytest.raises(ValueError, match="28x28"):
            build_loaders(cfg, image_size=32)
