#!/usr/bin/env python3
"""
test_driver.py

Tests for the SGD training driver.
"""
import json
from unittest.mock import patch

import pytest
import torch
import torch.nn as nn
from torch.utils.data import DataLoader, TensorDataset

from cnn_primer.model import build_model, uses_log_probabilities
from cnn_primer.schema import ModelSpec, TrainingConfig, TrainingHistory
from cnn_primer.training import (
    build_loaders,
    evaluate,
    resolve_device,
    save_run,
    train,
    validate_output_width
)


TINY = {
    "name": "tiny",
    "input_shape": [1, 8, 8],
    "layers": [
        {"type": "conv", "out_channels": 4, "kernel_size": 3, "padding": 1},
        {"type": "relu"},
        {"type": "maxpool", "kernel_size": 2},
        {"type": "flatten"},
        {"type": "linear", "out_features": 4},
        {"type": "logsoftmax"},
    ],
}


@pytest.fixture
def tiny_run():
    torch.manual_seed(0)
    spec = ModelSpec.model_validate(TINY)
    cfg = TrainingConfig(epochs=2, num_samples=48, batch_size=16, device="cpu")
    train_loader, test_loader = build_loaders(cfg, image_size=8)
    return spec, build_model(spec), cfg, train_loader, test_loader


class TestResolveDevice:

    def test_cpu(self):
        assert resolve_device("cpu") == "cpu"

    def test_cuda_unavailable_falls_back(self):
        with patch("torch.cuda.is_available", return_value=False):
            assert resolve_device("cuda") == "cpu"
            assert resolve_device("auto") == "cpu"

    def test_unknown(self):
        with pytest.raises(ValueError):
            resolve_device("tpu")


def test_validate_output_width():
    validate_output_width((4,), 4)
    with pytest.raises(ValueError, match="out_features: 10"):
        validate_output_width((4,), 10)
    with pytest.raises(ValueError):
        validate_output_width((4, 2, 2), 4)


class TestEvaluate:

    def test_perfect_and_empty(self):
        x = torch.eye(3)
        y = torch.arange(3)
        model = nn.Identity()
        assert evaluate(model, DataLoader(TensorDataset(x, y), batch_size=2), "cpu") == 1.0

        empty = TensorDataset(torch.zeros(0, 3), torch.zeros(0, dtype=torch.long))
        assert evaluate(model, DataLoader(empty, batch_size=2), "cpu") == 0.0

    def test_restores_training_mode(self):
        model = nn.Sequential(nn.Linear(3, 3), nn.Dropout(0.5))
        model.train()
        loader = DataLoader(TensorDataset(torch.zeros(4, 3), torch.zeros(4, dtype=torch.long)), batch_size=2)
        evaluate(model, loader, "cpu")
        assert model.training

    def test_restores_training_mode_on_failure(self):
        model = nn.Sequential(nn.Linear(3, 3), nn.Dropout(0.5))
        model.train()
        # Inputs of width 5 do not fit the 3-feature linear layer
        loader = DataLoader(TensorDataset(torch.zeros(4, 5), torch.zeros(4, dtype=torch.long)), batch_size=2)
        with pytest.raises(RuntimeError):
            evaluate(model, loader, "cpu")
        assert model.training


class TestTrain:

    def test_history_per_epoch(self, tiny_run):
        spec, model, cfg, train_loader, test_loader = tiny_run
        history = train(model, train_loader, test_loader, cfg,
                        log_probabilities=uses_log_probabilities(spec), network=spec.name)

        assert history.network == "tiny"
        assert history.device == "cpu"
        assert [r.epoch for r in history.epochs] == [1, 2]
        for record in history.epochs:
            assert 0.0 <= record.test_accuracy <= 1.0
            assert record.train_loss >= 0.0
        assert history.final_accuracy == history.epochs[-1].test_accuracy

    def test_raw_scores_use_cross_entropy(self, tiny_run):
        spec, _, cfg, train_loader, test_loader = tiny_run
        raw = build_model(spec.model_copy(update={"layers": spec.layers[:-1]}))
        history = train(raw, train_loader, test_loader, cfg.model_copy(update={"epochs": 1}))
        assert len(history.epochs) == 1

    def test_divergence_raises(self, tiny_run):
        _, model, cfg, train_loader, test_loader = tiny_run
        with torch.no_grad():
            model[0].weight.fill_(float("nan"))
        with pytest.raises(RuntimeError, match="Training diverged"):
            train(model, train_loader, test_loader, cfg, log_probabilities=True)


def test_save_run(tmp_path, tiny_run):
    _, model, _, _, _ = tiny_run
    history = TrainingHistory(network="tiny", dataset="bars", device="cpu")
    paths = save_run(model, history, tmp_path / "run")

    assert paths["weights"].exists()
    state = torch.load(paths["weights"])
    assert set(state) == set(model.state_dict())

    data = json.loads(paths["history"].read_text(encoding="utf-8"))
    assert data["network"] == "tiny"
    assert data["epochs"] == []


@pytest.mark.slow
def test_lenet_learns_bars():
    torch.manual_seed(0)
    spec = ModelSpec.model_validate({
        "name": "lenet",
        "input_shape": [1, 28, 28],
        "layers": [
            {"type": "conv", "out_channels": 6, "kernel_size": 5, "padding": 2},
            {"type": "relu"},
            {"type": "maxpool", "kernel_size": 2},
            {"type": "conv", "out_channels": 16, "kernel_size": 5},
            {"type": "relu"},
            {"type": "maxpool", "kernel_size": 2},
            {"type": "flatten"},
            {"type": "linear", "out_features": 120},
            {"type": "relu"},
            {"type": "linear", "out_features": 84},
            {"type": "relu"},
            {"type": "linear", "out_features": 4},
            {"type": "logsoftmax"},
        ],
    })
    cfg = TrainingConfig(epochs=3, device="cpu")
    train_loader, test_loader = build_loaders(cfg, image_size=28)
    history = train(build_model(spec), train_loader, test_loader, cfg, log_probabilities=True)
    assert history.final_accuracy > 0.5
