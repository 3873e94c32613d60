#!/usr/bin/env python3
"""
training/driver.py

The training driver the notebook hands its layer stack to. It owns nothing
numerical: PyTorch supplies the loss, the gradients and the SGD optimizer.
The driver wires them together, measures accuracy after every epoch, and
writes the run artifacts on request.
"""
import logging
import math
import time
from pathlib import Path
from typing import Dict, Optional, Sequence

import torch
import torch.nn as nn
import torch.optim as optim
from torch.utils.data import DataLoader

from cnn_primer.schema import EpochRecord, TrainingConfig, TrainingHistory

logger = logging.getLogger(__name__)


def resolve_device(name: str = "auto") -> str:
    """
    Pick the compute device.

    'auto' uses CUDA when it is available; an explicit 'cuda' request falls
    back to the CPU with a warning when it is not.
    """
    if name == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    if name == "cuda":
        if torch.cuda.is_available():
            return "cuda"
        logger.warning("CUDA requested but not available, falling back to CPU")
        return "cpu"
    if name == "cpu":
        return "cpu"
    raise ValueError(f"Unknown device: {name}")


def validate_output_width(output_shape: Sequence[int], num_classes: int) -> None:
    """
    Make sure the model emits one score per class.

    Raises:
        ValueError: If the output is not a flat vector of num_classes scores
    """
    if len(output_shape) != 1 or output_shape[0] != num_classes:
        raise ValueError(
            f"model output {tuple(output_shape)} does not match {num_classes} classes; "
            f"the last linear layer needs out_features: {num_classes}"
        )


@torch.no_grad()
def evaluate(model: nn.Module, loader: DataLoader, device: str) -> float:
    """
    Fraction of correctly classified samples in loader.

    Returns:
        Accuracy in [0, 1]; 0.0 for an empty loader
    """
    was_training = model.training
    model.eval()
    correct = total = 0
    try:
        for x, y in loader:
            x, y = x.to(device), y.to(device)
            preds = model(x).argmax(dim=1)
            correct += (preds == y).sum().item()
            total += y.size(0)
    finally:
        model.train(was_training)
    return correct / total if total else 0.0


def train(model: nn.Module, train_loader: DataLoader, test_loader: DataLoader,
          cfg: TrainingConfig, log_probabilities: bool = False,
          network: str = "model", device: Optional[str] = None) -> TrainingHistory:
    """
    Train a classifier with SGD and report per-epoch metrics.

    Args:
        model: Network mapping (B, C, H, W) images to (B, classes) scores
        train_loader: Training batches
        test_loader: Held-out batches evaluated after every epoch
        cfg: Training configuration
        log_probabilities: True when the model ends in log-softmax (NLL loss),
            False for raw scores (cross-entropy loss)
        network: Name recorded in the history
        device: Device override; resolved from cfg.device when None

    Returns:
        TrainingHistory with one EpochRecord per epoch

    Raises:
        RuntimeError: If the loss becomes NaN or infinite
    """
    device = device or resolve_device(cfg.device)
    model.to(device)

    criterion = nn.NLLLoss() if log_probabilities else nn.CrossEntropyLoss()
    optimizer = optim.SGD(
        model.parameters(),
        lr=cfg.learning_rate,
        momentum=cfg.momentum,
        weight_decay=cfg.weight_decay,
    )

    history = TrainingHistory(network=network, dataset=cfg.dataset, device=device)
    logger.info(f"Training {network} on {cfg.dataset} for {cfg.epochs} epoch(s) on {device} "
                f"with {type(criterion).__name__}")

    for epoch in range(1, cfg.epochs + 1):
        start_time = time.time()
        model.train()
        running_loss = 0.0
        correct = seen = 0

        for batch_idx, (x, y) in enumerate(train_loader):
            x, y = x.to(device), y.to(device)
            optimizer.zero_grad()
            outputs = model(x)
            loss = criterion(outputs, y)

            loss_value = loss.item()
            if not math.isfinite(loss_value):
                raise RuntimeError(
                    f"Training diverged at epoch {epoch}, batch {batch_idx}: loss is {loss_value}. "
                    f"Try a smaller learning rate (currently {cfg.learning_rate})."
                )

            loss.backward()
            optimizer.step()

            running_loss += loss_value * y.size(0)
            correct += (outputs.argmax(dim=1) == y).sum().item()
            seen += y.size(0)

            if (batch_idx + 1) % cfg.log_interval == 0:
                logger.debug(f"Epoch {epoch} batch {batch_idx + 1}: loss {running_loss / seen:.4f}")

        test_accuracy = evaluate(model, test_loader, device)
        record = EpochRecord(
            epoch=epoch,
            train_loss=running_loss / seen if seen else 0.0,
            train_accuracy=correct / seen if seen else 0.0,
            test_accuracy=test_accuracy,
            seconds=time.time() - start_time,
        )
        history.epochs.append(record)
        logger.info(f"Epoch {epoch}/{cfg.epochs}: loss {record.train_loss:.4f}, "
                    f"train acc {record.train_accuracy:.1%}, test acc {record.test_accuracy:.1%} "
                    f"({record.seconds:.1f}s)")

    return history


def save_run(model: nn.Module, history: TrainingHistory, out_dir: Path) -> Dict[str, Path]:
    """
    Write the trained weights and the metric history.

    Returns:
        Mapping of artifact name to the path written
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    weights_path = out_dir / "model.pt"
    history_path = out_dir / "history.json"
    torch.save(model.state_dict(), weights_path)
    history_path.write_text(history.model_dump_json(indent=2), encoding="utf-8")

    logger.info(f"Saved weights to {weights_path} and history to {history_path}")
    return {"weights": weights_path, "history": history_path}
