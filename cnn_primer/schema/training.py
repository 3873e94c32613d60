from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class TrainingConfig(BaseModel):
    dataset: Literal["bars", "mnist"] = Field("bars", description="Synthetic bar orientations or torchvision MNIST")
    epochs: int = Field(3, ge=1, description="Passes over the training split")
    batch_size: int = Field(32, ge=1, description="Samples per optimizer step")
    learning_rate: float = Field(0.05, gt=0.0, description="SGD learning rate")
    momentum: float = Field(0.9, ge=0.0, lt=1.0, description="SGD momentum")
    weight_decay: float = Field(0.0, ge=0.0, description="L2 penalty")
    num_samples: int = Field(512, ge=2, description="Synthetic dataset size (bars only)")
    test_fraction: float = Field(0.25, gt=0.0, lt=1.0, description="Share of samples held out for testing (bars only)")
    seed: int = Field(0, description="Seed for data generation, splitting and initialization")
    device: Literal["auto", "cpu", "cuda"] = Field("auto", description="Compute device")
    data_dir: str = Field("data", description="Download directory for MNIST")
    log_interval: int = Field(10, ge=1, description="Log the running loss every N batches")


class EpochRecord(BaseModel):
    epoch: int = Field(..., ge=1)
    train_loss: float = Field(..., description="Mean training loss over the epoch")
    train_accuracy: float = Field(..., ge=0.0, le=1.0)
    test_accuracy: float = Field(..., ge=0.0, le=1.0)
    seconds: float = Field(..., ge=0.0, description="Wall time for the epoch")


class TrainingHistory(BaseModel):
    network: str = Field(..., description="Name of the trained model spec")
    dataset: str = Field(..., description="Dataset the model was trained on")
    device: str = Field(..., description="Device used for training")
    epochs: List[EpochRecord] = Field(default_factory=list)

    @property
    def final_accuracy(self) -> Optional[float]:
        return self.epochs[-1].test_accuracy if self.epochs else None

    @property
    def best_accuracy(self) -> Optional[float]:
        return max(r.test_accuracy for r in self.epochs) if self.epochs else None
