from typing import List, Literal, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, model_validator


LayerType = Literal[
    "conv", "maxpool", "avgpool", "relu", "tanh", "sigmoid",
    "dropout", "flatten", "linear", "logsoftmax"
]

SPATIAL_LAYERS = ("conv", "maxpool", "avgpool")


class LayerSpec(BaseModel):
    """
    One entry of a declarative layer stack.

    Only the fields relevant to the layer type are read; the validator makes
    sure the required ones are present.
    """
    type: LayerType = Field(..., description="Layer kind")
    out_channels: Optional[int] = Field(None, ge=1, description="Number of filters (conv)")
    kernel_size: Optional[int] = Field(None, ge=1, description="Filter or pooling window size")
    stride: Optional[int] = Field(None, ge=1, description="Step between applications (pooling defaults to kernel_size)")
    padding: int = Field(0, ge=0, description="Zero border added on each side")
    out_features: Optional[int] = Field(None, ge=1, description="Output width (linear)")
    p: float = Field(0.5, ge=0.0, lt=1.0, description="Drop probability (dropout)")

    @model_validator(mode="after")
    def check_required_fields(self) -> "LayerSpec":
        if self.type == "conv":
            if self.out_channels is None or self.kernel_size is None:
                raise ValueError("conv layers require out_channels and kernel_size")
        elif self.type in ("maxpool", "avgpool"):
            if self.kernel_size is None:
                raise ValueError(f"{self.type} layers require kernel_size")
            if self.padding * 2 > self.kernel_size:
                raise ValueError(f"{self.type} padding should be at most half of kernel_size")
        elif self.type == "linear":
            if self.out_features is None:
                raise ValueError("linear layers require out_features")
        return self

    def label(self) -> str:
        """Short human readable description used in tables."""
        if self.type == "conv":
            return (f"conv {self.kernel_size}x{self.kernel_size} -> {self.out_channels} "
                    f"(stride {self.stride or 1}, pad {self.padding})")
        if self.type in ("maxpool", "avgpool"):
            return f"{self.type} {self.kernel_size}x{self.kernel_size} (stride {self.stride or self.kernel_size})"
        if self.type == "linear":
            return f"linear -> {self.out_features}"
        if self.type == "dropout":
            return f"dropout p={self.p}"
        return self.type


class ModelSpec(BaseModel):
    name: str = Field("convnet", description="Model name shown in reports")
    input_shape: Tuple[int, int, int] = Field(..., description="(channels, height, width) of one sample")
    layers: List[LayerSpec] = Field(..., min_length=1, description="Layers applied in order")

    model_config = ConfigDict(
        json_schema_extra = {
            "example": {
                "name": "lenet",
                "input_shape": [1, 28, 28],
                "layers": [
                    {"type": "conv", "out_channels": 6, "kernel_size": 5},
                    {"type": "relu"},
                    {"type": "maxpool", "kernel_size": 2},
                    {"type": "flatten"},
                    {"type": "linear", "out_features": 10},
                    {"type": "logsoftmax"}
                ]
            }
        }
    )

    @model_validator(mode="after")
    def check_input_shape(self) -> "ModelSpec":
        if any(dim < 1 for dim in self.input_shape):
            raise ValueError(f"input_shape entries must be positive, got {self.input_shape}")
        return self


class LayerTrace(BaseModel):
    index: int = Field(..., ge=0, description="Position in the stack")
    layer: str = Field(..., description="Layer label")
    output_shape: Tuple[int, ...] = Field(..., description="Per-sample output shape (no batch dimension)")
    parameters: int = Field(0, ge=0, description="Trainable parameter count")
