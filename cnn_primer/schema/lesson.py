from typing import Any, Dict, Tuple
from pydantic import BaseModel, Field, ConfigDict


class LessonConfig(BaseModel):
    """Fixed hyperparameters used by the interactive lesson cells."""
    image_size: int = Field(7, ge=2, description="Side N of the square input image")
    kernel_size: int = Field(3, ge=1, description="Side n of the square filter")
    padding: int = Field(1, ge=0, description="Zero border for the padding lesson")
    stride: int = Field(2, ge=1, description="Step for the strided convolution lesson")
    pool_size: int = Field(2, ge=1, description="Pooling window side")
    in_channels: int = Field(3, ge=1, description="Input channels for the volume lesson")
    num_filters: int = Field(4, ge=1, description="Filters stacked in the volume lesson")
    seed: int = Field(0, description="Random seed for reproducible weights and inputs")


class LessonResult(BaseModel):
    name: str = Field(..., description="Registry key of the lesson")
    title: str = Field(..., description="Heading shown above the lesson")
    input_shape: Tuple[int, ...] = Field(..., description="Shape fed to the layer (with batch dimension)")
    output_shape: Tuple[int, ...] = Field(..., description="Shape the library returned")
    expected_shape: Tuple[int, ...] = Field(..., description="Shape predicted by the geometry formulas")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Hyperparameters of the layer")
    checks: Dict[str, bool] = Field(default_factory=dict, description="Named numerical checks and their outcome")
    narration: str = Field("", description="Rendered explanatory prose")

    model_config = ConfigDict(
        json_schema_extra = {
            "example": {
                "name": "convolution",
                "title": "Convolution without padding",
                "input_shape": [1, 1, 7, 7],
                "output_shape": [1, 1, 5, 5],
                "expected_shape": [1, 1, 5, 5],
                "parameters": {"kernel_size": 3},
                "checks": {"window_sum_matches": True},
                "narration": "A 3x3 filter slides over a 7x7 image..."
            }
        }
    )

    @property
    def shape_matches(self) -> bool:
        return tuple(self.output_shape) == tuple(self.expected_shape)

    @property
    def passed(self) -> bool:
        return self.shape_matches and all(self.checks.values())
