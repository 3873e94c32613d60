from pydantic import BaseModel, Field

from cnn_primer.schema.layer import ModelSpec
from cnn_primer.schema.lesson import LessonConfig
from cnn_primer.schema.training import TrainingConfig


class PrimerConfig(BaseModel):
    """Top-level notebook configuration as read from primer.yaml."""
    lessons: LessonConfig = Field(default_factory=LessonConfig)
    model: ModelSpec = Field(..., description="Declarative layer stack handed to the training driver")
    training: TrainingConfig = Field(default_factory=TrainingConfig)
