# cnn_primer/schema/__init__.py
from .layer import LayerSpec, ModelSpec, LayerTrace, SPATIAL_LAYERS
from .lesson import LessonConfig, LessonResult
from .training import TrainingConfig, EpochRecord, TrainingHistory
from .config import PrimerConfig
