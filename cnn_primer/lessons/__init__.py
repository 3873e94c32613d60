#!/usr/bin/env python3
"""
lessons/__init__.py

The notebook's lessons: convolution, padding, stride, pooling, feature
volumes and a full layer stack, each with rendered narration.
Plotting helpers live in lessons.lesson_viz and are imported on demand.
"""

from .demos import (
    LESSONS,
    convolution_lesson,
    padding_lesson,
    strided_lesson,
    pooling_lesson,
    volume_lesson,
    model_lesson,
    feature_volume,
    run_lessons,
    lesson_summary
)
from .narration import render_narration

__all__ = [
    'LESSONS',
    'convolution_lesson',
    'padding_lesson',
    'strided_lesson',
    'pooling_lesson',
    'volume_lesson',
    'model_lesson',
    'feature_volume',
    'run_lessons',
    'lesson_summary',
    'render_narration'
]
