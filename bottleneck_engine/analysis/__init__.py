"""Bottleneck analysis engine."""

from bottleneck_engine.analysis.engine import BottleneckAnalyzer
from bottleneck_engine.analysis.models import LESSON_DURATION, Bottlenecks, DistantClassroom, LargeGap, Lesson, Target, TargetKind, UnbalancedWeek

__all__ = ["BottleneckAnalyzer", "Bottlenecks", "DistantClassroom", "LESSON_DURATION", "LargeGap", "Lesson", "Target", "TargetKind", "UnbalancedWeek"]
