"""
Adaptive phase timing.

Phases always run in their configured order; only their durations adapt.
A phase's share starts at its base percentage, is scaled by the learner's
pace (when the phase is pace-based) and then by accuracy (when it is
performance-based), and is finally clamped to the phase's own bounds.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from lessonforge.models.lesson import LessonConfig, PhaseAllocation, PhaseConfig
from lessonforge.services.performance_model import PerformanceModel

logger = logging.getLogger(__name__)

_STRUGGLING_RATIO = 0.5
_STRUGGLING_FACTOR = 1.2
_HIGH_RATIO = 0.8
_HIGH_FACTOR = 0.9

_EARLY_EXIT_PERFORMANCE = 0.8
_EARLY_EXIT_FRACTION = 0.7
_EXTRA_TIME_PERFORMANCE = 0.5
_EXTRA_TIME_FRACTION = 1.3


class PhaseTimeAllocator:
    def __init__(self, model: PerformanceModel, config: Optional[LessonConfig] = None):
        self.model = model
        self.config = config or model.config

    def allocate_percentage(self, phase: PhaseConfig) -> float:
        pct = phase.base_percentage
        factors = phase.adaptive_factors

        if factors.pace_based:
            pace = self.model.pace
            if pace == "fast":
                pct *= self.config.pace_adaptation.fast_learner_speedup
            elif pace == "slow":
                pct *= self.config.pace_adaptation.slow_learner_extension

        if factors.performance_based:
            ratio = self.model.correct_ratio
            if ratio < _STRUGGLING_RATIO:
                pct *= _STRUGGLING_FACTOR
            elif ratio > _HIGH_RATIO:
                pct *= _HIGH_FACTOR

        return max(phase.min_percentage, min(phase.max_percentage, pct))

    def allocate(self, phase: PhaseConfig, total_minutes: float) -> int:
        """Whole minutes for ``phase`` out of ``total_minutes`` (rounded down)."""
        if total_minutes <= 0:
            return 0
        return math.floor(self.allocate_percentage(phase) / 100 * total_minutes)

    def should_advance(
        self,
        time_in_phase: float,
        planned_phase_time: float,
        phase_performance: float,
    ) -> bool:
        pace = self.model.pace
        if pace == "fast" and phase_performance > _EARLY_EXIT_PERFORMANCE:
            return time_in_phase >= planned_phase_time * _EARLY_EXIT_FRACTION
        if pace == "slow" and phase_performance < _EXTRA_TIME_PERFORMANCE:
            return time_in_phase >= planned_phase_time * _EXTRA_TIME_FRACTION
        return time_in_phase >= planned_phase_time

    def plan(
        self,
        lesson_config: Optional[LessonConfig] = None,
        total_minutes: Optional[float] = None,
    ) -> list[PhaseAllocation]:
        """Allocate every phase of a lesson, in configured order."""
        lesson = lesson_config or self.config
        total = lesson.target_total_minutes if total_minutes is None else total_minutes
        out = []
        for phase in lesson.phases:
            out.append(PhaseAllocation(
                phase_type=phase.phase_type,
                percentage=self.allocate_percentage(phase),
                minutes=self.allocate(phase, total),
            ))
        logger.debug(
            "[phase_allocator] plan total=%s pace=%s -> %s",
            total, self.model.pace, [(a.phase_type, a.minutes) for a in out],
        )
        return out
