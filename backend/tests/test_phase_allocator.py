"""
Tests for adaptive phase timing.
All tests run fully offline.
"""
import math
import random

import pytest
from lessonforge.models.lesson import DEFAULT_PHASES, AdaptiveFactors, PhaseConfig, default_lesson_config
from lessonforge.services.performance_model import PerformanceMetrics, PerformanceModel
from lessonforge.services.phase_allocator import PhaseTimeAllocator


def _allocator(**metrics) -> PhaseTimeAllocator:
    model = PerformanceModel(default_lesson_config(), PerformanceMetrics(**metrics))
    return PhaseTimeAllocator(model)


def _phase(phase_type: str) -> PhaseConfig:
    return next(p for p in DEFAULT_PHASES if p.phase_type == phase_type)


# ---------------------------------------------------------------------------
# allocate
# ---------------------------------------------------------------------------

class TestAllocate:
    def test_average_learner_gets_base_share(self):
        alloc = _allocator()
        assert alloc.allocate_percentage(_phase("content-delivery")) == pytest.approx(30)
        assert alloc.allocate(_phase("content-delivery"), 20) == 6

    def test_fast_high_performer_pace_then_performance(self):
        # 30 * 0.8 * 0.9 = 21.6
        alloc = _allocator(pace="fast", correct_ratio=1.0)
        assert alloc.allocate_percentage(_phase("content-delivery")) == pytest.approx(21.6)
        assert alloc.allocate(_phase("content-delivery"), 20) == 4

    def test_slow_struggler_clamped_to_max(self):
        # 30 * 1.3 * 1.2 = 46.8 -> 40
        alloc = _allocator(pace="slow", correct_ratio=0.3)
        assert alloc.allocate_percentage(_phase("content-delivery")) == pytest.approx(40)
        assert alloc.allocate(_phase("content-delivery"), 20) == 8

    def test_pace_only_phase_ignores_accuracy(self):
        # introduction is pace-based only: 12.5 * 1.3 = 16.25
        alloc = _allocator(pace="slow", correct_ratio=0.1)
        assert alloc.allocate_percentage(_phase("introduction")) == pytest.approx(16.25)
        assert alloc.allocate(_phase("introduction"), 20) == 3

    def test_non_adaptive_phase_unchanged(self):
        alloc = _allocator(pace="fast", correct_ratio=1.0)
        assert alloc.allocate_percentage(_phase("summary")) == pytest.approx(5)
        assert alloc.allocate(_phase("summary"), 20) == 1

    def test_clamped_to_min(self):
        phase = PhaseConfig(
            phase_type="application",
            base_percentage=10,
            min_percentage=9,
            max_percentage=20,
            adaptive_factors=AdaptiveFactors(pace_based=True, performance_based=True),
        )
        # 10 * 0.8 * 0.9 = 7.2 -> 9
        alloc = _allocator(pace="fast", correct_ratio=0.95)
        assert alloc.allocate_percentage(phase) == pytest.approx(9)

    def test_engagement_factor_has_no_effect(self):
        phase = PhaseConfig(
            phase_type="introduction",
            base_percentage=12.5,
            min_percentage=0,
            max_percentage=100,
            adaptive_factors=AdaptiveFactors(engagement_based=True),
        )
        alloc = _allocator(engagement_level=5.0)
        assert alloc.allocate_percentage(phase) == pytest.approx(12.5)

    def test_zero_minutes(self):
        assert _allocator().allocate(_phase("content-delivery"), 0) == 0

    def test_share_stays_within_bounds(self):
        rng = random.Random(3)
        for _ in range(200):
            alloc = _allocator(
                pace=rng.choice(["slow", "average", "fast"]),
                correct_ratio=rng.random(),
            )
            total = rng.randint(1, 120)
            for phase in DEFAULT_PHASES:
                pct = alloc.allocate_percentage(phase)
                assert phase.min_percentage <= pct <= phase.max_percentage
                minutes = alloc.allocate(phase, total)
                assert minutes == math.floor(pct / 100 * total)
                assert minutes <= phase.max_percentage / 100 * total


# ---------------------------------------------------------------------------
# should_advance
# ---------------------------------------------------------------------------

class TestShouldAdvance:
    def test_fast_high_performer_exits_early(self):
        alloc = _allocator(pace="fast", correct_ratio=0.9)
        assert alloc.should_advance(7, 10, 0.9) is True
        assert alloc.should_advance(6.9, 10, 0.9) is False

    def test_fast_but_weak_in_phase_waits_full_time(self):
        alloc = _allocator(pace="fast", correct_ratio=0.9)
        assert alloc.should_advance(9, 10, 0.6) is False
        assert alloc.should_advance(10, 10, 0.6) is True

    def test_slow_struggler_gets_extra_time(self):
        alloc = _allocator(pace="slow", correct_ratio=0.3)
        assert alloc.should_advance(12.9, 10, 0.3) is False
        assert alloc.should_advance(13, 10, 0.3) is True

    def test_slow_but_fine_in_phase(self):
        alloc = _allocator(pace="slow", correct_ratio=0.3)
        assert alloc.should_advance(10, 10, 0.7) is True

    def test_average(self):
        alloc = _allocator()
        assert alloc.should_advance(9.99, 10, 0.9) is False
        assert alloc.should_advance(10, 10, 0.9) is True


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------

class TestPlan:
    def test_default_plan_order_and_minutes(self):
        plan = _allocator().plan()
        assert [a.phase_type for a in plan] == [p.phase_type for p in DEFAULT_PHASES]
        assert [a.minutes for a in plan] == [2, 6, 4, 3, 2, 1]

    def test_plan_with_explicit_total(self):
        plan = _allocator().plan(total_minutes=40)
        assert [a.minutes for a in plan] == [5, 12, 9, 7, 5, 2]

    def test_plan_uses_given_lesson(self):
        lesson = default_lesson_config().model_copy(update={"phases": [_phase("summary")]})
        plan = _allocator().plan(lesson_config=lesson, total_minutes=20)
        assert len(plan) == 1
        assert plan[0].phase_type == "summary"


class TestPhaseConfigValidation:
    def test_min_above_max_rejected(self):
        with pytest.raises(ValueError):
            PhaseConfig(phase_type="summary", base_percentage=5, min_percentage=10, max_percentage=3)
