"""
Tests for the learner performance model.
All tests run fully offline.
"""
import random

import pytest
from lessonforge.models.lesson import DifficultyAdaptation, default_lesson_config
from lessonforge.services.performance_model import (
    FEEDBACK_MESSAGES,
    PerformanceMetrics,
    PerformanceModel,
    classify_pace,
)


def _model(**metrics) -> PerformanceModel:
    return PerformanceModel(metrics=PerformanceMetrics(**metrics))


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

class TestDefaults:
    def test_fresh_metrics(self):
        m = PerformanceModel().metrics
        assert m.correct_ratio == 0.5
        assert m.avg_response_time_sec == 30.0
        assert m.difficulty_level == 5.0
        assert m.engagement_level == 75.0
        assert m.pace == "average"
        assert m.struggling_concepts == set()
        assert m.mastered_concepts == set()

    def test_metrics_is_a_copy(self):
        model = PerformanceModel()
        snapshot = model.metrics
        snapshot.mastered_concepts.add("addition")
        snapshot.correct_ratio = 0.0
        assert model.metrics.mastered_concepts == set()
        assert model.correct_ratio == 0.5


# ---------------------------------------------------------------------------
# record_answer: numeric rules
# ---------------------------------------------------------------------------

class TestRecordAnswer:
    def test_correct_from_half_gives_one(self):
        # (0.5*10 + 1) / (0.5*10 + 1)
        model = PerformanceModel()
        model.record_answer(True, 10, "addition")
        assert model.correct_ratio == pytest.approx(1.0)

    def test_incorrect_from_half(self):
        # (0.5*10 + 0) / (0.5*10 + 1) = 5/6
        model = PerformanceModel()
        model.record_answer(False, 10, "addition")
        assert model.correct_ratio == pytest.approx(5 / 6)

    def test_incorrect_from_zero_stays_zero(self):
        model = _model(correct_ratio=0.0)
        model.record_answer(False, 10, "addition")
        assert model.correct_ratio == 0.0

    def test_response_time_smoothing(self):
        model = PerformanceModel()
        m = model.record_answer(True, 10, "addition")
        assert m.avg_response_time_sec == pytest.approx(26.0)

    def test_negative_time_clamped_to_zero(self):
        model = PerformanceModel()
        m = model.record_answer(True, -50, "addition")
        assert m.avg_response_time_sec == pytest.approx(24.0)

    def test_nan_time_clamped_to_zero(self):
        model = PerformanceModel()
        m = model.record_answer(True, float("nan"), "addition")
        assert m.avg_response_time_sec == pytest.approx(24.0)

    def test_blank_concept_defaults_to_general(self):
        model = PerformanceModel()
        m = model.record_answer(False, 10, "   ")
        assert m.struggling_concepts == {"general"}

    def test_engagement_signals_ignored(self):
        a, b = PerformanceModel(), PerformanceModel()
        a.record_answer(True, 10, "x")
        b.record_answer(True, 10, "x", engagement_signals={"click_count": 40, "time_on_task": 3})
        assert a.metrics == b.metrics


# ---------------------------------------------------------------------------
# Concept sets
# ---------------------------------------------------------------------------

class TestConcepts:
    def test_five_correct_answers_master_concept(self):
        model = PerformanceModel()
        for _ in range(5):
            model.record_answer(True, 10, "addition")
        m = model.metrics
        assert m.correct_ratio > 0.8
        assert "addition" in m.mastered_concepts
        assert "addition" not in m.struggling_concepts

    def test_incorrect_adds_struggling(self):
        model = PerformanceModel()
        m = model.record_answer(False, 10, "fractions")
        assert m.struggling_concepts == {"fractions"}

    def test_struggling_moves_to_mastered(self):
        model = PerformanceModel()
        model.record_answer(False, 10, "fractions")
        m = model.record_answer(True, 10, "fractions")
        assert "fractions" in m.mastered_concepts
        assert "fractions" not in m.struggling_concepts

    def test_incorrect_removes_from_mastered(self):
        model = PerformanceModel()
        model.record_answer(True, 10, "addition")
        m = model.record_answer(False, 10, "addition")
        assert "addition" in m.struggling_concepts
        assert "addition" not in m.mastered_concepts

    def test_exclusivity_over_random_sequences(self):
        rng = random.Random(7)
        model = PerformanceModel()
        concepts = ["addition", "subtraction", "multiplication", "fractions"]
        for _ in range(500):
            m = model.record_answer(rng.random() < 0.6, rng.uniform(-5, 90), rng.choice(concepts))
            assert not (m.mastered_concepts & m.struggling_concepts)


# ---------------------------------------------------------------------------
# Pace
# ---------------------------------------------------------------------------

class TestPace:
    @pytest.mark.parametrize("time_sec, ratio, expected", [
        (10, 0.9, "fast"),
        (10, 0.7, "average"),
        (15, 0.9, "average"),
        (46, 0.9, "slow"),
        (20, 0.39, "slow"),
        (30, 0.5, "average"),
    ])
    def test_classify(self, time_sec, ratio, expected):
        assert classify_pace(time_sec, ratio) == expected

    def test_becomes_fast_after_quick_correct_answers(self):
        model = PerformanceModel()
        for _ in range(3):
            model.record_answer(True, 0, "addition")
        # 30 * 0.8^3 = 15.36, not yet under 15
        assert model.pace == "average"
        model.record_answer(True, 0, "addition")
        assert model.pace == "fast"

    def test_becomes_slow_after_long_answers(self):
        model = PerformanceModel()
        model.record_answer(True, 100, "addition")  # 44.0
        assert model.pace == "average"
        model.record_answer(True, 100, "addition")  # 55.2
        assert model.pace == "slow"


# ---------------------------------------------------------------------------
# Difficulty
# ---------------------------------------------------------------------------

class TestDifficulty:
    def test_increase_by_step(self):
        model = PerformanceModel()
        model.record_answer(True, 10, "addition")
        assert model.difficulty_level == 5.5

    def test_decrease_by_step(self):
        model = _model(correct_ratio=0.0)
        model.record_answer(False, 10, "addition")
        assert model.difficulty_level == 4.5

    def test_unchanged_between_thresholds(self):
        model = _model(correct_ratio=0.1)
        model.record_answer(False, 10, "addition")  # 1 / 2 = 0.5
        assert model.correct_ratio == pytest.approx(0.5)
        assert model.difficulty_level == 5.0

    def test_capped_at_ten(self):
        model = _model(difficulty_level=9.8)
        model.record_answer(True, 10, "addition")
        assert model.difficulty_level == 10.0

    def test_floored_at_one(self):
        model = _model(correct_ratio=0.0, difficulty_level=1.2)
        model.record_answer(False, 10, "addition")
        assert model.difficulty_level == 1.0

    def test_configured_step(self):
        config = default_lesson_config()
        config = config.model_copy(update={"difficulty_adaptation": DifficultyAdaptation(step=2.0)})
        model = PerformanceModel(config)
        model.record_answer(True, 10, "addition")
        assert model.difficulty_level == 7.0

    def test_bounds_over_random_sequences(self):
        rng = random.Random(11)
        for start in (0.0, 0.5, 1.0):
            model = _model(correct_ratio=start)
            for _ in range(300):
                m = model.record_answer(rng.random() < 0.5, rng.uniform(0, 60), "c")
                assert 1.0 <= m.difficulty_level <= 10.0
                assert 0.0 <= m.correct_ratio <= 1.0


# ---------------------------------------------------------------------------
# Feedback & engagement
# ---------------------------------------------------------------------------

class TestFeedback:
    def test_correct_fast(self):
        model = _model(pace="fast", correct_ratio=0.9)
        assert model.feedback(True, "addition") == FEEDBACK_MESSAGES["fast"]

    def test_correct_strong(self):
        model = _model(correct_ratio=0.9)
        assert model.feedback(True, "addition") == FEEDBACK_MESSAGES["strong"]

    def test_correct_generic(self):
        assert PerformanceModel().feedback(True, "addition") == FEEDBACK_MESSAGES["correct"]

    def test_incorrect_struggling(self):
        model = _model(struggling_concepts={"addition"})
        assert model.feedback(False, "addition") == FEEDBACK_MESSAGES["struggling"]

    def test_incorrect_generic(self):
        assert PerformanceModel().feedback(False, "addition") == FEEDBACK_MESSAGES["incorrect"]

    def test_feedback_has_no_side_effects(self):
        model = PerformanceModel()
        before = model.metrics
        model.feedback(False, "addition")
        assert model.metrics == before


class TestEngagement:
    def test_update_engagement(self):
        assert PerformanceModel().update_engagement(42) == 42.0

    @pytest.mark.parametrize("level, expected", [(150, 100.0), (-5, 0.0)])
    def test_update_engagement_clamped(self, level, expected):
        model = PerformanceModel()
        model.update_engagement(level)
        assert model.metrics.engagement_level == expected
