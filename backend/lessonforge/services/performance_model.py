"""
Learner performance model: rolling accuracy, response time, concept sets,
pace and difficulty for one learner session.

The accuracy update deliberately treats the current ratio as if it stood for
ten prior answers (ratio*10). It is a decaying estimate, not a counter, and
existing lesson tuning depends on its exact numbers.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Literal, Optional

from lessonforge.models.lesson import LessonConfig, default_lesson_config

logger = logging.getLogger(__name__)

Pace = Literal["slow", "average", "fast"]

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
DEFAULT_CONCEPT = "general"

# Pace thresholds
_FAST_MAX_SECONDS = 15
_FAST_MIN_RATIO = 0.7
_SLOW_MIN_SECONDS = 45
_SLOW_MAX_RATIO = 0.4

_MASTERY_RATIO = 0.8
_RATIO_WINDOW = 10

FEEDBACK_MESSAGES: dict[str, str] = {
    "fast": "Excellent! You're mastering this quickly. Let's try something more challenging!",
    "strong": "Great work! You're really understanding these concepts well.",
    "correct": "Nice job! You're making good progress.",
    "struggling": "I see this concept is challenging for you. Let me break it down differently.",
    "incorrect": "That's okay! Let's think through this step by step.",
}


@dataclass
class PerformanceMetrics:
    correct_ratio: float = 0.5
    avg_response_time_sec: float = 30.0
    struggling_concepts: set[str] = field(default_factory=set)
    mastered_concepts: set[str] = field(default_factory=set)
    difficulty_level: float = 5.0
    engagement_level: float = 75.0
    pace: Pace = "average"

    def copy(self) -> "PerformanceMetrics":
        return replace(
            self,
            struggling_concepts=set(self.struggling_concepts),
            mastered_concepts=set(self.mastered_concepts),
        )

    def to_dict(self) -> dict:
        return {
            "correct_ratio": self.correct_ratio,
            "avg_response_time_sec": self.avg_response_time_sec,
            "struggling_concepts": sorted(self.struggling_concepts),
            "mastered_concepts": sorted(self.mastered_concepts),
            "difficulty_level": self.difficulty_level,
            "engagement_level": self.engagement_level,
            "pace": self.pace,
        }


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def classify_pace(avg_response_time_sec: float, correct_ratio: float) -> Pace:
    if avg_response_time_sec < _FAST_MAX_SECONDS and correct_ratio > _FAST_MIN_RATIO:
        return "fast"
    if avg_response_time_sec > _SLOW_MIN_SECONDS or correct_ratio < _SLOW_MAX_RATIO:
        return "slow"
    return "average"


class PerformanceModel:
    """Mutable per-session learner state plus its update rules."""

    def __init__(
        self,
        config: Optional[LessonConfig] = None,
        metrics: Optional[PerformanceMetrics] = None,
    ):
        self.config = config or default_lesson_config()
        self._metrics = metrics or PerformanceMetrics()

    @property
    def metrics(self) -> PerformanceMetrics:
        """Snapshot; mutating it does not affect the model."""
        return self._metrics.copy()

    @property
    def difficulty_level(self) -> float:
        return self._metrics.difficulty_level

    @property
    def pace(self) -> Pace:
        return self._metrics.pace

    @property
    def correct_ratio(self) -> float:
        return self._metrics.correct_ratio

    def record_answer(
        self,
        was_correct: bool,
        response_time_sec: float,
        concept: str,
        engagement_signals: Optional[dict] = None,
    ) -> PerformanceMetrics:
        """
        Fold one answer into the model.

        Out-of-range input is clamped instead of rejected: negative or NaN
        time counts as 0 and a blank concept is filed under "general".
        ``engagement_signals`` (click_count, time_on_task) is accepted but
        does not feed the update.
        """
        m = self._metrics

        if response_time_sec is None or math.isnan(response_time_sec) or response_time_sec < 0:
            logger.debug("[performance_model] clamping response time %r to 0", response_time_sec)
            response_time_sec = 0.0
        concept = (concept or "").strip()
        if not concept:
            logger.debug("[performance_model] empty concept label; using %r", DEFAULT_CONCEPT)
            concept = DEFAULT_CONCEPT

        # 1. accuracy (decaying estimate over a notional window of ten)
        prior = m.correct_ratio * _RATIO_WINDOW
        new_correct = prior + (1 if was_correct else 0)
        new_total = prior + 1
        m.correct_ratio = _clamp(new_correct / new_total, 0.0, 1.0)

        # 2. response time
        m.avg_response_time_sec = m.avg_response_time_sec * 0.8 + response_time_sec * 0.2

        # 3. concept sets
        if was_correct and m.correct_ratio > _MASTERY_RATIO:
            m.mastered_concepts.add(concept)
            m.struggling_concepts.discard(concept)
        elif not was_correct:
            m.struggling_concepts.add(concept)
            m.mastered_concepts.discard(concept)

        # 4. pace
        m.pace = classify_pace(m.avg_response_time_sec, m.correct_ratio)

        # 5. difficulty
        adaptation = self.config.difficulty_adaptation
        if m.correct_ratio > adaptation.increase_threshold:
            m.difficulty_level = min(MAX_DIFFICULTY, m.difficulty_level + adaptation.step)
        elif m.correct_ratio < adaptation.decrease_threshold:
            m.difficulty_level = max(MIN_DIFFICULTY, m.difficulty_level - adaptation.step)

        logger.debug(
            "[performance_model] ratio=%.3f time=%.1fs pace=%s difficulty=%.1f",
            m.correct_ratio, m.avg_response_time_sec, m.pace, m.difficulty_level,
        )
        return self.metrics

    def update_engagement(self, level: float) -> float:
        """Store the externally measured engagement level, clamped to [0, 100]."""
        self._metrics.engagement_level = _clamp(float(level), 0.0, 100.0)
        return self._metrics.engagement_level

    def feedback(self, was_correct: bool, concept: str) -> str:
        m = self._metrics
        concept = (concept or "").strip() or DEFAULT_CONCEPT
        if was_correct:
            if m.pace == "fast":
                return FEEDBACK_MESSAGES["fast"]
            if m.correct_ratio > _MASTERY_RATIO:
                return FEEDBACK_MESSAGES["strong"]
            return FEEDBACK_MESSAGES["correct"]
        if concept in m.struggling_concepts:
            return FEEDBACK_MESSAGES["struggling"]
        return FEEDBACK_MESSAGES["incorrect"]
