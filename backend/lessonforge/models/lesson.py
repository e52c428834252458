from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lessonforge.core.config import Settings, get_settings

PhaseType = Literal[
    "introduction",
    "content-delivery",
    "interactive-game",
    "application",
    "creative-exploration",
    "summary",
]


class AdaptiveFactors(BaseModel):
    model_config = ConfigDict(frozen=True)

    performance_based: bool = False
    pace_based: bool = False
    engagement_based: bool = False  # carried for lesson authors; allocation ignores it


class PhaseConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase_type: PhaseType
    base_percentage: float = Field(ge=0, le=100)
    min_percentage: float = Field(ge=0, le=100)
    max_percentage: float = Field(ge=0, le=100)
    adaptive_factors: AdaptiveFactors = AdaptiveFactors()

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_percentage > self.max_percentage:
            raise ValueError(
                f"{self.phase_type}: min_percentage {self.min_percentage} "
                f"exceeds max_percentage {self.max_percentage}"
            )
        return self


class DifficultyAdaptation(BaseModel):
    increase_threshold: float = 0.75
    decrease_threshold: float = 0.4
    step: float = 0.5


class PaceAdaptation(BaseModel):
    fast_learner_speedup: float = 0.8
    slow_learner_extension: float = 1.3


class LessonConfig(BaseModel):
    target_total_minutes: int = 20
    phases: list[PhaseConfig]
    difficulty_adaptation: DifficultyAdaptation = DifficultyAdaptation()
    pace_adaptation: PaceAdaptation = PaceAdaptation()


class PhaseAllocation(BaseModel):
    phase_type: PhaseType
    percentage: float
    minutes: int


def _phase(phase_type, base, lo, hi, performance=False, pace=False, engagement=False) -> PhaseConfig:
    return PhaseConfig(
        phase_type=phase_type,
        base_percentage=base,
        min_percentage=lo,
        max_percentage=hi,
        adaptive_factors=AdaptiveFactors(
            performance_based=performance,
            pace_based=pace,
            engagement_based=engagement,
        ),
    )


# Percentages of a 20-minute lesson: 2.5 / 6 / 4.5 / 3.5 / 2.5 / 1 minutes.
DEFAULT_PHASES: list[PhaseConfig] = [
    _phase("introduction", 12.5, 8, 18, pace=True, engagement=True),
    _phase("content-delivery", 30, 20, 40, performance=True, pace=True),
    _phase("interactive-game", 22.5, 15, 35, performance=True, pace=True, engagement=True),
    _phase("application", 17.5, 12, 25, performance=True, pace=True),
    _phase("creative-exploration", 12.5, 8, 20, pace=True, engagement=True),
    _phase("summary", 5, 3, 10),
]


def default_lesson_config(settings: Optional[Settings] = None) -> LessonConfig:
    """Build the standard six-phase lesson using thresholds from settings."""
    settings = settings or get_settings()
    return LessonConfig(
        target_total_minutes=settings.lesson_total_minutes,
        phases=list(DEFAULT_PHASES),
        difficulty_adaptation=DifficultyAdaptation(
            increase_threshold=settings.difficulty_increase_threshold,
            decrease_threshold=settings.difficulty_decrease_threshold,
            step=settings.difficulty_step,
        ),
        pace_adaptation=PaceAdaptation(
            fast_learner_speedup=settings.fast_learner_speedup,
            slow_learner_extension=settings.slow_learner_extension,
        ),
    )
