import logging
from typing import Optional

from lessonforge.models.lesson import LessonConfig, default_lesson_config
from lessonforge.services.performance_model import PerformanceModel
from lessonforge.services.phase_allocator import PhaseTimeAllocator
from lessonforge.services.question_generator import QuestionGenerator
from lessonforge.services.stable_precompiler import StablePrecompiler

logger = logging.getLogger("lessonforge.lesson_sessions")


class LessonSessionRegistry:
    """
    One PerformanceModel per learner session, plus the end-of-session signal
    that releases every piece of per-session state.
    """

    def __init__(
        self,
        generator: QuestionGenerator,
        stable: StablePrecompiler,
        lesson_config: Optional[LessonConfig] = None,
    ):
        self.generator = generator
        self.stable = stable
        self.lesson_config = lesson_config or default_lesson_config()
        self._models: dict[str, PerformanceModel] = {}

    def model(self, session_id: str) -> PerformanceModel:
        model = self._models.get(session_id)
        if model is None:
            model = PerformanceModel(self.lesson_config)
            self._models[session_id] = model
            logger.info("Started lesson session %s", session_id)
        return model

    def allocator(self, session_id: str) -> PhaseTimeAllocator:
        return PhaseTimeAllocator(self.model(session_id), self.lesson_config)

    def has_session(self, session_id: str) -> bool:
        return session_id in self._models

    def end_session(self, session_id: str) -> None:
        self._models.pop(session_id, None)
        self.generator.clear_session(session_id)
        self.stable.clear_session(session_id)
        logger.info("Ended lesson session %s", session_id)

    def active_sessions(self) -> list[str]:
        return list(self._models)
