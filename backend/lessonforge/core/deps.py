from functools import lru_cache

from lessonforge.catalog.registry import TemplateCatalog, default_catalog
from lessonforge.core.config import get_settings
from lessonforge.models.lesson import default_lesson_config
from lessonforge.services.lesson_sessions import LessonSessionRegistry
from lessonforge.services.question_generator import QuestionGenerator
from lessonforge.services.stable_precompiler import StablePrecompiler


@lru_cache
def get_catalog() -> TemplateCatalog:
    return default_catalog()


@lru_cache
def get_question_generator() -> QuestionGenerator:
    return QuestionGenerator(get_catalog())


@lru_cache
def get_stable_precompiler() -> StablePrecompiler:
    return StablePrecompiler(get_catalog(), batch_size=get_settings().stable_batch_size)


@lru_cache
def get_lesson_sessions() -> LessonSessionRegistry:
    return LessonSessionRegistry(
        get_question_generator(),
        get_stable_precompiler(),
        default_lesson_config(get_settings()),
    )
