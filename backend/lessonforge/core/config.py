from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "LessonForge"
    debug: bool = False

    # Difficulty adaptation
    difficulty_increase_threshold: float = 0.75
    difficulty_decrease_threshold: float = 0.4
    difficulty_step: float = 0.5

    # Pace adaptation (multipliers on a phase's base percentage)
    fast_learner_speedup: float = 0.8
    slow_learner_extension: float = 1.3

    # Lesson / content
    lesson_total_minutes: int = 20
    stable_batch_size: int = 50

    # Telemetry (Supabase sink is optional)
    enable_telemetry_db: bool = False
    supabase_url: str = ""
    supabase_service_key: str = ""

    # CORS
    frontend_url: str = "http://localhost:5173"


@lru_cache
def get_settings() -> Settings:
    return Settings()
