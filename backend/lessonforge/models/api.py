from pydantic import BaseModel, Field
from typing import Optional

from lessonforge.models.lesson import PhaseAllocation
from lessonforge.models.question import GeneratedQuestion


class AnswerEvent(BaseModel):
    was_correct: bool
    response_time_sec: float = 0.0
    concept: str = ""


class MetricsDTO(BaseModel):
    correct_ratio: float
    avg_response_time_sec: float
    struggling_concepts: list[str] = []
    mastered_concepts: list[str] = []
    difficulty_level: float
    engagement_level: float
    pace: str


class AnswerResponse(BaseModel):
    session_id: str
    metrics: MetricsDTO
    feedback: str


class EngagementUpdate(BaseModel):
    level: float


class PlanResponse(BaseModel):
    session_id: str
    total_minutes: int
    pace: str
    phases: list[PhaseAllocation]


class AdvanceRequest(BaseModel):
    time_in_phase: float = Field(ge=0)
    planned_phase_time: float = Field(ge=0)
    phase_performance: float = Field(ge=0, le=1)


class AdvanceResponse(BaseModel):
    advance: bool


class QuestionRequest(BaseModel):
    subject: str
    skill_area: str = "general"
    session_id: str
    difficulty_level: Optional[float] = None  # default: the session's adapted difficulty
    stable: bool = False


class QuestionResponse(BaseModel):
    question: GeneratedQuestion
    difficulty_level: float


class ResetResponse(BaseModel):
    ok: bool = True
