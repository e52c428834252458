from typing import Optional

from fastapi import APIRouter, Depends, Query

from lessonforge.core.deps import get_lesson_sessions
from lessonforge.models.api import (
    AdvanceRequest,
    AdvanceResponse,
    AnswerEvent,
    AnswerResponse,
    EngagementUpdate,
    MetricsDTO,
    PlanResponse,
    ResetResponse,
)
from lessonforge.services.lesson_sessions import LessonSessionRegistry
from lessonforge.services.telemetry import instrument

router = APIRouter(prefix="/api/v1/lessons", tags=["lessons"])


@router.post("/{session_id}/answers", response_model=AnswerResponse)
@instrument(route="/api/v1/lessons/answers", version="v1")
def record_answer(
    session_id: str,
    event: AnswerEvent,
    sessions: LessonSessionRegistry = Depends(get_lesson_sessions),
):
    """Fold one submitted answer into the learner model and return feedback."""
    model = sessions.model(session_id)
    metrics = model.record_answer(event.was_correct, event.response_time_sec, event.concept)
    return AnswerResponse(
        session_id=session_id,
        metrics=MetricsDTO(**metrics.to_dict()),
        feedback=model.feedback(event.was_correct, event.concept),
    )


@router.get("/{session_id}/metrics", response_model=MetricsDTO)
def get_metrics(session_id: str, sessions: LessonSessionRegistry = Depends(get_lesson_sessions)):
    return MetricsDTO(**sessions.model(session_id).metrics.to_dict())


@router.post("/{session_id}/engagement", response_model=MetricsDTO)
def update_engagement(
    session_id: str,
    update: EngagementUpdate,
    sessions: LessonSessionRegistry = Depends(get_lesson_sessions),
):
    model = sessions.model(session_id)
    model.update_engagement(update.level)
    return MetricsDTO(**model.metrics.to_dict())


@router.get("/{session_id}/plan", response_model=PlanResponse)
@instrument(route="/api/v1/lessons/plan", version="v1")
def plan_lesson(
    session_id: str,
    total_minutes: Optional[int] = Query(None, gt=0),
    sessions: LessonSessionRegistry = Depends(get_lesson_sessions),
):
    """Per-phase minutes for the lesson, adapted to the learner's current state."""
    total = total_minutes or sessions.lesson_config.target_total_minutes
    allocator = sessions.allocator(session_id)
    return PlanResponse(
        session_id=session_id,
        total_minutes=total,
        pace=allocator.model.pace,
        phases=allocator.plan(total_minutes=total),
    )


@router.post("/{session_id}/advance", response_model=AdvanceResponse)
def should_advance(
    session_id: str,
    body: AdvanceRequest,
    sessions: LessonSessionRegistry = Depends(get_lesson_sessions),
):
    allocator = sessions.allocator(session_id)
    return AdvanceResponse(
        advance=allocator.should_advance(body.time_in_phase, body.planned_phase_time, body.phase_performance)
    )


@router.delete("/{session_id}", response_model=ResetResponse)
@instrument(route="/api/v1/lessons/end", version="v1")
def end_session(session_id: str, sessions: LessonSessionRegistry = Depends(get_lesson_sessions)):
    sessions.end_session(session_id)
    return ResetResponse()
