import logging

from fastapi import APIRouter, Depends, HTTPException

from lessonforge.core.deps import get_lesson_sessions
from lessonforge.models.api import QuestionRequest, QuestionResponse
from lessonforge.services.lesson_sessions import LessonSessionRegistry
from lessonforge.services.telemetry import emit_event, instrument

logger = logging.getLogger("lessonforge.api.questions")

router = APIRouter(prefix="/api/v1/questions", tags=["questions"])


@router.post("/next", response_model=QuestionResponse)
@instrument(route="/api/v1/questions/next", version="v1")
def next_question(req: QuestionRequest, sessions: LessonSessionRegistry = Depends(get_lesson_sessions)):
    """
    Serve the next non-repeating question for a session.

    Without an explicit difficulty the session's adapted level is used.
    `stable=True` draws from the precompiled batches instead of generating.
    """
    difficulty = req.difficulty_level
    if difficulty is None:
        difficulty = sessions.model(req.session_id).difficulty_level

    if req.stable:
        question = sessions.stable.get_stable(req.subject, req.skill_area, req.session_id, difficulty)
    else:
        question = sessions.generator.generate_unique(req.subject, req.skill_area, req.session_id, difficulty)

    if question is None:
        emit_event("catalog_miss", route="/api/v1/questions/next", version="v1",
                   session_id=req.session_id, subject=req.subject, skill_area=req.skill_area, ok=False)
        raise HTTPException(status_code=404, detail="No content available for this selection")

    emit_event("question_served", route="/api/v1/questions/next", version="v1",
               session_id=req.session_id, subject=req.subject, skill_area=req.skill_area,
               template_id=question.template_id, ok=True)
    return QuestionResponse(question=question, difficulty_level=difficulty)


@router.get("/stats")
def question_stats(sessions: LessonSessionRegistry = Depends(get_lesson_sessions)):
    return {
        "generated": sessions.generator.get_stats(),
        "stable": sessions.stable.get_stats(),
    }
