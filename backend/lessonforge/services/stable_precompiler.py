"""
Stable question batches: precompiled once, reproducible across restarts.

For each catalog template, batch index ``i`` produces exactly one question:
  - variable picks come from a SeededRandom(i) stream
  - distractors from an independent SeededRandom(i + 1000) stream
  - option order from a Fisher-Yates shuffle seeded with ``i``

Batch entries carry no session id or timestamp, so two precompilers built from
the same catalog hold identical batches. Serving stamps a copy instead.
Sessions remember question ids (not templates); a template whose batch is
exhausted for the session falls through to the next candidate.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from lessonforge.catalog.registry import TemplateCatalog, default_catalog
from lessonforge.core.config import get_settings
from lessonforge.models.question import GeneratedQuestion, QuestionTemplate, render_value
from lessonforge.services.question_generator import (
    build_options,
    compute_answer,
    finalize_distractors,
    fill_pattern,
    fixed_distractors,
    pick_values,
    render_explanation,
)
from lessonforge.services.session_store import (
    InMemorySessionStore,
    SessionStore,
    TemplateUsageCounter,
)
from lessonforge.utils.formula import Number
from lessonforge.utils.seeded_random import SeededRandom, seeded_shuffle

logger = logging.getLogger("lessonforge.stable_precompiler")

DISTRACTOR_SEED_OFFSET = 1000


def _seeded_distractors(correct: Number, template: QuestionTemplate, seed: int) -> list[Number]:
    rng = SeededRandom(seed + DISTRACTOR_SEED_OFFSET)
    if template.type == "word_problem":
        candidates = [
            correct + math.floor(rng.random() * 10) + 1,
            max(1, correct - math.floor(rng.random() * 10) - 1),
            math.floor(correct * (0.5 + rng.random() * 0.5)),
        ]
    else:
        candidates = fixed_distractors(correct)
    return finalize_distractors(correct, candidates)


def compile_question(template: QuestionTemplate, seed: int) -> GeneratedQuestion:
    """Deterministic question for (template, batch index)."""
    values = pick_values(template, SeededRandom(seed).choice)
    correct = compute_answer(template, values)

    options = seeded_shuffle(build_options(correct, _seeded_distractors(correct, template, seed)), seed)

    return GeneratedQuestion(
        id=f"{template.id}_precompiled_{seed}",
        template_id=template.id,
        question_text=fill_pattern(template.text_pattern, values),
        options=options,
        correct_option_index=options.index(render_value(correct)),
        correct_answer=correct,
        explanation_text=render_explanation(template, values, correct),
        subject=template.subject,
        skill_area=template.skill_area,
        difficulty_level=template.difficulty_level,
    )


class StablePrecompiler:
    def __init__(
        self,
        catalog: Optional[TemplateCatalog] = None,
        store: Optional[SessionStore] = None,
        usage: Optional[TemplateUsageCounter] = None,
        batch_size: Optional[int] = None,
    ):
        self.catalog = catalog or default_catalog()
        self.store = store or InMemorySessionStore()
        self.usage = usage or TemplateUsageCounter()
        self.batch_size = get_settings().stable_batch_size if batch_size is None else batch_size
        self._batches: dict[str, list[GeneratedQuestion]] = {}
        self._precompile_all()

    def _precompile_all(self) -> None:
        for template in self.catalog:
            self._batches[template.id] = [
                compile_question(template, i) for i in range(self.batch_size)
            ]
            logger.debug("Precompiled %d question(s) for %s", self.batch_size, template.id)
        logger.info(
            "Precompiled %d stable question(s) across %d template(s)",
            self.total_precompiled_count(), len(self._batches),
        )

    def batch(self, template_id: str) -> list[GeneratedQuestion]:
        return list(self._batches.get(template_id, []))

    def total_precompiled_count(self) -> int:
        return sum(len(b) for b in self._batches.values())

    def _next_unused(self, templates: list[QuestionTemplate], session_id: str) -> Optional[GeneratedQuestion]:
        for template in templates:
            for question in self._batches.get(template.id, []):
                if not self.store.is_used(session_id, question.id):
                    return question
        return None

    def get_stable(
        self,
        subject: str,
        skill_area: str,
        session_id: str,
        difficulty_level: float = 1,
    ) -> Optional[GeneratedQuestion]:
        """Next precompiled question for the session, or None when nothing matches."""
        matching = self.catalog.matching(subject, skill_area, difficulty_level)
        if not matching:
            logger.warning(
                "No stable templates for %s/%s at difficulty %s", subject, skill_area, difficulty_level,
            )
            return None

        by_id = {t.id: t for t in matching}
        ordered = [by_id[tid] for tid in self.usage.least_used_first(by_id)]

        question = self._next_unused(ordered, session_id)
        if question is None:
            logger.info("All stable questions used in session %s; resetting", session_id)
            self.store.reset(session_id)
            question = self._next_unused(ordered, session_id)
            if question is None:
                return None

        self.store.mark_used(session_id, question.id)
        self.usage.increment(question.template_id)
        logger.info("Served stable question %s to session %s", question.id, session_id)
        return question.model_copy(
            update={"session_id": session_id, "created_at": datetime.now(timezone.utc)},
            deep=True,
        )

    def clear_session(self, session_id: str) -> None:
        self.store.clear(session_id)
        logger.info("Cleared stable question session %s", session_id)

    def get_stats(self) -> dict:
        return {
            "total_templates": len(self.catalog),
            "total_precompiled_questions": self.total_precompiled_count(),
            "active_sessions": len(self.store.active_sessions()),
            "questions_per_template": self.batch_size,
            "template_usage": self.usage.snapshot(),
        }
