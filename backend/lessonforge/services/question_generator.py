"""
Template-based question generation with per-session non-repetition.

Pipeline for one request:
  1. filter the catalog (subject, skill area or general, difficulty ceiling)
  2. drop templates already served in this session; if none remain, reset
     the session's memory and start over from the filtered list
  3. take the least-served template across all sessions
  4. fill placeholders, evaluate the answer formula, build distractors,
     shuffle options
  5. record the template as used
"""
from __future__ import annotations

import logging
import math
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Union

from lessonforge.catalog.registry import ANSWER_PLACEHOLDER, TemplateCatalog, default_catalog
from lessonforge.models.question import (
    GeneratedQuestion,
    NumberDomain,
    QuestionTemplate,
    render_value,
)
from lessonforge.services.session_store import (
    InMemorySessionStore,
    SessionStore,
    TemplateUsageCounter,
)
from lessonforge.utils.formula import Number, safe_evaluate

logger = logging.getLogger("lessonforge.question_generator")

DISTRACTOR_COUNT = 3
_MAX_PADDING_STEPS = 16
Value = Union[str, int, float]


# ════════════════════════════════════════════════════════════
# Shared building blocks (also used by the stable precompiler)
# ════════════════════════════════════════════════════════════

def pick_values(template: QuestionTemplate, choose: Callable[[tuple], Value]) -> dict[str, Value]:
    """One value per variable, in declaration order."""
    return {name: choose(domain.values) for name, domain in template.variable_domains.items()}


def fill_pattern(pattern: str, values: Mapping[str, Value]) -> str:
    for name, value in values.items():
        pattern = pattern.replace("{" + name + "}", render_value(value))
    return pattern


def compute_answer(template: QuestionTemplate, values: Mapping[str, Value]) -> Number:
    numeric = {
        name: values[name]
        for name, domain in template.variable_domains.items()
        if isinstance(domain, NumberDomain)
    }
    return safe_evaluate(template.answer_formula, numeric)


def render_explanation(template: QuestionTemplate, values: Mapping[str, Value], answer: Number) -> str:
    explanation = fill_pattern(template.explanation_pattern, values)
    return explanation.replace("{" + ANSWER_PLACEHOLDER + "}", render_value(answer))


def fixed_distractors(correct: Number) -> list[Number]:
    """Distractors for non word-problem templates."""
    return [correct + 5, correct - 3, correct * 2]


def finalize_distractors(correct: Number, candidates: list[Number]) -> list[Number]:
    """
    Keep positive candidates that differ from the answer and from each other,
    then pad with answer+1, answer+2, ... until exactly three remain.
    """
    seen = {render_value(correct)}
    out: list[Number] = []
    for c in candidates:
        if not math.isfinite(c) or c <= 0:
            continue
        label = render_value(c)
        if label in seen:
            continue
        seen.add(label)
        out.append(c)

    base = max(correct, 0)
    for step in range(1, _MAX_PADDING_STEPS + 1):
        if len(out) >= DISTRACTOR_COUNT:
            break
        c = base + step
        label = render_value(c)
        if label in seen:
            continue
        seen.add(label)
        out.append(c)
    if len(out) < DISTRACTOR_COUNT:
        logger.warning("Could only build %d distinct distractor(s) for answer %r", len(out), correct)
    return out[:DISTRACTOR_COUNT]


def build_options(correct: Number, distractors: list[Number]) -> list[str]:
    return [render_value(correct)] + [render_value(d) for d in distractors]


# ════════════════════════════════════════════════════════════
# QuestionGenerator
# ════════════════════════════════════════════════════════════

class QuestionGenerator:
    def __init__(
        self,
        catalog: Optional[TemplateCatalog] = None,
        store: Optional[SessionStore] = None,
        usage: Optional[TemplateUsageCounter] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog or default_catalog()
        self.store = store or InMemorySessionStore()
        self.usage = usage or TemplateUsageCounter()
        self.rng = rng or random.Random()

    def select_template(
        self,
        subject: str,
        skill_area: str,
        session_id: str,
        difficulty_level: float = 1,
    ) -> Optional[QuestionTemplate]:
        matching = self.catalog.matching(subject, skill_area, difficulty_level)
        if not matching:
            logger.warning(
                "No templates for %s/%s at difficulty %s", subject, skill_area, difficulty_level,
            )
            return None

        available = [t for t in matching if not self.store.is_used(session_id, t.id)]
        if not available:
            logger.info("All %d template(s) used in session %s; resetting", len(matching), session_id)
            self.store.reset(session_id)
            available = matching

        by_id = {t.id: t for t in available}
        return by_id[self.usage.least_used_first(by_id)[0]]

    def generate_unique(
        self,
        subject: str,
        skill_area: str,
        session_id: str,
        difficulty_level: float = 1,
    ) -> Optional[GeneratedQuestion]:
        """Next question for the session, or None when nothing in the catalog matches."""
        template = self.select_template(subject, skill_area, session_id, difficulty_level)
        if template is None:
            return None

        question = self.generate_from_template(template, session_id)

        self.store.mark_used(session_id, template.id)
        self.usage.increment(template.id)
        logger.info("Generated %s for session %s: %.50s", question.id, session_id, question.question_text)
        return question

    def _distractors(self, correct: Number, template: QuestionTemplate) -> list[Number]:
        if template.type == "word_problem":
            candidates = [
                correct + self.rng.randint(1, 10),
                max(1, correct - self.rng.randint(1, 10)),
                math.floor(correct * 1.5),
            ]
        else:
            candidates = fixed_distractors(correct)
        return finalize_distractors(correct, candidates)

    def generate_from_template(self, template: QuestionTemplate, session_id: str) -> GeneratedQuestion:
        values = pick_values(template, self.rng.choice)
        correct = compute_answer(template, values)

        options = build_options(correct, self._distractors(correct, template))
        self.rng.shuffle(options)

        return GeneratedQuestion(
            id=f"{template.id}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}",
            template_id=template.id,
            question_text=fill_pattern(template.text_pattern, values),
            options=options,
            correct_option_index=options.index(render_value(correct)),
            correct_answer=correct,
            explanation_text=render_explanation(template, values, correct),
            session_id=session_id,
            created_at=datetime.now(timezone.utc),
            subject=template.subject,
            skill_area=template.skill_area,
            difficulty_level=template.difficulty_level,
        )

    def clear_session(self, session_id: str) -> None:
        self.store.clear(session_id)
        logger.info("Cleared template session %s", session_id)

    def get_stats(self) -> dict:
        return {
            "total_templates": len(self.catalog),
            "active_sessions": len(self.store.active_sessions()),
            "template_usage": self.usage.snapshot(),
        }
