"""Read-only template catalog, validated once at load time."""

import logging
import re
from typing import Iterable, Iterator, Optional

from lessonforge.models.question import NumberDomain, QuestionTemplate
from lessonforge.utils.formula import FormulaError, check_formula, formula_names

logger = logging.getLogger(__name__)

ANSWER_PLACEHOLDER = "answer"
GENERAL_SKILL_AREAS = frozenset({"general", "general_math"})

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


class CatalogValidationError(ValueError):
    pass


def placeholders(pattern: str) -> set[str]:
    return set(_PLACEHOLDER_RE.findall(pattern))


def validate_template(template: QuestionTemplate) -> list[str]:
    """Authoring problems in one template; empty when the template is sound."""
    issues = []
    keys = set(template.variable_domains)

    if ANSWER_PLACEHOLDER in keys:
        issues.append(f"'{ANSWER_PLACEHOLDER}' is reserved and cannot be a variable")
    for name, domain in template.variable_domains.items():
        if not domain.values:
            issues.append(f"variable '{name}' has no values")

    for field_name in ("text_pattern", "explanation_pattern"):
        unknown = placeholders(getattr(template, field_name)) - keys - {ANSWER_PLACEHOLDER}
        for name in sorted(unknown):
            issues.append(f"{field_name} references unknown placeholder '{{{name}}}'")

    try:
        check_formula(template.answer_formula)
        numeric = {k for k, d in template.variable_domains.items() if isinstance(d, NumberDomain)}
        for name in sorted(formula_names(template.answer_formula) - numeric):
            issues.append(f"answer_formula uses '{name}', which is not a numeric variable")
    except FormulaError as exc:
        issues.append(f"answer_formula invalid: {exc}")

    return issues


class TemplateCatalog:
    def __init__(self, templates: Iterable[QuestionTemplate]):
        self._templates: list[QuestionTemplate] = list(templates)
        self._by_id: dict[str, QuestionTemplate] = {}

        problems = []
        for t in self._templates:
            if t.id in self._by_id:
                problems.append(f"{t.id}: duplicate template id")
            self._by_id[t.id] = t
            problems.extend(f"{t.id}: {issue}" for issue in validate_template(t))
        if problems:
            raise CatalogValidationError("; ".join(problems))

        logger.info("[catalog] loaded %d template(s)", len(self._templates))

    def __iter__(self) -> Iterator[QuestionTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def get(self, template_id: str) -> Optional[QuestionTemplate]:
        return self._by_id.get(template_id)

    def matching(self, subject: str, skill_area: str, difficulty_level: float) -> list[QuestionTemplate]:
        """Templates for the subject/skill at or below the requested difficulty, in catalog order."""
        general = skill_area in GENERAL_SKILL_AREAS
        return [
            t for t in self._templates
            if t.subject == subject
            and (general or t.skill_area == skill_area)
            and t.difficulty_level <= difficulty_level
        ]


def default_catalog() -> TemplateCatalog:
    from lessonforge.catalog.templates import MATH_TEMPLATES
    return TemplateCatalog(MATH_TEMPLATES)
