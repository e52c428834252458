from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat

QuestionType = Literal["word_problem", "calculation", "concept", "visual"]


class TextDomain(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    values: tuple[str, ...]


class NumberDomain(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    values: tuple[Union[int, FiniteFloat], ...]


VariableDomain = Annotated[Union[TextDomain, NumberDomain], Field(discriminator="kind")]


def text(*values: str) -> TextDomain:
    return TextDomain(values=values)


def numbers(*values: Union[int, float]) -> NumberDomain:
    return NumberDomain(values=values)


def render_value(value: Union[str, int, float]) -> str:
    """String form used for placeholders and options (12.0 -> "12")."""
    if isinstance(value, float):
        value = round(value, 2)
        if value.is_integer():
            return str(int(value))
        return str(value)
    return str(value)


class QuestionTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    subject: str
    skill_area: str
    type: QuestionType
    difficulty_level: int
    text_pattern: str
    variable_domains: dict[str, VariableDomain]
    answer_formula: str
    explanation_pattern: str
    learning_objectives: tuple[str, ...] = ()


class GeneratedQuestion(BaseModel):
    id: str
    template_id: str
    question_text: str
    options: list[str]
    correct_option_index: int
    correct_answer: Union[int, float]
    explanation_text: str
    session_id: str = ""
    created_at: Optional[datetime] = None
    subject: str
    skill_area: str
    difficulty_level: int
