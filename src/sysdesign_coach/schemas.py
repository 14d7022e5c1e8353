"""
Pydantic-схемы ответов сервиса оценки.
Ответ, не прошедший валидацию, считается ошибкой шлюза.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .state import VerdictType


class GeneratedProblem(BaseModel):
    """Формулировка задачи, сгенерированная LLM по произвольной теме."""

    title: str = Field(min_length=1, description="Professional title, e.g. 'Design a ...'")
    description: str = Field(
        min_length=1,
        description="Concise description of the functional goal and key challenges",
    )

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class SectionVerdict(BaseModel):
    """Вердикт по секции: PASS или текст фидбека."""

    model_config = ConfigDict(frozen=True)

    verdict: VerdictType
    message: str

    @property
    def passed(self) -> bool:
        return self.verdict == "PASS"


class SubmittedSection(BaseModel):
    """Ответ по секции с подписью для итоговой оценки."""

    label: str
    content: str


class SessionGradeResult(BaseModel):
    """
    Итоговая оценка всей сессии интервью.
    """

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100, description="Overall score from 0 to 100")
    summary: str = Field(description="Summary of the candidate's performance")
    strengths: List[str]
    weaknesses: List[str]

    @field_validator("strengths", "weaknesses")
    @classmethod
    def _drop_blank_items(cls, value: List[str]) -> List[str]:
        return [item.strip() for item in value if item.strip()]
