"""Состояние секций интервью и графа проверки секции."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Literal, Optional, TypedDict

ReviewAction = Literal["analyze", "help"]
VerdictType = Literal["PASS", "FEEDBACK"]
SessionView = Literal["editing", "results"]
PendingRequest = Literal["generate", "grade"]


class SectionStatus(str, Enum):
    """Статус секции в процессе работы кандидата."""

    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    NEEDS_REVISION = "NEEDS_REVISION"
    PASSED = "PASSED"


@dataclass
class SectionRecord:
    """Изменяемая запись секции: ответ кандидата, статус и фидбек."""

    identifier: str
    content: str = ""
    status: SectionStatus = SectionStatus.IDLE
    feedback: Optional[str] = None
    pending_ticket: Optional[int] = None

    @property
    def has_content(self) -> bool:
        return bool(self.content.strip())

    @property
    def is_busy(self) -> bool:
        return self.status is SectionStatus.ANALYZING


class SectionReviewState(TypedDict, total=False):
    """Состояние графа проверки одной секции."""

    action: ReviewAction
    problem_title: str
    section_id: str
    section_title: str
    section_description: str
    content: str

    verdict: VerdictType
    message: str
    missed_points: str
    error: str

    activated_nodes: Annotated[list[str], operator.add]
