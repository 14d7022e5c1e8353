"""Контроллер сессии интервью по system design."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .catalog import (
    ProblemDefinition,
    SectionDefinition,
    get_sample_problem,
    group_sections_by_category,
    list_sample_problems,
    list_sections,
)
from .gateway import EvaluationGateway
from .graph import build_review_graph
from .schemas import SectionVerdict, SessionGradeResult, SubmittedSection
from .state import (
    PendingRequest,
    ReviewAction,
    SectionRecord,
    SectionReviewState,
    SessionView,
)
from .store import SectionStateStore

logger = logging.getLogger(__name__)

DISCARD_WARNING = "Changing the problem will reset your current answers. Are you sure?"
EMPTY_TOPIC_ERROR = "Topic must not be empty."
EMPTY_CONTENT_ERROR = "Write an answer before requesting a review."
EMPTY_SESSION_ERROR = "Please fill out at least one section before finishing."
GENERATION_ERROR = "Could not generate problem. Please try again."
GRADING_ERROR = "Failed to grade the interview. Please try again."


def _decline_discard(message: str) -> bool:
    return False


@dataclass
class SessionController:
    """Управляет секциями, активной задачей и итоговой оценкой одной сессии."""

    gateway: EvaluationGateway
    sections: Sequence[SectionDefinition] = field(default_factory=list_sections)
    active_problem: ProblemDefinition = field(
        default_factory=lambda: list_sample_problems()[0]
    )
    confirm_discard: Callable[[str], bool] = _decline_discard
    grade_result: Optional[SessionGradeResult] = field(default=None, init=False)
    notice: Optional[str] = field(default=None, init=False)
    pending_request: Optional[PendingRequest] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.sections = tuple(self.sections)
        self._definitions = {section.identifier: section for section in self.sections}
        self.store = SectionStateStore(self.sections)
        self._review_graph = build_review_graph(self.gateway)

    @property
    def view(self) -> SessionView:
        return "results" if self.grade_result is not None else "editing"

    def section_views(self) -> list[tuple[SectionDefinition, SectionRecord]]:
        """Возвращает пары (описание секции, запись) в порядке каталога."""
        return [(section, self.store.get(section.identifier)) for section in self.sections]

    def grouped_section_views(
        self,
    ) -> dict[str, list[tuple[SectionDefinition, SectionRecord]]]:
        """Группирует секции с их записями по категориям для отображения."""
        return {
            category: [(section, self.store.get(section.identifier)) for section in sections]
            for category, sections in group_sections_by_category(self.sections).items()
        }

    def get_section(self, identifier: str) -> SectionDefinition:
        try:
            return self._definitions[identifier]
        except KeyError:
            raise KeyError(f"Unknown section '{identifier}'.") from None

    def dismiss_notice(self) -> None:
        self.notice = None

    def compute_progress(self) -> int:
        """Процент секций в статусе PASSED, округленный до целого."""
        total = len(self.store)
        if total == 0:
            return 0
        return int(math.floor(100 * self.store.passed_count() / total + 0.5))

    def _ensure_idle_session(self) -> None:
        """Запрещает смену задачи и оценку, пока висит генерация или оценка."""
        if self.pending_request is not None:
            raise RuntimeError(
                f"Another request is in progress ({self.pending_request}). Please wait."
            )

    def _ensure_editing(self) -> None:
        if self.grade_result is not None:
            raise RuntimeError(
                "The interview is already graded. Start a new practice session first."
            )
        if self.pending_request == "generate":
            raise RuntimeError("A new problem is being generated. Please wait.")
        if self.pending_request == "grade":
            raise RuntimeError("The interview is being graded. Please wait.")

    def _reset(self) -> None:
        self.grade_result = None
        self.notice = None
        self.store.reset_all()

    def _install_problem(self, definition: ProblemDefinition) -> None:
        self.active_problem = definition
        self._reset()
        logger.info("Active problem set to %s", definition.identifier)

    def _confirm_discard_work(self) -> bool:
        if not self.store.has_any_content():
            return True
        return bool(self.confirm_discard(DISCARD_WARNING))

    def set_active_problem(self, definition: ProblemDefinition) -> bool:
        """Меняет активную задачу и сбрасывает все секции после подтверждения."""
        self._ensure_idle_session()
        if not self._confirm_discard_work():
            return False
        self._install_problem(definition)
        return True

    def select_sample_problem(self, identifier: str) -> bool:
        return self.set_active_problem(get_sample_problem(identifier))

    async def request_generated_problem(self, topic: str) -> bool:
        """Генерирует задачу по теме и делает ее активной.

        При сбое шлюза активная задача не меняется, а пользователь получает
        уведомление.
        """
        if not topic.strip():
            raise ValueError(EMPTY_TOPIC_ERROR)
        self._ensure_idle_session()
        if not self._confirm_discard_work():
            return False

        self.pending_request = "generate"
        try:
            problem = await self.gateway.generate_problem(topic.strip())
        except Exception as error:  # noqa: BLE001
            logger.warning("Problem generation for topic %r failed: %s", topic, error)
            self.notice = GENERATION_ERROR
            return False
        finally:
            self.pending_request = None

        self._install_problem(problem)
        return True

    def edit_section(self, identifier: str, content: str) -> SectionRecord:
        """Обновляет ответ в секции; секция возвращается в IDLE."""
        self._ensure_editing()
        record = self.store.get(identifier)
        if record.is_busy:
            raise RuntimeError("The section is being reviewed. Please wait.")
        return self.store.edit(identifier, content)

    def _review_request(self, identifier: str, action: ReviewAction) -> SectionReviewState:
        section = self.get_section(identifier)
        return {
            "action": action,
            "problem_title": self.active_problem.title,
            "section_id": identifier,
            "section_title": section.title,
            "section_description": section.description,
            "content": self.store.get(identifier).content,
        }

    async def _run_review(
        self,
        identifier: str,
        ticket: int,
        request: SectionReviewState,
        fail: Callable[[str, int], bool],
    ) -> SectionReviewState:
        """Прогоняет граф проверки; любой сбой возвращает секцию в IDLE."""
        try:
            return await self._review_graph.ainvoke(request)
        except asyncio.CancelledError:
            fail(identifier, ticket)
            raise
        except Exception as error:  # noqa: BLE001
            logger.exception("Section %s review crashed", identifier)
            return {"error": str(error) or type(error).__name__}

    async def analyze_section(self, identifier: str) -> SectionRecord:
        """Отправляет ответ секции на проверку и применяет вердикт."""
        self._ensure_editing()
        record = self.store.get(identifier)
        if not record.has_content:
            raise ValueError(EMPTY_CONTENT_ERROR)

        request = self._review_request(identifier, "analyze")
        ticket = self.store.start_analysis(identifier)
        if ticket is None:
            return record

        result = await self._run_review(identifier, ticket, request, self.store.fail_analysis)
        if result.get("error") or "verdict" not in result:
            logger.warning(
                "Section %s analysis failed: %s",
                identifier,
                result.get("error", "no verdict"),
            )
            self.store.fail_analysis(identifier, ticket)
        else:
            verdict = SectionVerdict(verdict=result["verdict"], message=result.get("message", ""))
            self.store.resolve_analysis(identifier, ticket, verdict)
        return self.store.get(identifier)

    async def request_help(self, identifier: str) -> SectionRecord:
        """Запрашивает пропущенные ключевые пункты для секции."""
        self._ensure_editing()
        request = self._review_request(identifier, "help")
        ticket = self.store.start_help(identifier)
        if ticket is None:
            return self.store.get(identifier)

        result = await self._run_review(identifier, ticket, request, self.store.fail_help)
        if result.get("error") or "missed_points" not in result:
            logger.warning(
                "Section %s help request failed: %s",
                identifier,
                result.get("error", "no missed points"),
            )
            self.store.fail_help(identifier, ticket)
        else:
            self.store.resolve_help(identifier, ticket, result["missed_points"])
        return self.store.get(identifier)

    def _submission(self) -> list[SubmittedSection]:
        return [
            SubmittedSection(label=section.label, content=record.content)
            for section, record in self.section_views()
        ]

    async def finish_and_grade(self) -> Optional[SessionGradeResult]:
        """Отправляет все секции на итоговую оценку.

        Пустая сессия отклоняется без обращения к шлюзу. При сбое шлюза
        сессия остается в режиме редактирования.
        """
        self._ensure_idle_session()
        if self.grade_result is not None:
            raise RuntimeError("The interview is already graded.")
        if not self.store.has_any_content():
            raise ValueError(EMPTY_SESSION_ERROR)

        submission = self._submission()
        self.pending_request = "grade"
        try:
            result = await self.gateway.grade_session(self.active_problem.title, submission)
        except Exception as error:  # noqa: BLE001
            logger.warning("Session grading failed: %s", error)
            self.notice = GRADING_ERROR
            return None
        finally:
            self.pending_request = None

        self.grade_result = result
        self.notice = None
        logger.info("Session graded with score %s", result.score)
        return result

    def reset_session(self) -> None:
        """Начинает новую практику: сбрасывает оценку и все секции."""
        self._ensure_idle_session()
        self._reset()
