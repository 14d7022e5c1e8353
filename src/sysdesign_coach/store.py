"""Хранилище записей секций и переходы статусов между ними."""

from __future__ import annotations

import itertools
import logging
from typing import Iterator, Optional, Sequence

from .catalog import SectionDefinition
from .schemas import SectionVerdict
from .state import SectionRecord, SectionStatus

logger = logging.getLogger(__name__)

ANALYSIS_ERROR_FEEDBACK = "Error connecting to AI."
HELP_ERROR_FEEDBACK = "Error retrieving solution."
MISSED_POINTS_MARKER = "KEY POINTS MISSED:"


class SectionStateStore:
    """Держит ровно одну запись на каждую секцию каталога.

    Каждый запуск проверки или подсказки выдает тикет. Результат применяется
    только к записи, которая все еще ждет ответ по этому тикету.
    """

    def __init__(self, sections: Sequence[SectionDefinition]) -> None:
        identifiers = [section.identifier for section in sections]
        if len(set(identifiers)) != len(identifiers):
            raise ValueError("Section identifiers must be unique.")
        self._identifiers = tuple(identifiers)
        self._records: dict[str, SectionRecord] = {}
        self._tickets = itertools.count(1)
        self.reset_all()

    def __len__(self) -> int:
        return len(self._identifiers)

    def __iter__(self) -> Iterator[SectionRecord]:
        return iter(self.records())

    def get(self, identifier: str) -> SectionRecord:
        """Возвращает запись секции или KeyError для неизвестной секции."""
        try:
            return self._records[identifier]
        except KeyError:
            raise KeyError(f"Unknown section '{identifier}'.") from None

    def records(self) -> list[SectionRecord]:
        """Возвращает записи в порядке каталога."""
        return [self._records[identifier] for identifier in self._identifiers]

    def has_any_content(self) -> bool:
        return any(record.has_content for record in self._records.values())

    def passed_count(self) -> int:
        return sum(
            1 for record in self._records.values() if record.status is SectionStatus.PASSED
        )

    def reset_all(self) -> None:
        """Пересоздает все записи: пустой ответ, IDLE, без фидбека."""
        self._records = {
            identifier: SectionRecord(identifier=identifier)
            for identifier in self._identifiers
        }

    def edit(self, identifier: str, content: str) -> SectionRecord:
        """Заменяет ответ; любая правка возвращает секцию в IDLE."""
        record = self.get(identifier)
        if record.pending_ticket is not None:
            logger.info("Section %s edited while a request was pending", identifier)
        record.content = content
        record.status = SectionStatus.IDLE
        record.feedback = None
        record.pending_ticket = None
        return record

    def start_analysis(self, identifier: str) -> Optional[int]:
        """Переводит секцию в ANALYZING; None, если проверка сейчас невозможна."""
        record = self.get(identifier)
        if not record.has_content:
            return None
        if record.status in (SectionStatus.ANALYZING, SectionStatus.PASSED):
            return None
        return self._begin(record)

    def start_help(self, identifier: str) -> Optional[int]:
        """Переводит секцию в ANALYZING для подсказки; пустой ответ допустим."""
        record = self.get(identifier)
        if record.status in (SectionStatus.ANALYZING, SectionStatus.PASSED):
            return None
        return self._begin(record)

    def resolve_analysis(self, identifier: str, ticket: int, verdict: SectionVerdict) -> bool:
        """Применяет вердикт: PASS -> PASSED, иначе NEEDS_REVISION с фидбеком."""
        record = self._pending(identifier, ticket)
        if record is None:
            return False
        if verdict.passed:
            self._finish(record, SectionStatus.PASSED, None)
        else:
            self._finish(record, SectionStatus.NEEDS_REVISION, verdict.message)
        return True

    def fail_analysis(self, identifier: str, ticket: int) -> bool:
        record = self._pending(identifier, ticket)
        if record is None:
            return False
        self._finish(record, SectionStatus.IDLE, ANALYSIS_ERROR_FEEDBACK)
        return True

    def resolve_help(self, identifier: str, ticket: int, missed_points: str) -> bool:
        """Показывает ключевые пункты, которые кандидат упустил."""
        record = self._pending(identifier, ticket)
        if record is None:
            return False
        self._finish(
            record,
            SectionStatus.NEEDS_REVISION,
            f"{MISSED_POINTS_MARKER}\n{missed_points}",
        )
        return True

    def fail_help(self, identifier: str, ticket: int) -> bool:
        record = self._pending(identifier, ticket)
        if record is None:
            return False
        self._finish(record, SectionStatus.IDLE, HELP_ERROR_FEEDBACK)
        return True

    def _begin(self, record: SectionRecord) -> int:
        ticket = next(self._tickets)
        record.status = SectionStatus.ANALYZING
        record.pending_ticket = ticket
        return ticket

    def _pending(self, identifier: str, ticket: int) -> Optional[SectionRecord]:
        """Находит запись, ожидающую ответ именно по этому тикету."""
        record = self.get(identifier)
        if record.status is not SectionStatus.ANALYZING or record.pending_ticket != ticket:
            logger.info("Dropping stale response for section %s (ticket %s)", identifier, ticket)
            return None
        return record

    @staticmethod
    def _finish(record: SectionRecord, status: SectionStatus, feedback: Optional[str]) -> None:
        record.status = status
        record.feedback = feedback
        record.pending_ticket = None
