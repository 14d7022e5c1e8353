"""Шлюз оценки: контракт сервиса и его реализация поверх LLM."""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from .catalog import ProblemDefinition
from .prompts import (
    INTERVIEWER_SYSTEM_PROMPT,
    MISSED_POINTS_PROMPT,
    PROBLEM_GENERATION_PROMPT,
    SECTION_EVALUATION_PROMPT,
    SESSION_GRADING_PROMPT,
)
from .schemas import GeneratedProblem, SectionVerdict, SessionGradeResult, SubmittedSection

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "qwen3-32b"
PASS_MARKER = "PASS"
PASS_MAX_LENGTH = 10

GENERATION_TEMPERATURE = 0.7
EVALUATION_TEMPERATURE = 0.7
EVALUATION_MAX_TOKENS = 1000
MISSED_POINTS_TEMPERATURE = 0.5
MISSED_POINTS_MAX_TOKENS = 1500
GRADING_TEMPERATURE = 0.2


class GatewayError(RuntimeError):
    """Сбой сервиса оценки: сеть, ошибка сервиса или невалидный ответ."""


class EvaluationGateway(Protocol):
    """Контракт внешнего сервиса, который выносит все суждения об ответах."""

    async def generate_problem(self, topic: str) -> ProblemDefinition:
        ...

    async def evaluate_section(
        self,
        problem_title: str,
        section_title: str,
        section_description: str,
        content: str,
    ) -> SectionVerdict:
        ...

    async def fetch_missed_points(
        self,
        problem_title: str,
        section_title: str,
        section_description: str,
        content: str,
    ) -> str:
        ...

    async def grade_session(
        self,
        problem_title: str,
        sections: Sequence[SubmittedSection],
    ) -> SessionGradeResult:
        ...


def interpret_verdict(text: str) -> SectionVerdict:
    """Разбирает ответ оценщика.

    PASS засчитывается только для короткого ответа с маркером PASS. Все
    остальное считается фидбеком и возвращается как есть.
    """
    cleaned = text.strip()
    if not cleaned:
        raise GatewayError("Evaluator returned an empty response.")
    if PASS_MARKER in cleaned and len(cleaned) < PASS_MAX_LENGTH:
        return SectionVerdict(verdict="PASS", message=cleaned)
    return SectionVerdict(verdict="FEEDBACK", message=cleaned)


def _content_to_text(content: Any) -> str:
    """Преобразует произвольный формат контента LangChain в строку."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        chunks: list[str] = []
        for item in content:
            if isinstance(item, dict):
                chunks.append(str(item.get("text", "")))
            else:
                chunks.append(str(item))
        return "\n".join(chunks).strip()
    return str(content)


def _parse_json(text: str) -> dict[str, Any]:
    """Пытается извлечь JSON из текста модели и вернуть словарь."""
    cleaned = text.strip()
    if not cleaned:
        return {}

    try:
        result = json.loads(cleaned)
        return result if isinstance(result, dict) else {}
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{.*\}", cleaned, flags=re.DOTALL)
    if not match:
        return {}
    try:
        result = json.loads(match.group(0))
        return result if isinstance(result, dict) else {}
    except json.JSONDecodeError:
        return {}


@dataclass(frozen=True)
class LLMSettings:
    """Параметры подключения к OpenAI-совместимому endpoint."""

    model_name: str = DEFAULT_MODEL_NAME
    api_key: str = ""
    base_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "LLMSettings":
        return cls(
            model_name=os.getenv("MODEL_NAME", DEFAULT_MODEL_NAME),
            api_key=os.getenv("LITELLM_API_KEY", ""),
            base_url=os.getenv("LITELLM_BASE_URL"),
        )


LLMFactory = Callable[[float, Optional[int]], Any]


class LLMEvaluationGateway:
    """Реализация шлюза оценки через ChatOpenAI."""

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        llm_factory: Optional[LLMFactory] = None,
    ) -> None:
        self.settings = settings or LLMSettings.from_env()
        self._llm_factory = llm_factory or self._build_llm

    def _build_llm(self, temperature: float, max_tokens: Optional[int] = None) -> ChatOpenAI:
        """Создает LLM-клиент для OpenAI-совместимого endpoint."""
        return ChatOpenAI(
            model=self.settings.model_name,
            api_key=self.settings.api_key,
            base_url=self.settings.base_url,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def _complete(
        self,
        prompt: str,
        *,
        temperature: float,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Отправляет промпт модели и возвращает текст ответа."""
        try:
            llm = self._llm_factory(temperature, max_tokens)
            response = await llm.ainvoke(
                [
                    SystemMessage(content=INTERVIEWER_SYSTEM_PROMPT),
                    HumanMessage(content=prompt),
                ]
            )
        except Exception as error:  # noqa: BLE001
            logger.warning("LLM request to %s failed: %s", self.settings.model_name, error)
            raise GatewayError(f"LLM request failed: {error}") from error
        return _content_to_text(response.content).strip()

    async def _complete_json(self, prompt: str, *, temperature: float) -> dict[str, Any]:
        text = await self._complete(prompt, temperature=temperature)
        parsed = _parse_json(text)
        if not parsed:
            raise GatewayError("LLM response does not contain a JSON object.")
        return parsed

    async def generate_problem(self, topic: str) -> ProblemDefinition:
        payload = await self._complete_json(
            PROBLEM_GENERATION_PROMPT.format(topic=topic.strip()),
            temperature=GENERATION_TEMPERATURE,
        )
        try:
            generated = GeneratedProblem.model_validate(payload)
        except ValidationError as error:
            raise GatewayError(f"Malformed problem definition: {error}") from error
        return ProblemDefinition(
            identifier=f"generated-{uuid.uuid4().hex[:8]}",
            title=generated.title,
            description=generated.description,
        )

    async def evaluate_section(
        self,
        problem_title: str,
        section_title: str,
        section_description: str,
        content: str,
    ) -> SectionVerdict:
        text = await self._complete(
            SECTION_EVALUATION_PROMPT.format(
                problem_title=problem_title,
                section_title=section_title,
                section_description=section_description,
                content=content,
                pass_marker=PASS_MARKER,
            ),
            temperature=EVALUATION_TEMPERATURE,
            max_tokens=EVALUATION_MAX_TOKENS,
        )
        return interpret_verdict(text)

    async def fetch_missed_points(
        self,
        problem_title: str,
        section_title: str,
        section_description: str,
        content: str,
    ) -> str:
        text = await self._complete(
            MISSED_POINTS_PROMPT.format(
                problem_title=problem_title,
                section_title=section_title,
                section_description=section_description,
                content=content,
            ),
            temperature=MISSED_POINTS_TEMPERATURE,
            max_tokens=MISSED_POINTS_MAX_TOKENS,
        )
        if not text:
            raise GatewayError("LLM returned no missed points.")
        return text

    async def grade_session(
        self,
        problem_title: str,
        sections: Sequence[SubmittedSection],
    ) -> SessionGradeResult:
        submission = json.dumps(
            [section.model_dump() for section in sections],
            ensure_ascii=False,
            indent=2,
        )
        payload = await self._complete_json(
            SESSION_GRADING_PROMPT.format(problem_title=problem_title, submission=submission),
            temperature=GRADING_TEMPERATURE,
        )
        try:
            return SessionGradeResult.model_validate(payload)
        except ValidationError as error:
            raise GatewayError(f"Malformed grade result: {error}") from error
