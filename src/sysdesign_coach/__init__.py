"""Интерактивный коуч по system design интервью."""

from .catalog import ProblemDefinition, SectionDefinition, list_sample_problems, list_sections
from .controller import SessionController
from .gateway import EvaluationGateway, GatewayError, LLMEvaluationGateway
from .schemas import SectionVerdict, SessionGradeResult, SubmittedSection
from .state import SectionRecord, SectionStatus
from .store import SectionStateStore

__all__ = [
    "EvaluationGateway",
    "GatewayError",
    "LLMEvaluationGateway",
    "ProblemDefinition",
    "SectionDefinition",
    "SectionRecord",
    "SectionStateStore",
    "SectionStatus",
    "SectionVerdict",
    "SessionController",
    "SessionGradeResult",
    "SubmittedSection",
    "list_sample_problems",
    "list_sections",
]
