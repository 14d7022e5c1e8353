"""Сборка графа LangGraph для проверки одной секции."""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from .gateway import EvaluationGateway, GatewayError
from .state import SectionReviewState


def _route_by_action(state: SectionReviewState) -> str:
    """Определяет узел по запрошенному действию."""
    if state.get("action") == "help":
        return "missed_points"
    return "evaluator"


def _make_evaluator_node(gateway: EvaluationGateway):
    async def evaluator_node(state: SectionReviewState) -> SectionReviewState:
        """Запрашивает вердикт по ответу кандидата."""
        try:
            verdict = await gateway.evaluate_section(
                state.get("problem_title", ""),
                state.get("section_title", ""),
                state.get("section_description", ""),
                state.get("content", ""),
            )
        except GatewayError as error:
            return {"error": str(error), "activated_nodes": ["evaluator"]}
        return {
            "verdict": verdict.verdict,
            "message": verdict.message,
            "activated_nodes": ["evaluator"],
        }

    return evaluator_node


def _make_missed_points_node(gateway: EvaluationGateway):
    async def missed_points_node(state: SectionReviewState) -> SectionReviewState:
        """Запрашивает ключевые пункты, которые стоило раскрыть в секции."""
        try:
            missed_points = await gateway.fetch_missed_points(
                state.get("problem_title", ""),
                state.get("section_title", ""),
                state.get("section_description", ""),
                state.get("content", ""),
            )
        except GatewayError as error:
            return {"error": str(error), "activated_nodes": ["missed_points"]}
        return {"missed_points": missed_points, "activated_nodes": ["missed_points"]}

    return missed_points_node


def build_review_graph(gateway: EvaluationGateway):
    """Создает и компилирует граф проверки секции поверх шлюза оценки."""
    builder = StateGraph(SectionReviewState)

    builder.add_node("evaluator", _make_evaluator_node(gateway))
    builder.add_node("missed_points", _make_missed_points_node(gateway))

    builder.add_conditional_edges(
        START,
        _route_by_action,
        {
            "evaluator": "evaluator",
            "missed_points": "missed_points",
        },
    )
    builder.add_edge("evaluator", END)
    builder.add_edge("missed_points", END)

    return builder.compile()
