"""CLI-запуск коуча по system design интервью."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace

from .catalog import get_sample_problem, list_sample_problems
from .console import confirm_from_input, run_interactive
from .controller import SessionController
from .gateway import LLMEvaluationGateway, LLMSettings


def parse_args() -> argparse.Namespace:
    """Парсит аргументы CLI для запуска интерактивной сессии."""
    parser = argparse.ArgumentParser(
        description="Interactive system design interview coach.",
    )
    parser.add_argument(
        "--problem",
        default=list_sample_problems()[0].identifier,
        choices=[problem.identifier for problem in list_sample_problems()],
        help="Sample problem to start with.",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name; overrides the MODEL_NAME environment variable.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
    )
    return parser.parse_args()


def main() -> None:
    """Запускает интерактивную сессию из CLI."""
    args = parse_args()
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = LLMSettings.from_env()
    if args.model:
        settings = replace(settings, model_name=args.model)

    controller = SessionController(
        gateway=LLMEvaluationGateway(settings),
        active_problem=get_sample_problem(args.problem),
        confirm_discard=confirm_from_input,
    )
    asyncio.run(run_interactive(controller))


if __name__ == "__main__":
    main()
