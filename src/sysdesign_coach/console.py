"""Консольный интерфейс коуча: форматирование и интерактивный цикл."""

from __future__ import annotations

import asyncio

from .catalog import ProblemDefinition, SectionDefinition, list_sample_problems
from .controller import SessionController
from .schemas import SessionGradeResult
from .state import SectionRecord, SectionStatus

EXIT_COMMANDS = {"quit", "exit", "stop"}
CONFIRM_ANSWERS = {"y", "yes"}
END_OF_ANSWER = "."

STATUS_LABELS = {
    SectionStatus.IDLE: "not checked",
    SectionStatus.ANALYZING: "checking...",
    SectionStatus.NEEDS_REVISION: "feedback",
    SectionStatus.PASSED: "approved",
}

HELP_TEXT = """Commands:
  list            overview of all sections
  show N          show section N with its hint and feedback
  edit N          rewrite the answer for section N (finish with a single '.')
  check N         validate the answer for section N
  help N          "I give up, what did I miss?"
  problems        list sample problems
  problem ID      switch to a sample problem
  topic TEXT      generate a new problem for a topic
  finish          complete the interview and view the score
  new             start a new practice session after grading
  quit            exit"""


def format_problem(problem: ProblemDefinition) -> str:
    return f"=== {problem.title} ===\nProblem Statement: {problem.description}"


def format_section(index: int, section: SectionDefinition, record: SectionRecord) -> str:
    """Форматирует секцию с ответом кандидата и фидбеком."""
    lines = [
        f"[{index}] {section.category} / {section.title} ({STATUS_LABELS[record.status]})",
        section.description,
        "",
    ]
    if record.has_content:
        lines.append(record.content)
    else:
        lines.append("Hint:")
        lines.append(section.placeholder)
    if record.feedback:
        lines.extend(["", "Feedback:", record.feedback])
    return "\n".join(lines)


def format_overview(controller: SessionController) -> str:
    """Форматирует прогресс и статусы всех секций по категориям."""
    lines = [format_problem(controller.active_problem), ""]
    lines.append(f"Progress: {controller.compute_progress()}%")
    index = 0
    for category, views in controller.grouped_section_views().items():
        lines.append("")
        lines.append(category)
        for section, record in views:
            index += 1
            marker = "x" if record.status is SectionStatus.PASSED else " "
            lines.append(
                f"  [{marker}] {index}. {section.title} - {STATUS_LABELS[record.status]}"
            )
    return "\n".join(lines)


def format_grade(result: SessionGradeResult) -> str:
    """Форматирует итоговую оценку интервью."""
    lines = [f"=== INTERVIEW RESULT ===\nScore: {result.score}/100", "", result.summary]

    strengths = result.strengths or ["No data"]
    weaknesses = result.weaknesses or ["No data"]

    lines.append("\nStrengths:")
    lines.extend(f"- {item}" for item in strengths)
    lines.append("\nWeaknesses:")
    lines.extend(f"- {item}" for item in weaknesses)
    return "\n".join(lines)


def format_sample_problems() -> str:
    return "\n".join(
        f"- {problem.identifier}: {problem.title}" for problem in list_sample_problems()
    )


def confirm_from_input(message: str) -> bool:
    """Спрашивает подтверждение у пользователя в консоли."""
    try:
        answer = input(f"{message} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in CONFIRM_ANSWERS


def resolve_section_id(controller: SessionController, token: str) -> str:
    """Принимает номер секции из `list` или ее идентификатор."""
    value = token.strip()
    if not value:
        raise ValueError("Specify a section number, e.g. `show 1`.")
    if value.isdigit():
        position = int(value)
        if not 1 <= position <= len(controller.sections):
            raise ValueError(f"Section number must be between 1 and {len(controller.sections)}.")
        return controller.sections[position - 1].identifier
    controller.get_section(value)
    return value


async def _ask(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def _read_answer() -> str:
    lines: list[str] = []
    while True:
        line = await _ask("... ")
        if line.strip() == END_OF_ANSWER:
            return "\n".join(lines)
        lines.append(line)


def _section_block(controller: SessionController, identifier: str) -> str:
    for index, (section, record) in enumerate(controller.section_views(), start=1):
        if section.identifier == identifier:
            return format_section(index, section, record)
    raise KeyError(identifier)


async def _dispatch(controller: SessionController, command: str, argument: str) -> None:
    if command == "list":
        print(format_overview(controller))
    elif command == "show":
        print(_section_block(controller, resolve_section_id(controller, argument)))
    elif command == "edit":
        identifier = resolve_section_id(controller, argument)
        section = controller.get_section(identifier)
        print(f"{section.title}: {section.description}")
        print(f"Type your answer, finish with a single '{END_OF_ANSWER}' line.")
        controller.edit_section(identifier, await _read_answer())
        print("Saved.")
    elif command == "check":
        identifier = resolve_section_id(controller, argument)
        print("Checking...")
        await controller.analyze_section(identifier)
        print(_section_block(controller, identifier))
        print(f"\nProgress: {controller.compute_progress()}%")
    elif command == "help":
        identifier = resolve_section_id(controller, argument)
        print("Loading...")
        await controller.request_help(identifier)
        print(_section_block(controller, identifier))
    elif command == "problems":
        print(format_sample_problems())
    elif command == "problem":
        if controller.select_sample_problem(argument):
            print(format_problem(controller.active_problem))
    elif command == "topic":
        print("Generating problem definition...")
        if await controller.request_generated_problem(argument):
            print(format_problem(controller.active_problem))
    elif command == "finish":
        print("Analyzing entire interview...")
        result = await controller.finish_and_grade()
        if result is not None:
            print(format_grade(result))
            print("\nType `new` to start a new practice session.")
    elif command == "new":
        controller.reset_session()
        print(format_overview(controller))
    else:
        print(HELP_TEXT)


async def run_interactive(controller: SessionController) -> None:
    """Запускает интерактивный цикл интервью в консоли."""
    print(format_overview(controller))
    print()
    print(HELP_TEXT)

    while True:
        try:
            user_input = (await _ask("\n> ")).strip()
        except EOFError:
            break
        if not user_input:
            continue

        command, _, argument = user_input.partition(" ")
        command = command.lower()
        if command in EXIT_COMMANDS:
            print("Session finished.")
            break

        try:
            await _dispatch(controller, command, argument.strip())
        except (RuntimeError, ValueError, KeyError) as error:
            print(f"Error: {error}")

        if controller.notice:
            print(f"Notice: {controller.notice}")
            controller.dismiss_notice()
