import asyncio

import pytest

from conftest import GENERATED_PROBLEM, TWO_SECTIONS, wait_for
from sysdesign_coach.catalog import SectionDefinition, get_sample_problem, list_sample_problems
from sysdesign_coach.controller import (
    DISCARD_WARNING,
    EMPTY_SESSION_ERROR,
    GENERATION_ERROR,
    GRADING_ERROR,
    SessionController,
)
from sysdesign_coach.state import SectionStatus
from sysdesign_coach.store import (
    ANALYSIS_ERROR_FEEDBACK,
    HELP_ERROR_FEEDBACK,
    MISSED_POINTS_MARKER,
)

REQS = "functional_reqs"
API = "api_endpoints"


@pytest.mark.asyncio
async def test_pass_then_edit_scenario(controller, gateway):
    assert controller.compute_progress() == 0

    controller.edit_section(REQS, "- shorten URL\n- redirect")
    record = await controller.analyze_section(REQS)

    assert record.status is SectionStatus.PASSED
    assert record.feedback is None
    assert controller.compute_progress() == 50

    record = controller.edit_section(REQS, "- shorten URL")

    assert record.status is SectionStatus.IDLE
    assert controller.compute_progress() == 0


@pytest.mark.asyncio
async def test_grade_then_reset_scenario(controller, gateway):
    controller.edit_section(API, "POST /urls")

    result = await controller.finish_and_grade()

    assert controller.view == "results"
    assert controller.grade_result == result
    assert result.score == 82
    assert result.summary == "Solid"
    assert result.strengths == ["good sharding"]
    assert result.weaknesses == []

    controller.reset_session()

    assert controller.view == "editing"
    assert controller.grade_result is None
    assert [(r.identifier, r.content, r.status) for r in controller.store] == [
        (REQS, "", SectionStatus.IDLE),
        (API, "", SectionStatus.IDLE),
    ]


@pytest.mark.asyncio
async def test_grading_sends_every_section_in_catalog_order(controller, gateway):
    controller.edit_section(API, "POST /urls")

    await controller.finish_and_grade()

    assert [(s.label, s.content) for s in gateway.graded_sections] == [
        ("1. Requirements Clarification - Functional Requirements", ""),
        ("3. API Design - Core API Endpoints", "POST /urls"),
    ]
    assert gateway.calls == [("grade_session", controller.active_problem.title)]


@pytest.mark.asyncio
async def test_empty_session_is_not_graded(controller, gateway):
    controller.edit_section(REQS, "   ")

    with pytest.raises(ValueError, match=EMPTY_SESSION_ERROR):
        await controller.finish_and_grade()

    assert gateway.calls == []
    assert controller.view == "editing"


@pytest.mark.asyncio
async def test_grading_failure_keeps_editing_view(controller, gateway):
    gateway.fail.add("grade_session")
    controller.edit_section(REQS, "- redirect")

    result = await controller.finish_and_grade()

    assert result is None
    assert controller.view == "editing"
    assert controller.notice == GRADING_ERROR
    assert controller.pending_request is None
    assert controller.store.get(REQS).content == "- redirect"

    controller.dismiss_notice()
    assert controller.notice is None


@pytest.mark.asyncio
async def test_feedback_verdict_needs_revision(controller, gateway):
    gateway.verdicts["Functional Requirements"] = "You didn't mention analytics."
    controller.edit_section(REQS, "- shorten URL")

    record = await controller.analyze_section(REQS)

    assert record.status is SectionStatus.NEEDS_REVISION
    assert record.feedback == "You didn't mention analytics."


@pytest.mark.asyncio
async def test_analysis_failure_reverts_to_idle(controller, gateway):
    gateway.fail.add("evaluate_section")
    controller.edit_section(REQS, "- shorten URL")

    record = await controller.analyze_section(REQS)

    assert record.status is SectionStatus.IDLE
    assert record.content == "- shorten URL"
    assert record.feedback == ANALYSIS_ERROR_FEEDBACK


@pytest.mark.asyncio
async def test_analysis_of_empty_section_is_rejected(controller, gateway):
    with pytest.raises(ValueError):
        await controller.analyze_section(REQS)

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_passed_section_is_not_analyzed_again(controller, gateway):
    controller.edit_section(REQS, "- shorten URL")
    await controller.analyze_section(REQS)

    record = await controller.analyze_section(REQS)
    await controller.request_help(REQS)

    assert record.status is SectionStatus.PASSED
    assert gateway.calls == [("evaluate_section", "Functional Requirements")]


@pytest.mark.asyncio
async def test_help_reveals_missed_points(controller, gateway):
    record = await controller.request_help(API)

    assert record.status is SectionStatus.NEEDS_REVISION
    assert record.feedback == f"{MISSED_POINTS_MARKER}\n{gateway.missed_points}"

    controller.edit_section(API, "POST /urls\nGET /:alias")
    record = await controller.analyze_section(API)
    assert record.status is SectionStatus.PASSED


@pytest.mark.asyncio
async def test_help_failure_reverts_to_idle(controller, gateway):
    gateway.fail.add("fetch_missed_points")

    record = await controller.request_help(API)

    assert record.status is SectionStatus.IDLE
    assert record.feedback == HELP_ERROR_FEEDBACK


@pytest.mark.asyncio
async def test_section_is_locked_while_analyzing(controller, gateway):
    gate = gateway.hold("Functional Requirements")
    controller.edit_section(REQS, "- shorten URL")

    task = asyncio.create_task(controller.analyze_section(REQS))
    await wait_for(lambda: gateway.calls)

    assert controller.store.get(REQS).status is SectionStatus.ANALYZING
    with pytest.raises(RuntimeError):
        controller.edit_section(REQS, "changed")
    second = await controller.analyze_section(REQS)
    assert second.status is SectionStatus.ANALYZING
    await controller.request_help(REQS)

    gate.set()
    record = await task

    assert record.status is SectionStatus.PASSED
    assert record.content == "- shorten URL"
    assert gateway.calls == [("evaluate_section", "Functional Requirements")]


@pytest.mark.asyncio
async def test_sections_resolve_independently_in_any_order(controller, gateway):
    first_gate = gateway.hold("Functional Requirements")
    second_gate = gateway.hold("Core API Endpoints")
    gateway.verdicts["Core API Endpoints"] = "Add pagination to the feed endpoint."
    controller.edit_section(REQS, "- shorten URL")
    controller.edit_section(API, "GET /feed")

    first = asyncio.create_task(controller.analyze_section(REQS))
    second = asyncio.create_task(controller.analyze_section(API))
    await wait_for(lambda: len(gateway.calls) == 2)

    second_gate.set()
    api_record = await second
    assert api_record.status is SectionStatus.NEEDS_REVISION
    assert controller.store.get(REQS).status is SectionStatus.ANALYZING

    first_gate.set()
    reqs_record = await first
    assert reqs_record.status is SectionStatus.PASSED
    assert controller.store.get(API).feedback == "Add pagination to the feed endpoint."


@pytest.mark.asyncio
async def test_response_arriving_after_problem_switch_is_dropped(controller, gateway):
    gate = gateway.hold("Functional Requirements")
    controller.edit_section(REQS, "- shorten URL")
    task = asyncio.create_task(controller.analyze_section(REQS))
    await wait_for(lambda: gateway.calls)

    assert controller.set_active_problem(get_sample_problem("uber")) is True
    gate.set()
    record = await task

    assert record.status is SectionStatus.IDLE
    assert record.content == ""
    assert controller.compute_progress() == 0


def test_switching_problem_with_work_asks_for_confirmation(gateway):
    prompts = []

    def decline(message):
        prompts.append(message)
        return False

    controller = SessionController(gateway=gateway, sections=TWO_SECTIONS, confirm_discard=decline)
    original = controller.active_problem
    controller.edit_section(REQS, "- shorten URL")

    assert controller.select_sample_problem("whatsapp") is False
    assert controller.active_problem == original
    assert controller.store.get(REQS).content == "- shorten URL"
    assert prompts == [DISCARD_WARNING]


def test_switching_problem_resets_sections(controller):
    controller.edit_section(REQS, "- shorten URL")

    assert controller.select_sample_problem("whatsapp") is True

    assert controller.active_problem.identifier == "whatsapp"
    assert not controller.store.has_any_content()


def test_switching_without_work_does_not_ask(gateway):
    def fail_if_called(message):
        raise AssertionError("confirmation is not needed")

    controller = SessionController(
        gateway=gateway, sections=TWO_SECTIONS, confirm_discard=fail_if_called
    )

    assert controller.select_sample_problem("uber") is True
    assert controller.active_problem == get_sample_problem("uber")


def test_default_problem_is_first_sample(controller):
    assert controller.active_problem == list_sample_problems()[0]


@pytest.mark.asyncio
async def test_generated_problem_becomes_active(controller, gateway):
    controller.edit_section(REQS, "- shorten URL")

    assert await controller.request_generated_problem("  parking lot ") is True

    assert controller.active_problem == GENERATED_PROBLEM
    assert gateway.calls == [("generate_problem", "parking lot")]
    assert not controller.store.has_any_content()


@pytest.mark.asyncio
async def test_blank_topic_is_rejected(controller, gateway):
    with pytest.raises(ValueError):
        await controller.request_generated_problem("   ")

    assert gateway.calls == []


@pytest.mark.asyncio
async def test_generation_failure_keeps_active_problem(controller, gateway):
    gateway.fail.add("generate_problem")
    original = controller.active_problem
    controller.edit_section(REQS, "- shorten URL")

    assert await controller.request_generated_problem("parking lot") is False

    assert controller.active_problem == original
    assert controller.notice == GENERATION_ERROR
    assert controller.store.get(REQS).content == "- shorten URL"
    assert controller.pending_request is None


@pytest.mark.asyncio
async def test_declined_generation_makes_no_call(gateway):
    controller = SessionController(
        gateway=gateway, sections=TWO_SECTIONS, confirm_discard=lambda message: False
    )
    controller.edit_section(REQS, "- shorten URL")

    assert await controller.request_generated_problem("parking lot") is False
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_generation_and_grading_are_mutually_exclusive(controller, gateway):
    gate = gateway.hold("parking lot")
    controller.edit_section(REQS, "- shorten URL")
    task = asyncio.create_task(controller.request_generated_problem("parking lot"))
    await wait_for(lambda: gateway.calls)

    assert controller.pending_request == "generate"
    with pytest.raises(RuntimeError):
        await controller.request_generated_problem("chess server")
    with pytest.raises(RuntimeError):
        await controller.finish_and_grade()
    with pytest.raises(RuntimeError):
        controller.select_sample_problem("uber")

    gate.set()
    assert await task is True
    assert controller.pending_request is None


@pytest.mark.asyncio
async def test_sections_are_read_only_while_grading(controller, gateway):
    gate = gateway.hold(controller.active_problem.title)
    controller.edit_section(REQS, "- shorten URL")
    task = asyncio.create_task(controller.finish_and_grade())
    await wait_for(lambda: gateway.calls)

    with pytest.raises(RuntimeError):
        controller.edit_section(REQS, "changed")
    with pytest.raises(RuntimeError):
        await controller.request_generated_problem("parking lot")

    gate.set()
    await task
    assert controller.view == "results"


@pytest.mark.asyncio
async def test_graded_session_is_terminal_until_reset(controller, gateway):
    controller.edit_section(REQS, "- shorten URL")
    await controller.finish_and_grade()

    with pytest.raises(RuntimeError):
        controller.edit_section(REQS, "more")
    with pytest.raises(RuntimeError):
        await controller.analyze_section(REQS)
    with pytest.raises(RuntimeError):
        await controller.finish_and_grade()


@pytest.mark.asyncio
async def test_progress_rounds_to_nearest_integer(gateway):
    sections = tuple(
        SectionDefinition(f"s{index}", "Cat", f"Section {index}", "desc", "hint")
        for index in range(3)
    )
    controller = SessionController(gateway=gateway, sections=sections)

    controller.edit_section("s0", "answer")
    await controller.analyze_section("s0")
    assert controller.compute_progress() == 33

    controller.edit_section("s1", "answer")
    await controller.analyze_section("s1")
    assert controller.compute_progress() == 67


def test_progress_of_empty_catalog_is_zero(gateway):
    controller = SessionController(gateway=gateway, sections=())

    assert controller.compute_progress() == 0


def test_grouped_views_follow_catalog(controller):
    groups = controller.grouped_section_views()

    assert list(groups) == ["1. Requirements Clarification", "3. API Design"]
    section, record = groups["3. API Design"][0]
    assert section.identifier == API
    assert record is controller.store.get(API)


@pytest.mark.asyncio
async def test_unexpected_analysis_error_unlocks_section(controller, gateway):
    gateway.crash["evaluate_section"] = TimeoutError("read timed out")
    controller.edit_section(REQS, "- shorten URL")

    record = await controller.analyze_section(REQS)

    assert record.status is SectionStatus.IDLE
    assert record.content == "- shorten URL"
    assert record.feedback == ANALYSIS_ERROR_FEEDBACK
    assert controller.edit_section(REQS, "- redirect").status is SectionStatus.IDLE


@pytest.mark.asyncio
async def test_unexpected_help_error_unlocks_section(controller, gateway):
    gateway.crash["fetch_missed_points"] = ValueError("bad payload")

    record = await controller.request_help(API)

    assert record.status is SectionStatus.IDLE
    assert record.feedback == HELP_ERROR_FEEDBACK


@pytest.mark.asyncio
async def test_cancelled_analysis_unlocks_section(controller, gateway):
    gateway.hold("Functional Requirements")
    controller.edit_section(REQS, "- shorten URL")
    task = asyncio.create_task(controller.analyze_section(REQS))
    await wait_for(lambda: gateway.calls)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    record = controller.store.get(REQS)
    assert record.status is SectionStatus.IDLE
    assert record.content == "- shorten URL"
    assert controller.edit_section(REQS, "- redirect").status is SectionStatus.IDLE


@pytest.mark.asyncio
async def test_unexpected_grading_error_sets_notice(controller, gateway):
    gateway.crash["grade_session"] = TimeoutError("read timed out")
    controller.edit_section(REQS, "- shorten URL")

    assert await controller.finish_and_grade() is None

    assert controller.notice == GRADING_ERROR
    assert controller.view == "editing"
    assert controller.pending_request is None


def test_switch_is_declined_without_confirmation_callback(gateway):
    controller = SessionController(gateway=gateway, sections=TWO_SECTIONS)
    original = controller.active_problem
    controller.edit_section(REQS, "- shorten URL")

    assert controller.select_sample_problem("uber") is False
    assert controller.active_problem == original
    assert controller.store.get(REQS).content == "- shorten URL"


@pytest.mark.asyncio
async def test_sections_are_read_only_while_generating(controller, gateway):
    gate = gateway.hold("parking lot")
    task = asyncio.create_task(controller.request_generated_problem("parking lot"))
    await wait_for(lambda: gateway.calls)

    with pytest.raises(RuntimeError):
        controller.edit_section(REQS, "- shorten URL")
    with pytest.raises(RuntimeError):
        await controller.request_help(API)

    gate.set()
    assert await task is True
    assert controller.edit_section(REQS, "- shorten URL").content == "- shorten URL"
