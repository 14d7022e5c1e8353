import asyncio

import pytest

from sysdesign_coach.catalog import ProblemDefinition, SectionDefinition
from sysdesign_coach.controller import SessionController
from sysdesign_coach.gateway import GatewayError, interpret_verdict
from sysdesign_coach.schemas import SessionGradeResult

TWO_SECTIONS = (
    SectionDefinition(
        identifier="functional_reqs",
        category="1. Requirements Clarification",
        title="Functional Requirements",
        description="List the specific features the system must provide.",
        placeholder="- Feature 1...",
    ),
    SectionDefinition(
        identifier="api_endpoints",
        category="3. API Design",
        title="Core API Endpoints",
        description="Define the key REST or RPC endpoints.",
        placeholder="POST /resource",
    ),
)

GENERATED_PROBLEM = ProblemDefinition(
    identifier="generated-parking",
    title="Design a Parking Lot System",
    description="Design a system that tracks free spots across garages.",
)


class FakeGateway:
    """In-memory gateway; every call is recorded, failures are opt-in."""

    def __init__(self):
        self.calls = []
        self.fail = set()
        self.crash = {}
        self.verdicts = {}
        self.default_verdict = "PASS"
        self.missed_points = "- Mention read/write ratio"
        self.problem = GENERATED_PROBLEM
        self.grade = SessionGradeResult(
            score=82, summary="Solid", strengths=["good sharding"], weaknesses=[]
        )
        self.gates = {}

    def hold(self, key):
        self.gates[key] = asyncio.Event()
        return self.gates[key]

    async def _enter(self, name, key):
        self.calls.append((name, key))
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if name in self.crash:
            raise self.crash[name]
        if name in self.fail:
            raise GatewayError(f"{name} failed")

    async def generate_problem(self, topic):
        await self._enter("generate_problem", topic)
        return self.problem

    async def evaluate_section(self, problem_title, section_title, section_description, content):
        await self._enter("evaluate_section", section_title)
        return interpret_verdict(self.verdicts.get(section_title, self.default_verdict))

    async def fetch_missed_points(self, problem_title, section_title, section_description, content):
        await self._enter("fetch_missed_points", section_title)
        return self.missed_points

    async def grade_session(self, problem_title, sections):
        await self._enter("grade_session", problem_title)
        self.graded_sections = list(sections)
        return self.grade


async def wait_for(predicate, attempts=200):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.005)
    raise AssertionError("condition was not reached")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def controller(gateway):
    return SessionController(
        gateway=gateway, sections=TWO_SECTIONS, confirm_discard=lambda message: True
    )
