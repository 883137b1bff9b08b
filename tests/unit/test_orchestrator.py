"""Tests for the dream stage machine."""

from __future__ import annotations

import asyncio

import pytest

from dreamplayground.models import ClarifyingQuestion, QAEntry
from dreamplayground.pipeline import (
    ClarifyState,
    ContentSafetyError,
    DreamOrchestrator,
    InvalidTransitionError,
    OrchestratorBusyError,
    Stage,
)
from dreamplayground.pipeline.errors import SAFETY_REJECTED_MESSAGE
from dreamplayground.pipeline.orchestrator import (
    ANALYSIS_FAILED_MESSAGE,
    EMPTY_DESCRIPTION_MESSAGE,
    VISUALIZATION_FAILED_MESSAGE,
)
from tests.fixtures.fake_providers import ControlledClient


@pytest.fixture
def client() -> ControlledClient:
    return ControlledClient()


@pytest.fixture
def orchestrator(client: ControlledClient) -> DreamOrchestrator:
    return DreamOrchestrator(client)  # type: ignore[arg-type]


class TestSubmit:
    """Test the input stage."""

    @pytest.mark.parametrize("description", ["", "   ", "\n\t"])
    def test_blank_description_stays_in_input(
        self, orchestrator: DreamOrchestrator, description: str
    ) -> None:
        assert orchestrator.submit(description) is False
        assert orchestrator.stage is Stage.INPUT
        assert orchestrator.state.error == EMPTY_DESCRIPTION_MESSAGE

    def test_submit_moves_to_clarify(self, orchestrator: DreamOrchestrator) -> None:
        orchestrator.submit("   ")
        assert orchestrator.submit("I was flying over a city") is True

        assert orchestrator.stage is Stage.CLARIFY
        assert orchestrator.state.description == "I was flying over a city"
        assert orchestrator.state.error is None

    def test_each_session_gets_its_own_id(self, orchestrator: DreamOrchestrator) -> None:
        orchestrator.submit("first dream")
        first = orchestrator.state.session_id
        orchestrator.dream_again()
        assert orchestrator.state.session_id is None

        orchestrator.submit("second dream")
        assert first is not None
        assert orchestrator.state.session_id not in (None, first)

    def test_submit_outside_input_raises(self, orchestrator: DreamOrchestrator) -> None:
        orchestrator.submit("dream")
        with pytest.raises(InvalidTransitionError):
            orchestrator.submit("again")


class TestFullFlow:
    """Test clarify -> analyzing -> visualizing -> done."""

    @pytest.mark.asyncio()
    async def test_happy_path(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.questions = [ClarifyingQuestion(id="q1", question="Where were you?")]
        orchestrator.submit("I was flying")

        flow = await orchestrator.load_questions()
        assert flow.state is ClarifyState.AWAITING_ANSWERS
        assert orchestrator.state.questions == client.questions

        flow.set_answer("q1", "above the sea")
        flow.submit()
        await orchestrator.complete_flow(flow)

        state = orchestrator.state
        assert state.stage is Stage.DONE
        assert state.analysis is not None
        assert state.generated_dream is not None
        assert state.error is None
        assert state.is_loading is False
        assert state.transcript == [QAEntry(question="Where were you?", answer="above the sea")]
        assert client.transcripts == [state.transcript]
        assert client.calls == ["questions", "analyze", "dreamscape"]

    @pytest.mark.asyncio()
    async def test_no_questions_auto_completes(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        orchestrator.submit("dream")
        flow = await orchestrator.load_questions()

        assert flow.state is ClarifyState.SUBMITTED
        await orchestrator.complete_flow(flow)
        assert orchestrator.stage is Stage.DONE
        assert client.transcripts == [[]]

    @pytest.mark.asyncio()
    async def test_transitions_reported(self, client: ControlledClient) -> None:
        seen: list[tuple[Stage, Stage]] = []
        orchestrator = DreamOrchestrator(client, on_transition=lambda a, b: seen.append((a, b)))  # type: ignore[arg-type]

        orchestrator.submit("dream")
        await orchestrator.complete_clarification([])

        assert seen == [
            (Stage.INPUT, Stage.CLARIFY),
            (Stage.CLARIFY, Stage.ANALYZING),
            (Stage.ANALYZING, Stage.VISUALIZING),
            (Stage.VISUALIZING, Stage.DONE),
        ]

    @pytest.mark.asyncio()
    async def test_analysis_failure_still_visualizes(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.analysis = RuntimeError("analyst offline")
        orchestrator.submit("dream")
        await orchestrator.complete_clarification([])

        state = orchestrator.state
        assert state.stage is Stage.DONE
        assert state.analysis is None
        assert state.error == ANALYSIS_FAILED_MESSAGE
        assert state.generated_dream is not None

    @pytest.mark.asyncio()
    async def test_visualization_failure_stays_in_visualizing(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.dream = ContentSafetyError()
        orchestrator.submit("dream")
        await orchestrator.complete_clarification([])

        state = orchestrator.state
        assert state.stage is Stage.VISUALIZING
        assert state.error == SAFETY_REJECTED_MESSAGE
        assert state.generated_dream is None
        assert state.analysis is not None
        assert state.is_loading is False

    @pytest.mark.asyncio()
    async def test_unexpected_visualization_error(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.dream = ValueError("bad")
        orchestrator.submit("dream")
        await orchestrator.complete_clarification([])

        assert orchestrator.stage is Stage.VISUALIZING
        assert orchestrator.state.error == VISUALIZATION_FAILED_MESSAGE

    @pytest.mark.asyncio()
    async def test_complete_from_wrong_stage(self, orchestrator: DreamOrchestrator) -> None:
        with pytest.raises(InvalidTransitionError):
            await orchestrator.complete_clarification([])
        with pytest.raises(InvalidTransitionError):
            await orchestrator.visualize()
        with pytest.raises(InvalidTransitionError):
            await orchestrator.load_questions()


class TestDreamAgain:
    """Test reset and late-result handling."""

    @pytest.mark.asyncio()
    async def test_reset_after_done(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        orchestrator.submit("dream")
        await orchestrator.complete_clarification([])
        assert orchestrator.stage is Stage.DONE

        orchestrator.dream_again()

        state = orchestrator.state
        assert state.stage is Stage.INPUT
        assert state.description == ""
        assert state.analysis is None
        assert state.generated_dream is None
        assert state.error is None

    @pytest.mark.asyncio()
    async def test_late_generation_result_discarded(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.dream_gate.clear()
        orchestrator.submit("dream")
        task = asyncio.create_task(orchestrator.complete_clarification([]))
        await client.dream_started.wait()
        assert orchestrator.state.is_loading is True

        orchestrator.dream_again()
        client.dream_gate.set()
        await task

        state = orchestrator.state
        assert state.stage is Stage.INPUT
        assert state.generated_dream is None
        assert state.is_loading is False

    @pytest.mark.asyncio()
    async def test_late_analysis_result_discarded(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.analysis_gate.clear()
        orchestrator.submit("dream")
        task = asyncio.create_task(orchestrator.complete_clarification([]))
        await asyncio.sleep(0)

        orchestrator.dream_again()
        client.analysis_gate.set()
        await task

        assert orchestrator.stage is Stage.INPUT
        assert orchestrator.state.analysis is None
        assert "dreamscape" not in client.calls

    @pytest.mark.asyncio()
    async def test_new_session_after_cancel(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.dream_gate.clear()
        orchestrator.submit("first dream")
        task = asyncio.create_task(orchestrator.complete_clarification([]))
        await client.dream_started.wait()
        orchestrator.dream_again()

        client.dream_gate.set()
        await task
        orchestrator.submit("second dream")
        await orchestrator.complete_clarification([])

        assert orchestrator.stage is Stage.DONE
        assert orchestrator.state.description == "second dream"

    @pytest.mark.asyncio()
    async def test_abandoned_flow_answers_stay_out_of_new_session(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.questions = [ClarifyingQuestion(id="q1", question="Old question?")]
        orchestrator.submit("first dream")
        old_flow = await orchestrator.load_questions()
        orchestrator.dream_again()

        client.questions = []
        orchestrator.submit("second dream")
        old_flow.set_answer("q1", "stale answer")
        old_flow.submit()

        assert orchestrator.state.transcript == []
        await orchestrator.complete_clarification()
        assert client.transcripts == [[]]

    @pytest.mark.asyncio()
    async def test_abandoned_flow_cannot_complete_new_session(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        orchestrator.submit("first dream")
        old_flow = await orchestrator.load_questions()
        orchestrator.dream_again()
        orchestrator.submit("second dream")

        with pytest.raises(InvalidTransitionError):
            await orchestrator.complete_flow(old_flow)
        assert orchestrator.stage is Stage.CLARIFY
        assert "analyze" not in client.calls

    @pytest.mark.asyncio()
    async def test_concurrent_dispatch_rejected(
        self, orchestrator: DreamOrchestrator, client: ControlledClient
    ) -> None:
        client.dream_gate.clear()
        orchestrator.submit("dream")
        task = asyncio.create_task(orchestrator.complete_clarification([]))
        await client.dream_started.wait()

        with pytest.raises(OrchestratorBusyError):
            await orchestrator.visualize()

        client.dream_gate.set()
        await task
        assert orchestrator.stage is Stage.DONE
