"""Dream orchestrator: the single-session stage machine.

Stages run strictly forward::

    input -> clarify -> analyzing -> visualizing -> done

Each stage that talks to the remote service is an explicit stage-entry
action dispatched by the orchestrator. Every dispatch captures a
``CancellationToken``; "Dream Again" cancels the live token, and a result
arriving on a cancelled token is discarded rather than written to the
session. Errors are advisory: they are recorded on the session for display
and never end the process.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from dreamplayground.observability.logging import bind_session, clear_session, get_logger
from dreamplayground.pipeline.clarify import ClarificationFlow, ClarifyState
from dreamplayground.pipeline.errors import (
    DreamServiceError,
    InvalidTransitionError,
    OrchestratorBusyError,
)

if TYPE_CHECKING:
    from dreamplayground.models import (
        ClarifyingQuestion,
        DreamAnalysis,
        GeneratedDream,
        QAEntry,
    )
    from dreamplayground.pipeline.client import DreamClient

log = get_logger(__name__)

EMPTY_DESCRIPTION_MESSAGE = "Please describe your dream first."
ANALYSIS_FAILED_MESSAGE = "Analysis failed. Proceeding to visualization."
VISUALIZATION_FAILED_MESSAGE = "Failed to visualize your dream."

TransitionFn = Callable[["Stage", "Stage"], None]


class Stage(str, Enum):
    """Phases of the dream workflow."""

    INPUT = "input"
    CLARIFY = "clarify"
    ANALYZING = "analyzing"
    VISUALIZING = "visualizing"
    DONE = "done"


@dataclass
class CancellationToken:
    """Captured at dispatch time; checked before a result is committed."""

    label: str
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class SessionState:
    """Everything the active session owns. Reset wholesale by Dream Again.

    Attributes:
        stage: Current stage.
        description: The submitted dream description.
        questions: Clarifying questions of the current clarify stage.
        transcript: Answered questions, in question order.
        analysis: Structured analysis, None if absent or failed.
        generated_dream: Panorama, title and scene plan once visualized.
        error: Advisory, user-facing error message.
        is_loading: True while a remote request is in flight.
        session_id: Correlation id carried by log events of this session.
    """

    stage: Stage = Stage.INPUT
    description: str = ""
    questions: list[ClarifyingQuestion] = field(default_factory=list)
    transcript: list[QAEntry] = field(default_factory=list)
    analysis: DreamAnalysis | None = None
    generated_dream: GeneratedDream | None = None
    error: str | None = None
    is_loading: bool = False
    session_id: str | None = None


class DreamOrchestrator:
    """Drives one dream session through its stages.

    Args:
        client: Remote service client.
        on_transition: Optional callback ``(old_stage, new_stage)``.
    """

    def __init__(self, client: DreamClient, on_transition: TransitionFn | None = None) -> None:
        self._client = client
        self._on_transition = on_transition
        self._state = SessionState()
        self._in_flight: CancellationToken | None = None
        self._flow: ClarificationFlow | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def stage(self) -> Stage:
        return self._state.stage

    # -- Internal helpers -------------------------------------------------

    def _transition(self, stage: Stage) -> None:
        old = self._state.stage
        self._state.stage = stage
        log.info("stage_transition", old=old.value, new=stage.value)
        if self._on_transition is not None:
            self._on_transition(old, stage)

    def _require(self, stage: Stage, action: str) -> None:
        if self._state.stage is not stage:
            raise InvalidTransitionError(self._state.stage.value, action)

    def _begin(self, label: str) -> CancellationToken:
        if self._in_flight is not None:
            raise OrchestratorBusyError(self._state.stage.value)
        token = CancellationToken(label)
        self._in_flight = token
        self._state.is_loading = True
        return token

    def _end(self, token: CancellationToken) -> None:
        if self._in_flight is token:
            self._in_flight = None
            self._state.is_loading = False

    def _discarded(self, token: CancellationToken) -> bool:
        if token.cancelled:
            log.info("late_result_discarded", action=token.label)
        return token.cancelled

    # -- Actions ----------------------------------------------------------

    def submit(self, description: str) -> bool:
        """Leave ``input`` for ``clarify`` with a non-blank description.

        Returns:
            True if the stage advanced; False (with an error set) otherwise.
        """
        self._require(Stage.INPUT, "submit")
        if not description or not description.strip():
            self._state.error = EMPTY_DESCRIPTION_MESSAGE
            log.info("submit_rejected", reason="empty_description")
            return False

        self._state = SessionState(
            description=description, session_id=bind_session(len(description))
        )
        self._transition(Stage.CLARIFY)
        return True

    async def load_questions(self) -> ClarificationFlow:
        """Stage-entry action for ``clarify``: fetch the clarifying questions.

        The returned flow collects answers. When there are no questions it is
        already submitted with an empty transcript.
        """
        self._require(Stage.CLARIFY, "load_questions")
        token = self._begin("load_questions")

        owner = self._state

        def _record(transcript: list[QAEntry]) -> None:
            if token.cancelled or self._state is not owner:
                log.info("late_result_discarded", action="clarify_submit")
                return
            self._state.transcript = list(transcript)

        flow = ClarificationFlow(self._state.description, on_done=_record)
        self._flow = flow
        try:
            await flow.load(self._client.get_clarifying_questions)
        finally:
            self._end(token)

        if not self._discarded(token):
            self._state.questions = list(flow.questions)
        return flow

    async def complete_clarification(self, transcript: list[QAEntry] | None = None) -> None:
        """Leave ``clarify``: analyze, then visualize.

        Analysis failure is advisory: the error is recorded, no analysis is
        stored, and visualization still runs.

        Args:
            transcript: Final transcript. Defaults to the one recorded by the
                clarification flow.
        """
        self._require(Stage.CLARIFY, "complete_clarification")
        if transcript is not None:
            self._state.transcript = list(transcript)

        token = self._begin("analyze")
        self._transition(Stage.ANALYZING)
        try:
            analysis = await self._client.analyze_dream(
                self._state.description, self._state.transcript
            )
        except Exception as e:
            self._end(token)
            if self._discarded(token):
                return
            log.warning("analysis_failed", error=str(e), error_type=type(e).__name__)
            self._state.analysis = None
            self._state.error = ANALYSIS_FAILED_MESSAGE
        else:
            self._end(token)
            if self._discarded(token):
                return
            self._state.analysis = analysis

        self._transition(Stage.VISUALIZING)
        await self.visualize()

    async def complete_flow(self, flow: ClarificationFlow) -> None:
        """Complete clarification from this session's submitted (or auto-completed) flow."""
        if flow is not self._flow or flow.state is not ClarifyState.SUBMITTED:
            raise InvalidTransitionError(self._state.stage.value, "complete_flow")
        await self.complete_clarification(flow.transcript or [])

    async def visualize(self) -> None:
        """Stage-entry action for ``visualizing``: generate the dreamscape.

        Success stores the dream and enters ``done``. Failure records the
        user-facing message and leaves the stage where it is.
        """
        self._require(Stage.VISUALIZING, "visualize")
        token = self._begin("visualize")
        try:
            dream = await self._client.generate_dreamscape(self._state.description)
        except DreamServiceError as e:
            self._end(token)
            if not self._discarded(token):
                log.error("visualization_failed", error=str(e))
                self._state.error = e.user_message
            return
        except Exception as e:
            self._end(token)
            if not self._discarded(token):
                log.error("visualization_failed", error=str(e), error_type=type(e).__name__)
                self._state.error = VISUALIZATION_FAILED_MESSAGE
            return

        self._end(token)
        if self._discarded(token):
            return
        self._state.generated_dream = dream
        self._transition(Stage.DONE)

    def dream_again(self) -> None:
        """Start over: cancel any in-flight stage and clear the session."""
        if self._in_flight is not None:
            self._in_flight.cancel()
            log.info("in_flight_cancelled", action=self._in_flight.label)
            self._in_flight = None

        old = self._state.stage
        self._state = SessionState()
        self._flow = None
        log.info("session_reset", old=old.value)
        clear_session()
        if self._on_transition is not None and old is not Stage.INPUT:
            self._on_transition(old, Stage.INPUT)
