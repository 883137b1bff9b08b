"""Dream pipeline: remote client, clarification flow and stage machine."""

from dreamplayground.pipeline.clarify import (
    ClarificationError,
    ClarificationFlow,
    ClarifyState,
    build_transcript,
)
from dreamplayground.pipeline.client import DreamClient, synthesize_analysis
from dreamplayground.pipeline.errors import (
    ContentSafetyError,
    DreamGenerationError,
    DreamServiceError,
    InvalidTransitionError,
    OrchestratorBusyError,
    OrchestratorError,
)
from dreamplayground.pipeline.orchestrator import (
    CancellationToken,
    DreamOrchestrator,
    SessionState,
    Stage,
)

__all__ = [
    "CancellationToken",
    "ClarificationError",
    "ClarificationFlow",
    "ClarifyState",
    "ContentSafetyError",
    "DreamClient",
    "DreamGenerationError",
    "DreamOrchestrator",
    "DreamServiceError",
    "InvalidTransitionError",
    "OrchestratorBusyError",
    "OrchestratorError",
    "SessionState",
    "Stage",
    "build_transcript",
    "synthesize_analysis",
]
