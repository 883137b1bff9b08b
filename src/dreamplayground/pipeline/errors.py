"""Exceptions raised by the dream pipeline."""

from __future__ import annotations

GENERATION_FAILED_MESSAGE = (
    "Failed to bring your dream to life. The connection to the dream realm might be unstable."
)
SAFETY_REJECTED_MESSAGE = (
    "The dream description could not be processed due to safety policies. "
    "Please try a different description."
)


class DreamServiceError(Exception):
    """Base exception for remote-call failures, carrying a user-facing message."""

    def __init__(self, user_message: str) -> None:
        self.user_message = user_message
        super().__init__(user_message)


class ContentSafetyError(DreamServiceError):
    """Raised when the service refuses the dream on safety grounds."""

    def __init__(self, user_message: str = SAFETY_REJECTED_MESSAGE) -> None:
        super().__init__(user_message)


class DreamGenerationError(DreamServiceError):
    """Raised when the panorama could not be produced."""

    def __init__(self, user_message: str = GENERATION_FAILED_MESSAGE) -> None:
        super().__init__(user_message)


class OrchestratorError(Exception):
    """Base exception for stage-machine misuse."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Orchestrator error in stage '{stage}': {message}")


class InvalidTransitionError(OrchestratorError):
    """Raised when an action is dispatched from the wrong stage."""

    def __init__(self, stage: str, action: str) -> None:
        self.action = action
        super().__init__(stage, f"'{action}' is not allowed here")


class OrchestratorBusyError(OrchestratorError):
    """Raised when a request is dispatched while another is in flight."""

    def __init__(self, stage: str) -> None:
        super().__init__(stage, "a request is already in flight")
