"""
Submission Controller

Owns the selected artifact, the problem description and the single
submission state machine:

    IDLE -> VALIDATING -> COMPRESSING -> SENDING -> AWAITING_RESPONSE
         -> SUCCEEDED | FAILED

The busy condition is the state itself. It is checked synchronously at the
top of submit(), before the first await, so two submissions can never both
pass the guard. Every failure inside an attempt ends in FAILED with one
displayable message. Nothing but the cancellation exception escapes
submit(); a cancelled attempt still ends in FAILED before it propagates.
"""

import logging
from typing import Callable, List, Optional

from .api_client import TroubleshootingAPIClient
from .exceptions import SubmissionError
from .file_validator import FileValidator, count_words
from .models import (
    Artifact,
    ArtifactCandidate,
    Failure,
    ProblemDescription,
    SubmissionConfig,
    SubmissionOutcome,
    SubmissionState,
    Success,
    ValidationResult,
)
from .request_builder import build_request, compress_artifact
from .response_resolver import resolve

StateListener = Callable[[SubmissionState], None]


class SubmissionController:
    """Coordinates one troubleshooting submission at a time"""

    def __init__(
        self,
        config: SubmissionConfig,
        validator: Optional[FileValidator] = None,
        client_factory: Optional[Callable[[SubmissionConfig], TroubleshootingAPIClient]] = None,
    ):
        self.config = config
        self.validator = validator or FileValidator(config)
        self.client_factory = client_factory or TroubleshootingAPIClient
        self.logger = logging.getLogger(self.__class__.__name__)

        self.state = SubmissionState.IDLE
        self.artifact: Optional[Artifact] = None
        self.description = ProblemDescription("")
        self.outcome: Optional[SubmissionOutcome] = None
        self.selection_error: Optional[str] = None
        self._listeners: List[StateListener] = []

    # Selection and description

    def select_artifact(self, candidate: ArtifactCandidate) -> ValidationResult:
        """Validate a newly selected file; every selection channel goes through here"""
        result = self.validator.validate(candidate)

        if isinstance(self.outcome, Failure):
            self.outcome = None

        if result.is_valid:
            self.artifact = result.artifact
            self.selection_error = None
            self.logger.info(f"Selected {candidate.name} ({candidate.size_bytes} bytes)")
        else:
            self.artifact = None
            self.selection_error = result.error_message

        return result

    def clear_artifact(self):
        self.artifact = None
        self.selection_error = None

    def set_description(self, text: str):
        self.description = ProblemDescription(text or "")

    # Derived view state

    @property
    def is_busy(self) -> bool:
        return self.state.is_busy

    @property
    def can_submit(self) -> bool:
        """Whether a submit() call would start an attempt"""
        return (
            self.artifact is not None
            and count_words(self.description.text) >= self.config.min_description_words
            and not self.is_busy
        )

    @property
    def guidance(self) -> Optional[str]:
        """Guidance from the last successful attempt, kept visible during a new one"""
        if isinstance(self.outcome, Success):
            return self.outcome.guidance
        return None

    @property
    def error_message(self) -> Optional[str]:
        """The single error message currently shown, if any"""
        if self.selection_error:
            return self.selection_error
        if isinstance(self.outcome, Failure):
            return self.outcome.message
        return None

    def add_listener(self, listener: StateListener):
        """Register a callback invoked with each new state"""
        self._listeners.append(listener)

    def _transition(self, new_state: SubmissionState):
        if new_state == self.state:
            return
        self.logger.debug(f"State {self.state.value} -> {new_state.value}")
        self.state = new_state
        for listener in self._listeners:
            try:
                listener(new_state)
            except Exception:
                # A broken listener must not stall the state machine
                self.logger.exception(f"State listener failed on {new_state.value}")

    # Submission

    async def submit(self) -> Optional[SubmissionOutcome]:
        """
        Run one submission attempt.

        Returns None without touching any state when the guard rejects the
        call (no artifact, description too short, or an attempt already in
        flight). Otherwise returns the attempt's outcome.
        """
        if not self.can_submit:
            self.logger.debug(f"Submit ignored in state {self.state.value}")
            return None

        # Snapshot so later edits do not affect the in-flight request
        artifact = self.artifact
        description = self.description
        if isinstance(self.outcome, Failure):
            self.outcome = None
        self._transition(SubmissionState.VALIDATING)

        outcome: Optional[SubmissionOutcome] = None
        try:
            outcome = await self._run_attempt(artifact, description)
        except SubmissionError as e:
            outcome = Failure(str(e), error=e)
        except Exception as e:
            self.logger.exception("Unexpected error during submission")
            outcome = Failure(f"An unknown error occurred during submission: {e}", error=e)
        finally:
            if outcome is None:
                outcome = Failure("Submission was cancelled")
            self._finish(outcome)

        return outcome

    async def _run_attempt(self, artifact: Artifact, description: ProblemDescription) -> SubmissionOutcome:
        self._transition(SubmissionState.COMPRESSING)
        content = await self._read_artifact(artifact)
        compressed = compress_artifact(artifact, content, level=self.config.compression_level)
        self.logger.info(
            f"Compressed {artifact.name}: {len(content)} -> {len(compressed.content)} bytes"
        )

        request = build_request(
            compressed,
            description.text,
            min_words=self.config.min_description_words,
        )

        self._transition(SubmissionState.SENDING)
        async with self.client_factory(self.config) as client:
            raw = await client.submit(
                request,
                on_response_started=lambda: self._transition(SubmissionState.AWAITING_RESPONSE),
            )

        return resolve(raw)

    async def _read_artifact(self, artifact: Artifact) -> bytes:
        try:
            return await artifact.read()
        except OSError as e:
            raise SubmissionError(f"Could not read {artifact.name}: {e}") from e

    def _finish(self, outcome: SubmissionOutcome):
        self.outcome = outcome
        if isinstance(outcome, Success):
            self.logger.info("Troubleshooting submission succeeded")
            self._transition(SubmissionState.SUCCEEDED)
        else:
            error_type = outcome.error.__class__.__name__ if outcome.error else "Failure"
            self.logger.warning(f"Troubleshooting submission failed ({error_type}): {outcome.message}")
            self._transition(SubmissionState.FAILED)
