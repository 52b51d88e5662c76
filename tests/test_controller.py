"""
Tests for the Submission Controller

Drives the state machine against a fake transport that records every
request it is given.
"""

import asyncio
import json
import os
import tempfile
import pytest

from printdiag.submission.compressor import decompress
from printdiag.submission.controller import SubmissionController
from printdiag.submission.exceptions import TransportConnectionError
from printdiag.submission.models import (
    ArtifactCandidate,
    Failure,
    RawResponse,
    SubmissionConfig,
    SubmissionState,
    Success,
    ValidationReason,
)

MIB = 1024 * 1024


def json_response(status, payload, reason="OK"):
    return RawResponse(status=status, reason=reason, body=json.dumps(payload).encode())


class FakeClient:
    """Stands in for TroubleshootingAPIClient; shares state through its factory"""

    def __init__(self, factory):
        self.factory = factory

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def submit(self, request, on_response_started=None):
        self.factory.requests.append(request)
        self.factory.started.set()
        if self.factory.gate is not None:
            await self.factory.gate.wait()
        outcome = self.factory.responses.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if on_response_started is not None:
            on_response_started()
        return outcome


class FakeClientFactory:
    def __init__(self, *responses, gated=False):
        self.responses = list(responses)
        self.requests = []
        self.configs = []
        self.started = asyncio.Event()
        self.gate = asyncio.Event() if gated else None

    def __call__(self, config):
        self.configs.append(config)
        return FakeClient(self)


def make_controller(factory, **config_kwargs):
    config = SubmissionConfig(api_url="http://svc", **config_kwargs)
    return SubmissionController(config, client_factory=factory)


def gcode_candidate(name="part.gcode", data=b"G28\nG1 X10 Y10 E0.5\n"):
    return ArtifactCandidate.from_bytes(name, data)


class TestSelection:
    """Artifact selection and description handling"""

    def test_accepts_valid_artifact(self):
        controller = make_controller(FakeClientFactory())
        result = controller.select_artifact(gcode_candidate())

        assert result.is_valid is True
        assert controller.artifact.name == "part.gcode"
        assert controller.error_message is None
        assert controller.state == SubmissionState.IDLE

    def test_rejection_clears_previous_artifact(self):
        controller = make_controller(FakeClientFactory())
        controller.select_artifact(gcode_candidate())
        result = controller.select_artifact(gcode_candidate(name="model.txt"))

        assert result.reason == ValidationReason.INVALID_EXTENSION
        assert controller.artifact is None
        assert controller.error_message == "Please select a valid .gcode file"
        assert controller.state == SubmissionState.IDLE

    def test_too_large_rejected(self):
        controller = make_controller(FakeClientFactory())
        result = controller.select_artifact(ArtifactCandidate(name="big.gcode", size_bytes=21 * MIB))

        assert result.reason == ValidationReason.TOO_LARGE
        assert controller.artifact is None

    def test_new_valid_selection_clears_error(self):
        controller = make_controller(FakeClientFactory())
        controller.select_artifact(gcode_candidate(name="model.txt"))
        controller.select_artifact(gcode_candidate())
        assert controller.error_message is None

    def test_clear_artifact_clears_rejection(self):
        controller = make_controller(FakeClientFactory())
        controller.select_artifact(gcode_candidate(name="model.txt"))
        controller.clear_artifact()

        assert controller.artifact is None
        assert controller.error_message is None

    @pytest.mark.parametrize("text,allowed", [
        ("", False),
        ("warping", False),
        ("bad adhesion", False),
        ("   bad    adhesion   ", False),
        ("bad bed adhesion", True),
        ("\nfirst layer\tis lifting off\n", True),
    ])
    def test_can_submit_tracks_word_count(self, text, allowed):
        controller = make_controller(FakeClientFactory())
        controller.select_artifact(gcode_candidate())
        controller.set_description(text)
        assert controller.can_submit is allowed

    def test_cannot_submit_without_artifact(self):
        controller = make_controller(FakeClientFactory())
        controller.set_description("first layer is lifting off")
        assert controller.can_submit is False


class TestSubmission:
    """Submission lifecycle"""

    @pytest.mark.asyncio
    async def test_end_to_end_success(self):
        factory = FakeClientFactory(json_response(200, {"ai_guidance": "Increase bed temperature."}))
        controller = make_controller(factory)
        states = []
        controller.add_listener(states.append)

        data = b"G1 X1 Y1\n" * (5 * MIB // 9)
        controller.select_artifact(ArtifactCandidate.from_bytes("part.gcode", data))
        controller.set_description("first layer is lifting off")

        outcome = await controller.submit()

        assert outcome == Success("Increase bed temperature.")
        assert controller.state == SubmissionState.SUCCEEDED
        assert controller.guidance == "Increase bed temperature."
        assert controller.error_message is None
        assert states == [
            SubmissionState.VALIDATING,
            SubmissionState.COMPRESSING,
            SubmissionState.SENDING,
            SubmissionState.AWAITING_RESPONSE,
            SubmissionState.SUCCEEDED,
        ]

        request = factory.requests[0]
        assert request.file_name == "part.gcode.gz"
        assert decompress(request.file_bytes) == data
        assert request.description == "first layer is lifting off"

    @pytest.mark.asyncio
    async def test_reads_path_backed_artifact(self):
        factory = FakeClientFactory(json_response(200, {"ai_guidance": "Dry your filament."}))
        controller = make_controller(factory)

        with tempfile.NamedTemporaryFile(suffix='.gcode', delete=False) as f:
            f.write(b"M104 S215\nG28\n")

        try:
            controller.select_artifact(ArtifactCandidate.from_path(f.name))
            controller.set_description("lots of stringing everywhere")
            outcome = await controller.submit()
        finally:
            os.unlink(f.name)

        assert outcome == Success("Dry your filament.")
        assert decompress(factory.requests[0].file_bytes) == b"M104 S215\nG28\n"
        assert factory.requests[0].file_name == os.path.basename(f.name) + ".gz"

    @pytest.mark.asyncio
    async def test_invalid_extension_never_sends(self):
        factory = FakeClientFactory()
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate(name="model.txt"))
        controller.set_description("first layer is lifting off")

        assert await controller.submit() is None
        assert factory.requests == []
        assert factory.configs == []
        assert controller.state == SubmissionState.IDLE

    @pytest.mark.asyncio
    async def test_short_description_is_noop(self):
        factory = FakeClientFactory()
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("too short")

        assert await controller.submit() is None
        assert factory.requests == []
        assert controller.state == SubmissionState.IDLE

    @pytest.mark.asyncio
    async def test_server_error_message(self):
        factory = FakeClientFactory(
            json_response(500, {"error": "AI service unavailable"}, reason="Internal Server Error")
        )
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        outcome = await controller.submit()

        assert outcome == Failure("AI service unavailable")
        assert controller.state == SubmissionState.FAILED
        assert controller.error_message == "AI service unavailable"
        assert controller.is_busy is False

    @pytest.mark.asyncio
    async def test_transport_error_mapped_to_failure(self):
        factory = FakeClientFactory(TransportConnectionError("Connection failed for troubleshooting service"))
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        outcome = await controller.submit()

        assert isinstance(outcome, Failure)
        assert "Connection failed" in outcome.message
        assert isinstance(outcome.error, TransportConnectionError)
        assert controller.state == SubmissionState.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_exception_mapped_to_failure(self):
        factory = FakeClientFactory(RuntimeError("socket exploded"))
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        outcome = await controller.submit()

        assert isinstance(outcome, Failure)
        assert "socket exploded" in outcome.message
        assert controller.state == SubmissionState.FAILED
        assert controller.can_submit is True

    @pytest.mark.asyncio
    async def test_unreadable_file_mapped_to_failure(self):
        factory = FakeClientFactory()
        controller = make_controller(factory)

        with tempfile.NamedTemporaryFile(suffix='.gcode', delete=False) as f:
            f.write(b"G28\n")
        controller.select_artifact(ArtifactCandidate.from_path(f.name))
        os.unlink(f.name)
        controller.set_description("first layer is lifting off")

        outcome = await controller.submit()

        assert isinstance(outcome, Failure)
        assert "Could not read" in outcome.message
        assert factory.requests == []
        assert controller.state == SubmissionState.FAILED

    @pytest.mark.asyncio
    async def test_second_submit_while_busy_is_noop(self):
        factory = FakeClientFactory(json_response(200, {"ai_guidance": "Slow down."}), gated=True)
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        first = asyncio.create_task(controller.submit())
        await factory.started.wait()

        assert controller.is_busy is True
        assert controller.can_submit is False
        assert await controller.submit() is None

        factory.gate.set()
        outcome = await first

        assert outcome == Success("Slow down.")
        assert len(factory.requests) == 1

    @pytest.mark.asyncio
    async def test_concurrent_submits_only_one_passes_guard(self):
        factory = FakeClientFactory(json_response(200, {"ai_guidance": "ok"}), gated=True)
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        tasks = [asyncio.create_task(controller.submit()) for _ in range(2)]
        await factory.started.wait()
        factory.gate.set()
        results = await asyncio.gather(*tasks)

        assert results.count(None) == 1
        assert len(factory.requests) == 1

    @pytest.mark.asyncio
    async def test_description_edits_do_not_affect_in_flight_request(self):
        factory = FakeClientFactory(json_response(200, {"ai_guidance": "ok"}), gated=True)
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        task = asyncio.create_task(controller.submit())
        await factory.started.wait()
        controller.set_description("something else entirely now")
        factory.gate.set()
        await task

        assert factory.requests[0].description == "first layer is lifting off"

    @pytest.mark.asyncio
    async def test_stale_success_visible_during_next_attempt(self):
        factory = FakeClientFactory(
            json_response(200, {"ai_guidance": "Old advice."}),
            json_response(200, {"ai_guidance": "New advice."}),
        )
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")
        await controller.submit()

        seen = []
        controller.add_listener(lambda state: seen.append((state, controller.guidance)))
        await controller.submit()

        assert seen[0] == (SubmissionState.VALIDATING, "Old advice.")
        assert seen[-1] == (SubmissionState.SUCCEEDED, "New advice.")

    @pytest.mark.asyncio
    async def test_prior_failure_cleared_when_attempt_starts(self):
        factory = FakeClientFactory(
            RawResponse(status=500, reason="Internal Server Error", body=b""),
            json_response(200, {"ai_guidance": "Recalibrate e-steps."}),
        )
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        await controller.submit()
        assert controller.error_message == "Request failed: 500 Internal Server Error"

        seen = []
        controller.add_listener(lambda state: seen.append(controller.error_message))
        outcome = await controller.submit()

        assert seen[0] is None
        assert outcome == Success("Recalibrate e-steps.")
        assert controller.error_message is None

    @pytest.mark.asyncio
    async def test_cancellation_leaves_failed_state(self):
        factory = FakeClientFactory(json_response(200, {}), gated=True)
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("first layer is lifting off")

        task = asyncio.create_task(controller.submit())
        await factory.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert controller.state == SubmissionState.FAILED
        assert controller.error_message == "Submission was cancelled"
        assert controller.is_busy is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failing_state", [
        SubmissionState.VALIDATING,
        SubmissionState.SENDING,
        SubmissionState.SUCCEEDED,
    ])
    async def test_raising_listener_does_not_stall_state_machine(self, failing_state):
        factory = FakeClientFactory(
            json_response(200, {"ai_guidance": "Dry the filament."}),
            json_response(200, {"ai_guidance": "Dry the filament."}),
        )
        controller = make_controller(factory)
        controller.select_artifact(gcode_candidate())
        controller.set_description("stringing between every island")
        seen = []

        def listener(state):
            seen.append(state)
            if state == failing_state:
                raise RuntimeError("render failed")

        controller.add_listener(listener)
        outcome = await controller.submit()

        assert outcome == Success("Dry the filament.")
        assert controller.state == SubmissionState.SUCCEEDED
        assert seen[-1] == SubmissionState.SUCCEEDED
        assert controller.can_submit is True

        assert await controller.submit() == Success("Dry the filament.")
        assert len(factory.requests) == 2
