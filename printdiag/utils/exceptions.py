"""
Exception handling for calls to the troubleshooting service.

Each transport exception carries:
- Clear error message
- Endpoint context
- Suggested user action
- Original exception preserved for debugging
"""

from typing import Optional


class SubmissionError(Exception):
    """Base exception for every PrintDiag submission failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(SubmissionError):
    """
    Network failure before any response was received.

    The string form joins the message with the endpoint, a suggested action
    and the original exception so a single line describes the condition.
    """

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        original_exception: Optional[BaseException] = None,
        suggested_action: Optional[str] = None,
    ):
        self.endpoint = endpoint
        self.original_exception = original_exception
        self.suggested_action = suggested_action

        error_parts = [message]
        if endpoint:
            error_parts.append(f"Endpoint: {endpoint}")
        if suggested_action:
            error_parts.append(f"Action: {suggested_action}")
        if original_exception is not None and str(original_exception):
            error_parts.append(f"Original error: {original_exception}")

        super().__init__(" | ".join(error_parts))
        self.message = message


class TransportTimeoutError(TransportError):
    """The request did not complete within the configured timeout."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        timeout_duration: Optional[float] = None,
        original_exception: Optional[BaseException] = None,
    ):
        self.timeout_duration = timeout_duration

        suggested_action = "Check network connectivity and retry"
        if timeout_duration:
            suggested_action += f" (timeout after {timeout_duration:g}s)"

        super().__init__(
            message=message,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action=suggested_action,
        )


class TransportConnectionError(TransportError):
    """The troubleshooting service could not be reached."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        original_exception: Optional[BaseException] = None,
    ):
        super().__init__(
            message=message,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action="Check network connectivity and verify the service is accessible",
        )


