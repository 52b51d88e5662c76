"""
Response Resolver for Troubleshooting Submissions

Turns a buffered HTTP response into exactly one outcome: the returned
guidance, or a single human-readable failure message.

Failure responses are not guaranteed to be well formed, so the message is
found by walking a fallback ladder:

1. JSON body with a non-empty string ``error`` field: that string.
2. Any other JSON body: its compact JSON serialisation.
3. Non-JSON body: the body decoded as text, if non-empty.
4. Otherwise: ``"Request failed: <status> <reason>"``.

The body is read once by :func:`buffer_response`; every ladder step works on
that buffer, so a failed JSON parse never costs the text fallback.
"""

import asyncio
import json
import logging
from http import HTTPStatus
from typing import Any, Optional

import aiohttp

from .exceptions import MalformedSuccessError, ServerError
from .models import Failure, RawResponse, Success, SubmissionOutcome

logger = logging.getLogger(__name__)

DEFAULT_GUIDANCE = "No guidance received."

_NOT_JSON = object()


async def buffer_response(response: aiohttp.ClientResponse) -> RawResponse:
    """Read the response body exactly once; a failed read is recorded, not raised"""
    body: Optional[bytes] = None
    read_error: Optional[str] = None
    try:
        body = await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        read_error = str(e) or e.__class__.__name__
        logger.warning(f"Could not read response body (status {response.status}): {read_error}")

    return RawResponse(
        status=response.status,
        reason=response.reason,
        body=body,
        read_error=read_error,
    )


def status_text(raw: RawResponse) -> str:
    """Reason phrase from the transport, or the standard phrase for the status"""
    if raw.reason:
        return raw.reason
    try:
        return HTTPStatus(raw.status).phrase
    except ValueError:
        return ""


def default_failure_message(raw: RawResponse) -> str:
    return f"Request failed: {raw.status} {status_text(raw)}".rstrip()


def _parse_json(body: Optional[bytes]) -> Any:
    if body is None:
        return _NOT_JSON
    try:
        return json.loads(body)
    except (ValueError, RecursionError):
        return _NOT_JSON


def _decode_text(body: Optional[bytes]) -> Optional[str]:
    if body is None:
        return None
    return body.decode("utf-8", errors="replace")


def _resolve_success(raw: RawResponse) -> SubmissionOutcome:
    data = _parse_json(raw.body)
    if data is _NOT_JSON:
        message = default_failure_message(raw)
        logger.error(f"Success status {raw.status} with a body that is not valid JSON")
        return Failure(message, error=MalformedSuccessError(message, status_code=raw.status))

    guidance = data.get("ai_guidance") if isinstance(data, dict) else None
    if not isinstance(guidance, str) or not guidance:
        guidance = DEFAULT_GUIDANCE
    return Success(guidance)


def _resolve_failure(raw: RawResponse) -> SubmissionOutcome:
    data = _parse_json(raw.body)

    if data is not _NOT_JSON:
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, str) and error:
            message = error
        else:
            message = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    else:
        message = _decode_text(raw.body)

    if not message:
        message = default_failure_message(raw)

    logger.warning(f"Troubleshooting request failed with status {raw.status}: {message}")
    return Failure(message, error=ServerError(message, status_code=raw.status))


def resolve(raw: RawResponse) -> SubmissionOutcome:
    """Resolve a buffered response to Success or Failure; never raises"""
    try:
        if raw.ok:
            return _resolve_success(raw)
        return _resolve_failure(raw)
    except Exception as e:
        logger.exception(f"Unexpected error resolving response with status {raw.status}")
        message = default_failure_message(raw)
        return Failure(message, error=e)
