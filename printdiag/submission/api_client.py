"""
Troubleshooting API Client

Posts a SubmissionRequest to the troubleshooting endpoint as
multipart/form-data and hands back the response with its body buffered.
HTTP error statuses are returned, not raised; only failures that happen
before a response arrives surface as TransportError.
"""

import logging
from typing import Callable, Optional

import aiohttp
import backoff

from printdiag.utils.api_error_handler import handle_transport_errors

from .exceptions import TransportError
from .models import RawResponse, SubmissionConfig, SubmissionRequest
from .response_resolver import buffer_response


class TroubleshootingAPIClient:
    """Handles the single POST to the troubleshooting service"""

    def __init__(self, config: SubmissionConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.stats = {"requests": 0, "errors": 0}
        self.session = session
        self._owns_session = session is None

        # Only failures before any response are retried; max_tries=1 means a single attempt
        self._send_with_retry = backoff.on_exception(
            backoff.expo,
            TransportError,
            max_tries=max(1, config.max_retries),
            base=1,
            max_value=60,
            logger=self.logger,
        )(self._send_once)

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=self._timeout())
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.request_timeout)

    async def submit(
        self,
        request: SubmissionRequest,
        on_response_started: Optional[Callable[[], None]] = None,
    ) -> RawResponse:
        """POST {api_url}{endpoint}

        Args:
            request: The two-part submission request
            on_response_started: Called once the status line has arrived and
                the body is about to be read

        Raises:
            TransportError: connectivity failure or timeout before a response
        """
        return await self._send_with_retry(request, on_response_started)

    @handle_transport_errors(service="troubleshooting service")
    async def _send_once(
        self,
        request: SubmissionRequest,
        on_response_started: Optional[Callable[[], None]] = None,
    ) -> RawResponse:
        if self.session is None:
            raise TransportError(
                "Client session is not open; use 'async with TroubleshootingAPIClient(...)'",
                endpoint=self.config.submit_url,
            )

        self.stats["requests"] += 1
        url = self.config.submit_url
        self.logger.debug(
            f"POST {url} file={request.file_name} ({len(request.file_bytes)} bytes)"
        )

        # FormData can only be serialised once, so it is rebuilt per attempt
        async with self.session.post(url, data=request.to_form_data(), timeout=self._timeout()) as response:
            if on_response_started is not None:
                on_response_started()
            raw = await buffer_response(response)

        self.logger.info(f"Troubleshooting service responded with {raw.status}")
        return raw
