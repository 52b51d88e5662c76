"""
Reusable decorator for handling transport exceptions.

Wraps coroutine methods that talk to the troubleshooting service and maps
every aiohttp/asyncio failure raised before a response arrives onto the
TransportError hierarchy, so callers only ever deal with one exception
family.
"""

import asyncio
import functools
import logging
from typing import Callable, Optional

import aiohttp

from printdiag.utils.exceptions import (
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
)


def handle_transport_errors(service: str = "troubleshooting service", log_stats: bool = True):
    """
    Decorator that converts transport exceptions into TransportError.

    Usage:
        @handle_transport_errors(service="troubleshooting service")
        async def send(self, request):
            async with self.session.post(url, data=form) as response:
                ...

    The wrapped method's instance may provide ``logger``, ``stats`` (a dict
    with an ``errors`` counter) and ``config`` (for the endpoint URL and the
    timeout used in messages).

    Args:
        service: Name of the remote service used in error messages
        log_stats: Whether to increment self.stats["errors"] on failure

    Returns:
        Decorated coroutine function that raises only TransportError subclasses
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            logger = getattr(self, "logger", logging.getLogger(func.__name__))
            config = getattr(self, "config", None)
            endpoint = getattr(config, "submit_url", None)
            stats = getattr(self, "stats", None) if log_stats else None

            try:
                return await func(self, *args, **kwargs)

            except TransportError as e:
                _handle_error(e, logger, "warning", stats)

            except asyncio.TimeoutError as e:
                error = TransportTimeoutError(
                    message=f"Timeout while calling {service}",
                    endpoint=endpoint,
                    timeout_duration=getattr(config, "request_timeout", None),
                    original_exception=e,
                )
                _handle_error(error, logger, "warning", stats)

            except aiohttp.ClientConnectionError as e:
                error = TransportConnectionError(
                    message=f"Connection failed for {service}",
                    endpoint=endpoint,
                    original_exception=e,
                )
                _handle_error(error, logger, "warning", stats)

            except aiohttp.ClientError as e:
                error = TransportError(
                    message=f"Request failed for {service}",
                    endpoint=endpoint,
                    original_exception=e,
                    suggested_action="Check network connectivity and retry",
                )
                _handle_error(error, logger, "error", stats)

        return wrapper

    return decorator


def _handle_error(
    error: TransportError,
    logger: logging.Logger,
    log_level: str,
    stats: Optional[dict],
):
    """
    Log the error, update stats and raise it.

    Args:
        error: The normalised transport error
        logger: Logger instance for logging
        log_level: Logging level (warning/error)
        stats: Stats dictionary to update (if provided)

    Raises:
        The given error, chained to its original exception
    """
    if log_level == "warning":
        logger.warning(str(error))
    else:
        logger.error(str(error))

    if stats is not None and "errors" in stats:
        stats["errors"] += 1

    raise error from error.original_exception


__all__ = ["handle_transport_errors"]
