"""Shared request handling for the portal API modules."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import aiohttp
from loguru import logger

from ...core.exceptions import CollaboratorError, RateLimitError


def flatten_errors(errors: Dict[str, List[str]]) -> str:
    """Join per-field error messages into one newline-separated message."""
    messages: List[str] = []
    for field_messages in errors.values():
        if isinstance(field_messages, str):
            messages.append(field_messages)
        else:
            messages.extend(str(m) for m in field_messages)
    return "\n".join(messages)


class PortalEndpoint:
    """Base class for the portal API modules sharing one HTTP session."""

    def __init__(
        self,
        http_session_getter: Callable[[], aiohttp.ClientSession],
        base_url_getter: Callable[[], str],
    ):
        """
        Initialize portal API module.

        Args:
            http_session_getter: Callable that returns the HTTP session
            base_url_getter: Callable that returns the API base URL
        """
        self._http_session_getter = http_session_getter
        self._base_url_getter = base_url_getter

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session from parent client."""
        return self._http_session_getter()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        default_error: str = "Request failed. Please try again.",
    ) -> Dict[str, Any]:
        """
        Send a request and unwrap the `{success, message, data}` envelope.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            endpoint: Short endpoint name used in log messages
            params: Query parameters
            json: JSON body
            default_error: Message used when the failure envelope carries none

        Returns:
            The full decoded response envelope

        Raises:
            RateLimitError: On HTTP 429
            CollaboratorError: On transport failure, non-JSON body, non-2xx status
                or a `success: false` envelope
        """
        url = f"{self._base_url_getter()}{path}"
        try:
            async with self._session.request(method, url, params=params, json=json) as response:
                if response.status == 429:
                    retry_after = int(response.headers.get("Retry-After", 60))
                    logger.error(f"Rate limited on {endpoint} (429), retry after {retry_after}s")
                    raise RateLimitError(
                        f"Too many requests on {endpoint}", retry_after=retry_after
                    )

                # Read the body once; maintenance pages come back as HTML
                try:
                    body = await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    error_text = await response.text()
                    logger.error(
                        f"Unexpected non-JSON response from {endpoint} "
                        f"(status={response.status}): {error_text[:200]}..."
                    )
                    raise CollaboratorError(
                        f"Unexpected response from server ({response.status})",
                        status=response.status,
                    )
        except aiohttp.ClientError as e:
            logger.error(f"Network error on {endpoint}: {e}")
            raise CollaboratorError("Network error. Please try again.") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Request to {endpoint} timed out")
            raise CollaboratorError("The server took too long to respond.") from e

        if not isinstance(body, dict):
            raise CollaboratorError(
                f"Unexpected response from server ({response.status})", status=response.status
            )

        if response.status >= 400 or body.get("success") is False:
            errors = body.get("errors") or {}
            message = flatten_errors(errors) if errors else (body.get("message") or default_error)
            logger.warning(f"{endpoint} failed (status={response.status}): {message}")
            raise CollaboratorError(message, status=response.status, errors=errors)

        return body

    @staticmethod
    def _data(body: Dict[str, Any]) -> Dict[str, Any]:
        """Return the `data` member of an envelope, tolerating its absence."""
        data = body.get("data")
        return data if isinstance(data, dict) else {}
