"""
HTTP Transport
Executes requests against the recognition API with httpx and classifies
the responses.
"""
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from inputs_client.config import Settings, get_settings
from inputs_client.errors import RemoteRejection, TransportFailure

logger = structlog.get_logger()


def is_success(response: httpx.Response) -> bool:
    """Any 2xx status is a success."""
    return 200 <= response.status_code < 300


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


def _is_connect_failure(error: BaseException) -> bool:
    # Only failures where the request never reached the service are resent
    return isinstance(error, TransportFailure) and error.connect_phase


class HttpTransport:
    """Thin async HTTP layer over a shared httpx.AsyncClient."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.api_endpoint,
            timeout=self.settings.request_timeout,
        )

    async def request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Any:
        """
        Send one request and return the decoded response body.

        Args:
            method: HTTP verb
            path: Path relative to the API endpoint
            headers: Extra headers (usually authorization)
            json: JSON body
            params: Query parameters; None values are dropped
            **kwargs: Passed to httpx (form ``data``, ``auth``)

        Returns:
            Decoded JSON object; {} for an empty body

        Raises:
            RemoteRejection: The service answered with a non-2xx status, or
                with a 2xx body that is not a JSON object
            TransportFailure: The request did not complete
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.transport_retries),
            wait=wait_exponential(
                multiplier=1,
                min=self.settings.retry_wait_min,
                max=self.settings.retry_wait_max,
            ),
            retry=retry_if_exception(_is_connect_failure),
            reraise=True,
        ):
            with attempt:
                return await self._send(method, path, headers, json, params, **kwargs)

    async def _send(self, method, path, headers, json, params, **kwargs) -> Any:
        logger.debug("Sending request", method=method, path=path)
        try:
            response = await self._client.request(
                method, path, headers=headers, json=json, params=params or None, **kwargs
            )
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("Connection failed", method=method, path=path, error=str(e))
            raise TransportFailure(f"Could not connect for {method} {path}: {e}", connect_phase=True) from e
        except httpx.TransportError as e:
            raise TransportFailure(f"{method} {path} did not complete: {e}") from e

        body = _parse_body(response)
        logger.debug("Response received", method=method, path=path, status=response.status_code)

        if not is_success(response):
            raise RemoteRejection(response.status_code, body, response)
        if not isinstance(body, dict):
            # Callers read fields off the body, so it must be a JSON object
            logger.warning("Unexpected response body", method=method, path=path, status=response.status_code)
            raise RemoteRejection(response.status_code, body, response)
        return body

    async def aclose(self) -> None:
        await self._client.aclose()
