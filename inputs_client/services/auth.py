"""
Authentication Service
Supplies authorization headers to request functions and refreshes expired
access tokens.
"""
import asyncio
import time
from typing import Awaitable, Callable, Dict, Optional, TypeVar

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from inputs_client.config import Settings, get_settings
from inputs_client.constants import TOKEN_PATH
from inputs_client.errors import ConfigurationError, RemoteRejection
from inputs_client.services.transport import HttpTransport

logger = structlog.get_logger()

T = TypeVar("T")

# Seconds before the announced expiry at which a token is renewed
TOKEN_EXPIRY_MARGIN = 30


class AuthExecutor:
    """
    Runs request functions with valid authorization headers.

    An API key is sent as ``Key <api_key>`` and never refreshed. Client
    credentials are exchanged for a bearer token which is renewed when it
    expires or when the service answers 401.
    """

    def __init__(self, transport: HttpTransport, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.transport = transport
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    @property
    def uses_token(self) -> bool:
        return not self.settings.api_key

    def _token_valid(self) -> bool:
        return self._token is not None and time.monotonic() < self._expires_at

    async def refresh(self, force: bool = False, rejected: Optional[str] = None) -> str:
        """
        Fetch a new access token unless a valid one is held.

        Args:
            force: Renew even if the held token has not expired
            rejected: Token the service just refused; a forced renewal is
                skipped when another caller already replaced it
        """
        async with self._lock:
            if self._token_valid() and (not force or (rejected is not None and self._token != rejected)):
                return self._token

            if not (self.settings.client_id and self.settings.client_secret):
                raise ConfigurationError(
                    "Set INPUTS_API_KEY or INPUTS_CLIENT_ID and INPUTS_CLIENT_SECRET"
                )

            logger.info("Requesting access token")
            body = await self.transport.request(
                "POST",
                TOKEN_PATH,
                data={"grant_type": "client_credentials"},
                auth=httpx.BasicAuth(self.settings.client_id, self.settings.client_secret),
            )
            self._token = body["access_token"]
            expires_in = float(body.get("expires_in", 0))
            self._expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
            logger.info("Access token refreshed", expires_in=expires_in)
            return self._token

    async def headers(self) -> Dict[str, str]:
        if self.settings.api_key:
            return {"Authorization": f"Key {self.settings.api_key}"}
        token = await self.refresh()
        return {"Authorization": f"Bearer {token}"}

    def _should_retry(self, error: BaseException) -> bool:
        return isinstance(error, RemoteRejection) and error.is_auth_failure and self.uses_token

    async def __call__(self, fn: Callable[[Dict[str, str]], Awaitable[T]]) -> T:
        """Call fn with auth headers; on a 401 renew the token and call it once more."""
        used: Optional[str] = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(2),
            retry=retry_if_exception(self._should_retry),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    await self.refresh(force=True, rejected=used)
                headers = await self.headers()
                used = self._token
                return await fn(headers)
