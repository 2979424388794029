"""OAuth session management for the YouTube Data API."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx

from shortgen.errors import AuthError, ValidationError
from shortgen.polling import Clock

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"

SCOPES = (
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube.readonly",
)

# Treat tokens as expired slightly early so in-flight calls don't race expiry.
_EXPIRY_MARGIN_SECONDS = 60.0


@dataclass
class OAuthSession:
    """Access token plus its expiry on the authenticator's clock."""

    access_token: str
    expires_at: float
    scope: str = ""
    clock: Clock = field(default=time.monotonic, repr=False)

    @property
    def is_valid(self) -> bool:
        return bool(self.access_token) and self.clock() < self.expires_at - _EXPIRY_MARGIN_SECONDS


class OAuthAuthenticator:
    """Exchanges a stored refresh token for access tokens.

    One instance per account. The interactive consent flow that produces the
    refresh token happens elsewhere; this class only refreshes and revokes.

    Uploads hold an ``in_flight()`` slot for their whole duration; ``revoke()``
    waits for every slot to be released and blocks new ones while it runs.
    Read-only calls (status polling) do not take a slot.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        token_url: str = GOOGLE_TOKEN_URL,
        revoke_url: str = GOOGLE_REVOKE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self.token_url = token_url
        self.revoke_url = revoke_url
        self.timeout = timeout
        self._transport = transport
        self._clock = clock

        self._session: OAuthSession | None = None
        self._lock = asyncio.Lock()
        self._slots = asyncio.Condition()
        self._in_flight = 0
        self._revoking = False

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    def is_authenticated(self) -> bool:
        return self._session is not None and self._session.is_valid

    async def authenticate(self, force_reauth: bool = False) -> OAuthSession:
        """Return a valid session, refreshing the access token if needed.

        Raises:
            ValidationError: Client id/secret are not configured.
            AuthError: No refresh token, or the token endpoint refused it.
        """
        async with self._lock:
            if force_reauth:
                self._session = None
            if self._session is not None and self._session.is_valid:
                return self._session

            if not self._client_id or not self._client_secret:
                raise ValidationError("YouTube client id and secret are not configured")
            if not self._refresh_token:
                raise AuthError(
                    "No authorized YouTube account: a refresh token is required "
                    "(YOUTUBE_REFRESH_TOKEN)"
                )

            self._session = await self._refresh()
            logger.info("YouTube session refreshed")
            return self._session

    async def revoke(self) -> None:
        """Revoke the current token once no upload is in flight."""
        async with self._slots:
            self._revoking = True
            await self._slots.wait_for(lambda: self._in_flight == 0)
        try:
            async with self._lock:
                session, self._session = self._session, None
            if session is not None:
                await self._revoke_token(session.access_token)
        finally:
            async with self._slots:
                self._revoking = False
                self._slots.notify_all()

    async def switch_account(self) -> OAuthSession:
        """Revoke, then force a fresh session."""
        await self.revoke()
        return await self.authenticate(force_reauth=True)

    @asynccontextmanager
    async def in_flight(self) -> AsyncIterator[None]:
        """Hold an upload slot; revocation waits until it is released."""
        async with self._slots:
            await self._slots.wait_for(lambda: not self._revoking)
            self._in_flight += 1
        try:
            yield
        finally:
            async with self._slots:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._slots.notify_all()

    async def _refresh(self) -> OAuthSession:
        data = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "refresh_token": self._refresh_token,
            "grant_type": "refresh_token",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(self.token_url, data=data)
            except httpx.RequestError as e:
                raise AuthError(f"Failed to reach token endpoint: {e}") from e

        if response.status_code != 200:
            raise AuthError(f"YouTube authentication failed: {response.status_code} - {response.text}")

        payload = response.json()
        access_token = payload.get("access_token")
        if not access_token:
            raise AuthError("Token endpoint did not return an access token")

        return OAuthSession(
            access_token=access_token,
            expires_at=self._clock() + float(payload.get("expires_in", 3600)),
            scope=payload.get("scope", ""),
            clock=self._clock,
        )

    async def _revoke_token(self, token: str) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(self.revoke_url, data={"token": token})
            except httpx.RequestError as e:
                logger.warning("Token revocation failed: %s", e)
                return
        if response.status_code != 200:
            logger.warning("Token revocation returned %s: %s", response.status_code, response.text)
        else:
            logger.info("YouTube authorization revoked")
