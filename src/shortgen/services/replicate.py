"""HTTP client for the Replicate predictions API."""

import logging
from typing import Any

import httpx

from shortgen.errors import RemoteFailure, ValidationError
from shortgen.models.generation import AccountInfo, GenerationRequest, PredictionState

logger = logging.getLogger(__name__)

_ACCOUNT_ENDPOINTS = ("/account", "/user", "/billing/balance")


class ReplicateClient:
    """Thin async client for creating and inspecting predictions."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.replicate.com/v1",
        model: str = "bytedance/seedance-1-pro",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Replicate API token.
            base_url: API base URL.
            model: "owner/name" of the video model.
            timeout: HTTP request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )

    async def create_prediction(self, request: GenerationRequest) -> PredictionState:
        """Start a prediction on the configured model.

        Raises:
            ValidationError: No API key is configured (nothing is sent).
            RemoteFailure: If the API rejects the request or is unreachable.
        """
        if not self._api_key:
            raise ValidationError("Replicate API key is not configured (REPLICATE_API_KEY)")

        url = f"{self.base_url}/models/{self.model}/predictions"
        body = {"input": request.to_input()}
        logger.debug("POST %s %s", url, body)

        async with self._client() as client:
            try:
                response = await client.post(url, json=body)
            except httpx.RequestError as e:
                raise RemoteFailure(f"Failed to reach Replicate: {e}") from e

        if response.status_code >= 400:
            raise RemoteFailure(
                f"Prediction request failed: {response.status_code} - {response.text}",
                details=response.text,
            )

        data = response.json()
        if not data.get("id"):
            raise RemoteFailure("Replicate did not return a prediction id", details=data)
        return _parse_state(data)

    async def get_prediction(self, prediction_id: str) -> PredictionState:
        """Fetch the current state of a prediction.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses.
                Callers polling in a loop treat these as transient.
        """
        async with self._client() as client:
            response = await client.get(f"{self.base_url}/predictions/{prediction_id}")
            response.raise_for_status()
            return _parse_state(response.json())

    async def get_account(self) -> AccountInfo:
        """Return account info, trying each known endpoint in turn.

        Raises:
            RemoteFailure: If no endpoint answers successfully.
        """
        async with self._client() as client:
            for path in _ACCOUNT_ENDPOINTS:
                try:
                    response = await client.get(f"{self.base_url}{path}")
                except httpx.RequestError as e:
                    logger.debug("Account endpoint %s failed: %s", path, e)
                    continue
                if response.is_success:
                    return AccountInfo.model_validate(response.json())
                logger.debug("Account endpoint %s returned %s", path, response.status_code)

        raise RemoteFailure("All account endpoints failed")

    async def get_credit_balance(self) -> float | None:
        """Credit balance, or None if it cannot be determined."""
        try:
            info = await self.get_account()
        except RemoteFailure as e:
            logger.warning("Could not fetch credit balance: %s", e)
            return None
        return info.credit_balance


def _parse_state(data: dict[str, Any]) -> PredictionState:
    logs = data.get("logs")
    return PredictionState(
        id=data.get("id", ""),
        status=data.get("status") or "unknown",
        output=data.get("output"),
        error=data.get("error") or None,
        logs=logs if isinstance(logs, str) else None,
    )
