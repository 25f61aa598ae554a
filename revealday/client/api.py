import logging

import httpx

from ..errors import AppError, from_envelope

logger = logging.getLogger(__name__)


class ApiUnavailable(AppError):
    code = "NETWORK_ERROR"
    status_code = 503
    default_message = "Could not reach the server"


class BadResponse(AppError):
    code = "BAD_RESPONSE"
    status_code = 502
    default_message = "Unexpected response from the server"


class RevealApiClient:
    """HTTP client for the verify, vote-status and vote endpoints."""

    def __init__(self, base_url: str = "", *, timeout: float = 10.0, client: httpx.Client | None = None):
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ApiUnavailable(str(e) or None) from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.is_error:
            raise from_envelope(response.status_code, body)
        return body

    def verify_token(self, token: str) -> dict:
        body = self._request("POST", "/tokens:verify", json={"token": token})
        payload = body.get("payload") if isinstance(body, dict) else None
        if not isinstance(payload, dict):
            raise BadResponse("Token verification returned no payload")
        return payload

    def get_vote_status(self, reveal_id: str) -> dict:
        return self._request("GET", "/votes", params={"revealId": reveal_id})

    def submit_vote(self, reveal_id: str, side: str, device_id: str) -> dict:
        return self._request(
            "POST", "/votes", json={"revealId": reveal_id, "vote": side, "deviceId": device_id}
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
