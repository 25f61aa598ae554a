"""RevealApiClient response handling, against canned transports."""
import httpx
import pytest

from revealday.client.api import ApiUnavailable, BadResponse, RevealApiClient
from revealday.client.device import DeviceStore
from revealday.client.session import CountdownSession, ErrorKind, PageState
from revealday.errors import RateLimitError


def _client(handler):
    return RevealApiClient(client=httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver"))


class TestVerifyToken:
    def test_success_without_payload_is_bad_response(self):
        api = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        with pytest.raises(BadResponse):
            api.verify_token("anything")

    def test_session_shows_generic_error_on_bad_response(self, timers):
        api = _client(lambda request: httpx.Response(200, json={"ok": True}))
        session = CountdownSession("anything", api, DeviceStore(), timer_factory=timers)
        assert session.open() == PageState.ERROR
        assert session.error_kind == ErrorKind.GENERIC
        assert timers.timers == []


class TestErrors:
    def test_envelope_maps_to_taxonomy(self):
        body = {"success": False, "error": {"code": "RATE_LIMITED", "message": "slow down", "details": {"retryAfter": 60}}}
        api = _client(lambda request: httpx.Response(429, json=body))
        with pytest.raises(RateLimitError) as exc:
            api.submit_vote("abcd1234", "prince", "d1")
        assert exc.value.retry_after == 60

    def test_transport_failure_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ApiUnavailable):
            _client(handler).get_vote_status("abcd1234")
