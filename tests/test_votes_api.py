"""GET/POST /votes through the Flask app."""
import time

import fakeredis

from revealday import create_app

from tests.conftest import FakeStoreConfig, create_reservation


def _vote(client, reveal_id, side="prince", device="d1", ip="10.1.1.1"):
    return client.post(
        "/votes",
        json={"revealId": reveal_id, "vote": side, "deviceId": device},
        headers={"X-Forwarded-For": ip},
    )


class TestVoteStatus:
    def test_fresh_reservation_has_no_votes(self, client):
        reveal_id = create_reservation(client)["revealId"]
        before = int(time.time() * 1000)
        resp = client.get(f"/votes?revealId={reveal_id}")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["prince"] == 0
        assert body["princess"] == 0
        assert body["total"] == 0
        assert body["isRevealed"] is False
        assert body["serverTime"] >= before

    def test_reflects_votes_and_reveal_flag(self, client, services):
        reveal_id = create_reservation(client)["revealId"]
        _vote(client, reveal_id, "prince", "d1")
        _vote(client, reveal_id, "princess", "d2")
        _vote(client, reveal_id, "princess", "d3")
        services.ledger.mark_revealed(reveal_id)

        body = client.get(f"/votes?revealId={reveal_id}").get_json()
        assert (body["prince"], body["princess"], body["total"]) == (1, 2, 3)
        assert body["isRevealed"] is True

    def test_missing_reveal_id_is_validation_error(self, client):
        resp = client.get("/votes")
        assert resp.status_code == 400

    def test_unknown_reveal_is_404(self, client):
        resp = client.get("/votes?revealId=nope1234")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "NOT_FOUND"


class TestSubmitVote:
    def test_vote_then_duplicate(self, client):
        reveal_id = create_reservation(client)["revealId"]

        first = _vote(client, reveal_id, "prince", "d1")
        assert first.status_code == 201
        assert first.get_json() == {"prince": 1, "princess": 0}

        again = _vote(client, reveal_id, "princess", "d1")
        assert again.status_code == 409
        error = again.get_json()["error"]
        assert error["code"] == "ALREADY_VOTED"
        assert error["details"] == {"previousVote": "prince"}

    def test_unknown_side_rejected(self, client):
        reveal_id = create_reservation(client)["revealId"]
        resp = _vote(client, reveal_id, "dragon", "d1")
        assert resp.status_code == 400
        assert "vote" in resp.get_json()["error"]["details"]

    def test_unknown_reveal_is_404(self, client):
        assert _vote(client, "nope1234").status_code == 404

    def test_eleventh_vote_from_one_ip_is_429(self, client):
        reveal_id = create_reservation(client)["revealId"]
        for n in range(10):
            assert _vote(client, reveal_id, device=f"dev-{n}", ip="8.8.8.8").status_code == 201
        resp = _vote(client, reveal_id, device="dev-x", ip="8.8.8.8")
        assert resp.status_code == 429

    def test_malformed_votes_count_toward_rate_limit(self, client):
        reveal_id = create_reservation(client)["revealId"]
        for _ in range(10):
            resp = client.post("/votes", json={"revealId": reveal_id, "vote": "dragon"}, headers={"X-Forwarded-For": "9.9.9.9"})
            assert resp.status_code == 400
        assert _vote(client, reveal_id, device="dev-ok", ip="9.9.9.9").status_code == 429

    def test_request_id_echoed(self, client):
        resp = client.get("/votes?revealId=nope1234", headers={"X-Request-Id": "req-42"})
        assert resp.headers["X-Request-Id"] == "req-42"
        assert resp.get_json()["request_id"] == "req-42"


class TestStoreOutage:
    def test_ledger_outage_is_500_not_silently_dropped(self):
        server = fakeredis.FakeServer()
        server.connected = False
        app = create_app(FakeStoreConfig, redis_client=fakeredis.FakeRedis(server=server, decode_responses=True))
        resp = app.test_client().post("/votes", json={"revealId": "abcd1234", "vote": "prince", "deviceId": "d1"})
        assert resp.status_code == 500
        assert resp.get_json()["error"]["code"] == "STORE_ERROR"

    def test_readiness_reports_store_down(self):
        server = fakeredis.FakeServer()
        server.connected = False
        app = create_app(FakeStoreConfig, redis_client=fakeredis.FakeRedis(server=server, decode_responses=True))
        client = app.test_client()
        assert client.get("/health").status_code == 200
        assert client.get("/health/ready").status_code == 503
