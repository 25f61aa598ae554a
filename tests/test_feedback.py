"""POST /feedback: validation, delivery through Flask-Mail, rate limiting."""
from revealday.extensions import mail


class TestFeedback:
    def test_delivers_notification(self, client):
        with mail.record_messages() as outbox:
            resp = client.post(
                "/feedback",
                json={"rating": 4, "comment": "Lovely"},
                headers={"User-Agent": "pytest", "Referer": "https://example.com/create"},
            )
        assert resp.status_code == 201
        assert len(outbox) == 1
        assert outbox[0].recipients == ["team@example.com"]
        assert "Rating: 4/5" in outbox[0].body
        assert "https://example.com/create" in outbox[0].body

    def test_rating_out_of_range(self, client):
        resp = client.post("/feedback", json={"rating": 6})
        assert resp.status_code == 400
        assert "rating" in resp.get_json()["error"]["details"]

    def test_comment_too_long(self, client):
        resp = client.post("/feedback", json={"rating": 3, "comment": "x" * 201})
        assert resp.status_code == 400

    def test_delivery_failure_is_reported_not_raised(self, client, app):
        app.extensions["reveal_services"].feedback._notifier._recipient = None
        resp = client.post("/feedback", json={"rating": 5})
        assert resp.status_code == 207
        assert resp.get_json()["warnings"] == ["notification_failed"]

    def test_rate_limited_per_ip(self, client):
        for _ in range(5):
            assert client.post("/feedback", json={"rating": 5}, headers={"X-Real-IP": "6.6.6.6"}).status_code == 201
        resp = client.post("/feedback", json={"rating": 5}, headers={"X-Real-IP": "6.6.6.6"})
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) > 0
