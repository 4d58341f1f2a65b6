"""
HTTP Contract Tests
===================
Exercises the FastAPI application end to end with an in-memory store and a
recording channel.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from conftest import RecordingChannel


@pytest.fixture
def app(settings, channel, clock):
    from waotp.api import create_app
    from waotp.rate_limit import InMemoryRateLimiter
    from waotp.store import InMemoryRecordStore

    return create_app(
        settings,
        store=InMemoryRecordStore(clock=clock),
        channel=channel,
        rate_limiter=InMemoryRateLimiter(rate=15, window=900, clock=clock),
    )


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan, which marks the channel ready
    with TestClient(app) as test_client:
        yield test_client


class TestSendOtp:
    """Tests for POST /send-otp."""

    def test_success(self, client, channel):
        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "OTP sent successfully"}
        assert channel.sent[0][0] == "21000000000@c.us"

    def test_response_never_contains_code(self, client, channel):
        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert channel.last_code not in response.text

    def test_numeric_phone_number_accepted(self, client, channel):
        response = client.post("/send-otp", json={"phoneNumber": 1000000000})

        assert response.status_code == 200
        assert channel.sent[0][0] == "21000000000@c.us"

    @pytest.mark.parametrize("body", [{}, {"phoneNumber": ""}, {"phoneNumber": None}])
    def test_missing_phone(self, client, body):
        response = client.post("/send-otp", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Phone number is required"}

    def test_no_body(self, client):
        response = client.post("/send-otp")

        assert response.status_code == 400
        assert response.json() == {"error": "Phone number is required"}

    def test_malformed_body(self, client):
        response = client.post(
            "/send-otp",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    def test_channel_not_ready(self, app, channel):
        """Should return 500 before the channel reports ready."""
        client = TestClient(app)

        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert response.status_code == 500
        assert response.json() == {"error": "WhatsApp client is not ready"}
        assert channel.sent == []
        assert len(app.state.store) == 0

    def test_recipient_not_registered(self, settings):
        from waotp.api import create_app
        from waotp.channel import SendResult, SendStatus

        channel = RecordingChannel(result=SendResult(status=SendStatus.NOT_REGISTERED))
        app = create_app(settings, channel=channel)

        with TestClient(app) as client:
            response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert response.status_code == 400
        assert response.json() == {"error": "Recipient is not registered on WhatsApp"}

    def test_dispatch_failed(self, settings):
        from waotp.api import create_app
        from waotp.channel import SendResult, SendStatus

        channel = RecordingChannel(
            result=SendResult(status=SendStatus.FAILED, error_message="bridge returned 502")
        )
        app = create_app(settings, channel=channel)

        with TestClient(app) as client:
            response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to send OTP"}
        assert "502" not in response.text

    def test_rate_limited_after_fifteen(self, client):
        """Should allow 15 requests per window and reject the 16th with 429."""
        for _ in range(15):
            response = client.post("/send-otp", json={"phoneNumber": "1000000000"})
            assert response.status_code == 200

        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert response.status_code == 429
        assert response.json() == {"error": "Too many OTP requests, please try again later."}
        assert response.headers["Retry-After"] == "900"

    def test_rate_limit_headers(self, client):
        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})

        assert response.headers["RateLimit-Limit"] == "15"
        assert response.headers["RateLimit-Remaining"] == "14"

    def test_validation_not_rate_limited(self, client):
        for _ in range(20):
            response = client.post("/validate-otp", json={"phoneNumber": "1000000000", "otp": "000000"})
            assert response.status_code == 400


class TestValidateOtp:
    """Tests for POST /validate-otp."""

    def test_issue_then_validate(self, client, channel):
        client.post("/send-otp", json={"phoneNumber": "1000000000"})

        response = client.post(
            "/validate-otp",
            json={"phoneNumber": "1000000000", "otp": channel.last_code},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "OTP is valid"}

    def test_second_validation_fails(self, client, channel):
        client.post("/send-otp", json={"phoneNumber": "1000000000"})
        body = {"phoneNumber": "1000000000", "otp": channel.last_code}

        client.post("/validate-otp", json=body)
        response = client.post("/validate-otp", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid OTP or OTP expired"}

    def test_numeric_otp_accepted(self, client, channel):
        client.post("/send-otp", json={"phoneNumber": "1000000000"})

        response = client.post(
            "/validate-otp",
            json={"phoneNumber": "1000000000", "otp": int(channel.last_code)},
        )

        assert response.status_code == 200

    def test_expired(self, client, channel, clock):
        client.post("/send-otp", json={"phoneNumber": "1000000000"})
        clock.advance(300)

        response = client.post(
            "/validate-otp",
            json={"phoneNumber": "1000000000", "otp": channel.last_code},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid OTP or OTP expired"}

    @pytest.mark.parametrize(
        "body",
        [{}, {"phoneNumber": "1000000000"}, {"otp": "123456"}, {"phoneNumber": "", "otp": ""}],
    )
    def test_missing_fields(self, client, body):
        response = client.post("/validate-otp", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Phone number and OTP are required"}

    def test_store_failure_is_generic_500(self, settings, channel):
        """Should hide store errors behind a generic message."""
        from waotp.api import create_app

        store = AsyncMock()
        store.name = "broken"
        store.find_valid.side_effect = ConnectionError("redis://secret-host refused")
        app = create_app(settings, store=store, channel=channel)

        client = TestClient(app)
        response = client.post("/validate-otp", json={"phoneNumber": "1000000000", "otp": "123456"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "secret-host" not in response.text


class TestChannelEndpoints:
    """Tests for the bridge-facing lifecycle endpoints."""

    @pytest.fixture
    def secured_app(self, settings, clock):
        from waotp.api import create_app
        from waotp.store import InMemoryRecordStore

        settings.bridge_webhook_secret = "s3cret"
        return create_app(
            settings,
            store=InMemoryRecordStore(clock=clock),
            channel=RecordingChannel(ready_on_init=False),
        )

    def test_events_drive_readiness(self, secured_app):
        client = TestClient(secured_app)
        headers = {"X-Bridge-Secret": "s3cret"}

        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})
        assert response.status_code == 500

        client.post("/channel/events", json={"event": "connecting"}, headers=headers)
        response = client.post("/channel/events", json={"event": "ready"}, headers=headers)
        assert response.json() == {"success": True, "state": "ready", "changed": True}

        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})
        assert response.status_code == 200

        client.post("/channel/events", json={"event": "disconnected", "detail": "LOGOUT"}, headers=headers)
        response = client.post("/send-otp", json={"phoneNumber": "1000000000"})
        assert response.status_code == 500

    def test_events_require_secret(self, secured_app):
        client = TestClient(secured_app)

        response = client.post("/channel/events", json={"event": "ready"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid bridge secret"}
        assert not secured_app.state.gate.is_ready()

    def test_unknown_event(self, secured_app):
        client = TestClient(secured_app)

        response = client.post(
            "/channel/events",
            json={"event": "exploded"},
            headers={"X-Bridge-Secret": "s3cret"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Unknown channel event"}

    def test_status(self, secured_app):
        client = TestClient(secured_app)
        client.post(
            "/channel/events",
            json={"event": "auth_failure", "detail": "session revoked"},
            headers={"X-Bridge-Secret": "s3cret"},
        )

        response = client.get("/channel/status")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "auth_failed"
        assert body["ready"] is False
        assert body["last_reason"] == "session revoked"

    def test_pairing_code(self, secured_app):
        client = TestClient(secured_app)
        headers = {"X-Bridge-Secret": "s3cret"}

        assert client.get("/channel/qr", headers=headers).status_code == 404

        client.post("/channel/events", json={"event": "qr", "detail": "2@pairing"}, headers=headers)
        response = client.get("/channel/qr", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"qr": "2@pairing"}
        assert client.get("/channel/qr").status_code == 401

    def test_pairing_code_hidden_without_secret(self, app):
        client = TestClient(app)
        client.post("/channel/events", json={"event": "qr", "detail": "2@pairing"})

        response = client.get("/channel/qr")

        assert response.status_code == 404
        assert response.json() == {"error": "No pairing code available"}


class TestHealth:
    def test_healthy_when_ready(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"]["store"]["status"] == "connected"
        assert body["components"]["channel"]["status"] == "ready"

    def test_degraded_when_channel_down(self, app):
        client = TestClient(app)

        response = client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_readiness_probe(self, app):
        client = TestClient(app)

        response = client.get("/health/ready")
        assert response.status_code == 503
        assert response.json()["reason"] == "channel_not_ready"

        app.state.gate.on_connecting()
        app.state.gate.on_ready()
        assert client.get("/health/ready").status_code == 200

    def test_store_unavailable(self, settings, channel):
        from waotp.api import create_app

        store = AsyncMock()
        store.name = "broken"
        store.ping.side_effect = ConnectionError("refused")
        client = TestClient(create_app(settings, store=store, channel=channel))

        assert client.get("/health").json()["status"] == "unhealthy"
        response = client.get("/health/ready")
        assert response.status_code == 503
        assert response.json()["reason"] == "store_unavailable"

    def test_liveness(self, app):
        assert TestClient(app).get("/health/live").json() == {"status": "alive"}

    def test_metrics(self, client):
        client.post("/send-otp", json={"phoneNumber": "1000000000"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'waotp_otp_issued_total{outcome="sent"}' in response.text
        assert "waotp_channel_ready 1.0" in response.text


class TestRequestId:
    def test_generated(self, client):
        response = client.get("/health/live")

        assert response.headers["X-Request-ID"]

    def test_echoed(self, client):
        response = client.get("/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
