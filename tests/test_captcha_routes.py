"""Tests for the standalone POST /captcha/verify endpoint."""

from conftest import VALID_TOKEN, GateHarness


def test_valid_token_succeeds_and_is_audited_with_form_type() -> None:
    harness = GateHarness()
    client = harness.client()

    response = client.post("/captcha/verify", json={"token": VALID_TOKEN, "formType": "booking"})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert [r.form_type for r in harness.audit.records] == ["booking"]
    assert response.headers["X-RateLimit-Limit"] == "20"


def test_invalid_token_is_403() -> None:
    harness = GateHarness()
    client = harness.client()

    response = client.post("/captcha/verify", json={"token": "forged", "language": "en"})

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "captcha_invalid"
    assert body["response"].startswith("Verification failed")
    assert harness.audit.records[0].form_type == "generic"


def test_missing_token_is_400_without_audit() -> None:
    harness = GateHarness()
    client = harness.client()

    response = client.post("/captcha/verify", json={"formType": "contact"})

    assert response.status_code == 400
    assert response.json()["error"] == "captcha_missing"
    assert len(harness.audit) == 0


def test_malformed_body_is_400() -> None:
    client = GateHarness().client()

    response = client.post(
        "/captcha/verify", content=b"nope", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "malformed_input"


def test_uses_its_own_limiter() -> None:
    harness = GateHarness(limit=1, captcha_limit=2)
    client = harness.client()

    client.post("/chat", json={"message": "hi", "captchaToken": VALID_TOKEN})
    results = [
        client.post("/captcha/verify", json={"token": VALID_TOKEN}).status_code
        for _ in range(3)
    ]

    assert results == [200, 200, 429]
    throttled = client.post("/captcha/verify", json={"token": VALID_TOKEN})
    assert throttled.json()["retryAfter"] > 0
    assert int(throttled.headers["Retry-After"]) > 0
