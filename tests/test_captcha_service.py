"""Tests for fail-closed CAPTCHA verification and its audit trail."""

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from chatgate.adapters.audit import InMemoryCaptchaLogStore
from chatgate.adapters.captcha import HttpCaptchaClient
from chatgate.core.errors import CaptchaServiceError
from chatgate.services.captcha_service import (
    MISSING_SECRET_CODE,
    SERVICE_ERROR_CODE,
    CaptchaContext,
    CaptchaVerifier,
)
from conftest import FIXED_NOW, VALID_TOKEN, FakeCaptchaClient

VERIFY_URL = "https://captcha.test/siteverify"
CONTEXT = CaptchaContext(form_type="chat", client_identity="203.0.113.7", user_agent="pytest")


def _verifier(client=None, store=None, secret: str = "secret") -> CaptchaVerifier:
    return CaptchaVerifier(
        client or FakeCaptchaClient(),
        store if store is not None else InMemoryCaptchaLogStore(),
        secret=secret,
        clock=lambda: FIXED_NOW,
    )


@pytest.mark.asyncio
async def test_invalid_token_fails_and_writes_exactly_one_record() -> None:
    store = InMemoryCaptchaLogStore()

    ok = await _verifier(store=store).verify("forged", CONTEXT)

    assert ok is False
    assert len(store) == 1
    record = store.records[0]
    assert record.success is False
    assert record.error_codes == ("invalid-input-response",)
    assert record.form_type == "chat"
    assert record.ip_address == "203.0.113.7"
    assert record.user_agent == "pytest"
    assert record.timestamp == FIXED_NOW


@pytest.mark.asyncio
async def test_valid_token_passes_and_is_audited() -> None:
    store = InMemoryCaptchaLogStore()

    ok = await _verifier(store=store).verify(VALID_TOKEN, CONTEXT)

    assert ok is True
    assert [r.success for r in store.records] == [True]
    assert store.records[0].score == 0.9
    assert store.records[0].hostname == "localhost"


@pytest.mark.asyncio
async def test_missing_secret_fails_without_network_call() -> None:
    client = FakeCaptchaClient()
    store = InMemoryCaptchaLogStore()

    ok = await _verifier(client=client, store=store, secret="").verify(VALID_TOKEN, CONTEXT)

    assert ok is False
    assert client.calls == []
    assert store.records[0].error_codes == (MISSING_SECRET_CODE,)


@pytest.mark.asyncio
async def test_service_error_fails_closed() -> None:
    client = FakeCaptchaClient(
        error=CaptchaServiceError(code="captcha_transport_error", message="timeout")
    )
    store = InMemoryCaptchaLogStore()

    ok = await _verifier(client=client, store=store).verify(VALID_TOKEN, CONTEXT)

    assert ok is False
    assert store.records[0].error_codes == (SERVICE_ERROR_CODE,)


@pytest.mark.asyncio
async def test_audit_failure_never_changes_outcome() -> None:
    store = InMemoryCaptchaLogStore()
    store.append = AsyncMock(side_effect=OSError("disk full"))  # type: ignore[method-assign]

    assert await _verifier(store=store).verify(VALID_TOKEN, CONTEXT) is True
    assert await _verifier(store=store).verify("forged", CONTEXT) is False
    assert store.append.await_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_malformed_provider_answer_is_audited_and_fails_closed() -> None:
    respx.post(VERIFY_URL).mock(
        return_value=httpx.Response(200, json={"success": False, "error-codes": 5})
    )
    store = InMemoryCaptchaLogStore()

    async with httpx.AsyncClient() as http:
        verifier = _verifier(client=HttpCaptchaClient(http, VERIFY_URL), store=store)
        ok = await verifier.verify("tok", CONTEXT)

    assert ok is False
    assert len(store) == 1
    assert store.records[0].error_codes == (SERVICE_ERROR_CODE,)


@pytest.mark.asyncio
async def test_unexpected_client_error_is_audited_and_fails_closed() -> None:
    client = FakeCaptchaClient(error=RuntimeError("client has been closed"))
    store = InMemoryCaptchaLogStore()

    ok = await _verifier(client=client, store=store).verify(VALID_TOKEN, CONTEXT)

    assert ok is False
    assert len(store) == 1
    assert store.records[0].success is False
    assert store.records[0].error_codes == (SERVICE_ERROR_CODE,)
