"""Tests for client identity resolution."""

from starlette.datastructures import Headers

from chatgate.core.identity import resolve_client_identity


def test_first_forwarded_for_address_wins() -> None:
    headers = Headers({"X-Forwarded-For": " 203.0.113.7 , 10.0.0.1", "X-Real-IP": "10.0.0.2"})

    assert resolve_client_identity(headers) == "203.0.113.7"


def test_header_priority_order() -> None:
    assert resolve_client_identity({"x-real-ip": "198.51.100.1", "cf-connecting-ip": "192.0.2.9"}) == "198.51.100.1"
    assert resolve_client_identity({"cf-connecting-ip": "192.0.2.9"}) == "192.0.2.9"


def test_blank_forwarded_header_falls_through() -> None:
    assert resolve_client_identity({"x-forwarded-for": " , ", "x-real-ip": "198.51.100.1"}) == "198.51.100.1"


def test_fallback_is_deterministic_and_non_empty() -> None:
    headers = {"user-agent": "Mozilla/5.0", "apikey": "public-anon-key"}

    first = resolve_client_identity(headers)
    second = resolve_client_identity(dict(headers))

    assert first == second
    assert first.startswith("fallback-")
    assert len(first) > len("fallback-")


def test_fallback_differs_per_user_agent() -> None:
    a = resolve_client_identity({"user-agent": "curl/8.0"})
    b = resolve_client_identity({"user-agent": "Mozilla/5.0"})

    assert a != b


def test_no_headers_still_yields_identity() -> None:
    assert resolve_client_identity({}).startswith("fallback-")
