from __future__ import annotations

import logging
from typing import Callable

import httpx
import pytest

from app.services.dev_reply import DEV_REPLY_PREFIX, GREETING_REPLY
from app.services.reply_resolver import FallbackReason, ReplyResolver
from app.services.upstream import GenerativeLanguageClient

Handler = Callable[[httpx.Request], httpx.Response]


def _build_resolver(handler: Handler, *, api_key: str | None = "k_test") -> ReplyResolver:
    client = GenerativeLanguageClient(
        api_key=api_key,
        api_base="https://upstream.test/v1beta",
        transport=httpx.MockTransport(handler),
    )
    return ReplyResolver(client=client)


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected upstream call: {request.url}")


def test_resolver_without_key_synthesizes_reply() -> None:
    resolver = _build_resolver(_no_network, api_key=None)

    outcome = resolver.resolve("tell me about the ocean")

    assert outcome.dev is True
    assert outcome.fallback_reason == FallbackReason.UNCONFIGURED
    assert outcome.reply.startswith(DEV_REPLY_PREFIX)
    assert outcome.api_error is None
    assert outcome.error is None


def test_resolver_without_key_and_empty_message_returns_greeting() -> None:
    resolver = _build_resolver(_no_network, api_key=None)

    outcome = resolver.resolve("")

    assert outcome.dev is True
    assert outcome.reply == GREETING_REPLY


def test_resolver_returns_upstream_text() -> None:
    resolver = _build_resolver(
        lambda request: httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": " Hello from Gemini \n"}]}}]},
        )
    )

    outcome = resolver.resolve("hi")

    assert outcome.dev is False
    assert outcome.fallback_reason is None
    assert outcome.reply == "Hello from Gemini"


def test_resolver_extracts_deepest_fallback_path() -> None:
    resolver = _build_resolver(
        lambda request: httpx.Response(200, json={"outputs": [{"content": {"text": "deep answer"}}]})
    )

    outcome = resolver.resolve("hi")

    assert outcome.dev is False
    assert outcome.reply == "deep answer"


def test_resolver_upstream_error_status_keeps_api_error(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR)
    error_body = {"error": {"code": 500, "message": "internal", "status": "INTERNAL"}}
    resolver = _build_resolver(lambda request: httpx.Response(500, json=error_body))

    outcome = resolver.resolve("who wrote hamlet")

    assert outcome.dev is True
    assert outcome.fallback_reason == FallbackReason.UPSTREAM_STATUS
    assert outcome.api_error == error_body
    assert "who wrote hamlet" in outcome.reply
    assert "I can tell you" in outcome.reply
    assert any("upstream_status_error" in item.message for item in caplog.records)


def test_resolver_empty_payload_falls_back() -> None:
    resolver = _build_resolver(
        lambda request: httpx.Response(200, json={"candidates": [{"finishReason": "SAFETY"}]})
    )

    outcome = resolver.resolve("why")

    assert outcome.dev is True
    assert outcome.fallback_reason == FallbackReason.EMPTY_PAYLOAD
    assert outcome.reply == f"{DEV_REPLY_PREFIX} Here's a short explanation for: why"


def test_resolver_transport_error_falls_back_with_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    resolver = _build_resolver(_handler)

    outcome = resolver.resolve("hi")

    assert outcome.dev is True
    assert outcome.fallback_reason == FallbackReason.TRANSPORT_ERROR
    assert outcome.error is not None
    assert "timed out" in outcome.error


def test_resolver_unexpected_exception_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    resolver = _build_resolver(lambda request: httpx.Response(200, json={"output_text": "x"}))

    def _boom(payload):  # type: ignore[no-untyped-def]
        raise RuntimeError("extractor exploded")

    monkeypatch.setattr("app.services.reply_resolver.extract_reply_text", _boom)

    outcome = resolver.resolve("hi")

    assert outcome.dev is True
    assert outcome.fallback_reason == FallbackReason.INTERNAL_ERROR
    assert outcome.error == "extractor exploded"
    assert outcome.reply


def test_resolver_reply_is_never_empty() -> None:
    resolver = _build_resolver(lambda request: httpx.Response(200, json={}))

    for message in ("", " ", "a", "what?", "explain it", "x" * 500, None):
        outcome = resolver.resolve(message)
        assert isinstance(outcome.reply, str)
        assert outcome.reply.strip()


def test_resolver_short_threshold_is_applied() -> None:
    client = GenerativeLanguageClient(api_key=None)
    resolver = ReplyResolver(client=client, short_message_threshold=3)

    outcome = resolver.resolve("hello")

    assert "(simulated)" in outcome.reply


def test_resolver_non_json_success_body_sets_error() -> None:
    resolver = _build_resolver(lambda request: httpx.Response(200, text="gateway says hi"))

    outcome = resolver.resolve("hi")

    assert outcome.dev is True
    assert outcome.fallback_reason == FallbackReason.EMPTY_PAYLOAD
    assert outcome.error == "upstream returned non-JSON body"


def test_resolver_json_without_text_has_no_error() -> None:
    resolver = _build_resolver(lambda request: httpx.Response(200, json={"candidates": []}))

    outcome = resolver.resolve("hi")

    assert outcome.fallback_reason == FallbackReason.EMPTY_PAYLOAD
    assert outcome.error is None
