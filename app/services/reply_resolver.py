from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from app.services.dev_reply import DEFAULT_SHORT_MESSAGE_THRESHOLD, synthesize_dev_reply
from app.services.reply_extraction import extract_reply_text
from app.services.upstream import GenerativeLanguageClient, UpstreamTransportError

logger = logging.getLogger(__name__)

NON_JSON_BODY_ERROR = "upstream returned non-JSON body"


class FallbackReason(StrEnum):
    UNCONFIGURED = "unconfigured"
    TRANSPORT_ERROR = "transport_error"
    UPSTREAM_STATUS = "upstream_status"
    EMPTY_PAYLOAD = "empty_payload"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class ReplyOutcome:
    reply: str
    fallback_reason: FallbackReason | None = None
    api_error: Any = None
    error: str | None = None

    @property
    def dev(self) -> bool:
        return self.fallback_reason is not None


class ReplyResolver:
    """
    Turns one user message into one reply.
    Uses the upstream model when configured and falls back to a synthesized
    dev reply for every failure, so callers always get text back.
    """

    def __init__(
        self,
        *,
        client: GenerativeLanguageClient,
        short_message_threshold: int = DEFAULT_SHORT_MESSAGE_THRESHOLD,
    ) -> None:
        self._client = client
        self._short_message_threshold = short_message_threshold

    def resolve(self, message: str | None, *, trace_id: str | None = None) -> ReplyOutcome:
        text = message or ""
        try:
            return self._resolve(text, trace_id=trace_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception("reply_resolver_unexpected_error trace_id=%s", trace_id)
            return self._fallback(
                text,
                reason=FallbackReason.INTERNAL_ERROR,
                error=str(exc) or exc.__class__.__name__,
            )

    def _resolve(self, text: str, *, trace_id: str | None) -> ReplyOutcome:
        if not self._client.configured:
            logger.warning("reply_resolver_dev_mode trace_id=%s reason=api_key_missing", trace_id)
            return self._fallback(text, reason=FallbackReason.UNCONFIGURED)

        try:
            result = self._client.generate_content(text)
        except UpstreamTransportError as exc:
            return self._fallback(text, reason=FallbackReason.TRANSPORT_ERROR, error=str(exc))

        logger.debug("upstream_raw_response trace_id=%s body=%s", trace_id, result.body)
        if not result.ok:
            logger.error(
                "upstream_status_error trace_id=%s status=%s body=%s",
                trace_id,
                result.status_code,
                result.body,
            )
            return self._fallback(
                text,
                reason=FallbackReason.UPSTREAM_STATUS,
                api_error=result.body,
            )

        reply = extract_reply_text(result.body)
        if reply is None:
            logger.warning("upstream_empty_reply trace_id=%s body=%s", trace_id, result.body)
            return self._fallback(
                text,
                reason=FallbackReason.EMPTY_PAYLOAD,
                error=None if result.json_decoded else NON_JSON_BODY_ERROR,
            )
        return ReplyOutcome(reply=reply)

    def _fallback(
        self,
        text: str,
        *,
        reason: FallbackReason,
        api_error: Any = None,
        error: str | None = None,
    ) -> ReplyOutcome:
        return ReplyOutcome(
            reply=synthesize_dev_reply(text, short_threshold=self._short_message_threshold),
            fallback_reason=reason,
            api_error=api_error,
            error=error,
        )
