from __future__ import annotations

import re

DEV_REPLY_PREFIX = "Dev Assistant:"
GREETING_REPLY = "Hi, send me a message and I'll reply."
DEFAULT_SHORT_MESSAGE_THRESHOLD = 30

_IDENTITY_PATTERN = re.compile(r"(who|what)\b")
_EXPLANATION_PATTERN = re.compile(r"how|why|explain")


def synthesize_dev_reply(
    message: str | None,
    *,
    short_threshold: int = DEFAULT_SHORT_MESSAGE_THRESHOLD,
) -> str:
    """Build a canned reply locally, used whenever the upstream model cannot answer."""
    text = (message or "").strip()
    if not text:
        return GREETING_REPLY

    normalized = text.lower()
    if _IDENTITY_PATTERN.search(normalized):
        return (
            f"{DEV_REPLY_PREFIX} I don't have the model key in this environment, "
            f"but I can tell you: {text}"
        )
    if _EXPLANATION_PATTERN.search(normalized):
        return f"{DEV_REPLY_PREFIX} Here's a short explanation for: {text}"
    if len(text) < short_threshold:
        return f"{DEV_REPLY_PREFIX} I heard '{text}', here's a helpful note about that."
    return f"{DEV_REPLY_PREFIX} (simulated) Thanks for your message. You said: {text}"
