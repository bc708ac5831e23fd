from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from app.container import Settings


@dataclass(frozen=True)
class StartupSelfCheckResult:
    dev_mode: bool
    api_base_valid: bool
    model: str
    issues: list[str]


def run_startup_self_check(*, settings: Settings, logger: logging.Logger) -> StartupSelfCheckResult:
    result = analyze_settings(
        api_key_configured=not settings.dev_mode,
        api_base=settings.api_base,
        model=settings.model,
    )

    if result.dev_mode:
        logger.warning(
            "startup_self_check anomaly=api_key_missing "
            "detail=chat_replies_are_synthesized_until_GEMINI_API_KEY_is_set"
        )
    if not result.api_base_valid:
        logger.warning(
            "startup_self_check anomaly=invalid_api_base api_base=%s",
            settings.api_base,
        )
    if not result.issues:
        logger.info("startup_self_check ok model=%s", result.model)
    return result


def analyze_settings(
    *,
    api_key_configured: bool,
    api_base: str,
    model: str,
) -> StartupSelfCheckResult:
    issues: list[str] = []
    parsed = urlparse(api_base)
    api_base_valid = parsed.scheme in {"http", "https"} and bool(parsed.netloc)

    if not api_key_configured:
        issues.append("api_key_missing")
    if not api_base_valid:
        issues.append("invalid_api_base")

    return StartupSelfCheckResult(
        dev_mode=not api_key_configured,
        api_base_valid=api_base_valid,
        model=model,
        issues=issues,
    )
