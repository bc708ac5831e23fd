from __future__ import annotations

import math
from dataclasses import dataclass
from os import getenv

import httpx

from app.services.dev_reply import DEFAULT_SHORT_MESSAGE_THRESHOLD
from app.services.model_catalog import ModelCatalog
from app.services.reply_resolver import ReplyResolver
from app.services.upstream import (
    DEFAULT_API_BASE,
    DEFAULT_MODEL,
    GenerativeLanguageClient,
    normalize_model_name,
)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    timeout_sec: float = 30.0
    port: int = 5000
    allowed_origins: tuple[str, ...] = ("*",)
    short_message_threshold: int = DEFAULT_SHORT_MESSAGE_THRESHOLD

    @property
    def dev_mode(self) -> bool:
        return self.api_key is None


@dataclass
class ServiceContainer:
    settings: Settings
    upstream_client: GenerativeLanguageClient
    reply_resolver: ReplyResolver
    model_catalog: ModelCatalog


def load_settings() -> Settings:
    origins = tuple(
        origin.strip()
        for origin in getenv("ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    )
    return Settings(
        api_key=_parse_str(getenv("GEMINI_API_KEY")),
        model=normalize_model_name(getenv("GEMINI_MODEL")),
        api_base=_parse_str(getenv("GEMINI_API_BASE")) or DEFAULT_API_BASE,
        timeout_sec=_parse_float(getenv("GEMINI_TIMEOUT_SEC"), default=30.0),
        port=_parse_int(getenv("PORT"), default=5000),
        allowed_origins=origins or ("*",),
        short_message_threshold=_parse_int(
            getenv("DEV_REPLY_SHORT_THRESHOLD"),
            default=DEFAULT_SHORT_MESSAGE_THRESHOLD,
        ),
    )


def build_container(
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> ServiceContainer:
    settings = settings or load_settings()
    upstream_client = GenerativeLanguageClient(
        api_key=settings.api_key,
        model=settings.model,
        api_base=settings.api_base,
        timeout_sec=settings.timeout_sec,
        transport=transport,
    )
    return ServiceContainer(
        settings=settings,
        upstream_client=upstream_client,
        reply_resolver=ReplyResolver(
            client=upstream_client,
            short_message_threshold=settings.short_message_threshold,
        ),
        model_catalog=ModelCatalog(client=upstream_client),
    )


def _parse_str(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _parse_int(value: str | None, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str | None, *, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default
