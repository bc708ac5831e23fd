from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "models/gemini-pro-latest"


class UpstreamError(Exception):
    """Base class for failures talking to the generative-language API."""

    status_code = 500
    message = "upstream error"

    def __init__(self, message: str | None = None, *, details: Any = None) -> None:
        super().__init__(message or self.message)
        self.details = details


class MissingCredentialError(UpstreamError):
    status_code = 400
    message = "GEMINI_API_KEY not configured"


class UpstreamTransportError(UpstreamError):
    status_code = 502


class UpstreamStatusError(UpstreamError):
    status_code = 502


@dataclass(frozen=True)
class UpstreamResult:
    status_code: int
    body: Any
    json_decoded: bool = True

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def normalize_model_name(model: str | None) -> str:
    name = (model or "").strip().strip("/")
    if not name:
        return DEFAULT_MODEL
    if name.startswith("models/") or name.startswith("tunedModels/"):
        return name
    return f"models/{name}"


class GenerativeLanguageClient:
    """HTTP client for the Generative Language REST API (generateContent, models.list)."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str | None = None,
        api_base: str = DEFAULT_API_BASE,
        timeout_sec: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = (api_key or "").strip() or None
        self._model = normalize_model_name(model)
        self._api_base = (api_base or DEFAULT_API_BASE).strip().rstrip("/")
        timeout = float(timeout_sec)
        self._timeout_sec = max(timeout, 0.5) if math.isfinite(timeout) else 30.0
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._api_key is not None

    @property
    def model(self) -> str:
        return self._model

    def generate_content(self, prompt: str) -> UpstreamResult:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        return self._request(
            "POST",
            f"{self._api_base}/{self._model}:generateContent",
            json=payload,
        )

    def list_models(self) -> UpstreamResult:
        return self._request("GET", f"{self._api_base}/models")

    def _request(self, method: str, url: str, **kwargs: Any) -> UpstreamResult:
        if self._api_key is None:
            raise MissingCredentialError()
        timeout = httpx.Timeout(timeout=self._timeout_sec)
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                response = client.request(method, url, params={"key": self._api_key}, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("upstream_transport_error method=%s url=%s error=%s", method, url, exc)
            raise UpstreamTransportError(str(exc) or exc.__class__.__name__) from exc

        body, json_decoded = _decode_body(response)
        result = UpstreamResult(
            status_code=response.status_code,
            body=body,
            json_decoded=json_decoded,
        )
        logger.info(
            "upstream_response method=%s url=%s status=%s",
            method,
            url,
            result.status_code,
        )
        return result


def _decode_body(response: httpx.Response) -> tuple[Any, bool]:
    try:
        return response.json(), True
    except ValueError:
        return response.text, False
