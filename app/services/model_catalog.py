from __future__ import annotations

import logging
from typing import Any

from app.services.upstream import (
    GenerativeLanguageClient,
    UpstreamStatusError,
    UpstreamTransportError,
)

logger = logging.getLogger(__name__)

LIST_MODELS_FAILED = "ListModels failed"


class ModelCatalog:
    """Diagnostic passthrough of the upstream models list. Failures are raised, not masked."""

    def __init__(self, *, client: GenerativeLanguageClient) -> None:
        self._client = client

    def list_models(self) -> Any:
        try:
            result = self._client.list_models()
        except UpstreamTransportError as exc:
            raise UpstreamTransportError(LIST_MODELS_FAILED, details=str(exc)) from exc
        if not result.ok:
            logger.error(
                "list_models_status_error status=%s body=%s",
                result.status_code,
                result.body,
            )
            raise UpstreamStatusError(LIST_MODELS_FAILED, details=result.body)
        return result.body
