from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    message: Any = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    dev: bool | None = None
    api_error: Any = Field(default=None, alias="apiError")
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    service: str


class OpsHealthResponse(BaseModel):
    status: str
    service: str
    timestamp: str
    started_at: str | None = None
    model: str
    dev_mode: bool
    issues: list[str]
