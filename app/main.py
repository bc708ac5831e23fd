import json
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.container import ServiceContainer, build_container
from app.schemas import ChatRequest, ChatResponse, HealthResponse, OpsHealthResponse
from app.services.upstream import UpstreamError
from app.startup_self_check import run_startup_self_check

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
# httpx logs full request URLs at INFO, and the API key travels in the query string.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

SERVICE_NAME = "gemini-chat-relay"


@asynccontextmanager
async def lifespan(_app: FastAPI):  # type: ignore[no-untyped-def]
    _app.state.startup_self_check = run_startup_self_check(
        settings=_app.state.container.settings,
        logger=logger,
    )
    _app.state.started_at = datetime.now(UTC).isoformat()
    yield


app = FastAPI(title="Gemini Chat Relay", version="0.1.0", lifespan=lifespan)
app.state.container = build_container()


def configure_cors(target: FastAPI, allowed_origins: tuple[str, ...]) -> None:
    target.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )


configure_cors(app, app.state.container.settings.allowed_origins)


@app.middleware("http")
async def attach_trace_id(request: Request, call_next):  # type: ignore[no-untyped-def]
    trace_id = request.headers.get("x-trace-id") or str(uuid4())
    request.state.trace_id = trace_id
    response = await call_next(request)
    response.headers["x-trace-id"] = trace_id
    return response


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    content: dict[str, Any] = {"error": str(exc)}
    if exc.details is not None:
        content["details"] = exc.details
    logger.warning(
        "upstream_error trace_id=%s path=%s status=%s error=%s",
        getattr(request.state, "trace_id", None),
        request.url.path,
        exc.status_code,
        exc,
    )
    return JSONResponse(status_code=exc.status_code, content=content)


def _get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def _message_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    return HealthResponse(status="ok", service=SERVICE_NAME)


@app.get("/api/ops/health", response_model=OpsHealthResponse)
def ops_health(request: Request) -> OpsHealthResponse:
    container = _get_container(request)
    startup = getattr(request.app.state, "startup_self_check", None)
    issues = list(startup.issues) if startup is not None else ["startup_self_check_not_available"]
    return OpsHealthResponse(
        status="degraded" if issues else "ok",
        service=SERVICE_NAME,
        timestamp=datetime.now(UTC).isoformat(),
        started_at=getattr(request.app.state, "started_at", None),
        model=container.settings.model,
        dev_mode=container.settings.dev_mode,
        issues=issues,
    )


@app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
def chat(request: Request, req: ChatRequest | None = None) -> ChatResponse:
    trace_id = getattr(request.state, "trace_id", str(uuid4()))
    message = _message_text(req.message if req is not None else None)
    logger.info("chat_request trace_id=%s message_chars=%s", trace_id, len(message or ""))
    outcome = _get_container(request).reply_resolver.resolve(message, trace_id=trace_id)
    logger.info(
        "chat_reply trace_id=%s dev=%s fallback_reason=%s",
        trace_id,
        outcome.dev,
        outcome.fallback_reason,
    )
    return ChatResponse(
        reply=outcome.reply,
        dev=True if outcome.dev else None,
        api_error=outcome.api_error,
        error=outcome.error,
    )


@app.get("/api/models")
def list_models(request: Request) -> Any:
    catalog = _get_container(request).model_catalog
    try:
        return catalog.list_models()
    except UpstreamError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "list_models_unexpected_error trace_id=%s",
            getattr(request.state, "trace_id", None),
        )
        return JSONResponse(status_code=500, content={"error": str(exc)})
