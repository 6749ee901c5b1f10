# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — FastAPI Server
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
HTTP front end for lore assembly.

Usage::

    # Programmatic
    from worldbook_ai.server import create_app
    app = create_app()

    # CLI
    worldbook-ai serve --port 8080

The client ships the worldbooks, chat history and settings with each
``POST /v1/activate``; the server keeps no lore between requests.
"""

from __future__ import annotations

import contextvars
import logging
import time
import uuid
from contextlib import asynccontextmanager

from .core.config import WorldbookConfig
from .core.metrics import metrics

REQUEST_ID_CTX: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default=""
)

logger = logging.getLogger("WorldbookAI.Server")

_AUTH_EXEMPT_PATHS = frozenset({"/v1/health", "/v1/metrics/prometheus"})

try:
    from fastapi import FastAPI, HTTPException, Request
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse, PlainTextResponse
    from pydantic import BaseModel, Field

    _FASTAPI_AVAILABLE = True
except ImportError:
    _FASTAPI_AVAILABLE = False


def _check_fastapi() -> None:
    if not _FASTAPI_AVAILABLE:
        raise ImportError(
            "FastAPI is required for the server. "
            "Install with: pip install worldbook-ai[server]"
        )


# ── Pydantic request/response models ─────────────────────────────────

if _FASTAPI_AVAILABLE:

    class MessageModel(BaseModel):
        text: str = ""
        is_user: bool = False

    class LinkedBooksModel(BaseModel):
        primary: str | None = None
        additional: list[str] = Field(default_factory=list)

    class ActivateRequest(BaseModel):
        worldbooks: dict[str, list[dict]] = Field(
            default_factory=dict, description="Raw entries per worldbook id"
        )
        characters: dict[str, LinkedBooksModel] = Field(default_factory=dict)
        character_id: str | None = None
        chat_history: list[MessageModel] = Field(default_factory=list)
        user_input: str = ""
        settings: dict = Field(
            default_factory=dict, description="Host settings (camelCase accepted)"
        )
        template: str | None = Field(
            default=None, description="Prompt template; $1 marks the lore slot"
        )

    class TriggeredEntry(BaseModel):
        source_id: str
        uid: str
        label: str

    class ActivateResponse(BaseModel):
        text: str
        length: int
        sources: list[str]
        failed_sources: list[str]
        candidates: int
        triggered: list[TriggeredEntry]
        passes: int
        capped: bool
        truncated: bool
        prompt: str | None = None

    class HealthResponse(BaseModel):
        status: str = "ok"
        version: str
        uptime_seconds: float

    class ConfigResponse(BaseModel):
        config: dict


def create_app(config: WorldbookConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    _check_fastapi()

    cfg = config or WorldbookConfig.from_env()
    _start_time = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg.configure_logging()
        metrics.enabled = cfg.metrics_enabled
        logger.info("Worldbook AI server started")
        yield
        logger.info("Worldbook AI server shutting down")

    app = FastAPI(
        title="Worldbook AI",
        description="Recursive keyword activation of worldbook lore",
        version=__import__("worldbook_ai").__version__,
        lifespan=lifespan,
    )

    _origins = [o.strip() for o in cfg.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Middleware: correlation IDs + API key auth + metrics ───────────

    @app.middleware("http")
    async def _http_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        REQUEST_ID_CTX.set(request_id)

        if cfg.api_keys and request.url.path not in _AUTH_EXEMPT_PATHS:
            provided = request.headers.get("X-API-Key", "")
            if provided not in cfg.api_keys:
                return JSONResponse(
                    status_code=401,
                    content={"detail": "Invalid or missing API key"},
                    headers={"X-Request-ID": request_id},
                )

        start = time.monotonic()
        response = await call_next(request)
        metrics.observe("http_request_duration_seconds", time.monotonic() - start)
        metrics.inc_labeled(
            "http_requests_total",
            {
                "method": request.method,
                "endpoint": request.url.path,
                "status": str(response.status_code),
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response

    # ── Health ────────────────────────────────────────────────────────

    @app.get("/v1/health", response_model=HealthResponse)
    async def health():
        import worldbook_ai

        return HealthResponse(
            version=worldbook_ai.__version__,
            uptime_seconds=time.monotonic() - _start_time,
        )

    # ── Activate ──────────────────────────────────────────────────────

    @app.post("/v1/activate", response_model=ActivateResponse)
    async def activate(req: ActivateRequest):
        from .core.collaborators import InMemoryLoreRepository, SessionContext
        from .core.pipeline import LoreAssembler
        from .core.prompt import inject_worldbook
        from .core.types import ChatMessage

        try:
            request_cfg = cfg.with_settings(req.settings)
        except (ValueError, TypeError) as exc:
            raise HTTPException(422, f"Invalid settings: {exc}") from exc

        repository = InMemoryLoreRepository(
            books=req.worldbooks,
            characters={k: v.model_dump() for k, v in req.characters.items()},
        )
        session = SessionContext(
            repository=repository,
            chat_history=[
                ChatMessage(text=m.text, is_user=m.is_user) for m in req.chat_history
            ],
            character_id=req.character_id,
        )

        metrics.inc("activations_total")
        with metrics.timer("activation_duration_seconds"):
            report = await LoreAssembler(request_cfg).run(session, req.user_input)
        metrics.observe("lore_chars", float(len(report.text)))

        activation = report.activation
        triggered = activation.triggered if activation else []
        return ActivateResponse(
            text=report.text,
            length=len(report.text),
            sources=report.sources,
            failed_sources=report.failed_sources,
            candidates=report.candidates,
            triggered=[
                TriggeredEntry(source_id=e.source_id, uid=e.uid, label=e.label)
                for e in triggered
            ],
            passes=activation.passes if activation else 0,
            capped=activation.capped if activation else False,
            truncated=report.truncated,
            prompt=(
                inject_worldbook(req.template, report.text)
                if req.template is not None
                else None
            ),
        )

    # ── Metrics ───────────────────────────────────────────────────────

    @app.get("/v1/metrics")
    async def get_metrics():
        return metrics.get_metrics()

    @app.get("/v1/metrics/prometheus", response_class=PlainTextResponse)
    async def get_prometheus():
        return metrics.prometheus_format()

    # ── Config ────────────────────────────────────────────────────────

    @app.get("/v1/config", response_model=ConfigResponse)
    async def get_config():
        return ConfigResponse(config=cfg.to_dict())

    return app
