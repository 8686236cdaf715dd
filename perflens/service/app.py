"""FastAPI application entrypoint for perflens service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..audit import AuditContext
from ..config import DEFAULT_IGNORE, DEFAULT_INCLUDE, AnalysisLimits, ConfigError, override_limits
from ..models import AnalysisResult
from ..orchestrator import Orchestrator
from ..report import build_payload


class AuditPayload(BaseModel):
    metrics: str = ""
    analysis: Dict[str, str] = {}


class AnalyzeRequest(BaseModel):
    path: str
    max_files: Optional[int] = None
    batch_size: Optional[int] = None
    max_file_size: Optional[int] = None
    token_budget: Optional[int] = None
    batch_delay: Optional[float] = None
    include: Optional[List[str]] = None
    ignore: Optional[List[str]] = None
    audit: Optional[AuditPayload] = None


class AnalyzeResponse(BaseModel):
    status: str
    critical: int
    warnings: int
    suggestions: int
    report: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing perflens analysis."""

    app = FastAPI(title="perflens Service", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> AnalyzeResponse:
        limits = override_limits(
            AnalysisLimits(),
            max_files=payload.max_files,
            batch_size=payload.batch_size,
            max_file_size=payload.max_file_size,
            token_budget=payload.token_budget,
            batch_delay=payload.batch_delay,
        )
        audit_context = None
        if payload.audit is not None:
            audit_context = AuditContext(metrics=payload.audit.metrics, analysis=dict(payload.audit.analysis))

        def _run_analysis() -> AnalysisResult:
            try:
                return orchestrator.analyze(
                    payload.path,
                    limits,
                    payload.include if payload.include is not None else DEFAULT_INCLUDE,
                    payload.ignore if payload.ignore is not None else DEFAULT_IGNORE,
                    audit_context,
                )
            finally:
                orchestrator.close()

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_analysis)
        return AnalyzeResponse(
            status="cancelled" if result.cancelled else "ok",
            critical=len(result.critical),
            warnings=len(result.warnings),
            suggestions=len(result.suggestions),
            report=build_payload(result, limits=limits, audit_context=audit_context),
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
