# app/main.py
from __future__ import annotations

# --- ensure project root is on sys.path so `api.*`, `app.*` and `services.*` resolve ---
import sys
from pathlib import Path
THIS_FILE = Path(__file__).resolve()
PROJECT_ROOT = THIS_FILE.parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
# ---------------------------------------------------------------------------------

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from app.config import settings
from app.core.errors import NewsBiasError
from app.core.logging import configure_logging, logger
from app.core.request_id import clear_request_id, resolve_request_id, set_request_id
from services.db_service import Database
from services.llm_gateway import LLMGateway
from services.news_store import NewsStore

from api.routers.articles import router as articles_router
from api.routers.bias import router as bias_router

configure_logging(service_name="api", level=settings.LOG_LEVEL)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = resolve_request_id(request.headers.get("x-request-id"))
        set_request_id(req_id)
        logger.info("request_started", method=request.method, path=str(request.url.path))
        try:
            response: StarletteResponse = await call_next(request)
        except Exception as exc:
            logger.error("request_exception", error=str(exc.__class__.__name__))
            clear_request_id()
            raise
        logger.info("request_ended", status_code=response.status_code)
        response.headers["X-Request-Id"] = req_id
        clear_request_id()
        return response


def create_app() -> FastAPI:
    app = FastAPI(
        title="News Bias Backend",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @app.on_event("startup")
    async def _startup_services() -> None:
        # Service handles live on app.state; routes get them through app.deps
        db = await Database.connect(settings)
        app.state.db = db
        app.state.store = NewsStore(db)
        app.state.gateway = LLMGateway.from_settings(settings)
        logger.info("services_started", model=settings.OPENAI_MODEL)

    @app.on_event("shutdown")
    async def _shutdown_services() -> None:
        gateway = getattr(app.state, "gateway", None)
        if gateway is not None:
            await gateway.close()
        db = getattr(app.state, "db", None)
        if db is not None:
            await db.close()
        logger.info("services_stopped")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(NewsBiasError)
    async def news_bias_exception_handler(request: Request, exc: NewsBiasError) -> JSONResponse:
        logger.warning(
            "request_failed",
            error=exc.__class__.__name__,
            status_code=exc.status_code,
            detail=str(exc)[:300],
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"ok": True, "version": settings.APP_VERSION}

    app.include_router(articles_router)
    app.include_router(bias_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
