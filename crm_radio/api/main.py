# ---------------- Imports principaux ----------------
from contextlib import asynccontextmanager
import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from crm_radio.database import create_db_engine, make_session_factory
from crm_radio.services.analytics import AnalyticsError


logger = logging.getLogger("uvicorn.error")

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _cors_origins() -> list[str]:
    raw = os.getenv("CRM_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(database_url: str | None = None, engine: Engine | None = None) -> FastAPI:
    """Construit l'application. Le pool est ouvert au démarrage et vidé à l'arrêt ;
    un moteur fourni par l'appelant reste sa propriété (non fermé ici)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = engine is None
        db_engine = create_db_engine(database_url) if owned else engine
        app.state.engine = db_engine
        app.state.session_factory = make_session_factory(db_engine)
        logger.info("Database pool ready (%s)", db_engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            if owned:
                db_engine.dispose()
                logger.info("Database pool disposed")

    app = FastAPI(title="CRM Radio", lifespan=lifespan)

    from crm_radio.api import analytics
    from crm_radio.api import dashboard
    app.include_router(analytics.router)
    app.include_router(dashboard.router)

    # ---------------- Middleware CORS ----------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------- Gestion des erreurs ----------------
    @app.exception_handler(AnalyticsError)
    async def analytics_error_handler(request: Request, exc: AnalyticsError):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Route non trouvée: {request.method} {request.url.path}"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Erreur serveur non gérée", exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "message": "Erreur interne du serveur"})

    # ---------------- Santé ----------------
    @app.get("/api/health")
    def health():
        return {"ok": True, "ts": int(time.time() * 1000)}

    return app


app = create_app()
