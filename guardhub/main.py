import os
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .db import engine, SessionLocal
from .errors import AppError
from .limiter import limiter
from .logging import setup_logging, RequestIdMiddleware, structlog
from .auth.router import router as auth_router
from .auth.security import get_current_user
from .routes.dashboard import router as dashboard_router
from .routes.staff import router as staff_router
from .routes.clients import router as clients_router
from .routes.properties import router as properties_router
from .routes.incidents import router as incidents_router
from .routes.patrol_reports import router as patrol_reports_router
from .routes.appointments import router as appointments_router
from .routes.financial import router as financial_router
from .routes.activities import router as activities_router
from .routes.evidence import router as evidence_router
from .routes.reference import router as reference_router
from .routes.ai import router as ai_router
from .services.bootstrap import run_startup


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    # Routers
    app.include_router(auth_router)
    protected = [Depends(get_current_user)]
    for router in (
        dashboard_router,
        staff_router,
        clients_router,
        properties_router,
        incidents_router,
        patrol_reports_router,
        appointments_router,
        financial_router,
        activities_router,
        evidence_router,
        reference_router,
        ai_router,
    ):
        app.include_router(router, dependencies=protected)

    @app.get("/api/health", tags=["health"])
    def health():
        return {"status": "ok"}

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        log = structlog.get_logger()
        log.info("startup", environment=settings.environment)
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        db = SessionLocal()
        try:
            run_startup(engine, db)
        finally:
            db.close()

    return app


app = create_app()
