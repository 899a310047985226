from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskmaster.api.router import api_router
from taskmaster.core.config import settings
from taskmaster.core.security import constant_time_equals
from taskmaster.db.init_db import ensure_seeded
from taskmaster.db.session import Base, engine
from taskmaster.services.activity_log import LogValidationError, StoreUnavailable

logger = logging.getLogger(__name__)

_CSRF_EXEMPT_PATHS = frozenset({"/auth/login", "/auth/logout"})
_UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.app_name)

    logger.info("CORS allow_origins=%s", settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Activity-Log", "Content-Disposition"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.middleware("http")
    async def _csrf_middleware(request: Request, call_next):
        """
        Double-submit CSRF check for cookie-auth requests.
        Production only, unsafe methods only, and only when a session cookie is present.
        """
        if settings.environment == "production" and request.method.upper() in _UNSAFE_METHODS:
            path = request.url.path.rstrip("/") or "/"
            if path not in _CSRF_EXEMPT_PATHS and request.cookies.get(settings.jwt_cookie_name):
                csrf_cookie = request.cookies.get(settings.csrf_cookie_name)
                csrf_header = request.headers.get("X-CSRF-Token")
                if not constant_time_equals(csrf_cookie, csrf_header):
                    return JSONResponse(status_code=403, content={"detail": "CSRF token missing/invalid"})
        return await call_next(request)

    @app.exception_handler(StoreUnavailable)
    async def _store_unavailable(request: Request, exc: StoreUnavailable):
        # Distinct from an empty list so clients can show an error state.
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(LogValidationError)
    async def _log_validation_error(request: Request, exc: LogValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.on_event("startup")
    def _startup() -> None:
        """
        Local-dev helper: with a sqlite DATABASE_URL, create tables without
        Alembic and seed default users so login works immediately.
        """
        db_url = settings.database_url or ""
        if settings.environment == "development" and db_url.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
            from taskmaster.db.session import SessionLocal

            db = SessionLocal()
            try:
                ensure_seeded(db)
            finally:
                db.close()

    app.include_router(api_router)
    return app


app = create_app()
