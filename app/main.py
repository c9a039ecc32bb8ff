import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .core.clock import Clock, system_clock
from .core.config import Settings, settings as default_settings
from .core.database import Base, make_engine, make_session_factory
from .core.errors import RecordConflict, SigningKeyMissing, UpstreamUnavailable, ValidationError
from .core.ids import IdGenerator
from .services.core import build_core
from .services.license_store import LicenseStore, SqlLicenseStore
from .routers.admin import router as admin_router
from .routers.agent import router as agent_router
from .routers.console import router as console_router
from .routers.customer import router as customer_router

logger = logging.getLogger(__name__)


def _default_store(settings: Settings) -> LicenseStore:
    engine = make_engine(settings.SQLALCHEMY_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    return SqlLicenseStore(make_session_factory(engine))


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[LicenseStore] = None,
    clock: Clock = system_clock,
    ids: Optional[IdGenerator] = None,
) -> FastAPI:
    """
    Build the service. Run with ``uvicorn app.main:create_app --factory``.
    Every call gets its own ephemeral fleet state.
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    core = build_core(settings, store or _default_store(settings), clock=clock, ids=ids)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        core.close()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.core = core

    # Configure CORS
    raw_origins = settings.CORS_ORIGINS or "*"
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    allow_credentials = False if "*" in origins else True
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(RecordConflict)
    async def record_conflict(request: Request, exc: RecordConflict):
        return JSONResponse(status_code=409, content={"success": False, "error": "CONFLICT"})

    @app.exception_handler(UpstreamUnavailable)
    async def upstream_unavailable(request: Request, exc: UpstreamUnavailable):
        logger.warning("Store unavailable on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"success": False, "error": "UPSTREAM_UNAVAILABLE"})

    @app.exception_handler(SigningKeyMissing)
    async def signing_key_missing(request: Request, exc: SigningKeyMissing):
        return JSONResponse(status_code=503, content={"valid": False, "reason": "SIGNING_UNAVAILABLE"})

    # Routers
    app.include_router(agent_router)
    app.include_router(console_router)
    app.include_router(customer_router)
    app.include_router(admin_router)

    @app.get("/")
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health():
        return {"status": "healthy", "token_issuance": core.can_issue_tokens}

    return app
