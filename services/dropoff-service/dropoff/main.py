"""FastAPI application wiring for the dropoff service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.receivers import router as receivers_router
from .api.routes import router as v1_router
from .config import Settings, get_settings
from .domain.directory import AccountDirectory
from .domain.matching import ProximityMatcher
from .domain.profile import ProfileService
from .domain.service import CredentialService
from .errors import register_exception_handlers
from .repository import AccountRepository
from .security.gate import AccessGate
from .security.passwords import PasswordHasher
from .security.rate_limiter import build_rate_limiter
from .security.tokens import TokenIssuer, TokenSettings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def attach_services(app: FastAPI, directory: AccountDirectory, settings: Settings) -> None:
    """Build the domain services around ``directory`` and store them on app state."""
    credentials = CredentialService(
        directory,
        TokenIssuer(TokenSettings.from_settings(settings)),
        PasswordHasher(rounds=settings.bcrypt_rounds),
    )
    app.state.credential_service = credentials
    app.state.access_gate = AccessGate(credentials)
    app.state.matcher = ProximityMatcher(directory, default_radius_km=settings.default_radius_km)
    app.state.profile_service = ProfileService(directory)
    app.state.rate_limiter = build_rate_limiter(settings)


def _postgres_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
        pool = ConnectionPool(settings.database_url, open=False)
        pool.open()
        app.state.pool = pool
        attach_services(app, AccountRepository(pool), settings)
        logger.info("%s %s started (%s)", settings.app_name, settings.version, settings.environment)
        try:
            yield
        finally:
            pool.close()
            pool.wait_close()

    return lifespan


def create_app(
    settings: Settings | None = None,
    directory: AccountDirectory | None = None,
) -> FastAPI:
    """Create the application.

    With ``directory`` given the services are wired immediately and no
    database pool is opened; otherwise Postgres is connected in the lifespan.
    """
    settings = settings or get_settings()
    settings.validate()

    lifespan = None if directory is not None else _postgres_lifespan(settings)
    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    if directory is not None:
        attach_services(app, directory, settings)

    register_exception_handlers(app, expose_internal_details=not settings.is_production)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(v1_router)
    app.include_router(receivers_router)
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()
