"""
Main FastAPI application - double-entry accounting engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledger.api.dependencies import LedgerServices
from ledger.api.routers import accounts, audit, journal, reports
from ledger.core.config import Settings
from ledger.core.logging_config import configure_logging, get_logger
from ledger.domain.errors import (
    ConflictError,
    DuplicateAccountError,
    ImmutabilityViolationError,
    IntegrityError,
    IntegrityHaltedError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from ledger.domain.repositories import LedgerStore
from ledger.infrastructure.database import build_engine, build_session_factory, init_db
from ledger.infrastructure.repositories import SqlLedgerStore

logger = get_logger("api")

VERSION = "0.1.0"

STATUS_BY_ERROR: tuple[tuple[type[LedgerError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (DuplicateAccountError, 409),
    (ConflictError, 409),
    (ImmutabilityViolationError, 409),
    (IntegrityHaltedError, 503),
    (IntegrityError, 500),
)


def create_app(store: LedgerStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API; without a store, a SQL store is opened on startup."""
    settings = settings or Settings.from_env()
    configure_logging(level=settings.log_level, json_output=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """Application lifespan - startup and shutdown events."""
        engine = None
        if getattr(app.state, "services", None) is None:
            engine = build_engine(settings.database_url)
            init_db(engine)
            app.state.services = LedgerServices.build(SqlLedgerStore(build_session_factory(engine)))
            logger.info("sql_store_ready", extra={"dialect": engine.dialect.name})
            if settings.seed_chart:
                seeded = app.state.services.accounts.seed_chart_of_accounts()
                logger.info("chart_of_accounts_seeded", extra={"accounts_created": len(seeded)})
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title="Ledger API",
        description="""
## Double-entry accounting engine

- **Chart of accounts**: asset, liability, equity, revenue and expense accounts
- **Journal**: atomic, balanced, append-only entries with idempotent `clientRef`
- **Ledger**: per-account history with running balance
- **Reports**: trial balance, profit & loss, balance sheet

All amounts are integers in minor currency units.
        """,
        version=VERSION,
        lifespan=lifespan,
    )
    if store is not None:
        app.state.services = LedgerServices.build(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(accounts.router)
    app.include_router(journal.router)
    app.include_router(reports.router)
    app.include_router(audit.router)

    @app.get("/")
    def root():
        return {"name": "Ledger API", "version": VERSION, "docs": "/docs"}

    @app.get("/health")
    def health_check(request: Request):
        """Health check endpoint."""
        services = getattr(request.app.state, "services", None)
        return {
            "status": "healthy" if services is not None else "starting",
            "integrityHalted": bool(services and services.guard.tripped),
        }

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        """Map domain errors to JSON responses."""
        status_code = next(
            (code for kind, code in STATUS_BY_ERROR if isinstance(exc, kind)), 500
        )
        if status_code >= 500:
            logger.error(
                "request_failed",
                extra={"path": request.url.path, "error_code": exc.code},
                exc_info=exc,
            )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
