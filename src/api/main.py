import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.scheduler_loop import PublicationSchedulerLoop
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.store import SQLiteStore
from src.api.deps import get_clock, get_scheduler_loop, get_settings, get_store
from src.api.envelope import install_error_handlers, ok
from src.app_shell.config import validate_ops_rules
from src.components.reconcile import ReconcileInput, run_reconcile
from src.components.scheduler import SweepInput, run_sweep
from src.domain.errors import StoreError
from src.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, validate and migrate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info("Rules loaded from %s", settings.rules_path)
    except (OSError, ValueError, RuntimeError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    scheduler: PublicationSchedulerLoop | None = None
    if settings.scheduler_enabled:
        store = SQLiteStore(settings.db_path, timeout=rules.ops.db_busy_timeout_seconds)
        clock = get_clock()
        scheduler = PublicationSchedulerLoop(
            sweep=lambda: run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling),
            clock=clock,
            interval_seconds=rules.scheduling.sweep_interval_seconds,
            reconcile=lambda: run_reconcile(ReconcileInput(), store=store),
            reconcile_every=rules.scheduling.reconcile_every_sweeps,
        )
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(
    title="Newsdesk Core API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

install_error_handlers(app)

# --- Routers ---
from src.api.routes import admin, articles, comments, engagement  # noqa: E402

app.include_router(articles.router, prefix="/api/articles", tags=["Articles"])
app.include_router(engagement.router, prefix="/api", tags=["Engagement"])
app.include_router(comments.router, prefix="/api", tags=["Comments"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check(
    store: SQLiteStore = Depends(get_store),
    scheduler: PublicationSchedulerLoop | None = Depends(get_scheduler_loop),
) -> dict[str, Any]:
    """Liveness, database reachability and scheduler stats."""
    try:
        database = "ok" if store.ping() else "unavailable"
    except StoreError:
        logger.exception("Health check database ping failed")
        database = "unavailable"

    return ok(
        {
            "status": "ok",
            "service": "api",
            "database": database,
            "scheduler": scheduler.stats() if scheduler is not None else {"running": False},
        }
    )
