from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os

from .config import settings
from .database import engine, Base
from .errors import DuplicateConversion, PreconditionFailed, TransitionNotAllowed, ValidationFailed
from .routers import pricing, clients, quotes, public_quotes, orders

logger = logging.getLogger("boxquote")

BASE_REVISION = "5b2e81c9d4a7"

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)


def _run_migrations():
    """Run pending Alembic migrations on startup.

    Databases created by Base.metadata.create_all() have the tables but no
    alembic_version table; those get the base migration stamped first.
    """
    try:
        from alembic.config import Config
        from alembic import command
        from sqlalchemy import inspect

        alembic_ini = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
        if not os.path.exists(alembic_ini):
            logger.info("alembic.ini not found, skipping migrations")
            return

        alembic_cfg = Config(alembic_ini)
        alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
        alembic_cfg.attributes["skip_logging_config"] = True

        insp = inspect(engine)
        table_names = insp.get_table_names()
        if "alembic_version" not in table_names and "quotes" in table_names:
            logger.info("Stamping base migration %s (tables already exist)", BASE_REVISION)
            command.stamp(alembic_cfg, BASE_REVISION)

        logger.info("Running pending Alembic migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")

    except Exception as e:
        # Never let migration errors prevent app startup
        logger.warning(f"Alembic migration warning: {e}")


app = FastAPI(
    title="Box Quote Engine",
    description=f"Corrugated box quoting and order lifecycle for {settings.COMPANY_NAME}",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error mapping ---

@app.exception_handler(PreconditionFailed)
def precondition_failed_handler(request: Request, exc: PreconditionFailed):
    logger.error("Precondition failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(ValidationFailed)
def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(TransitionNotAllowed)
def transition_not_allowed_handler(request: Request, exc: TransitionNotAllowed):
    status_code = 409 if isinstance(exc, DuplicateConversion) else 400
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "current_status": exc.current_status},
    )


# API routes
app.include_router(pricing.router, prefix="/api")
app.include_router(clients.router, prefix="/api")
app.include_router(quotes.router, prefix="/api")
app.include_router(public_quotes.public_router, prefix="/api")
app.include_router(public_quotes.router, prefix="/api")
app.include_router(orders.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "boxquote"}


@app.on_event("startup")
def auto_migrate():
    """Run pending Alembic migrations on startup."""
    _run_migrations()


@app.on_event("startup")
def auto_seed():
    """Publish the default PricingConfig when no version is active."""
    from .database import SessionLocal
    from .pricing_config import default_pricing_values, find_active_pricing_config, publish_pricing_config
    db = SessionLocal()
    try:
        if find_active_pricing_config(db) is None:
            config = publish_pricing_config(db, default_pricing_values())
            db.commit()
            logger.info("Seeded default PricingConfig id=%s", config.id)
    finally:
        db.close()
