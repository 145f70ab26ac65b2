"""
Falgoritma API: Turkish coffee fortune readings paid with credits.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

# Configure logging once for the whole process; the platform captures stdout
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True  # Override any existing configuration
)

logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import auth, users, credits, subscriptions, fortunes
from app.core import config
from app.core.errors import AppError, Internal
from app.db.base import Base
from app.db.session import engine
# Import all models to ensure they're registered with Base
from app.models import User, Subscription, Fortune  # noqa: F401


def run_migrations() -> None:
    """Run Alembic migrations on startup. Uses alembic.ini and DATABASE_URL.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.attributes["configure_logger"] = False
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", config.DATABASE_URL)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise  # Fail startup so DB is not left out of sync; fix migration or env and redeploy


app = FastAPI(title="Falgoritma API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _operation(request: Request) -> str:
    return f"{request.method} {request.url.path}"


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    user_id = getattr(request.state, "user_id", None)
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, "[%s] %s failed for user %s: %s", exc.code, _operation(request), user_id, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    user_id = getattr(request.state, "user_id", None)
    logger.info("[validation_error] %s rejected for user %s: %s", _operation(request), user_id, exc.errors())
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "The request is invalid.", "code": "request_validation", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Log the stack trace securely (hidden from user)
    user_id = getattr(request.state, "user_id", None)
    logger.error("Unhandled error in %s for user %s", _operation(request), user_id, exc_info=exc)
    error = Internal()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.on_event("startup")
async def startup_event():
    """Create tables, then run Alembic migrations on every server restart."""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.exception("Error creating tables: %s", e)
        raise

    if config.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations()


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(credits.router, prefix="/credits", tags=["credits"])
app.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
app.include_router(fortunes.router, prefix="/fortunes", tags=["fortunes"])


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
