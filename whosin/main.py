import logging

from fastapi import FastAPI

from .config import get_settings
from .migration_runner import run_migrations_once
from .routers import telegram

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
async def ensure_schema() -> None:
    try:
        run_migrations_once()
    except Exception:  # pragma: no cover - startup failures should surface
        logger.exception("Database migration failed")
        raise


app.include_router(telegram.router)
