"""FastAPI entry point for the submission scoring service."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.document_store import get_document_store
from services.middleware import RequestIdMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the document store on startup and release it on shutdown."""
    store = get_document_store()

    from services.document_store import RedisDocumentStore
    if isinstance(store, RedisDocumentStore):
        if await store.ping():
            logger.info("Redis connection verified")
        else:
            logger.warning("Redis connection failed; submissions cannot be persisted")

    yield

    await store.close()


app = FastAPI(
    title="Submission Scoring Service",
    description="Assessment submission lifecycle, scoring and result ledger",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack (outermost first) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

# ── Register routers ────────────────────────────────────────
from api.health import router as health_router  # noqa: E402
from api.submissions import router as submissions_router  # noqa: E402

app.include_router(health_router)
app.include_router(submissions_router)


if __name__ == "__main__":
    if settings.debug:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Workers share state only through Redis; use document_store_type=redis.
        # Production runs go through gunicorn (deploy/gunicorn.conf.py).
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
        )
