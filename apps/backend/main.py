import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resume_builder.config import settings
from resume_builder.health import ServiceHealth, check_database, check_typst
from resume_builder.routers import resume
from resume_builder.services.pdf_generator import TypstRenderer
from resume_builder.services.persistence import MemoryStore, SqlStore
from resume_builder.services.session import ResumeSession
from resume_builder.services.text_proof import TextProofRenderer

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_store():
    """Key-value store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return MemoryStore()
    return SqlStore(settings.database_url)


def build_preview_renderer():
    """Preview renderer selected by ``settings.preview_backend``."""
    if settings.preview_backend == "typst":
        return TypstRenderer()
    return TextProofRenderer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: open the storage slot and the editing session
    logger.info(f"Starting {settings.app_name}")
    store = build_store()
    if isinstance(store, SqlStore):
        await store.init()
    app.state.session = await ResumeSession.open(
        store,
        preview_renderer=build_preview_renderer(),
        pdf_renderer=TypstRenderer(),
    )
    yield
    # Shutdown: flush autosave, then close connections
    logger.info(f"Shutting down {settings.app_name}")
    await app.state.session.close()
    if isinstance(store, SqlStore):
        await store.close()

app = FastAPI(
    title="Resume Builder API",
    description="Resume document model, validation and two-column rendering",
    version="0.1.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(resume.router)


@app.get("/")
async def root():
    return {"message": "Resume Builder API - Ready"}


@app.get("/health")
async def health_check():
    """Health check for the storage database and the Typst compiler."""
    if settings.storage_backend == "sqlite":
        database_check = check_database(settings.database_url)
    else:
        database_check = asyncio.sleep(0, result=ServiceHealth(status="disabled"))

    database_health, typst_health = await asyncio.gather(
        database_check,
        check_typst(settings.typst_binary),
        return_exceptions=True,
    )

    database_ok = isinstance(database_health, ServiceHealth) and database_health.status in (
        "connected",
        "disabled",
    )
    return {
        "status": "healthy" if database_ok else "degraded",
        "dependencies": {
            "database": (
                database_health.status
                if isinstance(database_health, ServiceHealth)
                else "error"
            ),
            "typst": (
                typst_health.status
                if isinstance(typst_health, ServiceHealth)
                else "error"
            ),
        },
    }


if __name__ == "__main__":
    # Local glue for the browser editor; never exposed beyond this machine
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level=settings.log_level.lower())
