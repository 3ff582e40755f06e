import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.errors import http_exception_handler, validation_exception_handler
from core.log_config import configure_logging
from core.notifier import ChangeNotifier
from db.database import create_db_and_tables, engine
from db.migrations import add_missing_inventory_columns
from routers.catalogs import router as catalogs_router
from routers.dashboard import router as dashboard_router
from routers.db_views import router as db_views_router
from routers.events import router as events_router
from routers.frontend import mount_frontend
from routers.inventory import router as inventory_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    await create_db_and_tables()
    await add_missing_inventory_columns(engine)
    app.state.notifier = ChangeNotifier(keepalive_interval=settings.sse_keepalive_seconds)
    logger.info("Inventory API ready")
    yield
    await app.state.notifier.aclose()


app = FastAPI(
    title="Inventory API",
    description="API for managing stock items, with live change notifications",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error bodies are {"error": ...}; validation problems are 400s.
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Inventory routes
app.include_router(inventory_router, prefix="/api/inventory", tags=["inventory"])
app.include_router(catalogs_router, prefix="/api", tags=["catalogs"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(db_views_router, prefix="/api/db", tags=["db"])

# Live refresh stream
app.include_router(events_router, tags=["events"])

# React build; must stay last, it catches every other path
mount_frontend(app, settings.frontend_build_dir)

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
