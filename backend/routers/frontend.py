"""Serves the React build for every non-API path, when a build exists."""
import logging
import os

from fastapi import APIRouter, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _is_api_path(path: str) -> bool:
    return path == "api" or path.startswith("api/") or path.startswith("api" + os.sep)


class SPAStaticFiles(StaticFiles):
    """Build files as-is; unknown client-side routes get index.html."""

    async def get_response(self, path: str, scope):
        if _is_api_path(path):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != status.HTTP_404_NOT_FOUND:
                raise
            return await super().get_response("index.html", scope)


def _missing_build_router() -> APIRouter:
    router = APIRouter()

    @router.get("/{full_path:path}", include_in_schema=False)
    async def frontend_missing(full_path: str):
        if _is_api_path(full_path):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"message": "Frontend build not found. Please build the React app first."},
        )

    return router


def mount_frontend(app: FastAPI, build_dir: str) -> None:
    """Attach the UI last; it catches every path no other route matched."""
    if not os.path.isfile(os.path.join(build_dir, "index.html")):
        logger.info("Frontend build not found at %s; serving API only", build_dir)
        app.include_router(_missing_build_router())
        return

    logger.info("Serving frontend build from %s", build_dir)
    app.mount("/", SPAStaticFiles(directory=build_dir, html=True), name="frontend")
