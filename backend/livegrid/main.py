import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from livegrid.api.share import router as share_router
from livegrid.api.tracking import router as tracking_router
from livegrid.api.urls import router as urls_router
from livegrid.db import Base, engine
from livegrid.models.shared_grid import SharedGrid  # noqa: F401  (import ensures table is registered)
from livegrid.core.config import settings
from livegrid.core.errors import LiveGridError
from livegrid.core.logging import setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="livegrid")

# Allow CORS for the dashboard frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (shared_grids) on startup
Base.metadata.create_all(bind=engine)

app.include_router(urls_router)
app.include_router(tracking_router)
app.include_router(share_router)


@app.exception_handler(LiveGridError)
async def livegrid_error_handler(request: Request, exc: LiveGridError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"success": False, "error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/")
def root():
    return {"message": "livegrid backend is running"}
