import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core import db
from projects import errors as project_errors
from projects import router as projects_router

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO")
logger = logging.getLogger(__name__)


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:5173", "http://127.0.0.1:5173"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Allow the frontend dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects_router.router, tags=["projects"])

_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (project_errors.ValidationError, 400),
    (project_errors.NotFoundError, 404),
    (project_errors.ConflictError, 409),
    (project_errors.SyncFailure, 500),
]


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(project_errors.ProjectError)
async def project_error_handler(request: Request, exc: project_errors.ProjectError) -> JSONResponse:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if status_code == 500:
                return _failure(500, "Projects metadata sync failed")
            return _failure(status_code, str(exc))
    return _failure(500, "Internal server error")


@app.exception_handler(db.StoreError)
async def store_error_handler(request: Request, exc: db.StoreError) -> JSONResponse:
    logger.exception("store_error path=%s", request.url.path, exc_info=exc)
    return _failure(500, "Internal server error")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "resume projects api"}
