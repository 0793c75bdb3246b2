import logging
import sqlite3

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from career_ladder.api.request_logging import RequestLoggingMiddleware
from career_ladder.core.config import get_settings
from career_ladder.core.logging_config import configure_logging
from career_ladder.routers import admin, competencies, health, levels, matrix, metadata
from career_ladder.services.comparison import LevelsNotFoundError

configure_logging()
settings = get_settings()
logger = logging.getLogger("career_ladder.api")

app = FastAPI(
    title="Career Ladder Backend",
    description="APIs for browsing, searching and comparing the engineering career ladder matrix.",
    version="0.1.0",
    openapi_tags=[
        {"name": "health", "description": "Service health"},
        {"name": "levels", "description": "Job levels"},
        {"name": "competencies", "description": "Competency categories and sub-categories"},
        {"name": "matrix", "description": "Full matrix, search and comparison"},
        {"name": "metadata", "description": "Goals, principles and edit history"},
        {"name": "admin", "description": "Data seeding"},
    ],
)

app.add_middleware(RequestLoggingMiddleware)

# Install CORS middleware last so it wraps everything and handles OPTIONS preflight first
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LevelsNotFoundError)
async def levels_not_found_handler(request: Request, exc: LevelsNotFoundError):
    logger.info("compare.levels_not_found", extra={"missing_ids": exc.missing_ids})
    return JSONResponse(status_code=404, content={"detail": str(exc), "missing_ids": exc.missing_ids})


# Exception handlers (structured, no sensitive details)
@app.exception_handler(sqlite3.DatabaseError)
async def sqlite_error_handler(request: Request, exc: sqlite3.DatabaseError):
    logger.warning("db.error", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=400, content={"detail": "Database operation failed"})


# Ensure standard HTTP exceptions pass through (do not override FastAPI/Starlette defaults)
@app.exception_handler(StarletteHTTPException)
async def http_exception_passthrough(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Do not treat validation errors from OPTIONS as 500s; keep default 422 for non-OPTIONS requests
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if request.method.upper() == "OPTIONS":
        # Let CORSMiddleware handle headers; return 204 No Content
        return JSONResponse(status_code=204, content=None)
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raw ValueError raised by a validator
    out = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        out.append(err)
    return out


# Catch-all for truly unhandled exceptions only
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_exception", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(health.router)
app.include_router(levels.router)
app.include_router(competencies.router)
app.include_router(matrix.router)
app.include_router(metadata.router)
app.include_router(admin.router)
