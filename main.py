import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import settings
from database import build_store
from services.exceptions import ConflictError, SchoolError

# --- IMPORT ROUTERS (APIs) ---
from routers import notifications, faculty_posts, assignments, progress_cards, attendance
from routers import fee_ledger, hall_tickets, student_api, history, bulk_import

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ==========================================
# STARTUP: data file + one-time migration
# ==========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(settings)
    app.state.store.initialize()
    logger.info("School portal ready (data file: %s)", settings.DATA_FILE)
    yield


app = FastAPI(title="School Portal API", lifespan=lifespan)
app.state.store = None

# ==========================================
# CORS MIDDLEWARE
# ==========================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================
# ERROR HANDLERS
# ==========================================
@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "existingRecord": exc.existing_record},
    )


@app.exception_handler(SchoolError)
async def school_error_handler(request: Request, exc: SchoolError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"detail": f"{field}: {message}" if field else message})


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": f"Internal server error: {exc}"})


# --- UPLOADED FILES ---
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

# --- REGISTER ROUTERS ---
app.include_router(notifications.router)
app.include_router(faculty_posts.router)
app.include_router(assignments.router)
app.include_router(progress_cards.router)
app.include_router(attendance.router)
app.include_router(fee_ledger.router)
app.include_router(hall_tickets.router)
app.include_router(student_api.router)
app.include_router(history.router)
app.include_router(bulk_import.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
