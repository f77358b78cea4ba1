import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s %(message)s")

from listing_qa.database import engine
from listing_qa.models.base import Base
import listing_qa.models  # noqa: F401 - register all tables for create_all
from listing_qa.api.endpoints import admin, assessments, listings
from listing_qa.services.errors import ConflictError, ConstraintViolation, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Listing QA API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(listings.router)
app.include_router(assessments.router)
app.include_router(admin.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    if exc.stage_mismatch:
        detail = f"Review stage does not match the assessment's current status '{exc.actual.value}'."
    else:
        detail = "Assessment was updated by someone else; refresh and retry."
    return JSONResponse(
        status_code=409,
        content={
            "detail": detail,
            "assessment_id": exc.assessment_id,
            "expected_status": exc.expected.value,
            "actual_status": exc.actual.value,
        },
    )


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation):
    logger.error("constraint violation on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database constraint violated", "error": str(exc)})


@app.get("/health")
def health():
    """Health check endpoint for load balancers and readiness probes."""
    return {"status": "ok", "service": "listing-qa"}
