"""
Unified Patient Manager API
Role-based hospital records: patient records, vital signs, billing,
insurance submission and the login audit trail.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import audit, auth, billing, insurance, patients, visits
from .core.config import settings
from .core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UPMError,
    ValidationError,
)
from .models.base import Base, engine
from .seed_demo import seed_demo_data

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create all database tables
# NOTE: In production, use Alembic migrations instead of create_all()
Base.metadata.create_all(bind=engine)

# Seed demo accounts and sample data (idempotent)
if settings.SEED_DEMO_DATA:
    seed_demo_data()

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description=(
        "Role-based hospital records: physicians review patients and bill visits, "
        "nurses record vital signs, patients view their history and "
        "administrators review the login audit trail."
    ),
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    ValidationError: 400,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(UPMError)
async def upm_error_handler(request: Request, exc: UPMError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code == 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(status_code, exc.message, getattr(exc, "errors", None))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    return _error_response(400, "Invalid request", errors)


for module in (auth, patients, visits, billing, insurance, audit):
    app.include_router(module.router, prefix="/api")
app.include_router(insurance.mock_router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": settings.APP_NAME, "version": settings.VERSION}
