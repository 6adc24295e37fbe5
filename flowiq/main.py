"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flowiq.api import auth
from flowiq.api.v1 import router as v1_router
from flowiq.core.config import API_V1_PREFIX, APP_VERSION, settings
from flowiq.core.database import engine
from flowiq.core.errors import FlowIQError, StorageError
from flowiq.core.route_gate import RouteGateMiddleware
from flowiq.models import Base

# Timestamps carry a Z suffix, so render them in UTC.
logging.Formatter.converter = time.gmtime

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if settings.DB_CREATE_ALL:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created (DB_CREATE_ALL=true)")
    yield


app = FastAPI(
    title="FlowIQ API",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RouteGateMiddleware, settings=settings)
# Outermost, so CORS preflights are answered before the route gate sees them.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FlowIQError)
async def flowiq_error_handler(request: Request, exc: FlowIQError) -> JSONResponse:
    """Render domain errors as {"detail": message}; storage failures stay generic."""
    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are a 400 with a field-agnostic message."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request: missing or malformed fields"},
    )


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(v1_router, prefix=API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "FlowIQ API"}
