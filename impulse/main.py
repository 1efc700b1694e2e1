from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import uuid

from impulse.core.config import settings
from impulse.logging import configure_logging
from impulse.api.routes import router as api_router
from impulse.middleware.logging import LoggingMiddleware
from impulse.models.dto import ErrorResponse
from impulse.services.gazetteer_service import load_gazetteer
from impulse.services.location_resolver import LocationResolver
from impulse.services.meetup_service import MeetupService
from impulse.services.points_classifier import InvalidArgument, PointsClassifier

configure_logging()
logger = logging.getLogger(__name__)

# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application startup: v{settings.VERSION}")
    try:
        # Reference data is loaded exactly once and never mutated afterwards
        resolver = LocationResolver(load_gazetteer())
        classifier = PointsClassifier()
        app.state.location_resolver = resolver
        app.state.points_classifier = classifier
        app.state.meetup_service = MeetupService(resolver, classifier)
    except Exception as e:
        logger.error(f"Failed to load reference data: {e}")
        raise
    logger.info(
        f"Loaded {len(resolver.locations)} campus locations and "
        f"{len(classifier.classifications)} point tiers."
    )

    yield

    logger.info("Application shutdown.")

# --- FastAPI Application Initialization ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.BRIEF_DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

# --- API Routes ---
app.include_router(api_router, prefix="/api")

# --- Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    resolver = getattr(request.app.state, "location_resolver", None)
    return {
        "status": "ok",
        "locations": len(resolver.locations) if resolver else 0,
    }

# --- Exception Handlers ---
@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": ErrorResponse(error="INVALID_ARGUMENT", detail=str(exc)).model_dump()
        },
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())
    logger.error(f"Unhandled exception (ID: {error_id}): {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "error": "INTERNAL_SERVER_ERROR",
                "detail": "An unexpected error occurred. Please report this error ID.",
                "error_id": error_id
            }
        }
    )
