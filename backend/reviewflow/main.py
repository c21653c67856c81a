"""Main FastAPI application."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reviewflow.config import settings
from reviewflow.core.errors import WorkflowError
from reviewflow.database import init_db
from reviewflow.api import parents, deliveries, review, earnings, events

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="ReviewFlow API",
    version="1.0.0",
    description="Versioned deliveries, tokenized client review links and earnings for production work"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    parents.router,
    prefix=f"{settings.API_V1_PREFIX}/parents",
    tags=["parents"]
)
app.include_router(
    events.router,
    prefix=f"{settings.API_V1_PREFIX}/parents",
    tags=["events"]
)
app.include_router(
    deliveries.router,
    prefix=f"{settings.API_V1_PREFIX}/deliveries",
    tags=["deliveries"]
)
app.include_router(
    review.router,
    prefix=f"{settings.API_V1_PREFIX}/review",
    tags=["review"]
)
app.include_router(
    earnings.router,
    prefix=f"{settings.API_V1_PREFIX}/earnings",
    tags=["earnings"]
)


@app.on_event("startup")
async def startup():
    """Application startup tasks."""
    await init_db()
    logger.info(f"ReviewFlow API starting ({settings.ENVIRONMENT})")


@app.on_event("shutdown")
async def shutdown():
    """Application shutdown tasks."""
    logger.info("ReviewFlow API shutting down")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "ReviewFlow API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
    }


# Global exception handlers
@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """Translate workflow errors into a consistent error body."""
    detail = {"code": exc.code, "message": exc.message}
    if exc.retryable:
        detail["retryable"] = True
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )
