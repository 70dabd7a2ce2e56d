"""
FastAPI application for the personalized feed service.
"""

import os
import time
from typing import Optional
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uvicorn
import sentry_sdk
from sentry_sdk.integrations.starlette import StarletteIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration

from utils.common_utils import get_logger
from service.models import (
    FeedRequest,
    FeedResponse,
    LoadMoreRequest,
    create_safe_response,
)
from service.feed_service import FeedSessionService, SessionNotFound

# Initialize Sentry for error monitoring when a DSN is configured
if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(
        dsn=os.environ["SENTRY_DSN"],
        integrations=[
            StarletteIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={403, *range(500, 599)},
                http_methods_to_capture=("GET", "POST", "DELETE"),
            ),
            FastApiIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={403, *range(500, 599)},
                http_methods_to_capture=("GET", "POST", "DELETE"),
            ),
        ],
        traces_sample_rate=float(os.environ.get("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
    )

logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Personalized Feed API",
    description="API for serving interleaved, deduplicated recommendation feeds",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize feed service on startup."""
    logger.info("Starting up feed service")
    FeedSessionService.get_instance()
    logger.info("Feed service initialized")


@app.on_event("shutdown")
async def shutdown_event():
    """Close upstream connections on shutdown."""
    logger.info("Shutting down feed service")
    await FeedSessionService.shutdown_instance()


def get_feed_service() -> FeedSessionService:
    return FeedSessionService.get_instance()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.error(f"Request validation error: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )


@app.get("/", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "message": "Feed service is running"}


@app.post("/feed/{session_id}", tags=["Feed"], response_model=FeedResponse)
async def refresh_feed(
    session_id: str,
    request: FeedRequest,
    service: FeedSessionService = Depends(get_feed_service),
):
    """Build (or serve from cache) the first page of a session's feed."""
    start_time = time.time()
    try:
        view = await service.refresh(session_id, request.history)
    except Exception as e:
        logger.error(f"Error refreshing feed for session {session_id}: {e}", exc_info=True)
        return JSONResponse(content=create_safe_response(error=str(e)), status_code=500)

    processing_time = (time.time() - start_time) * 1000
    logger.info(
        f"Refreshed feed for session {session_id} in {processing_time:.2f}ms "
        f"({len(view.items)} items)"
    )
    return FeedResponse.from_view(view)


@app.post("/feed/{session_id}/more", tags=["Feed"], response_model=FeedResponse)
async def load_more(
    session_id: str,
    request: Optional[LoadMoreRequest] = None,
    service: FeedSessionService = Depends(get_feed_service),
):
    """Append the next page to a session's feed. Without a body, the next page is used."""
    page = request.page if request is not None else None
    try:
        view = await service.load_more(session_id, page)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Unknown feed session: {session_id}")
    except Exception as e:
        logger.error(f"Error loading more for session {session_id}: {e}", exc_info=True)
        return JSONResponse(content=create_safe_response(error=str(e)), status_code=500)
    return FeedResponse.from_view(view)


@app.get("/feed/{session_id}", tags=["Feed"], response_model=FeedResponse)
async def get_feed(
    session_id: str,
    service: FeedSessionService = Depends(get_feed_service),
):
    """Current state of a session's feed."""
    try:
        view = service.get_view(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Unknown feed session: {session_id}")
    return FeedResponse.from_view(view)


@app.delete("/feed/{session_id}", tags=["Feed"])
async def drop_feed(
    session_id: str,
    service: FeedSessionService = Depends(get_feed_service),
):
    """Forget a session's feed and its cache."""
    try:
        service.drop_session(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Unknown feed session: {session_id}")
    return {"status": "ok", "session_id": session_id}


def start():
    """Start the FastAPI application."""
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(
        "service.app:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
        # feed sessions live in process memory
        workers=1,
    )


if __name__ == "__main__":
    start()
