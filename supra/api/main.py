"""FastAPI application entry point."""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from supra.catalog.provider import get_catalog_provider
from supra.config import configure_logging, get_settings
from supra.langgraph.graph import get_conversation_pipeline
from supra.langgraph.nodes import set_search_engine, set_session_manager
from supra.models.api import (
    ChatSearchRequest,
    ChatSearchResponse,
    RestaurantResponse,
    SessionResponse,
)
from supra.models.search import ImageUpload
from supra.models.state import ConversationState
from supra.monitoring.middleware import (
    ErrorTrackingMiddleware,
    MetricsMiddleware,
    metrics_endpoint,
)
from supra.search.engine import SupraSearchEngine
from supra.search.errors import InferenceError
from supra.session.manager import SessionManager

logger = structlog.get_logger()
settings = get_settings()

# Global instances
session_manager: SessionManager | None = None
search_engine: SupraSearchEngine | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global session_manager, search_engine

    configure_logging(settings.log_level, json_logs=settings.app_env == "production")
    logger.info("application_starting", app_name=settings.app_name)

    session_manager = SessionManager()
    await session_manager.connect()
    set_session_manager(session_manager)

    catalog_provider = get_catalog_provider()
    search_engine = SupraSearchEngine(catalog_provider=catalog_provider)
    set_search_engine(search_engine)

    yield

    logger.info("application_shutting_down")
    if session_manager:
        await session_manager.close()
    close = getattr(catalog_provider, "close", None)
    if close is not None:
        await close()


async def _read_upload(image: UploadFile | None) -> ImageUpload | None:
    """Buffer an uploaded image; an empty upload counts as no image."""
    if image is None or not image.filename:
        return None
    data = await image.read()
    if not data:
        return None
    return ImageUpload(data=data, filename=image.filename)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Supra Search API",
        description="Conversational multimodal dish search over the restaurant catalog",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add monitoring middleware
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(ErrorTrackingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        logger.info(
            "request_completed",
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            process_time_ms=round(process_time, 2),
        )

        return response

    # Health check
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "version": "0.1.0",
        }

    # Metrics endpoint
    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return metrics_endpoint()

    @app.post("/restaurants/search-ai", response_model=list[RestaurantResponse])
    async def ai_search(
        text: str = Form(default=""),
        preferences: str = Form(default=""),
        limit: int = Form(default=10, ge=1, le=50),
        image: UploadFile | None = File(default=None),
    ):
        """Find dishes by text and/or photo.

        Returns the matched restaurants, each carrying only the matched
        dishes. A failed backend call yields an empty list.
        """
        if search_engine is None:
            raise HTTPException(status_code=503, detail="Search engine not initialized")

        upload = await _read_upload(image)
        restaurants = await search_engine.search_restaurants(
            query=text,
            image=upload,
            preferences=preferences,
            limit=limit,
        )
        return [RestaurantResponse.from_restaurant(r) for r in restaurants]

    @app.post("/restaurants/search-ai/stream")
    async def ai_search_stream(
        text: str = Form(default=""),
        preferences: str = Form(default=""),
        limit: int = Form(default=10, ge=1, le=50),
        image: UploadFile | None = File(default=None),
    ):
        """Stream the backend's raw JSON answer as it is produced."""
        if search_engine is None:
            raise HTTPException(status_code=503, detail="Search engine not initialized")

        upload = await _read_upload(image)
        stream = search_engine.search_stream(
            query=text,
            image=upload,
            preferences=preferences,
            limit=limit,
        )

        # Pull the first fragment before any header is sent, so setup and
        # backend failures still map to a status code
        try:
            first = await stream.__anext__()
        except StopAsyncIteration:
            first = ""
        except InferenceError as e:
            logger.error("search_stream_error", error=str(e))
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            logger.error("search_stream_error", error=str(e), error_type=type(e).__name__)
            raise HTTPException(status_code=500, detail=f"Search failed: {e}")

        async def fragments() -> AsyncIterator[str]:
            try:
                if first:
                    yield first
                async for fragment in stream:
                    yield fragment
            except InferenceError as e:
                # Headers are already sent, so the stream just ends early
                logger.error("search_stream_error", error=str(e))
            finally:
                await stream.aclose()

        return StreamingResponse(fragments(), media_type="text/plain; charset=utf-8")

    async def run_turn(
        session_id: str,
        user_input: str,
        preferences: str | None,
        limit: int,
        image: ImageUpload | None = None,
    ) -> ChatSearchResponse:
        start_time = time.time()

        if session_manager is None:
            raise HTTPException(status_code=503, detail="Session manager not initialized")

        session = await session_manager.get_or_create_session(session_id)
        if preferences is not None:
            session.preferences = preferences
        session.add_user_turn(user_input or "[image]")

        state: ConversationState = {
            "session_id": session_id,
            "user_input": user_input,
            "image": image,
            "preferences": session.preferences,
            "limit": limit,
            "timestamp": datetime.utcnow().isoformat(),
            "context": session.selection,
            "intent": None,
            "category": None,
            "candidates": [],
            "constraints": [],
            "lifted_constraints": [],
            "operation": None,
            "catalog": [],
            "restaurants": [],
            "error": None,
        }

        try:
            pipeline = get_conversation_pipeline()
            result = await pipeline.ainvoke(state)
        except Exception as e:
            logger.error("chat_search_error", error=str(e), session_id=session_id)
            raise HTTPException(status_code=500, detail=str(e))

        if result.get("error"):
            logger.error(
                "chat_search_interpretation_failed",
                error=result["error"],
                session_id=session_id,
            )
            await session_manager.save_session(session)
            raise HTTPException(status_code=502, detail=result["error"])

        context = result["context"]
        session.selection = context
        session.add_assistant_turn(
            content=f"{len(context.entries)} dishes selected",
            intent=result.get("intent"),
            operation=result.get("operation"),
        )
        await session_manager.save_session(session)

        processing_time = (time.time() - start_time) * 1000

        return ChatSearchResponse(
            session_id=session_id,
            intent=result.get("intent"),
            operation_performed=result.get("operation"),
            restaurants=[
                RestaurantResponse.from_restaurant(r) for r in result.get("restaurants", [])
            ],
            selection=context.entries,
            constraints=context.constraints,
            processing_time_ms=round(processing_time, 2),
        )

    @app.post("/chat/search", response_model=ChatSearchResponse)
    async def chat_search(request: ChatSearchRequest):
        """Run one conversation turn.

        This endpoint:
        1. Loads/creates session
        2. Runs the LangGraph pipeline
        3. Saves the new selection to the session
        4. Returns the selection pruned from the catalog

        Examples:
        - "I want khinkali"
        - "I'll take the beef khinkali"
        - "add drinks"
        - "I'm allergic to nuts"
        """
        return await run_turn(
            request.session_id,
            request.user_input,
            request.preferences,
            request.limit,
        )

    @app.post("/chat/search/multimodal", response_model=ChatSearchResponse)
    async def chat_search_multimodal(
        session_id: str = Form(..., min_length=8, max_length=64),
        user_input: str = Form(default="", max_length=500),
        preferences: str | None = Form(default=None, max_length=500),
        limit: int = Form(default=10, ge=1, le=50),
        image: UploadFile | None = File(default=None),
    ):
        """Run one conversation turn with an optional photo.

        Same flow as /chat/search; the photo is interpreted together with
        the session's current selection and constraints.
        """
        upload = await _read_upload(image)
        if upload is None and not user_input.strip():
            raise HTTPException(status_code=422, detail="Provide user_input, an image, or both")

        return await run_turn(session_id, user_input, preferences, limit, image=upload)

    # Session endpoints
    @app.get("/session/{session_id}", response_model=SessionResponse)
    async def get_session(session_id: str):
        """Get session state."""
        if session_manager is None:
            raise HTTPException(status_code=503, detail="Session manager not initialized")

        session = await session_manager.get_session(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")

        return SessionResponse(
            session_id=session.session_id,
            created_at=session.created_at.isoformat(),
            last_activity=session.last_activity.isoformat(),
            selection=session.selection.entries,
            constraints=session.selection.constraints,
            preferences=session.preferences,
            conversation_length=len(session.conversation),
        )

    @app.delete("/session/{session_id}")
    async def delete_session(session_id: str):
        """Clear session and start fresh."""
        if session_manager is None:
            raise HTTPException(status_code=503, detail="Session manager not initialized")

        deleted = await session_manager.delete_session(session_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"status": "deleted", "session_id": session_id}

    return app


# Create app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
