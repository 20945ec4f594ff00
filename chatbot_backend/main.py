"""
FastAPI application bootstrap with: \n
- Lifespan-managed construction of the chat pipeline (database engine, shared HTTP client, providers, reply generator) \n
- CORS configured for the frontend \n
- Uniform JSON error bodies: every HTTPException renders as {"success": false, "error": detail} \n

Environment contract (from `settings`): \n
- FRONTEND_URL: allowed CORS origin. \n
- DB_*: database connection; tables are created at startup. \n
- HTTP_TIMEOUT_SECONDS: timeout of the shared outbound HTTP client. \n
- LOG_LEVEL: root logging level. \n
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatbot_backend.api.fast_api import router
from chatbot_backend.api.llm_pipeline import ChatPipeline
from chatbot_backend.api.news_search import NewsProvider
from chatbot_backend.api.prompt_utilities import ImageLoader, PromptAugmenter
from chatbot_backend.api.reply_generator import ReplyGenerator
from chatbot_backend.api.web_search import WebSearchProvider
from chatbot_backend.database.config.config import settings
from chatbot_backend.database.config.connection_engine import ConnectionEngine
from chatbot_backend.database.core.conversation_store import ConversationStore

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup (before yielding):
        * Open the database engine and create missing tables.
        * Open one shared `httpx.AsyncClient` for web search and news.
        * Build the conversation store and the `ChatPipeline`, attach both to `app.state`.
    - On shutdown (after yielding):
        * Close the HTTP client and dispose the database engine.
    """
    logger.info("Opening database engine...")
    connection_engine = ConnectionEngine.from_settings(settings).open()
    connection_engine.create_tables()

    http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, follow_redirects=True)
    store = ConversationStore(connection_engine)
    pipeline = ChatPipeline(
        store=store,
        reply_generator=ReplyGenerator(),
        augmenter=PromptAugmenter(WebSearchProvider(http_client)),
        news_provider=NewsProvider(http_client),
        image_loader=ImageLoader(settings.PUBLIC_DIR),
    )
    app.state.connection_engine = connection_engine
    app.state.store = store
    app.state.pipeline = pipeline
    logger.info("Chat pipeline ready (default model: %s)", settings.default_model)

    try:
        yield
    finally:
        await http_client.aclose()
        connection_engine.close()
        logger.info("Chat pipeline shutdown complete.")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(lifespan=lifespan)
"""Instantiates a FastAPI application object.
    The lifespan=lifespan argument registers the startup/shutdown lifecycle manager that
    builds and releases the chat pipeline and its resources.
"""


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as {"success": false, "error": detail}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# -----------------------
# CORS configuration
# -----------------------
url = settings.FRONTEND_URL
"""The allowed frontend origin (URL) used for CORS configuration."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[url],      # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------
# API routes
# -----------------------
app.include_router(router)
