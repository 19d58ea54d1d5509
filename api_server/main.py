"""FastAPI application entry point"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables
load_dotenv()

from api_server.middleware import setup_cors, setup_rate_limit, setup_logging, LoggingMiddleware
from api_server.routes import health_router, debate_router
from debate_core import DebateStore, FileStorageBackend
from debate_core.config import (
    DEBATE_STORE_DIR,
    LLM_ATTEMPT_TIMEOUT,
    LLM_MAX_ATTEMPTS,
    LLM_MAX_TOKENS,
    LLM_MIN_INTERVAL,
    LLM_MODEL,
)
from llm_client import RetryPolicy, create_client

# Setup logging
logger = setup_logging()


def groq_client_factory(api_key: str):
    """Build the retry-wrapped Groq client for one participant"""
    policy = RetryPolicy(
        max_attempts=LLM_MAX_ATTEMPTS,
        attempt_timeout=LLM_ATTEMPT_TIMEOUT,
        min_interval=LLM_MIN_INTERVAL,
    )
    return create_client(api_key, policy=policy, model=LLM_MODEL, max_tokens=LLM_MAX_TOKENS)


def build_default_store() -> DebateStore:
    return DebateStore(FileStorageBackend(DEBATE_STORE_DIR), groq_client_factory)


def create_app(store: Optional[DebateStore] = None) -> FastAPI:
    """Create the API with its own debate store

    Args:
        store: Store to serve from. Defaults to a file-backed store in
            DEBATE_STORE_DIR talking to Groq.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = store or build_default_store()
        if os.getenv("RECOVER_ON_STARTUP", "true").lower() == "true":
            restored = await app.state.store.recover_all()
            logger.info(f"Recovered {len(restored)} debates")
        yield
        await app.state.store.shutdown()

    app = FastAPI(
        title="AI Debate API",
        description="Multi-round AI debates scored by a panel of six judges",
        version="2.0.0",
        lifespan=lifespan,
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limit(app)
    app.add_middleware(LoggingMiddleware)

    # Include routers
    app.include_router(health_router)
    app.include_router(debate_router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "AI Debate API",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "api_server.main:app",
        host=host,
        port=port,
        reload=True,
    )
