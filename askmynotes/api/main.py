"""
FastAPI application for the AskMyNotes API.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from askmynotes.db.session import create_all
from askmynotes.runtime import Runtime

from .review_routes import router as review_router
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the shared runtime on startup; drop cached clients on shutdown."""
    await create_all()
    app.state.runtime = Runtime()
    if app.state.runtime.demo_mode:
        logger.info("No LLM API key configured; running in demo mode")
    yield
    app.state.runtime.reset()


app = FastAPI(
    title="AskMyNotes API",
    description="Subject-scoped Q&A, study tools and spaced review grounded in your own notes",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.include_router(router)
app.include_router(review_router)
