"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from svgnorm.config import settings
from svgnorm.engine.pipeline import load_passes

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.svgnorm_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="svgnorm",
        description="SVG normalization — fold transforms, materialize references, purge defs, round values",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import all pass modules to trigger registration
    load_passes()

    from svgnorm.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
