"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from journeymap.config import settings

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.journeymap_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="JourneyMap",
        description="Multi-actor journey maps extracted from free-text scenarios",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from journeymap.engine.pipeline import create_pipeline
    from journeymap.llm.client import ExtractionClient
    from journeymap.store import JourneyStore

    app.state.store = JourneyStore(history_limit=settings.history_limit)
    app.state.extraction_client = ExtractionClient(settings)
    app.state.pipeline = create_pipeline(settings.assembly_config())

    from journeymap.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
