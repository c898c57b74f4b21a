import logging

from fastapi import FastAPI

from adventure_engine.config import Settings, load_settings
from adventure_engine.genai import GeminiClient, GenAI
from adventure_engine.sessions import SessionRegistry
from backend.routes import router


def create_app(settings: Settings | None = None, genai: GenAI | None = None) -> FastAPI:
    """Build the API app.

    Without an injected client, settings are loaded from the environment and
    a missing API key raises ConfigError, which aborts startup.
    """
    if genai is None:
        settings = settings or load_settings()
        logging.basicConfig(level=settings.log_level)
        genai = GeminiClient.from_settings(settings)

    app = FastAPI(title="Adventure Engine")
    app.state.sessions = SessionRegistry(genai)
    app.include_router(router, prefix="/api")
    return app
