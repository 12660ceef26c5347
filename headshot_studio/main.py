"""Main FastAPI application entry point."""

import os
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI

from . import __version__
from .api import headshot, health
from .core import (
    ArtifactStore,
    ArtifactSweeper,
    HeadshotGenerator,
    HeadshotPipeline,
    ImageNormalizer,
    UploadValidator,
)
from .core.generator import ImageModelClient
from .providers import GeminiImageClient
from .utils.config import Config, load_config
from .utils.logger import get_logger

logger = get_logger(__name__)


def build_pipeline(
    config: Config,
    client: ImageModelClient,
    store: ArtifactStore,
) -> HeadshotPipeline:
    """Wire the core components from configuration."""
    policy = config.policy
    return HeadshotPipeline(
        validator=UploadValidator(policy),
        normalizer=ImageNormalizer(policy),
        generator=HeadshotGenerator(client, policy),
        store=store,
        timeout_seconds=policy.request_timeout_seconds,
    )


def create_app(
    config: Optional[Config] = None,
    client: Optional[ImageModelClient] = None,
) -> FastAPI:
    """
    Create the application.

    Args:
        config: Preloaded configuration; loaded from env + YAML at startup if omitted
        client: Upstream model client; a GeminiImageClient is created if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for startup and shutdown.

        Builds the shared model client and pipeline once, starts the
        artifact sweeper, and tears both down on shutdown.
        """
        logger.info("Application starting up...")

        try:
            app_config = config or load_config()

            owns_client = client is None
            model_client = client or GeminiImageClient(
                api_key=app_config.google_api_key,
                model=app_config.gemini_model,
                base_url=app_config.gemini_base_url,
                timeout=app_config.timeout_gemini_seconds,
            )
            if owns_client:
                await model_client.initialize()

            store = ArtifactStore(app_config.upload_dir)
            pipeline = build_pipeline(app_config, model_client, store)

            sweeper = ArtifactSweeper(
                store,
                interval_seconds=app_config.policy.sweep_interval_seconds,
                max_age_seconds=app_config.policy.max_artifact_age_seconds,
            )
            sweeper.start()

            app.state.config = app_config
            app.state.client = model_client
            app.state.store = store
            app.state.pipeline = pipeline
            app.state.sweeper = sweeper

            logger.info(
                "Application startup complete",
                extra={"upload_dir": str(store.root), "model": app_config.gemini_model}
            )

        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise

        yield

        logger.info("Application shutting down...")
        await sweeper.stop()
        if owns_client:
            await model_client.close()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Headshot Studio",
        description="Styled professional headshots from a single photo",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(headshot.router, prefix="/api/headshot", tags=["headshot"])

    @app.get("/")
    async def root():
        return {
            "service": "headshot-studio",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 3001))

    uvicorn.run(
        "headshot_studio.main:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
