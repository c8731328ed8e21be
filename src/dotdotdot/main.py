"""Main entry point for the dotdotdot API service."""

import asyncio

from dotdotdot.api.server import BulletsAPIServer, run_server
from dotdotdot.config import get_settings
from dotdotdot.logging import get_logger, setup_logging
from dotdotdot.pipeline import create_pipeline
from dotdotdot.store import create_store
from dotdotdot.summarizer.client import SummarizerClient


def build_server() -> BulletsAPIServer:
    """Wire settings, store, summarizer and pipeline into a server."""
    settings = get_settings()

    store = create_store(settings)
    summarizer = SummarizerClient(
        settings.summarizer_api_url,
        api_key=(
            settings.summarizer_api_key.get_secret_value()
            if settings.summarizer_api_key
            else None
        ),
        model=settings.summarizer_model,
        temperature=settings.summarizer_temperature,
        max_tokens=settings.summarizer_max_tokens,
        timeout=settings.summarizer_timeout_seconds,
        max_attempts=settings.summarizer_max_attempts,
        backoff_seconds=settings.summarizer_backoff_seconds,
    )
    pipeline = create_pipeline(settings, store=store, summarizer=summarizer)

    return BulletsAPIServer(
        pipeline,
        store,
        host=settings.api_host,
        port=settings.api_port,
        allowed_origins=settings.allowed_origins,
        summarizer=summarizer,
    )


def main() -> None:
    """Main application entry point."""
    setup_logging()
    log = get_logger("dotdotdot.main")

    settings = get_settings()
    log.info(
        "starting_dotdotdot",
        environment=settings.environment,
        kv_backend=settings.kv_backend,
        cache_enabled=settings.cache_enabled,
    )

    try:
        asyncio.run(run_server(build_server()))
    except KeyboardInterrupt:
        log.info("dotdotdot_shutdown")


if __name__ == "__main__":
    main()
