"""Main entry point for Boardroom."""

import asyncio
from dataclasses import replace

import uvicorn
from dotenv import load_dotenv

from boardroom.api import create_fastapi_app
from boardroom.config import PROJECT_ROOT, Settings
from boardroom.logging_config import get_logger, setup_logging
from boardroom.orchestrator import Orchestrator
from boardroom.roles import default_roles, provision_agents
from boardroom.storage import Storage
from boardroom.tracker import Tracker

logger = get_logger(__name__)


async def serve(settings: Settings) -> None:
    """Open the store, provision the board and serve the API until stopped."""
    storage = Storage(settings.db_path)
    await storage.init()
    try:
        roles = [
            replace(descriptor, handler_timeout=settings.handler_timeout)
            for descriptor in default_roles()
        ]
        await provision_agents(storage, roles)

        orchestrator = Orchestrator(
            storage,
            roles,
            tracker=Tracker(storage),
            auto_start=settings.auto_start,
        )
        app = create_fastapi_app(orchestrator)

        config = uvicorn.Config(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower(),
        )
        await uvicorn.Server(config).serve()
    finally:
        await storage.close()


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger.info("Starting Boardroom on %s:%s", settings.api_host, settings.api_port)

    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
