"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..logging_config import get_logger
from ..orchestrator import Orchestrator
from .routes import control, decisions, observability, tasks

logger = get_logger(__name__)


def create_fastapi_app(
    orchestrator: Orchestrator, *, manage_lifecycle: bool = True
) -> FastAPI:
    """Create and configure FastAPI application around an orchestrator.

    With `manage_lifecycle` the app initializes the orchestrator on startup
    and shuts it down on exit; otherwise the caller owns both.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        if manage_lifecycle:
            await orchestrator.initialize()
            logger.info("Orchestrator ready")
        yield
        if manage_lifecycle:
            await orchestrator.shutdown()

    fastapi_app = FastAPI(
        title="Boardroom API",
        description="Control surface for the Boardroom agent orchestrator",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Enable CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(observability.create_observability_router(orchestrator))
    fastapi_app.include_router(control.create_control_router(orchestrator))
    fastapi_app.include_router(tasks.create_tasks_router(orchestrator))
    fastapi_app.include_router(decisions.create_decisions_router(orchestrator))

    return fastapi_app
