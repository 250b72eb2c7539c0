"""FastAPI application entry point (uvicorn taskflow.main:app).

Wiring only: settings, lifespan, exception handlers and the v1 router. The
engine itself is built lazily per process in taskflow.api.v1.dependencies.
"""

from fastapi import FastAPI

from taskflow.api.v1 import api_router
from taskflow.core.config import Settings, get_settings
from taskflow.core.exception_handlers import register_exception_handlers
from taskflow.core.lifespan import create_lifespan
from taskflow.shared.enums import ActionType, TriggerType

API_PREFIX = "/api/v1"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app. Interactive docs are served only in debug mode."""
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Workflow automation engine: triggers, conditions and actions.",
        debug=settings.debug,
        lifespan=create_lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)

    @app.get("/", include_in_schema=False)
    def index() -> dict:
        """Service name plus the trigger and action kinds this build understands."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "api": API_PREFIX,
            "trigger_types": TriggerType.values(),
            "action_types": ActionType.values(),
        }

    return app


app = create_app()
