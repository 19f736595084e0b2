import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes.undo import router as undo_router
from app.capabilities.restorers.registry import RestorerRegistry
from app.config.settings import get_settings
from app.core.container import AppContainer, set_container
from app.db.seed import seed_app_data
from app.db.session import session_scope
from app.middleware.error_handler import (
    ServiceError,
    catch_all_handler,
    service_error_handler,
    validation_error_handler,
)
from app.services.event_bus import EventBus

logger = logging.getLogger(__name__)


def _configure_app_logging(level_name: str) -> None:
    """Route app.* records to uvicorn's handlers when present, else to stderr."""
    app_logger = logging.getLogger("app")
    app_logger.propagate = False
    app_logger.setLevel(logging.getLevelName(level_name.upper()))

    uvicorn_handlers = logging.getLogger("uvicorn.error").handlers
    if uvicorn_handlers:
        app_logger.handlers = list(uvicorn_handlers)
    elif not app_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s:     %(name)s - %(message)s"))
        app_logger.addHandler(handler)


def _build_container() -> AppContainer:
    registry = RestorerRegistry()
    registry.register_builtin_plugins()
    return AppContainer(event_bus=EventBus(), restorer_registry=registry)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    _configure_app_logging(settings.log_level)

    container = _build_container()
    app.state.container = container
    set_container(container)
    logger.info(
        "Starting %s env=%s restorers=%s",
        settings.app_name,
        settings.app_env,
        ",".join(container.restorer_registry.list_entity_types()),
    )

    # Alembic owns the schema; seeding only fills gaps on fresh databases.
    with session_scope() as session:
        seed_app_data(session)

    yield

    set_container(None)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(Exception, catch_all_handler)

    app.include_router(undo_router)

    @app.get("/health")
    async def health(request: Request) -> dict:
        container: AppContainer = request.app.state.container
        return {
            "status": "ok",
            "env": settings.app_env,
            "restorers": container.restorer_registry.list_entity_types(),
        }

    return app


app = create_app()
