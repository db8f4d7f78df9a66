"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from notifyq.queue.composer import NotificationComposer, Portal
from notifyq.queue.engine import Clock, QueueEngine
from notifyq.queue.errors import NotifyQueueError
from notifyq.queue.retry import ManualRetryController
from notifyq.queue.scheduler import QueueScheduler
from notifyq.queue.sender import DeliverySender, LogSender, WebhookSender
from notifyq.queue.store import SqliteQueueStore
from notifyq.server.config import SenderConfig, ServerConfig, load_config_from_env
from notifyq.server.middleware.logging import RequestLoggingMiddleware, sanitize_dict
from notifyq.server.models.responses import ErrorResponse, ErrorDetail
from notifyq.server.routes.health import create_health_router
from notifyq.server.routes.notifications import create_notifications_router
from notifyq.state.database import DatabaseManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueServices:
    """Everything built once per process around one queue store."""

    db: DatabaseManager
    store: SqliteQueueStore
    engine: QueueEngine
    composer: NotificationComposer
    retry_controller: ManualRetryController
    scheduler: QueueScheduler


def build_sender(config: SenderConfig) -> DeliverySender:
    """Build the delivery sender selected by ``config.method``."""
    if config.method == "webhook":
        return WebhookSender(
            url=config.url,
            api_key=config.api_key,
            from_address=config.from_address,
            timeout=config.timeout,
        )
    if config.method == "log":
        return LogSender(from_address=config.from_address)
    raise ValueError(f"Unknown sender method {config.method!r}")


def build_services(
    config: ServerConfig,
    sender: Optional[DeliverySender] = None,
    clock: Optional[Clock] = None,
) -> QueueServices:
    """Wire store, engine, composer, retry controller and scheduler."""
    db = DatabaseManager(config.db_path)
    store = SqliteQueueStore(db)
    engine = QueueEngine(
        store,
        sender or build_sender(config.sender),
        settings=config.queue,
        clock=clock,
    )
    return QueueServices(
        db=db,
        store=store,
        engine=engine,
        composer=NotificationComposer(engine, Portal(name=config.portal.name, url=config.portal.url)),
        retry_controller=ManualRetryController(
            store,
            clock=engine.clock,
            reset_attempts=config.queue.manual_retry_resets_attempts,
        ),
        scheduler=QueueScheduler(engine, interval=config.queue.interval),
    )


def create_app(
    config: Optional[ServerConfig] = None,
    sender: Optional[DeliverySender] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When called without arguments (e.g. via uvicorn --factory), loads
    configuration from environment variables. ``sender`` overrides the
    configured delivery transport.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    if config is None:
        config = load_config_from_env()

    services = build_services(config, sender)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await services.db.initialize()
        logger.info("Database initialized at %s", config.db_path)
        if config.scheduler_enabled:
            await services.scheduler.start()
        else:
            logger.info("Queue scheduler disabled")
        yield
        await services.scheduler.stop(timeout=config.queue.interval * 6)
        await services.db.close()

    app = FastAPI(
        title="notifyq",
        description="Transactional notification delivery queue",
        version=config.version,
        lifespan=lifespan,
    )
    app.state.services = services
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(NotifyQueueError, _queue_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(PydanticValidationError, _validation_error_handler)
    app.include_router(create_health_router(config, services.store, services.scheduler))
    app.include_router(
        create_notifications_router(
            services.store,
            services.composer,
            services.retry_controller,
            scheduler=services.scheduler,
            admin_token=config.admin_token,
        )
    )
    return app


async def _queue_error_handler(request: Request, exc: NotifyQueueError) -> JSONResponse:
    logger.warning(
        "%s %s -> %s %s", request.method, request.url.path, exc.error_code,
        sanitize_dict(exc.details or {}),
    )
    response = ErrorResponse(error=ErrorDetail(code=exc.error_code, message=exc.message, details=exc.details))
    return JSONResponse(status_code=exc.status_code, content=response.model_dump())


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if hasattr(exc, "errors") else []
    details = {"validation_errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors]}
    response = ErrorResponse(error=ErrorDetail(code="INVALID_FORMAT", message="Request validation failed", details=details))
    return JSONResponse(status_code=400, content=response.model_dump())
