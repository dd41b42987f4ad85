# app/main.py
from contextlib import asynccontextmanager

import redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api import include_routers
from app.data.database import init_db, make_engine, make_session_factory
from app.services.fawry_client import FawryGateway
from app.services.idempotency_service import IdempotencyCache
from app.services.notification_service import NotificationService
from app.utils.settings import Settings, load_settings
from app.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Checkout service starting")
    yield
    logger.info("Checkout service shutting down")
    app.state.redis.close()
    app.state.engine.dispose()


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": "Invalid request", "fields": fields}},
    )


def create_app(settings: Settings | None = None, redis_client: redis.Redis | None = None) -> FastAPI:
    """
    Wszystkie klienty (baza, redis, Fawry) tworzone raz tutaj
    i trzymane w app.state, zadnych globalnych singletonow.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url)
    try:
        init_db(engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    if redis_client is None:
        redis_client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )

    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.redis = redis_client
    app.state.idempotency = IdempotencyCache(redis_client, settings.idempotency_ttl_seconds)
    app.state.gateway = FawryGateway(settings)
    app.state.notifications = NotificationService(settings.currency_code)

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    include_routers(app)

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
