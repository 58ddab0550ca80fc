import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.errors import app_error_handler, app_validation_exception_handler
from app.app_config import AppEnvironConfig, get_app_environ_config
from app.domain.idea.idea_linkage import BeanieIdeaLinkage, IdeaLinkage, InMemoryIdeaLinkage
from app.domain.session._beanie_store import BeanieSessionStore
from app.domain.session._memory_store import InMemorySessionStore
from app.domain.session.session_domain import SessionService
from app.domain.session.session_events import (
    InMemorySessionEventPublisher,
    NullSessionEventPublisher,
    RedisSessionEventPublisher,
    SessionEventPublisher,
)
from app.domain.session.session_store import SessionStore
from app.schemas import init_beanie_odm
from app.shared.api.health import router as health_router
from app.shared.api.utils import api_failure, init_logger, load_routes
from app.shared.storage.mongo import MongoManager
from app.utils.app_errors import AppError, AppErrorCode


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.INTERNAL_ERROR.value,
                errmesg=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(mode="json"),
            )


async def build_persistence(server: FastAPI, env: AppEnvironConfig) -> tuple[SessionStore, IdeaLinkage]:
    if env.STORE_BACKEND == "memory":
        logger.warning("Using in-memory session store, data is lost on restart")
        return InMemorySessionStore(), InMemoryIdeaLinkage()

    mongo_manager = MongoManager(
        env.MONGO_URL,
        max_pool_size=env.MONGO_MAX_POOL_SIZE,
        server_selection_timeout_ms=env.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        connect_timeout_ms=env.MONGO_CONNECT_TIMEOUT_MS,
        socket_timeout_ms=env.MONGO_SOCKET_TIMEOUT_MS,
    )
    server.state.mongo_manager = mongo_manager

    await init_beanie_odm(mongo_manager.get_client(), env.MONGO_DATABASE)
    logger.info("Beanie initialized on database {}", env.MONGO_DATABASE)

    return BeanieSessionStore(max_retries=env.SESSION_UPDATE_MAX_RETRIES), BeanieIdeaLinkage()


def build_publisher(env: AppEnvironConfig) -> SessionEventPublisher:
    if env.EVENTS_BACKEND == "redis":
        logger.info("Publishing session events to redis channels {}:<session_id>", env.EVENTS_CHANNEL_PREFIX)
        return RedisSessionEventPublisher(
            Redis.from_url(env.REDIS_URL),
            channel_prefix=env.EVENTS_CHANNEL_PREFIX,
        )
    if env.EVENTS_BACKEND == "memory":
        return InMemorySessionEventPublisher()
    return NullSessionEventPublisher()


@asynccontextmanager
async def lifespan(server: FastAPI):
    env = get_app_environ_config()
    init_logger(env.DEBUG)

    logger.info("Application startup...")

    server.state.mongo_manager = None
    store, ideas = await build_persistence(server, env)
    publisher = build_publisher(env)

    server.state.session_service = SessionService(
        store,
        ideas,
        publisher,
        default_max_participants=env.DEFAULT_MAX_PARTICIPANTS,
        default_duration_minutes=env.DEFAULT_DURATION_MINUTES,
        chat_message_max_length=env.CHAT_MESSAGE_MAX_LENGTH,
    )

    load_routes(server, "/api/v1")

    if env.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=env.LOGFIRE_TOKEN,
            service_name="idea-sessions-api",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument mongo")
        logfire.instrument_pymongo(capture_statement=env.DEBUG)

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await publisher.close()
    if server.state.mongo_manager is not None:
        server.state.mongo_manager.close_all()


app = FastAPI(
    version="1.0",
    title="Idea Sessions API",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore

app.include_router(health_router)


def build_granian_kwargs():
    env = get_app_environ_config()
    kwargs = {
        "interface": "asgi",
        "address": env.API_HOST,
        "port": env.API_PORT,
        "workers": env.API_WORKERS,
        "reload": env.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
