from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from routers.rooms import rooms_router
from routers.signaling import signaling_router
from backend import create_room_directory
from constants import Settings, LOG_LEVEL, LOG_FILE
from signaling.coordinator import SignalingCoordinator
from signaling.transport import WebSocketGateway
from logging_config import get_logger, setup_logging

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, directory=None) -> FastAPI:
    """Build the application with its own directory, gateway and coordinator.

    Passing ``directory`` replaces the store chosen by ``ROOM_STORE``.
    """
    settings = settings or Settings()
    directory = directory if directory is not None else create_room_directory(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.directory.close()
        logger.info("Room directory closed")

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    gateway = WebSocketGateway()
    app.state.settings = settings
    app.state.directory = directory
    app.state.gateway = gateway
    app.state.coordinator = SignalingCoordinator(directory=directory, transport=gateway)

    app.include_router(rooms_router)
    app.include_router(signaling_router)

    logger.info(f"FastAPI application initialized (env={settings.app_env}, room_store={settings.room_store})")
    return app


app = create_app()
