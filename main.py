# main.py - Signaling relay service

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging
import uvicorn

from config.signaling_config import SignalingSettings, load_settings
from connection_registry import ConnectionRegistry
from models.schemas import IceServer, IceServersResponse
from room_manager import RoomRegistry
from routes.room_management import router as room_router
from routes.participant_management import router as participant_router
from session_coordinator import SessionCoordinator
from signaling import router as signaling_router

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_coordinator(settings: SignalingSettings) -> SessionCoordinator:
    """Wire the registries together; one coordinator per app"""
    rooms = RoomRegistry(capacity=settings.room_capacity, overflow_policy=settings.overflow_policy)
    return SessionCoordinator(
        rooms=rooms,
        connections=ConnectionRegistry(),
        max_rooms_per_connection=settings.max_rooms_per_connection,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle app startup and shutdown"""
    settings: SignalingSettings = app.state.settings
    logger.info(
        f"Starting signaling relay (capacity={settings.room_capacity}, "
        f"overflow_policy={settings.overflow_policy.value})"
    )

    yield

    coordinator: SessionCoordinator = app.state.coordinator
    logger.info(
        f"Shutting down signaling relay with {len(coordinator.connections)} open connection(s) "
        f"and {len(coordinator.rooms)} room(s)"
    )


def create_app(settings: Optional[SignalingSettings] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="Signaling Relay API",
        description="Room-based WebRTC signaling for two-party calls",
        version="1.0.0",
        lifespan=lifespan,
        # Disable docs in production
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )
    app.state.settings = settings
    app.state.coordinator = build_coordinator(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["GET", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(signaling_router)
    app.include_router(room_router, prefix="/api", tags=["Room Management"])
    app.include_router(participant_router, prefix="/api", tags=["Participant Management"])

    @app.get("/")
    async def root():
        return {
            "message": "Signaling Relay API",
            "status": "running",
            "version": "1.0.0",
            "environment": settings.environment,
            "endpoints": {
                "signaling": "/ws",
                "list_rooms": "/api/rooms",
                "room_info": "/api/room/{room_id}",
                "participants": "/api/room/{room_id}/participants",
                "ice_servers": "/api/ice-servers",
                "health": "/health"
            }
        }

    @app.get("/health")
    async def health_check(request: Request):
        coordinator: SessionCoordinator = request.app.state.coordinator
        return {
            "status": "healthy",
            "connections": len(coordinator.connections),
            "rooms": len(coordinator.rooms),
            "environment": settings.environment,
        }

    @app.get("/api/ice-servers", response_model=IceServersResponse)
    async def ice_servers():
        return IceServersResponse(iceServers=[IceServer(urls=url) for url in settings.ice_servers])

    @app.exception_handler(500)
    async def internal_server_error_handler(request, exc):
        logger.error(f"Internal server error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred"
            }
        )

    return app


settings = load_settings()
configure_logging(settings.log_level)
app = create_app(settings)

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
