from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.cache import cache
from .core.config import settings
from .core.database import close_db_connections
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging
from .routers import health, progress
from .routers.chat import chat_router, websocket_router
from .services.chat.broadcaster import Broadcaster
from .services.chat.room_registry import RoomRegistry

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting CourseHub realtime API")

    yield

    logger.info("Shutting down CourseHub realtime API")
    await cache.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")

def create_app() -> FastAPI:
    app = FastAPI(
        title="CourseHub Realtime API",
        description="Course group chat and cross-device video progress sync",
        version=settings.app_version,
        lifespan=lifespan
    )

    # One registry per process; handed to request handlers explicitly
    registry = RoomRegistry()
    app.state.room_registry = registry
    app.state.broadcaster = Broadcaster(registry)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(chat_router)
    app.include_router(websocket_router)
    app.include_router(progress.router)

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("coursehub.main:app", host="0.0.0.0", port=8000, reload=True)
