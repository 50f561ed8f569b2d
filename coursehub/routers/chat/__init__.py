# coursehub/routers/chat/__init__.py
from .chat_router import router as chat_router
from .websocket_router import router as websocket_router

__all__ = ["chat_router", "websocket_router"]
