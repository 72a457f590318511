from .handler import websocket_live

__all__ = ["websocket_live"]
